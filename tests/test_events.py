"""Unit tests for the observer event channel."""

from events import ServerEvents, ServerEvent, EventKind


class TestServerEvents:
    """Tests for ServerEvents."""

    async def test_emit_thenGet(self) -> None:
        events = ServerEvents()
        events.emit(EventKind.CLIENT_COUNT, 2)

        assert await events.get() == ServerEvent(EventKind.CLIENT_COUNT, 2)

    def test_log_emitsAndLogs(self, caplog) -> None:
        events = ServerEvents()
        events.log("[+] New connection from: 10.0.0.2:4000")

        assert events.drain() == [ServerEvent(EventKind.LOG, "[+] New connection from: 10.0.0.2:4000")]
        assert "New connection" in caplog.text

    def test_fullQueue_dropsInsteadOfBlocking(self, caplog) -> None:
        events = ServerEvents(maxsize=2)
        for count in range(5):
            events.emit(EventKind.CLIENT_COUNT, count)

        assert [event.payload for event in events.drain()] == [0, 1]
        assert "dropping client-count event" in caplog.text

    async def test_asyncIteration(self) -> None:
        events = ServerEvents()
        events.emit(EventKind.SERVER_STATUS, "running")

        async for event in events:
            assert event == ServerEvent(EventKind.SERVER_STATUS, "running")
            break

    def test_kinds_useObserverNames(self) -> None:
        assert {kind.value for kind in EventKind} == {
            "log", "server-status", "client-count", "client-authenticated", "client-disconnected",
        }
