"""Unit tests for action-to-key translation and held key tracking."""

import threading
from types import SimpleNamespace
from unittest.mock import Mock

import pytest

from config import Configuration
from key_bindings import KeyBindingTranslator, HeldKeys
from keyboard_input import KeyboardInput, resolve_key_name, ResolvedKey, UnknownKeyError


class TestResolveKeyName:
    """Physical key names are matched case-insensitively."""

    @pytest.mark.parametrize("name, expected", [
        ("a", ResolvedKey(None, "a")),
        ("A", ResolvedKey(None, "a")),
        ("Space", ResolvedKey("space", None)),
        ("Return", ResolvedKey("enter", None)),
        ("Enter", ResolvedKey("enter", None)),
        ("ESC", ResolvedKey("esc", None)),
        ("Escape", ResolvedKey("esc", None)),
        ("Up", ResolvedKey("up", None)),
        ("semicolon", ResolvedKey(None, ";")),
        (";", ResolvedKey(None, ";")),
        ("7", ResolvedKey(None, "7")),
    ])
    def test_knownNames(self, name, expected) -> None:
        assert resolve_key_name(name) == expected

    def test_unknownName_raises(self) -> None:
        with pytest.raises(UnknownKeyError):
            resolve_key_name("HyperDrive")


class TestKeyBindingTranslator:
    """Tests for KeyBindingTranslator."""

    def test_resolve_usesConfiguredBinding(self, config) -> None:
        assert KeyBindingTranslator.resolve("green", config) == "a"
        assert KeyBindingTranslator.resolve("drum_kick", config) == "Space"

    def test_resolve_unboundAction(self) -> None:
        assert KeyBindingTranslator.resolve("green", Configuration(key_bindings={})) is None

    async def test_pressRelease_injectBinding(self, translator, injector, config) -> None:
        await translator.press("orange", config)
        await translator.release("orange", config)

        assert injector.calls == [("g", True), ("g", False)]

    async def test_repeatedPress_isNotDebounced(self, translator, injector, config) -> None:
        await translator.press("green", config)
        await translator.press("green", config)

        assert injector.calls == [("a", True), ("a", True)]

    async def test_unboundAction_isLoggedOnly(self, translator, injector, caplog) -> None:
        await translator.press("strum_sideways", Configuration())

        assert injector.calls == []
        assert "No binding found for action: strum_sideways" in caplog.text

    async def test_unresolvableBinding_isLoggedOnly(self, translator, injector, caplog) -> None:
        config = Configuration(key_bindings={"green": "NotAKey"})

        await translator.press("green", config)

        assert injector.calls == []
        assert "Failed to convert binding" in caplog.text

    async def test_backendFailure_isLoggedOnly(self, config, caplog) -> None:
        class BrokenInjector:
            async def inject(self, physical_key, pressed):
                raise RuntimeError("display went away")

        await KeyBindingTranslator(BrokenInjector()).press("green", config)

        assert "Could not press a (green)" in caplog.text


class TestHeldKeys:
    """Tests for per-session held key tracking."""

    async def test_releaseAll_releasesStillHeldActions(self, translator, injector, config) -> None:
        keys = HeldKeys(translator)
        await keys.press("green", config)
        await keys.press("red", config)
        await keys.release("green", config)
        injector.calls.clear()

        await keys.release_all(config)

        assert injector.calls == [("s", False)]
        assert keys.held == frozenset()

    async def test_doublePress_releasedOnce(self, translator, injector, config) -> None:
        keys = HeldKeys(translator)
        await keys.press("green", config)
        await keys.press("green", config)
        injector.calls.clear()

        await keys.release_all(config)

        assert injector.calls == [("a", False)]

    async def test_disabled_releaseAllIsNoop(self, translator, injector, config) -> None:
        keys = HeldKeys(translator, enabled=False)
        await keys.press("green", config)
        injector.calls.clear()

        await keys.release_all(config)

        assert injector.calls == []


class TestKeyboardInput:
    """Tests for the pynput-backed injector, with the backend stubbed out."""

    @staticmethod
    def open_input(controller) -> KeyboardInput:
        keyboard_input = KeyboardInput()
        keyboard_input._keys = SimpleNamespace(
            Key=SimpleNamespace(space="<space>"),
            KeyCode=SimpleNamespace(from_char=lambda char: f"<{char}>"),
        )
        keyboard_input._controller = controller
        return keyboard_input

    async def test_inject_runsBackendOffTheEventLoop(self) -> None:
        threads = []
        controller = Mock()
        controller.press.side_effect = lambda key: threads.append(threading.get_ident())

        await self.open_input(controller).inject("Space", True)

        controller.press.assert_called_once_with("<space>")
        assert threads and threads[0] != threading.get_ident()

    async def test_inject_release(self) -> None:
        controller = Mock()

        await self.open_input(controller).inject("A", False)

        controller.release.assert_called_once_with("<a>")
        controller.press.assert_not_called()

    async def test_inject_unknownKey_raises(self) -> None:
        with pytest.raises(UnknownKeyError):
            await self.open_input(Mock()).inject("HyperDrive", True)

    async def test_inject_closedController_raises(self) -> None:
        with pytest.raises(RuntimeError):
            await KeyboardInput().inject("a", True)
