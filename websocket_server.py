"""
Mobile Hero
Copyright (C) 2024 thiccaxe

This program is free software: you can redistribute it and/or modify
it under the terms of the GNU Affero General Public License as published
by the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.

This program is distributed in the hope that it will be useful,
but WITHOUT ANY WARRANTY; without even the implied warranty of
MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
GNU Affero General Public License for more details.

You should have received a copy of the GNU Affero General Public License
along with this program.  If not, see <https://www.gnu.org/licenses/>.
"""

import asyncio
import functools
import logging
from typing import Optional, Tuple

from websockets.asyncio.server import serve, Server, ServerConnection

from config import Configuration
from events import ServerEvents, EventKind
from key_bindings import KeyBindingTranslator, HeldKeys
from server_data import ServerState
from session import ControllerSession, AUTH_TIMEOUT

POLL_INTERVAL = 0.1


class ServerAlreadyRunningError(Exception): pass


class ServerBindError(Exception): pass


class ControllerServer:
    """
    Accepts controller connections and runs a session for each one.

    One server run lasts from start() until the stop request is noticed by the
    polling loop. Sessions that are still open after that keep running unless the
    configuration asks to disconnect them.
    """

    def __init__(self, events: ServerEvents, translator: KeyBindingTranslator, host: str = "0.0.0.0",
                 auth_timeout: float = AUTH_TIMEOUT, poll_interval: float = POLL_INTERVAL):
        self._events = events
        self._translator = translator
        self._host = host
        self._auth_timeout = auth_timeout
        self._poll_interval = poll_interval
        self._lifecycle_lock = asyncio.Lock()
        self._state: Optional[ServerState] = None
        self._run_task: Optional[asyncio.Task] = None

    @property
    def state(self) -> Optional[ServerState]:
        return self._state

    async def start(self, config: Configuration) -> Tuple[str, int]:
        async with self._lifecycle_lock:
            if self._state is not None and await self._state.is_running():
                raise ServerAlreadyRunningError("Server already running")

            state = ServerState()
            try:
                server = await serve(functools.partial(self.handler, config, state), self._host, config.port)
            except OSError as e:
                self._events.log(f"Could not bind {self._host}:{config.port}: {e}", logging.ERROR)
                raise ServerBindError(f"Could not bind {self._host}:{config.port}") from e

            await state.mark_running()
            self._state = state
            host, port = server.sockets[0].getsockname()[:2]

            self._events.log(f"WebSocket server listening on {host}:{port}")
            self._events.emit(EventKind.SERVER_STATUS, "running")
            self._run_task = asyncio.create_task(self._poll_for_stop(config, state, server))
            return host, port

    async def request_stop(self):
        if self._state is None:
            logging.debug(f"Stop requested while no server was started")
            return
        await self._state.request_stop()

    async def wait_stopped(self):
        if self._run_task is not None:
            await self._run_task

    async def stop(self):
        await self.request_stop()
        await self.wait_stopped()

    async def handler(self, config: Configuration, state: ServerState, connection: ServerConnection):
        session = ControllerSession(
            connection, config, state, self._events,
            HeldKeys(self._translator, enabled=config.release_keys_on_disconnect),
            auth_timeout=self._auth_timeout,
        )
        await session.run()

    async def _poll_for_stop(self, config: Configuration, state: ServerState, server: Server):
        try:
            while not await state.is_stop_requested():
                await asyncio.sleep(self._poll_interval)
        finally:
            server.close(close_connections=config.disconnect_on_stop)
            if config.disconnect_on_stop:
                await server.wait_closed()
            else:
                # let the close task stop listening, open sessions keep running
                await asyncio.sleep(0)
            await state.mark_stopped()
            self._events.emit(EventKind.SERVER_STATUS, "stopped")
            self._events.log("Server stopped")
