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
import enum
import logging
import secrets

from websockets.asyncio.server import ServerConnection
from websockets.exceptions import ConnectionClosed, ConnectionClosedOK

import input_router
from config import Configuration
from events import ServerEvents, EventKind
from key_bindings import HeldKeys
from protocol import OutboundMessage, parse_message, AUTH, INVALID_PIN
from server_data import ServerState

AUTH_TIMEOUT = 10.0


class SessionState(enum.Enum):
    CONNECTING = "connecting"
    AWAITING_AUTH = "awaiting_auth"
    AUTHENTICATED = "authenticated"
    TERMINATED = "terminated"


class ControllerSession:
    """
    One connected controller: PIN handshake, then the input loop, then cleanup.
    """

    def __init__(self, connection: ServerConnection, config: Configuration, state: ServerState,
                 events: ServerEvents, keys: HeldKeys, auth_timeout: float = AUTH_TIMEOUT):
        self._connection = connection
        self._config = config
        self._state = state
        self._events = events
        self._keys = keys
        self._auth_timeout = auth_timeout
        self.peer = _format_peer(connection.remote_address)
        self.state = SessionState.CONNECTING

    async def run(self):
        self.state = SessionState.AWAITING_AUTH
        self._events.log(f"[+] New connection from: {self.peer}")

        if not await self._authenticate():
            self.state = SessionState.TERMINATED
            return

        count = await self._state.client_connected()
        self._events.emit(EventKind.CLIENT_COUNT, count)
        self.state = SessionState.AUTHENTICATED
        try:
            await self._message_loop()
        finally:
            await self._terminate()

    async def _authenticate(self) -> bool:
        try:
            frame = await asyncio.wait_for(self._connection.recv(), self._auth_timeout)
        except asyncio.TimeoutError:
            self._events.log(f"[TIMEOUT] Auth timeout: {self.peer}", logging.WARNING)
            return False
        except ConnectionClosed:
            logging.debug(f"{self.peer} closed before authenticating")
            return False

        message = parse_message(frame)
        if message is None or message.type != AUTH:
            logging.debug(f"{self.peer} did not start with an auth message")
            return False

        if message.pin is None or not secrets.compare_digest(message.pin.encode(), self._config.pin.encode()):
            await self.send(OutboundMessage.auth_failed(INVALID_PIN))
            self._events.log(f"[X] Auth failed: {self.peer}", logging.WARNING)
            return False

        await self.send(OutboundMessage.auth_success())
        self._events.log(f"[OK] Authenticated: {self.peer}")
        self._events.emit(EventKind.CLIENT_AUTHENTICATED, self.peer)
        return True

    async def _message_loop(self):
        while True:
            try:
                frame = await self._connection.recv()
            except ConnectionClosedOK:
                break
            except ConnectionClosed as e:
                logging.warning(f"{self.peer} WebSocket error: {e}")
                break

            message = parse_message(frame)
            if message is None:
                continue
            await input_router.dispatch(message, self._config, self.send, self._keys, self._events.log)

    async def _terminate(self):
        await self._keys.release_all(self._config)
        count = await self._state.client_disconnected()
        self._events.emit(EventKind.CLIENT_COUNT, count)
        self.state = SessionState.TERMINATED
        self._events.log(f"[DISCONNECTED] {self.peer}")
        self._events.emit(EventKind.CLIENT_DISCONNECTED, self.peer)

    async def send(self, message: OutboundMessage):
        try:
            await self._connection.send(message.encode())
        except ConnectionClosed as e:
            logging.warning(f"{self.peer} could not send {message.type}: {e}")


def _format_peer(address) -> str:
    if isinstance(address, tuple) and len(address) >= 2:
        return f"{address[0]}:{address[1]}"
    return str(address)
