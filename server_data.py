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
import dataclasses
import logging


@dataclasses.dataclass(frozen=True)
class ServerStatus:
    running: bool
    stop_requested: bool
    connected_clients: int


class ServerState:
    """
    Flags and counters of one server run, shared by the listener and every session.

    Every field is read and written under one lock, held only for the update itself.
    """

    def __init__(self):
        self._lock = asyncio.Lock()
        self._running = False
        self._stop_requested = False
        self._connected_clients = 0

    async def mark_running(self):
        async with self._lock:
            self._running = True
            self._stop_requested = False

    async def mark_stopped(self):
        async with self._lock:
            self._running = False
            self._stop_requested = False

    async def request_stop(self):
        async with self._lock:
            self._stop_requested = True

    async def is_running(self) -> bool:
        async with self._lock:
            return self._running

    async def is_stop_requested(self) -> bool:
        async with self._lock:
            return self._stop_requested

    async def client_connected(self) -> int:
        async with self._lock:
            self._connected_clients += 1
            return self._connected_clients

    async def client_disconnected(self) -> int:
        async with self._lock:
            if self._connected_clients == 0:
                logging.warning(f"Disconnected a client when none was connected!")
                return 0
            self._connected_clients -= 1
            return self._connected_clients

    async def snapshot(self) -> ServerStatus:
        async with self._lock:
            return ServerStatus(self._running, self._stop_requested, self._connected_clients)
