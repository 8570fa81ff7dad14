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
import enum
import logging
from typing import Any, List


class EventKind(str, enum.Enum):
    LOG = "log"
    SERVER_STATUS = "server-status"
    CLIENT_COUNT = "client-count"
    CLIENT_AUTHENTICATED = "client-authenticated"
    CLIENT_DISCONNECTED = "client-disconnected"


@dataclasses.dataclass(frozen=True)
class ServerEvent:
    kind: EventKind
    payload: Any = None


class ServerEvents:
    """
    Fire-and-forget channel from the server to whatever is watching it.

    Emitting never waits on the consumer; when the queue is full the event is dropped.
    """

    def __init__(self, maxsize: int = 1024):
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)

    def emit(self, kind: EventKind, payload: Any = None):
        try:
            self._queue.put_nowait(ServerEvent(kind, payload))
        except asyncio.QueueFull:
            logging.warning(f"Event queue full, dropping {kind.value} event")

    def log(self, message: str, level: int = logging.INFO):
        logging.log(level, message)
        self.emit(EventKind.LOG, message)

    async def get(self) -> ServerEvent:
        return await self._queue.get()

    def drain(self) -> List[ServerEvent]:
        events = []
        while not self._queue.empty():
            events.append(self._queue.get_nowait())
        return events

    def __aiter__(self):
        return self

    async def __anext__(self) -> ServerEvent:
        return await self._queue.get()
