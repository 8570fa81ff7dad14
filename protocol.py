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

import dataclasses
import json
import logging
from typing import Optional, Union

from voluptuous import Schema, Required, Optional as Maybe, Any, ALLOW_EXTRA
import voluptuous.error

FRETS = ("green", "red", "yellow", "blue", "orange")
STRUMS = ("strum_up", "strum_down")
DRUM_PADS = ("drum_red", "drum_yellow", "drum_blue", "drum_orange", "drum_green", "drum_kick")
BUTTONS = ("starpower", "whammy", "start", "select")
NAVIGATION = ("left", "right", "up", "down")

ACTION_NAMES = FRETS + STRUMS + DRUM_PADS + BUTTONS + NAVIGATION

AUTH = "auth"
AUTH_SUCCESS = "auth_success"
AUTH_FAILED = "auth_failed"
PING = "ping"
PONG = "pong"

INVALID_PIN = "Invalid PIN"

_nullable_str = Any(None, str)


def _timestamp(value):
    # bool is an int subclass, keep it out of the timestamp
    if isinstance(value, bool) or not isinstance(value, int):
        raise voluptuous.error.Invalid(f"expected int, got {type(value).__name__}")
    return value


inbound_schema = Schema({
    Required("type"): str,
    Maybe("value"): _nullable_str,
    Maybe("key"): _nullable_str,
    Maybe("direction"): _nullable_str,
    Maybe("pressed"): Any(None, bool),
    Maybe("pin"): _nullable_str,
    Maybe("t"): Any(None, _timestamp),
}, extra=ALLOW_EXTRA)


@dataclasses.dataclass(frozen=True)
class InboundMessage:
    type: str
    value: Optional[str] = None
    key: Optional[str] = None
    direction: Optional[str] = None
    pressed: Optional[bool] = None
    pin: Optional[str] = None
    t: Optional[int] = None

    @property
    def payload(self) -> Optional[str]:
        """
        value, key and direction are interchangeable on the wire; the first one set wins
        """
        for candidate in (self.value, self.key, self.direction):
            if candidate is not None:
                return candidate
        return None

    @property
    def is_pressed(self) -> bool:
        return bool(self.pressed)


@dataclasses.dataclass(frozen=True)
class OutboundMessage:
    type: str
    message: Optional[str] = None
    t: Optional[int] = None

    def encode(self) -> str:
        return json.dumps({k: v for k, v in dataclasses.asdict(self).items() if v is not None})

    @classmethod
    def auth_success(cls):
        return cls(AUTH_SUCCESS)

    @classmethod
    def auth_failed(cls, reason: str = INVALID_PIN):
        return cls(AUTH_FAILED, message=reason)

    @classmethod
    def pong(cls, t: Optional[int]):
        return cls(PONG, t=t)


def parse_message(frame: Union[str, bytes]) -> Optional[InboundMessage]:
    try:
        packet = json.loads(frame)
    except (json.JSONDecodeError, UnicodeDecodeError):
        logging.debug(f"Dropping non-JSON frame")
        return None

    if not isinstance(packet, dict):
        logging.debug(f"Dropping frame that is not a JSON object")
        return None

    try:
        packet = inbound_schema(packet)
    except voluptuous.error.MultipleInvalid as e:
        logging.debug(f"Dropping malformed packet ({e.path}): {e}")
        return None

    return InboundMessage(**{field.name: packet.get(field.name) for field in dataclasses.fields(InboundMessage)})
