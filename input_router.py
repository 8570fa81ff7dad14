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

import logging
from typing import Awaitable, Callable, Optional

from config import Configuration
from protocol import InboundMessage, OutboundMessage, FRETS, BUTTONS, NAVIGATION, PING

Reply = Callable[[OutboundMessage], Awaitable[None]]
InputLog = Callable[[str, int], None]


def _fret_action(message: InboundMessage):
    if message.payload in FRETS:
        return message.payload
    return None


def _strum_action(message: InboundMessage):
    if message.payload is None:
        return None
    return f"strum_{message.payload}"


def _drum_action(message: InboundMessage):
    if message.payload is None:
        return None
    if message.payload == "kick":
        return "drum_kick"
    return f"drum_{message.payload}"


def _own_type(message: InboundMessage):
    return message.type


_action_resolvers = {
    "fret": _fret_action,
    "strum": _strum_action,
    "drum": _drum_action,
    **{button: _own_type for button in BUTTONS},
    **{direction: _own_type for direction in NAVIGATION},
}

_log_tags = {
    "fret": "FRET",
    "strum": "STRUM",
    "drum": "DRUM",
    **{button: "ACTION" for button in BUTTONS},
    **{direction: "NAV" for direction in NAVIGATION},
}


def action_for(message: InboundMessage):
    """
    Action name a controller message asks for, or None when the message asks for nothing.
    """
    resolver = _action_resolvers.get(message.type)
    if resolver is None:
        return None
    return resolver(message)


async def dispatch(message: InboundMessage, config: Configuration, reply: Reply, keys,
                   log: Optional[InputLog] = None) -> None:
    """
    Handle one message from an authenticated controller.

    `keys` takes press(action, config) / release(action, config). Input lines go to `log`
    (message, level) when given. Unknown types and payloads do nothing.
    """
    if message.type == PING:
        await reply(OutboundMessage.pong(message.t))
        return

    action = action_for(message)
    if action is None:
        if message.type not in _action_resolvers:
            logging.debug(f"Ignoring message of type {message.type!r}")
        else:
            logging.debug(f"Ignoring {message.type} with payload {message.payload!r}")
        return

    if message.is_pressed:
        await keys.press(action, config)
        line = f"[{_log_tags[message.type]}] {action} pressed"
    else:
        await keys.release(action, config)
        line = f"[{_log_tags[message.type]}] {action} released"

    if log is None:
        logging.debug(line)
    else:
        log(line, logging.DEBUG)
