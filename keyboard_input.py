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
import logging
from typing import NamedTuple, Optional


class UnknownKeyError(Exception): pass


class ResolvedKey(NamedTuple):
    special: Optional[str]  # attribute name on pynput.keyboard.Key
    char: Optional[str]


SPECIAL_KEYS = {
    "space": "space",
    "enter": "enter",
    "return": "enter",
    "escape": "esc",
    "esc": "esc",
    "tab": "tab",
    "backspace": "backspace",
    "up": "up",
    "down": "down",
    "left": "left",
    "right": "right",
}

PUNCTUATION = {
    "semicolon": ";",
    "apostrophe": "'",
    "comma": ",",
    "period": ".",
    "slash": "/",
}


def resolve_key_name(name: str) -> ResolvedKey:
    lowered = name.lower()
    if lowered in SPECIAL_KEYS:
        return ResolvedKey(SPECIAL_KEYS[lowered], None)
    if lowered in PUNCTUATION:
        return ResolvedKey(None, PUNCTUATION[lowered])
    if len(name) == 1:
        return ResolvedKey(None, lowered)
    raise UnknownKeyError(name)


class KeyboardInput:
    """
    Synthetic key events on the host, through pynput.
    """

    def __init__(self):
        self._controller = None
        self._keys = None

    async def __aenter__(self):
        # pynput picks its platform backend on import
        from pynput import keyboard
        self._keys = keyboard
        self._controller = keyboard.Controller()
        logging.debug(f"Keyboard controller ready")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self._controller = None
        logging.debug(f"Keyboard controller released")

    def _to_pynput(self, resolved: ResolvedKey):
        if resolved.special is not None:
            return getattr(self._keys.Key, resolved.special)
        return self._keys.KeyCode.from_char(resolved.char)

    async def inject(self, physical_key: str, pressed: bool):
        if self._controller is None:
            raise RuntimeError("Keyboard controller is not open")
        key = self._to_pynput(resolve_key_name(physical_key))
        # the backend talks to the display server, keep it off the event loop
        if pressed:
            await asyncio.to_thread(self._controller.press, key)
        else:
            await asyncio.to_thread(self._controller.release, key)
