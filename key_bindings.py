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
from typing import Optional, Set

from config import Configuration
from keyboard_input import UnknownKeyError


class KeyBindingTranslator:
    """
    Turns action names into key events through the configured bindings.

    Stateless: every call resolves again and nothing remembers which keys are down.
    """

    def __init__(self, injector):
        self._injector = injector

    @staticmethod
    def resolve(action: str, config: Configuration) -> Optional[str]:
        return config.key_bindings.get(action)

    async def press(self, action: str, config: Configuration):
        await self._send(action, config, True)

    async def release(self, action: str, config: Configuration):
        await self._send(action, config, False)

    async def _send(self, action: str, config: Configuration, pressed: bool):
        binding = self.resolve(action, config)
        if binding is None:
            logging.warning(f"No binding found for action: {action}")
            return

        try:
            await self._injector.inject(binding, pressed)
        except UnknownKeyError:
            logging.warning(f"Failed to convert binding to a key: {binding} ({action})")
        except Exception as e:
            logging.exception(e)
            logging.warning(f"Could not {'press' if pressed else 'release'} {binding} ({action})")


class HeldKeys:
    """
    Per-session view of the translator that remembers which actions are down,
    so they can be released when the session ends.
    """

    def __init__(self, translator: KeyBindingTranslator, enabled: bool = True):
        self._translator = translator
        self._enabled = enabled
        self._held: Set[str] = set()

    @property
    def held(self) -> frozenset:
        return frozenset(self._held)

    async def press(self, action: str, config: Configuration):
        if self._enabled:
            self._held.add(action)
        await self._translator.press(action, config)

    async def release(self, action: str, config: Configuration):
        self._held.discard(action)
        await self._translator.release(action, config)

    async def release_all(self, config: Configuration):
        held, self._held = sorted(self._held), set()
        for action in held:
            logging.debug(f"Releasing held action {action}")
            await self._translator.release(action, config)
