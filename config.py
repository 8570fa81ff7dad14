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
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

from voluptuous import Schema, Optional, All, Range, Length, In
import voluptuous.error
import aiofiles
import tomlkit
import tomlkit.exceptions

from protocol import ACTION_NAMES


class ConfigurationLoadError(Exception): pass


DEFAULT_KEY_BINDINGS = {
    # frets
    "green": "a",
    "red": "s",
    "yellow": "d",
    "blue": "f",
    "orange": "g",
    # strum
    "strum_up": "Up",
    "strum_down": "Down",
    # actions
    "starpower": "l",
    "whammy": ";",
    "start": "Enter",
    "select": "Escape",
    # navigation
    "left": "Left",
    "right": "Right",
    "up": "Up",
    "down": "Down",
    # drums
    "drum_red": "v",
    "drum_yellow": "b",
    "drum_blue": "n",
    "drum_orange": "m",
    "drum_green": "c",
    "drum_kick": "Space",
}


@dataclasses.dataclass(frozen=True)
class Configuration:
    """
    Snapshot of the configuration for one server run, shared read-only by every session.
    """
    port: int = 8080
    pin: str = "1234"
    name: str = "Mobile Hero"
    advertise: bool = True
    disconnect_on_stop: bool = False
    release_keys_on_disconnect: bool = True
    key_bindings: Mapping[str, str] = dataclasses.field(default_factory=lambda: DEFAULT_KEY_BINDINGS)

    def __post_init__(self):
        object.__setattr__(self, "key_bindings", MappingProxyType(dict(self.key_bindings)))


class ConfigStore:

    def __init__(self, location):
        self.location = Path(location)

        self.schema = Schema({
            Optional('server'): {
                Optional('port'): All(int, Range(min=0, max=65535)),
                Optional('pin'): All(str, Length(min=1)),
                Optional('name'): All(str, Length(min=1, max=63)),
                Optional('advertise'): bool,
                Optional('disconnect_on_stop'): bool,
                Optional('release_keys_on_disconnect'): bool,
            },
            Optional('key_bindings'): {
                In(ACTION_NAMES): All(str, Length(min=1)),
            },
        })

    def exists(self) -> bool:
        return self.location.is_file()

    async def load(self) -> Configuration:
        if not self.exists():
            logging.warning(f"Could not find {self.location}, using the default configuration")
            return Configuration()

        try:
            async with aiofiles.open(self.location, 'r') as config_file:
                file_data = await config_file.read()
                document = tomlkit.parse(file_data)
                logging.debug("Loaded Configuration without toml format error")
                logging.debug("Validating against Schema.")
                data = self.schema(document.unwrap())
                logging.debug("Validated against Schema.")
        except IOError as e:
            logging.exception(e)
            logging.warning(f"Could not open file {self.location}")
            raise ConfigurationLoadError() from e
        except tomlkit.exceptions.ParseError as e:
            logging.exception(e)
            logging.warning(f"Configuration in {self.location} is invalid")
            raise ConfigurationLoadError() from e
        except voluptuous.error.MultipleInvalid as e:
            logging.exception(e)
            logging.warning(f"Configuration in {self.location} does not match expected format")
            logging.warning(f"Issue configuration item: {e.path}")
            raise ConfigurationLoadError() from e

        key_bindings = data.get("key_bindings")
        if key_bindings is None:
            key_bindings = DEFAULT_KEY_BINDINGS

        logging.info(f"Configuration loaded.")
        return Configuration(**data.get("server", {}), key_bindings=key_bindings)

    async def save(self, configuration: Configuration):
        document = tomlkit.document()

        server = tomlkit.table()
        for field in dataclasses.fields(Configuration):
            if field.name != "key_bindings":
                server.add(field.name, getattr(configuration, field.name))
        document.add("server", server)

        bindings = tomlkit.table()
        for action, key in configuration.key_bindings.items():
            bindings.add(action, key)
        document.add("key_bindings", bindings)

        self.location.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(self.location, 'w') as config_file:
            await config_file.write(tomlkit.dumps(document))
        logging.info(f"Configuration saved to {self.location}.")
