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
import os

import logger
from config import ConfigStore, Configuration, ConfigurationLoadError
from events import ServerEvents, ServerEvent, EventKind
from key_bindings import KeyBindingTranslator
from keyboard_input import KeyboardInput
from logger import setup_logging
from mdns_registration import MobileHeroZeroconf, local_ip, pairing_uri
from websocket_server import ControllerServer, ServerBindError


def render_event(event: ServerEvent):
    if event.kind == EventKind.SERVER_STATUS:
        colour = "green" if event.payload == "running" else "red"
        logger.print(f"[bold {colour}]Server {event.payload}[/]")
    elif event.kind == EventKind.CLIENT_COUNT:
        logger.print(f"[cyan]Connected controllers: {event.payload}[/]")


class MobileHero:

    def __init__(self, config: Configuration):
        self._config = config
        self._events = ServerEvents()
        self._keyboard = KeyboardInput()
        self._translator = KeyBindingTranslator(self._keyboard)
        self._server = ControllerServer(self._events, self._translator)

    async def _render_events(self):
        async for event in self._events:
            render_event(event)

    async def begin(self):
        logging.info("Starting Mobile Hero")
        async with self._keyboard:
            renderer = asyncio.create_task(self._render_events())
            try:
                _, port = await self._server.start(self._config)
                ip = local_ip()
                logger.print(f"Pair a controller with [bold]{pairing_uri(ip, port, self._config.pin)}[/]")
                async with MobileHeroZeroconf(self._config, ip, port):
                    try:
                        logging.info("Ctrl^C to quit")
                        while True:
                            await asyncio.sleep(1)
                    except asyncio.CancelledError:
                        logging.info("Cancelled ...")
                    except KeyboardInterrupt:
                        logging.info("Cancelled ...")
                    finally:
                        logging.info("Stopping Server ...")
                        await self._server.stop()
            finally:
                # show the final status lines before the renderer goes away
                for event in self._events.drain():
                    render_event(event)
                renderer.cancel()


async def main():
    logging.info("Starting mobile hero ...")

    store = ConfigStore(os.environ.get("MOBILE_HERO_CONFIG", "./config.toml"))

    try:
        config = await store.load()
        if not store.exists():
            await store.save(config)
    except ConfigurationLoadError:
        logging.error("Could not load configuration. Exiting")
        return

    try:
        await MobileHero(config).begin()
    except ServerBindError as e:
        logging.error(f"{e}. Exiting")


def run():
    setup_logging()
    asyncio.run(main())


if __name__ == "__main__":
    run()
