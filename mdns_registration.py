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
import socket
from urllib.parse import quote

import zeroconf
from zeroconf import IPVersion
from zeroconf.asyncio import AsyncZeroconf, AsyncServiceInfo

from config import Configuration

SERVICE_TYPE = "_mobilehero._tcp.local."
PAIRING_SCHEME = "mobilehero"
PROTOCOL_VERSION = "1"


def local_ip() -> str:
    # no packets are sent, connecting a UDP socket only picks the outgoing interface
    probe = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        probe.connect(("10.254.254.254", 1))
        return probe.getsockname()[0]
    except OSError:
        return "127.0.0.1"
    finally:
        probe.close()


def pairing_uri(ip: str, port: int, pin: str) -> str:
    return f"{PAIRING_SCHEME}://{ip}:{port}?pin={quote(pin, safe='')}"


class ZeroconfManager:

    def __init__(self):
        self._zeroconf = AsyncZeroconf(ip_version=IPVersion.V4Only)

    async def register_service(self, service: AsyncServiceInfo):
        await self._zeroconf.async_register_service(service)

    async def unregister_all_services(self):
        await self._zeroconf.async_unregister_all_services()

    async def close(self):
        await self._zeroconf.async_close()


class MobileHeroZeroconf:
    """
    Publishes the running server on the local network. The PIN is never advertised.
    """
    _service: AsyncServiceInfo

    def __init__(self, config: Configuration, ip: str, port: int):
        self._config = config
        self._ip = ip
        self._port = port
        self._manager = None

    def service_info(self) -> AsyncServiceInfo:
        return AsyncServiceInfo(
            SERVICE_TYPE,
            f"{self._config.name}.{SERVICE_TYPE}",
            addresses=[socket.inet_aton(self._ip)],
            port=self._port,
            properties={
                "path": "/",
                "v": PROTOCOL_VERSION,
            },
            server=f"{socket.gethostname()}.local."
        )

    async def start(self):
        if not self._config.advertise:
            logging.debug(f"Service advertising disabled")
            return
        try:
            self._service = self.service_info()
            self._manager = ZeroconfManager()
            await self._manager.register_service(self._service)
            logging.info(f"Advertising {self._service.name} on {self._ip}:{self._port}")
        except (zeroconf.Error, OSError) as e:
            logging.exception(e)
            logging.warning(f"Could not advertise the server, clients must connect by address")
            await self.stop()

    async def stop(self):
        if self._manager is None:
            return
        manager, self._manager = self._manager, None
        try:
            await manager.unregister_all_services()
            logging.debug(f"Unregistered services.")
        finally:
            await manager.close()

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.stop()
