"""mDNS discovery for castremote.

This module implements DiscoveryService on top of the zeroconf asyncio API.
"""

from __future__ import annotations

import asyncio
import logging

from zeroconf import IPVersion, ServiceStateChange, Zeroconf
from zeroconf.asyncio import AsyncServiceBrowser, AsyncServiceInfo, AsyncZeroconf

import castremote.types as _types
from castremote.errors import DiscoveryError

_LOGGER = logging.getLogger(__name__)

SERVICE_INFO_TIMEOUT_MS = 3000
UNKNOWN_DEVICE_NAME = "unknown"


def _device_name(info: AsyncServiceInfo, service_type: str) -> str:
    """Pick a human readable name for a resolved service.

    Cast devices announce their friendly name in the ``fn`` TXT record;
    otherwise the service instance label is used.

    :param info: The resolved service info.
    :param service_type: The service type that was browsed.
    :returns: Device name, or "unknown" if none is available.
    """
    friendly = info.properties.get(b"fn")
    if friendly:
        return friendly.decode("utf-8", errors="replace")
    instance = info.name.removesuffix(f".{service_type}")
    return instance or UNKNOWN_DEVICE_NAME


class ZeroconfDiscovery(_types.DiscoveryService):
    """Resolve the first device announcing a service type on the local network."""

    def __init__(
        self,
        *,
        timeout: float = 10.0,
        aiozc: AsyncZeroconf | None = None,
    ) -> None:
        """Initialize the discovery service.

        :param timeout: Seconds to wait for a device to answer.
        :param aiozc: Optional shared AsyncZeroconf instance. A shared instance
            is not closed by stop().
        """
        self._timeout = timeout
        self._aiozc = aiozc
        self._owns_aiozc = aiozc is None

    async def start(self) -> None:
        """Start the mDNS listener.

        :returns: None
        """
        self._listener()

    def _listener(self) -> AsyncZeroconf:
        if self._aiozc is None:
            _LOGGER.info("Starting mDNS listener")
            self._aiozc = AsyncZeroconf(ip_version=IPVersion.V4Only)
            self._owns_aiozc = True
        return self._aiozc

    async def stop(self) -> None:
        """Stop the mDNS listener.

        :returns: None
        """
        if self._aiozc is None:
            return
        if self._owns_aiozc:
            _LOGGER.info("Stopping mDNS listener")
            await self._aiozc.async_close()
        self._aiozc = None

    async def resolve(self, service_type: str) -> _types.Device:
        """Browse for a service type and return the first device resolved.

        The listener is started on demand.

        :param service_type: DNS-SD service type, e.g. "_googlecast._tcp.local.".
        :returns: The resolved Device.
        :raises DiscoveryError: If no device resolved before the timeout.
        """
        aiozc = self._listener()

        loop = asyncio.get_running_loop()
        found: asyncio.Future[_types.Device] = loop.create_future()
        lookups: set[asyncio.Task[None]] = set()

        def _schedule_lookup(name: str) -> None:
            if found.done():
                return
            task = loop.create_task(
                self._resolve_service(aiozc.zeroconf, service_type, name, found)
            )
            lookups.add(task)
            task.add_done_callback(lookups.discard)

        def _on_service_state_change(
            zeroconf: Zeroconf,
            service_type: str,
            name: str,
            state_change: ServiceStateChange,
        ) -> None:
            if state_change is not ServiceStateChange.Added:
                return
            _LOGGER.debug("Service announced: %s", name)
            loop.call_soon_threadsafe(_schedule_lookup, name)

        _LOGGER.debug("Querying %s", service_type)
        browser = AsyncServiceBrowser(
            aiozc.zeroconf, [service_type], handlers=[_on_service_state_change]
        )
        try:
            device = await asyncio.wait_for(found, self._timeout)
        except asyncio.TimeoutError:
            raise DiscoveryError(service_type, self._timeout) from None
        finally:
            await browser.async_cancel()
            for task in list(lookups):
                task.cancel()

        _LOGGER.info("Found device %s at %s", device.name, device.host)
        return device

    async def _resolve_service(
        self,
        zeroconf: Zeroconf,
        service_type: str,
        name: str,
        found: asyncio.Future[_types.Device],
    ) -> None:
        """Resolve one announced service and publish it if it has an address.

        :param zeroconf: Zeroconf instance to query through.
        :param service_type: The service type that was browsed.
        :param name: Full service instance name.
        :param found: Future completed with the first resolvable device.
        :returns: None
        """
        info = AsyncServiceInfo(service_type, name)
        if not await info.async_request(zeroconf, SERVICE_INFO_TIMEOUT_MS):
            _LOGGER.debug("No service info for %s", name)
            return

        addresses = info.parsed_addresses(IPVersion.V4Only)
        if not addresses:
            _LOGGER.debug("No address record for %s", name)
            return

        if found.done():
            return
        found.set_result(
            _types.Device(
                name=_device_name(info, service_type),
                host=addresses[0],
                port=info.port or _types.DEFAULT_CAST_PORT,
            )
        )


__all__ = ["ZeroconfDiscovery"]
