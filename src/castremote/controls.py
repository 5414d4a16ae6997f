"""Playback control facade.

MediaControls is the caller-facing API: it owns a ConnectionController and
re-derives the current session and player for every control operation.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from types import TracebackType
from typing import TypeVar

import castremote.types as _types
from castremote.adapter import Player, has_media_capability, join_current_session
from castremote.config import ControllerConfig
from castremote.controller import (
    ChannelFactory,
    ConnectionController,
    DisconnectCallback,
    ErrorCallback,
)
from castremote.errors import UnsupportedAppError
from castremote.timeout import with_timeout

_LOGGER = logging.getLogger(__name__)

_T = TypeVar("_T")


def _default_discovery(config: ControllerConfig) -> _types.DiscoveryService:
    import castremote.discovery as _discovery  # noqa: PLC0415

    return _discovery.ZeroconfDiscovery(timeout=config.discovery_timeout)


def _default_channel_factory(config: ControllerConfig) -> ChannelFactory:
    import castremote.chromecast as _chromecast  # noqa: PLC0415

    def _factory() -> _types.DeviceChannel:
        return _chromecast.ChromecastChannel(timeout=config.connect_timeout)

    return _factory


class MediaControls:
    """Control media playback on a cast device.

    Usage::

        controls = MediaControls()
        await controls.initialize(on_error=print, on_disconnect=reconnect)
        await controls.pause()
        status = await controls.get_status()
        await controls.close_connection()

    Every control operation requires a live connection and raises
    NotConnectedError otherwise. Operations issued concurrently are not
    serialized.
    """

    def __init__(
        self,
        discovery: _types.DiscoveryService | None = None,
        channel_factory: ChannelFactory | None = None,
        config: ControllerConfig | None = None,
    ) -> None:
        """Initialize the facade.

        :param discovery: Discovery service; defaults to mDNS via zeroconf.
        :param channel_factory: Callable returning new channels; defaults to
            pychromecast.
        :param config: Timeouts and discovery settings.
        """
        self._config = config or ControllerConfig()
        self._discovery = discovery or _default_discovery(self._config)
        self._controller = ConnectionController(
            self._discovery,
            channel_factory or _default_channel_factory(self._config),
            self._config,
        )

    @property
    def discovery(self) -> _types.DiscoveryService:
        """The discovery service used to find the device."""
        return self._discovery

    @property
    def controller(self) -> ConnectionController:
        """The underlying connection lifecycle controller."""
        return self._controller

    @property
    def state(self) -> _types.ConnectionState:
        """Current connection state."""
        return self._controller.state

    async def initialize(
        self,
        on_error: ErrorCallback | None = None,
        on_disconnect: DisconnectCallback | None = None,
    ) -> _types.Device:
        """Discover the device and connect, replacing any existing connection.

        :param on_error: Called with channel errors.
        :param on_disconnect: Called once when the connection drops unexpectedly.
        :returns: The Device connected to.
        """
        return await self._controller.initialize(on_error, on_disconnect)

    async def close_connection(self) -> None:
        """Close the connection.

        :returns: None
        """
        await self._controller.close_connection()

    def is_connected(self) -> bool:
        """Return True while the device connection is up.

        :returns: Connection status.
        """
        return self._controller.is_connected()

    async def current_session(self) -> _types.Session:
        """Return the application session currently running on the device.

        :returns: The current Session.
        """
        return await self._controller.current_session()

    async def player(self) -> Player:
        """Join the current session and return a fresh player.

        :returns: A Player for the current session.
        :raises UnsupportedAppError: If the running app lacks media control.
        """
        channel = self._controller.channel()
        session = await self._controller.current_session()
        return await join_current_session(
            channel, session, status_timeout=self._config.status_timeout
        )

    async def _command(self, operation: Awaitable[_T]) -> _T:
        if self._config.command_timeout is None:
            return await operation
        return await with_timeout(operation, self._config.command_timeout)

    async def pause(self) -> None:
        """Pause playback.

        :returns: None
        """
        player = await self.player()
        await self._command(player.pause())

    async def resume(self) -> None:
        """Resume playback.

        :returns: None
        """
        player = await self.player()
        await self._command(player.play())

    async def stop(self) -> None:
        """Stop the running application.

        This ends the receiver app itself, so no player is joined.

        :returns: None
        """
        channel = self._controller.channel()
        session = await self._controller.current_session()
        _LOGGER.debug("Stopping %s", session.display_name)
        await self._command(channel.stop(session))

    async def seek(self, seconds: float) -> None:
        """Seek to an absolute position.

        :param seconds: Position in seconds from the start of the stream.
        :returns: None
        """
        _LOGGER.debug("Seeking to %ss", seconds)
        player = await self.player()
        await self._command(player.seek(seconds))

    async def get_status(self) -> _types.MediaSession:
        """Return the playback status of the current media.

        :returns: The current MediaSession.
        :raises UnsupportedAppError: If the joined session lacks media control.
        """
        player = await self.player()

        # The session may have changed between joins
        session = player.session
        if not has_media_capability(session):
            raise UnsupportedAppError(session.display_name)

        current = player.current_media_session
        if current is not None:
            return current
        return await with_timeout(player.get_status(), self._config.status_timeout)

    async def get_volume(self) -> _types.Volume:
        """Read the device volume.

        :returns: The current Volume.
        """
        channel = self._controller.channel()
        return await with_timeout(channel.get_volume(), self._config.status_timeout)

    async def set_volume(
        self, level: float | None = None, muted: bool | None = None
    ) -> None:
        """Change the device volume.

        Values are passed through unchanged; the device rejects out-of-range
        levels.

        :param level: New level between 0.0 and 1.0, or None to keep it.
        :param muted: New mute state, or None to keep it.
        :returns: None
        """
        channel = self._controller.channel()
        await with_timeout(
            channel.set_volume(level=level, muted=muted), self._config.status_timeout
        )

    async def __aenter__(self) -> MediaControls:
        """Connect on entering an ``async with`` block.

        :returns: This MediaControls instance.
        """
        await self.initialize()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        """Close the connection on leaving an ``async with`` block.

        :returns: None
        """
        try:
            if self._controller.state is _types.ConnectionState.CONNECTED:
                await self.close_connection()
        finally:
            await self._discovery.stop()


__all__ = ["MediaControls"]
