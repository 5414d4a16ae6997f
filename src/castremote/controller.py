"""Connection lifecycle controller.

This module owns the single DeviceChannel of a controller and drives it
through discovery, connect, warm-up and teardown. It is the only writer of
the connection state and the channel reference.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Callable

import castremote.types as _types
from castremote.adapter import join_current_session
from castremote.config import ControllerConfig
from castremote.errors import NoSessionError, NotConnectedError, OperationTimeoutError
from castremote.timeout import with_timeout

_LOGGER = logging.getLogger(__name__)

ErrorCallback = Callable[[Exception], None]
DisconnectCallback = Callable[[], None]
ChannelFactory = Callable[[], _types.DeviceChannel]


class ConnectionController:
    """State machine for the connection to one cast device.

    States move DISCONNECTED -> CONNECTING -> CONNECTED -> CLOSING ->
    DISCONNECTED. At most one channel is live at any time. A close event that
    arrives while close_connection() is in progress is solicited and does not
    trigger the disconnect callback; any other close event does, once.
    """

    def __init__(
        self,
        discovery: _types.DiscoveryService,
        channel_factory: ChannelFactory,
        config: ControllerConfig | None = None,
    ) -> None:
        """Initialize the controller.

        :param discovery: Service used to resolve the device.
        :param channel_factory: Callable returning a new, unconnected channel.
        :param config: Timeouts and discovery settings.
        """
        self._discovery = discovery
        self._channel_factory = channel_factory
        self._config = config or ControllerConfig()
        self._state = _types.ConnectionState.DISCONNECTED
        self._channel: _types.DeviceChannel | None = None
        self._device: _types.Device | None = None
        self._closing = False
        self._closed_event: asyncio.Event | None = None
        self._subscriptions: list[_types.Subscription] = []
        self._on_error: ErrorCallback | None = None
        self._on_disconnect: DisconnectCallback | None = None

    @property
    def state(self) -> _types.ConnectionState:
        """Current connection state."""
        return self._state

    @property
    def config(self) -> ControllerConfig:
        """Configuration in effect."""
        return self._config

    @property
    def device(self) -> _types.Device | None:
        """Device of the live connection, if any."""
        return self._device

    def channel(self) -> _types.DeviceChannel:
        """Return the live channel.

        :returns: The connected DeviceChannel.
        :raises NotConnectedError: Unless the state is CONNECTED.
        """
        if self._state is not _types.ConnectionState.CONNECTED or self._channel is None:
            raise NotConnectedError()
        return self._channel

    def is_connected(self) -> bool:
        """Return True if a channel exists and its transport is connected.

        :returns: Connection status.
        """
        return self._channel is not None and self._channel.is_connected

    async def initialize(
        self,
        on_error: ErrorCallback | None = None,
        on_disconnect: DisconnectCallback | None = None,
    ) -> _types.Device:
        """Discover the device and connect to it.

        An existing connection is closed first. Once connected, the current
        session is joined as a best-effort warm-up whose failure is ignored.

        :param on_error: Called with channel errors; they do not end the
            connection.
        :param on_disconnect: Called once when the connection drops without
            close_connection() having been requested.
        :returns: The Device connected to.
        :raises DiscoveryError: If no device answered.
        :raises ConnectError: If the channel could not connect.
        """
        if self._state is _types.ConnectionState.CONNECTING:
            raise RuntimeError("initialize() is already in progress")

        if self._state is _types.ConnectionState.CONNECTED:
            try:
                await self.close_connection()
            except OperationTimeoutError:
                pass

        if self._state is _types.ConnectionState.CLOSING:
            _LOGGER.warning(
                "Channel to %s did not confirm close; detaching it",
                self._device.host if self._device else "unknown",
            )
            self._reset()

        self._on_error = on_error
        self._on_disconnect = on_disconnect
        self._state = _types.ConnectionState.CONNECTING
        try:
            device = await self._discovery.resolve(self._config.service_type)
            _LOGGER.debug("Connecting to device: %s (%s)", device.name, device.host)
            channel = self._channel_factory()
            await channel.connect(device.host, device.port)
        except BaseException:
            self._state = _types.ConnectionState.DISCONNECTED
            raise

        self._attach(channel, device)
        _LOGGER.info("Connected to %s at %s", device.name, device.host)

        await self._warm_up(channel)
        return device

    async def close_connection(self) -> None:
        """Close the live connection and wait for the channel to confirm.

        The close request and its confirmation share one close timeout. If
        the deadline elapses this raises, and the state stays CLOSING until
        the close event arrives.

        :returns: None
        :raises NotConnectedError: If not connected.
        :raises OperationTimeoutError: If the close was not confirmed in time.
        """
        channel = self.channel()
        closed = self._closed_event
        if closed is None:
            raise NotConnectedError()

        self._closing = True
        self._state = _types.ConnectionState.CLOSING
        await with_timeout(
            self._close_channel(channel, closed), self._config.close_timeout
        )

    async def _close_channel(
        self, channel: _types.DeviceChannel, closed: asyncio.Event
    ) -> None:
        try:
            await channel.close()
        except Exception:
            closing = self._state is _types.ConnectionState.CLOSING
            if channel is self._channel and closing:
                self._closing = False
                self._state = _types.ConnectionState.CONNECTED
            raise
        await closed.wait()

    async def current_session(self) -> _types.Session:
        """Return the session currently running on the device.

        The session list is read afresh on every call and the first entry is
        taken as current.

        :returns: The current Session.
        :raises NotConnectedError: If not connected.
        :raises NoSessionError: If the device reports no sessions.
        """
        channel = self.channel()
        sessions = await with_timeout(
            channel.get_sessions(), self._config.status_timeout
        )
        if not sessions:
            raise NoSessionError()
        return sessions[0]

    def _attach(self, channel: _types.DeviceChannel, device: _types.Device) -> None:
        self._channel = channel
        self._device = device
        self._closed_event = asyncio.Event()
        self._subscriptions = [
            channel.add_error_listener(functools.partial(self._handle_error, channel)),
            channel.add_close_listener(functools.partial(self._handle_close, channel)),
        ]
        self._state = _types.ConnectionState.CONNECTED

        if channel.closed:
            self._handle_close(channel)

    def _reset(self) -> None:
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions = []
        self._channel = None
        self._device = None
        self._closing = False
        self._state = _types.ConnectionState.DISCONNECTED
        if self._closed_event is not None:
            self._closed_event.set()
            self._closed_event = None

    async def _warm_up(self, channel: _types.DeviceChannel) -> None:
        """Join the current session so the device populates its media status.

        Best-effort: no session yet, an unsupported app or a slow device are
        all normal here, so any failure is logged and discarded.

        :param channel: The freshly connected channel.
        :returns: None
        """
        try:
            session = await self.current_session()
            await join_current_session(
                channel, session, status_timeout=self._config.status_timeout
            )
        except Exception as err:
            _LOGGER.debug("Skipping session warm-up: %s", err)

    def _handle_error(self, channel: _types.DeviceChannel, err: Exception) -> None:
        if channel is not self._channel:
            _LOGGER.debug("Ignoring error from a detached channel: %s", err)
            return
        _LOGGER.debug("Error: %s", err)
        if self._on_error is None:
            return
        try:
            self._on_error(err)
        except Exception:
            _LOGGER.exception("Error callback raised")

    def _handle_close(self, channel: _types.DeviceChannel) -> None:
        if channel is not self._channel:
            _LOGGER.debug("Ignoring close event from a detached channel")
            return

        solicited = self._closing
        device = self._device
        self._reset()

        if solicited:
            _LOGGER.info("Connection closed")
            return

        _LOGGER.info("Connection to %s lost", device.host if device else "unknown")
        if self._on_disconnect is None:
            return
        try:
            self._on_disconnect()
        except Exception:
            _LOGGER.exception("Disconnect callback raised")


__all__ = [
    "ChannelFactory",
    "ConnectionController",
    "DisconnectCallback",
    "ErrorCallback",
]
