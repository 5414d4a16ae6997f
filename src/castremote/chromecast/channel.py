"""Chromecast device channel.

This module implements DeviceChannel using the pychromecast library.
pychromecast runs its socket on a background thread; every callback it makes
is handed to the event loop before touching channel state, and its blocking
calls run through asyncio.to_thread.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any, TypeVar

import pychromecast  # type: ignore
from pychromecast.controllers.media import (  # type: ignore
    MediaStatus,
    MediaStatusListener,
)
from pychromecast.controllers.receiver import (  # type: ignore
    CastStatus,
    CastStatusListener,
)
from pychromecast.error import PyChromecastError  # type: ignore
from pychromecast.socket_client import (  # type: ignore
    CONNECTION_STATUS_CONNECTED,
    CONNECTION_STATUS_DISCONNECTED,
    CONNECTION_STATUS_FAILED,
    CONNECTION_STATUS_LOST,
    ConnectionStatus,
    ConnectionStatusListener,
)

import castremote.types as _types
from castremote.errors import ChannelError, ConnectError, NotConnectedError

_LOGGER = logging.getLogger(__name__)

_T = TypeVar("_T")


def sessions_from_cast_status(status: CastStatus | None) -> list[_types.Session]:
    """Build the session list from a receiver status.

    A Cast receiver runs at most one application, so the list holds zero or
    one entries.

    :param status: Receiver status reported by the device.
    :returns: List of running sessions.
    """
    if status is None or not status.app_id or not status.session_id:
        return []
    return [
        _types.Session(
            session_id=status.session_id,
            app_id=status.app_id,
            display_name=status.display_name or status.app_id,
            namespaces=tuple(status.namespaces or ()),
            transport_id=status.transport_id,
            is_idle_screen=status.app_id == pychromecast.IDLE_APP_ID,
            status_text=status.status_text or None,
            icon_url=status.icon_url,
        )
    ]


def media_session_from_status(status: MediaStatus) -> _types.MediaSession:
    """Convert a pychromecast MediaStatus into a MediaSession snapshot.

    :param status: Media status reported by the device.
    :returns: The equivalent MediaSession.
    """
    return _types.MediaSession(
        media_session_id=status.media_session_id,
        player_state=_types.PlayerState(status.player_state),
        current_time=status.current_time or 0.0,
        volume=_types.Volume(
            level=status.volume_level, muted=bool(status.volume_muted)
        ),
        media=_types.MediaInfo(
            content_id=status.content_id,
            content_type=status.content_type,
            stream_type=_types.StreamType(status.stream_type),
            duration=status.duration,
            metadata=dict(status.media_metadata or {}),
        ),
    )


class _CastListener(ConnectionStatusListener, CastStatusListener, MediaStatusListener):
    """Receives pychromecast callbacks on the socket thread."""

    def __init__(
        self, channel: ChromecastChannel, loop: asyncio.AbstractEventLoop
    ) -> None:
        self._channel = channel
        self._loop = loop

    def _dispatch(self, func: Callable[..., None], *args: Any) -> None:
        if self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(func, *args)

    def new_connection_status(self, status: ConnectionStatus) -> None:
        self._dispatch(self._channel._on_connection_status, status.status)  # type: ignore[reportPrivateUsage]

    def new_cast_status(self, status: CastStatus) -> None:
        self._dispatch(self._channel._on_cast_status, status)  # type: ignore[reportPrivateUsage]

    def new_media_status(self, status: MediaStatus) -> None:
        self._dispatch(self._channel._on_media_status, status)  # type: ignore[reportPrivateUsage]

    def load_media_failed(self, queue_item_id: int, error_code: int) -> None:
        self._dispatch(
            self._channel._emit_error,  # type: ignore[reportPrivateUsage]
            ChannelError(
                f"Media failed to load (item {queue_item_id}, code {error_code})"
            ),
        )


class ChromecastPlayer(_types.PlayerHandle):
    """PlayerHandle over the pychromecast media controller."""

    def __init__(
        self, channel: ChromecastChannel, media_controller: Any, session: _types.Session
    ) -> None:
        """Initialize the player handle.

        :param channel: Owning channel.
        :param media_controller: The pychromecast MediaController.
        :param session: The session the handle was joined to.
        """
        self._channel = channel
        self._media: Any = media_controller
        self._session = session

    @property
    def session(self) -> _types.Session:
        """The session this handle is bound to."""
        return self._session

    @property
    def current_media_session(self) -> _types.MediaSession | None:
        """The last media status received, or None if no media is known."""
        status = self._media.status
        if status is None or status.media_session_id is None:
            return None
        return media_session_from_status(status)

    async def play(self) -> None:
        """Resume playback.

        :returns: None
        """
        await self._channel.call(self._media.play)

    async def pause(self) -> None:
        """Pause playback.

        :returns: None
        """
        await self._channel.call(self._media.pause)

    async def stop(self) -> None:
        """Stop the loaded media.

        :returns: None
        """
        await self._channel.call(self._media.stop)

    async def seek(self, position: float) -> None:
        """Seek to an absolute position in seconds.

        :param position: Target position in seconds from the stream start.
        :returns: None
        """
        await self._channel.call(self._media.seek, position)

    async def get_status(self) -> _types.MediaSession:
        """Request a fresh media status.

        :returns: The reported MediaSession.
        """
        status = await self._channel.request_media_status(self._media)
        return media_session_from_status(status)


class ChromecastChannel(_types.DeviceChannel):
    """DeviceChannel connected to a Google Cast device through pychromecast."""

    def __init__(self, *, timeout: float = 10.0) -> None:
        """Initialize the channel.

        :param timeout: Seconds allowed for connecting and for each status
            reply.
        """
        super().__init__()
        self._timeout = timeout
        self._cast: Any | None = None
        self._host: str | None = None
        self._connected = False
        self._cast_status_waiters: list[asyncio.Future[CastStatus]] = []
        self._media_status_waiters: list[asyncio.Future[MediaStatus]] = []

    @property
    def is_connected(self) -> bool:
        """True while pychromecast reports the socket as connected."""
        return self._connected

    async def connect(self, host: str, port: int = _types.DEFAULT_CAST_PORT) -> None:
        """Connect to the device and wait for its first receiver status.

        :param host: Device address.
        :param port: Device port.
        :returns: None
        :raises ConnectError: If the device could not be reached in time.
        """
        loop = asyncio.get_running_loop()
        self._host = host

        _LOGGER.debug("Connecting to device: %s:%s", host, port)
        try:
            cast_device = await asyncio.to_thread(
                pychromecast.get_chromecast_from_host,
                (host, port, None, None, None),
                tries=1,
                timeout=self._timeout,
            )
        except (PyChromecastError, OSError) as err:
            raise ConnectError(host, str(err)) from err

        try:
            listener = _CastListener(self, loop)
            cast_device.register_connection_listener(listener)
            cast_device.register_status_listener(listener)
            cast_device.media_controller.register_status_listener(listener)
            await asyncio.to_thread(cast_device.wait, self._timeout)
        except BaseException as err:
            # Stop the socket thread without joining it
            cast_device.disconnect(0)
            if isinstance(err, PyChromecastError):
                raise ConnectError(host, str(err)) from err
            raise

        self._cast = cast_device
        self._connected = True
        _LOGGER.debug("Connected")

    def _require_cast(self) -> Any:
        if self._cast is None:
            raise NotConnectedError("The channel has not been connected")
        return self._cast

    async def call(self, func: Callable[..., _T], *args: Any) -> _T:
        """Run a blocking pychromecast call off the event loop.

        :param func: The pychromecast callable.
        :param args: Positional arguments for the call.
        :returns: The call's result.
        :raises ChannelError: If pychromecast reports a failure.
        """
        try:
            return await asyncio.to_thread(func, *args)
        except PyChromecastError as err:
            raise ChannelError(str(err)) from err

    async def _await_reply(
        self,
        waiters: list[asyncio.Future[_T]],
        request: Callable[[], Any],
    ) -> _T:
        fut: asyncio.Future[_T] = asyncio.get_running_loop().create_future()
        waiters.append(fut)
        try:
            await self.call(request)
            return await asyncio.wait_for(fut, self._timeout)
        except asyncio.TimeoutError:
            raise ChannelError("The device did not answer the status request") from None
        finally:
            if fut in waiters:
                waiters.remove(fut)

    async def request_cast_status(self) -> CastStatus:
        """Ask the receiver for its status and wait for the reply.

        :returns: The reported CastStatus.
        """
        cast_device = self._require_cast()
        return await self._await_reply(
            self._cast_status_waiters,
            cast_device.socket_client.receiver_controller.update_status,
        )

    async def request_media_status(self, media_controller: Any) -> MediaStatus:
        """Ask the media application for its status and wait for the reply.

        :param media_controller: The pychromecast MediaController.
        :returns: The reported MediaStatus.
        """
        self._require_cast()
        return await self._await_reply(
            self._media_status_waiters, media_controller.update_status
        )

    async def get_sessions(self) -> list[_types.Session]:
        """Read the application running on the device.

        :returns: Zero or one sessions.
        """
        return sessions_from_cast_status(await self.request_cast_status())

    async def join(
        self, session: _types.Session, app: _types.AppDescriptor
    ) -> _types.PlayerHandle:
        """Join the running application's media channel.

        :param session: The session to join.
        :param app: Descriptor of the application the session runs.
        :returns: A ChromecastPlayer bound to the session.
        :raises ChannelError: If the session is no longer running.
        """
        cast_device = self._require_cast()
        status = cast_device.status
        if status is not None and status.session_id not in (None, session.session_id):
            raise ChannelError(f"Session {session.session_id} is no longer running")
        _LOGGER.debug("Joining %s as %s", session.display_name, app.app_id)
        return ChromecastPlayer(self, cast_device.media_controller, session)

    async def stop(self, session: _types.Session) -> None:
        """Quit the running receiver application.

        :param session: The session to stop.
        :returns: None
        """
        cast_device = self._require_cast()
        _LOGGER.debug("Stopping %s", session.display_name)
        await self.call(cast_device.quit_app)

    async def close(self) -> None:
        """Disconnect from the device.

        The socket thread is told to stop but not joined. The close event
        fires when pychromecast reports the socket as disconnected.

        :returns: None
        """
        if self._cast is None:
            self._emit_close()
            return
        await self.call(self._cast.disconnect, 0)

    async def get_volume(self) -> _types.Volume:
        """Read the device volume.

        :returns: The current Volume.
        """
        status = await self.request_cast_status()
        return _types.Volume(level=status.volume_level, muted=bool(status.volume_muted))

    async def set_volume(
        self, level: float | None = None, muted: bool | None = None
    ) -> None:
        """Change the device volume.

        pychromecast silently clamps levels, so out-of-range levels are
        rejected here the way the device would reject them.

        :param level: New level between 0.0 and 1.0, or None to keep it.
        :param muted: New mute state, or None to keep it.
        :returns: None
        :raises ChannelError: If level is outside 0.0 to 1.0.
        """
        cast_device = self._require_cast()
        if level is not None:
            if not 0.0 <= level <= 1.0:
                raise ChannelError(f"Volume level {level} is out of range")
            await self.call(cast_device.set_volume, level)
        if muted is not None:
            await self.call(cast_device.set_volume_muted, muted)

    def _on_connection_status(self, status: str) -> None:
        _LOGGER.debug("Connection status for %s: %s", self._host, status)
        if status == CONNECTION_STATUS_CONNECTED:
            self._connected = True
        elif status == CONNECTION_STATUS_DISCONNECTED:
            self._connected = False
            self._emit_close()
        elif status in (CONNECTION_STATUS_LOST, CONNECTION_STATUS_FAILED):
            self._connected = False
            message = f"Connection to {self._host} {status.lower()}"
            self._emit_error(ChannelError(message))

    def _on_cast_status(self, status: CastStatus) -> None:
        for fut in self._cast_status_waiters:
            if not fut.done():
                fut.set_result(status)

    def _on_media_status(self, status: MediaStatus) -> None:
        for fut in self._media_status_waiters:
            if not fut.done():
                fut.set_result(status)


__all__ = [
    "ChromecastChannel",
    "ChromecastPlayer",
    "media_session_from_status",
    "sessions_from_cast_status",
]
