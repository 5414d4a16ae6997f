"""Common data types and interfaces for castremote.

This module contains the data model shared by the controller, the adapter and
the transport implementations, plus the two boundary interfaces the core
consumes: DiscoveryService and DeviceChannel.
"""

from __future__ import annotations

import enum
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, cast

_LOGGER = logging.getLogger(__name__)

MEDIA_NAMESPACE = "urn:x-cast:com.google.cast.media"
# Capability identifier an application must expose to accept media commands.

GOOGLECAST_SERVICE_TYPE = "_googlecast._tcp.local."
DEFAULT_CAST_PORT = 8009

ErrorListener = Callable[[Exception], None]
CloseListener = Callable[[], None]


class ConnectionState(enum.Enum):
    """Lifecycle state of the controller's connection to a device."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSING = "closing"


class PlayerState(enum.Enum):
    """Playback state reported by the device for the loaded media."""

    PLAYING = "PLAYING"
    PAUSED = "PAUSED"
    IDLE = "IDLE"
    BUFFERING = "BUFFERING"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def _missing_(cls, value: object) -> PlayerState:
        return cls.UNKNOWN


class StreamType(enum.Enum):
    """Kind of stream the device is playing."""

    BUFFERED = "BUFFERED"
    LIVE = "LIVE"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def _missing_(cls, value: object) -> StreamType:
        return cls.UNKNOWN


@dataclass(frozen=True)
class Device:
    """A resolved cast device.

    :param name: Friendly name announced by the device.
    :param host: Network address of the device.
    :param port: Port the device accepts channel connections on.
    """

    name: str
    host: str
    port: int = DEFAULT_CAST_PORT


@dataclass(frozen=True)
class AppDescriptor:
    """Identifies a receiver application to join.

    :param app_id: Receiver application identifier.
    :param namespace: Namespace the application speaks for control messages.
    """

    app_id: str
    namespace: str


DEFAULT_MEDIA_RECEIVER = AppDescriptor(app_id="CC1AD845", namespace=MEDIA_NAMESPACE)


@dataclass(frozen=True)
class Session:
    """A receiver application currently running on the device.

    :param session_id: Identifier of the application session.
    :param app_id: Receiver application identifier.
    :param display_name: Human readable application name.
    :param namespaces: Capability namespaces the application supports.
    :param transport_id: Channel destination used to reach the application.
    :param is_idle_screen: True when the application is the idle backdrop.
    :param status_text: Free-form status text reported by the application.
    :param icon_url: Optional application icon.
    """

    session_id: str
    app_id: str
    display_name: str
    namespaces: tuple[str, ...] = ()
    transport_id: str | None = None
    is_idle_screen: bool = False
    status_text: str | None = None
    icon_url: str | None = None


@dataclass(frozen=True)
class Volume:
    """Device volume.

    :param level: Volume level between 0.0 and 1.0.
    :param muted: True when the device is muted.
    """

    level: float
    muted: bool


@dataclass(frozen=True)
class MediaInfo:
    """Description of the media item loaded on the device."""

    content_id: str | None = None
    content_type: str | None = None
    stream_type: StreamType = StreamType.UNKNOWN
    duration: float | None = None
    metadata: dict[str, Any] = field(default_factory=lambda: cast(dict[str, Any], {}))


@dataclass(frozen=True)
class MediaSession:
    """Snapshot of the device's playback status.

    :param media_session_id: Identifier of the media sub-session, None when
        no media is loaded.
    :param player_state: Current playback state.
    :param current_time: Playback position in seconds.
    :param volume: Stream volume reported with the status.
    :param media: The loaded media item.
    """

    media_session_id: int | None
    player_state: PlayerState
    current_time: float
    volume: Volume
    media: MediaInfo


class Subscription:
    """Lightweight handle for a listener registration with an unsubscribe method.

    :param unsubscribe: Callable invoked to cancel the registration.
    """

    def __init__(self, unsubscribe: Callable[[], None]):
        """Create a Subscription that calls the provided unsubscribe function.

        :param unsubscribe: Callable invoked to cancel the registration.
        :returns: None
        """
        self._unsubscribe = unsubscribe

    def unsubscribe(self) -> None:
        """Cancel the registration and stop receiving events.

        :returns: None
        """
        self._unsubscribe()


class DiscoveryService(ABC):
    """Resolves the address of a device announced on the local network."""

    @abstractmethod
    async def start(self) -> None:
        """Start listening for announcements.

        :returns: None
        """
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Stop listening and release network resources.

        :returns: None
        """
        ...

    @abstractmethod
    async def resolve(self, service_type: str) -> Device:
        """Return the first device answering for a service type.

        :param service_type: DNS-SD service type to query.
        :returns: The resolved Device.
        :raises DiscoveryError: If no device answers.
        """
        ...


class PlayerHandle(ABC):
    """Narrow control surface of a joined media application."""

    @property
    @abstractmethod
    def session(self) -> Session:
        """The session this handle is bound to."""
        ...

    @property
    @abstractmethod
    def current_media_session(self) -> MediaSession | None:
        """The last media status known to the handle, if any."""
        ...

    @abstractmethod
    async def play(self) -> None:
        """Resume playback.

        :returns: None
        """
        ...

    @abstractmethod
    async def pause(self) -> None:
        """Pause playback.

        :returns: None
        """
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Stop playback of the loaded media.

        :returns: None
        """
        ...

    @abstractmethod
    async def seek(self, position: float) -> None:
        """Seek to an absolute position.

        :param position: Target position in seconds from the stream start.
        :returns: None
        """
        ...

    @abstractmethod
    async def get_status(self) -> MediaSession:
        """Request a fresh media status from the device.

        :returns: The reported MediaSession.
        """
        ...


class DeviceChannel(ABC):
    """Session-oriented RPC connection to one device.

    Subclasses implement the transport; this base class keeps the error and
    close listeners and guarantees the close event is delivered at most once.
    """

    def __init__(self) -> None:
        """Initialize listener bookkeeping.

        :returns: None
        """
        self._error_listeners: list[ErrorListener] = []
        self._close_listeners: list[CloseListener] = []
        self._closed = False

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """True while the underlying transport is connected."""
        ...

    @property
    def closed(self) -> bool:
        """True once the close event has fired."""
        return self._closed

    def add_error_listener(self, listener: ErrorListener) -> Subscription:
        """Register a callback for channel-level errors.

        :param listener: Callable receiving the error.
        :returns: Subscription handle with an unsubscribe() method.
        """
        self._error_listeners.append(listener)

        def _unsubscribe() -> None:
            try:
                self._error_listeners.remove(listener)
            except ValueError:
                pass

        return Subscription(_unsubscribe)

    def add_close_listener(self, listener: CloseListener) -> Subscription:
        """Register a callback for the one-shot close event.

        :param listener: Callable invoked when the channel closes.
        :returns: Subscription handle with an unsubscribe() method.
        """
        self._close_listeners.append(listener)

        def _unsubscribe() -> None:
            try:
                self._close_listeners.remove(listener)
            except ValueError:
                pass

        return Subscription(_unsubscribe)

    def _emit_error(self, err: Exception) -> None:
        for listener in list(self._error_listeners):
            try:
                listener(err)
            except Exception:
                _LOGGER.exception("Error listener raised")

    def _emit_close(self) -> None:
        if self._closed:
            return
        self._closed = True
        listeners = list(self._close_listeners)
        self._close_listeners.clear()
        for listener in listeners:
            try:
                listener()
            except Exception:
                _LOGGER.exception("Close listener raised")

    @abstractmethod
    async def connect(self, host: str, port: int = DEFAULT_CAST_PORT) -> None:
        """Open the connection.

        :param host: Device address.
        :param port: Device port.
        :returns: None
        :raises ConnectError: On transport failure.
        """
        ...

    @abstractmethod
    async def get_sessions(self) -> list[Session]:
        """Read the applications currently running on the device.

        :returns: List of sessions as reported by the device.
        """
        ...

    @abstractmethod
    async def join(self, session: Session, app: AppDescriptor) -> PlayerHandle:
        """Join a running application.

        :param session: The session to join.
        :param app: Descriptor of the application the session runs.
        :returns: A PlayerHandle bound to the session.
        """
        ...

    @abstractmethod
    async def stop(self, session: Session) -> None:
        """Stop a running application.

        :param session: The session to stop.
        :returns: None
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Request the connection be closed.

        The close event fires once the transport is actually down.

        :returns: None
        """
        ...

    @abstractmethod
    async def get_volume(self) -> Volume:
        """Read the device volume.

        :returns: The current Volume.
        """
        ...

    @abstractmethod
    async def set_volume(
        self, level: float | None = None, muted: bool | None = None
    ) -> None:
        """Change the device volume.

        :param level: New level between 0.0 and 1.0, or None to keep it.
        :param muted: New mute state, or None to keep it.
        :returns: None
        """
        ...


__all__ = [
    "DEFAULT_CAST_PORT",
    "DEFAULT_MEDIA_RECEIVER",
    "GOOGLECAST_SERVICE_TYPE",
    "MEDIA_NAMESPACE",
    "AppDescriptor",
    "CloseListener",
    "ConnectionState",
    "Device",
    "DeviceChannel",
    "DiscoveryService",
    "ErrorListener",
    "MediaInfo",
    "MediaSession",
    "PlayerHandle",
    "PlayerState",
    "Session",
    "StreamType",
    "Subscription",
    "Volume",
]
