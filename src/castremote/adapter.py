"""Session and player adapter.

This module turns a raw DeviceChannel join into a Player the facade can
drive, enforcing that the joined application accepts media commands.
"""

from __future__ import annotations

import logging

import castremote.types as _types
from castremote.errors import UnsupportedAppError
from castremote.timeout import with_timeout

_LOGGER = logging.getLogger(__name__)

DEFAULT_STATUS_TIMEOUT = 2.0


def has_media_capability(session: _types.Session) -> bool:
    """Return True if the session's application accepts media commands.

    :param session: The session to inspect.
    :returns: True when the media namespace is among the session namespaces.
    """
    return _types.MEDIA_NAMESPACE in session.namespaces


class Player:
    """A joined media application on the device.

    Thin wrapper over a PlayerHandle; it is meant to be re-derived for every
    control operation rather than kept around.
    """

    def __init__(self, handle: _types.PlayerHandle) -> None:
        """Initialize the player.

        :param handle: The channel's handle for the joined application.
        """
        self._handle = handle

    @property
    def session(self) -> _types.Session:
        """Session the player is bound to, as seen by the channel."""
        return self._handle.session

    @property
    def current_media_session(self) -> _types.MediaSession | None:
        """Last media status known to the player, if any."""
        return self._handle.current_media_session

    async def play(self) -> None:
        """Resume playback.

        :returns: None
        """
        await self._handle.play()

    async def pause(self) -> None:
        """Pause playback.

        :returns: None
        """
        await self._handle.pause()

    async def stop(self) -> None:
        """Stop the loaded media.

        :returns: None
        """
        await self._handle.stop()

    async def seek(self, position: float) -> None:
        """Seek to an absolute position.

        :param position: Target position in seconds from the stream start.
        :returns: None
        """
        await self._handle.seek(position)

    async def get_status(self) -> _types.MediaSession:
        """Fetch a fresh media status from the device.

        :returns: The reported MediaSession.
        """
        return await self._handle.get_status()


async def join_current_session(
    channel: _types.DeviceChannel,
    session: _types.Session,
    *,
    status_timeout: float = DEFAULT_STATUS_TIMEOUT,
) -> Player:
    """Join a session with the default media receiver.

    The media capability is checked before joining. When the joined handle
    has no media status yet, a bounded status request primes it so later
    reads see the device's media session. Priming is best-effort: its failure
    is logged and does not fail the join.

    :param channel: Connected channel to join through.
    :param session: Session to join.
    :param status_timeout: Bound for the priming status request, in seconds.
    :returns: A Player for the session.
    :raises UnsupportedAppError: If the session lacks the media namespace.
    """
    if not has_media_capability(session):
        raise UnsupportedAppError(session.display_name)

    handle = await channel.join(session, _types.DEFAULT_MEDIA_RECEIVER)
    player = Player(handle)

    if player.current_media_session is None:
        try:
            await with_timeout(handle.get_status(), status_timeout)
        except Exception as err:
            _LOGGER.debug(
                "Priming media status for %s failed: %s", session.display_name, err
            )

    return player


__all__ = [
    "DEFAULT_STATUS_TIMEOUT",
    "Player",
    "has_media_capability",
    "join_current_session",
]
