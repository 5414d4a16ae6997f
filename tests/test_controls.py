"""Unit tests for castremote.controls module."""

from collections.abc import Awaitable, Callable
from typing import Any

import pytest
from fakes import FakeChannel, FakeDiscovery

import castremote.types as _types
from castremote.config import ControllerConfig
from castremote.controls import MediaControls
from castremote.errors import (
    ChannelError,
    NotConnectedError,
    OperationTimeoutError,
    UnsupportedAppError,
)

_OPERATIONS: dict[str, Callable[[MediaControls], Awaitable[Any]]] = {
    "player": lambda c: c.player(),
    "pause": lambda c: c.pause(),
    "resume": lambda c: c.resume(),
    "stop": lambda c: c.stop(),
    "seek": lambda c: c.seek(10.0),
    "get_status": lambda c: c.get_status(),
    "get_volume": lambda c: c.get_volume(),
    "set_volume": lambda c: c.set_volume(level=0.5),
    "close_connection": lambda c: c.close_connection(),
    "current_session": lambda c: c.current_session(),
}


@pytest.mark.asyncio
@pytest.mark.parametrize("name", sorted(_OPERATIONS))
async def test_operations_require_connection(
    controls: MediaControls, name: str
) -> None:
    """Test that every operation fails before initialize.

    :param controls: The controls fixture.
    :param name: Name of the operation under test.
    """
    with pytest.raises(NotConnectedError):
        await _OPERATIONS[name](controls)


@pytest.mark.asyncio
@pytest.mark.parametrize("name", sorted(_OPERATIONS))
async def test_operations_fail_after_disconnect(
    controls: MediaControls, channels: list[FakeChannel], name: str
) -> None:
    """Test that every operation fails once the device dropped the connection.

    :param controls: The controls fixture.
    :param channels: The channels fixture.
    :param name: Name of the operation under test.
    """
    await controls.initialize()
    channels[0].drop()

    with pytest.raises(NotConnectedError):
        await _OPERATIONS[name](controls)


@pytest.mark.asyncio
async def test_transport_commands_rejoin_each_time(
    controls: MediaControls, channels: list[FakeChannel]
) -> None:
    """Test that pause, resume and seek each join a fresh player.

    :param controls: The controls fixture.
    :param channels: The channels fixture.
    """
    await controls.initialize()
    channel = channels[0]
    joins_after_warm_up = len(channel.joins)

    await controls.pause()
    await controls.resume()
    await controls.seek(95.5)

    assert len(channel.joins) == joins_after_warm_up + 3
    commands = [p.commands for p in channel.players[joins_after_warm_up:]]
    assert commands == [[("pause",)], [("play",)], [("seek", "95.5")]]


@pytest.mark.asyncio
async def test_stop_quits_app_without_join(
    controls: MediaControls, channels: list[FakeChannel], media_app: _types.Session
) -> None:
    """Test that stop ends the running app directly.

    :param controls: The controls fixture.
    :param channels: The channels fixture.
    :param media_app: The media_app fixture.
    """
    await controls.initialize()
    channel = channels[0]
    joins_after_warm_up = len(channel.joins)

    await controls.stop()

    assert channel.stopped == [media_app]
    assert len(channel.joins) == joins_after_warm_up


@pytest.mark.asyncio
async def test_stop_works_for_apps_without_media(
    controls: MediaControls, channels: list[FakeChannel], backdrop_app: _types.Session
) -> None:
    """Test that stop does not require media support.

    :param controls: The controls fixture.
    :param channels: The channels fixture.
    :param backdrop_app: The backdrop_app fixture.
    """
    await controls.initialize()
    channels[0].sessions = [backdrop_app]

    await controls.stop()

    assert channels[0].stopped == [backdrop_app]


@pytest.mark.asyncio
async def test_pause_unsupported_app(
    controls: MediaControls, channels: list[FakeChannel], backdrop_app: _types.Session
) -> None:
    """Test that transport commands refuse apps without media support.

    :param controls: The controls fixture.
    :param channels: The channels fixture.
    :param backdrop_app: The backdrop_app fixture.
    """
    await controls.initialize()
    channels[0].sessions = [backdrop_app]

    with pytest.raises(UnsupportedAppError):
        await controls.pause()


@pytest.mark.asyncio
async def test_get_status_returns_known_media(
    controls: MediaControls,
    channels: list[FakeChannel],
    media_status: _types.MediaSession,
) -> None:
    """Test that get_status returns the status primed during warm-up.

    :param controls: The controls fixture.
    :param channels: The channels fixture.
    :param media_status: The media_status fixture.
    """
    await controls.initialize()

    status = await controls.get_status()

    assert status == media_status
    assert status.player_state is _types.PlayerState.PLAYING
    assert channels[0].players[-1].status_calls == 0


@pytest.mark.asyncio
async def test_get_status_fetches_unknown_media(
    controls: MediaControls,
    channels: list[FakeChannel],
    media_status: _types.MediaSession,
) -> None:
    """Test that get_status asks the device when no status is known.

    :param controls: The controls fixture.
    :param channels: The channels fixture.
    :param media_status: The media_status fixture.
    """
    await controls.initialize()
    channels[0].known_media = None
    channels[0].status_error = ChannelError("not yet")

    with pytest.raises(ChannelError):
        await controls.get_status()

    channels[0].status_error = None
    channels[0].known_media = None
    status = await controls.get_status()

    assert status == media_status


@pytest.mark.asyncio
async def test_get_status_times_out(
    controls: MediaControls, channels: list[FakeChannel]
) -> None:
    """Test that a slow status read is bounded by the status timeout.

    :param controls: The controls fixture.
    :param channels: The channels fixture.
    """
    await controls.initialize()
    channels[0].known_media = None
    channels[0].status_delay = 0.5

    with pytest.raises(OperationTimeoutError) as exc_info:
        await controls.get_status()

    assert exc_info.value.duration_ms == 200


@pytest.mark.asyncio
async def test_get_status_after_app_change(
    controls: MediaControls, channels: list[FakeChannel], backdrop_app: _types.Session
) -> None:
    """Test that get_status follows the app that is running now.

    :param controls: The controls fixture.
    :param channels: The channels fixture.
    :param backdrop_app: The backdrop_app fixture.
    """
    await controls.initialize()
    await controls.player()

    channels[0].sessions = [backdrop_app]

    with pytest.raises(UnsupportedAppError) as exc_info:
        await controls.get_status()

    assert exc_info.value.display_name == "Backdrop"


@pytest.mark.asyncio
async def test_get_status_rechecks_joined_session(
    controls: MediaControls, channels: list[FakeChannel], backdrop_app: _types.Session
) -> None:
    """Test that get_status validates the session the player actually joined.

    :param controls: The controls fixture.
    :param channels: The channels fixture.
    :param backdrop_app: The backdrop_app fixture.
    """
    await controls.initialize()
    # The device switched apps between the session read and the join
    channels[0].joined_session = backdrop_app

    with pytest.raises(UnsupportedAppError) as exc_info:
        await controls.get_status()

    assert exc_info.value.display_name == "Backdrop"


@pytest.mark.asyncio
async def test_volume_round_trip(controls: MediaControls) -> None:
    """Test that a volume change is reflected by the next read.

    :param controls: The controls fixture.
    """
    await controls.initialize()

    await controls.set_volume(level=0.5)
    assert await controls.get_volume() == _types.Volume(level=0.5, muted=False)

    await controls.set_volume(muted=True)
    assert await controls.get_volume() == _types.Volume(level=0.5, muted=True)


@pytest.mark.asyncio
async def test_set_volume_out_of_range_is_passed_through(
    controls: MediaControls,
) -> None:
    """Test that out-of-range levels reach the device and fail there.

    :param controls: The controls fixture.
    """
    await controls.initialize()

    with pytest.raises(ChannelError):
        await controls.set_volume(level=1.5)


@pytest.mark.asyncio
async def test_get_volume_times_out(
    controls: MediaControls, channels: list[FakeChannel]
) -> None:
    """Test that a slow volume read is bounded.

    :param controls: The controls fixture.
    :param channels: The channels fixture.
    """
    await controls.initialize()
    channels[0].status_delay = 0.5

    with pytest.raises(OperationTimeoutError):
        await controls.get_volume()


@pytest.mark.asyncio
async def test_command_timeout(
    controls: MediaControls, channels: list[FakeChannel]
) -> None:
    """Test that a slow transport command is bounded by the command timeout.

    :param controls: The controls fixture.
    :param channels: The channels fixture.
    """
    await controls.initialize()
    channels[0].command_delay = 0.5

    with pytest.raises(OperationTimeoutError):
        await controls.pause()


@pytest.mark.asyncio
async def test_command_timeout_disabled(
    discovery: FakeDiscovery, channel_factory: Callable[[], FakeChannel]
) -> None:
    """Test that commands are unbounded when command_timeout is None.

    :param discovery: The discovery fixture.
    :param channel_factory: The channel_factory fixture.
    """
    config = ControllerConfig(command_timeout=None)
    controls = MediaControls(discovery, channel_factory, config)
    await controls.initialize()

    await controls.resume()

    assert controls.state is _types.ConnectionState.CONNECTED


@pytest.mark.asyncio
async def test_async_context_manager(
    controls: MediaControls, channels: list[FakeChannel], discovery: FakeDiscovery
) -> None:
    """Test that the context manager connects and closes.

    :param controls: The controls fixture.
    :param channels: The channels fixture.
    :param discovery: The discovery fixture.
    """
    async with controls as active:
        assert active is controls
        assert controls.is_connected()

    assert channels[0].close_requests == 1
    assert controls.state is _types.ConnectionState.DISCONNECTED
    assert discovery.stopped


@pytest.mark.asyncio
async def test_async_context_manager_after_drop(
    controls: MediaControls, channels: list[FakeChannel]
) -> None:
    """Test that leaving the context after a drop does not try to close.

    :param controls: The controls fixture.
    :param channels: The channels fixture.
    """
    async with controls:
        channels[0].drop()

    assert channels[0].close_requests == 0


@pytest.mark.asyncio
async def test_async_context_manager_close_timeout(
    controls: MediaControls, channels: list[FakeChannel], discovery: FakeDiscovery
) -> None:
    """Test that discovery is stopped even when the close is not confirmed.

    :param controls: The controls fixture.
    :param channels: The channels fixture.
    :param discovery: The discovery fixture.
    """
    with pytest.raises(OperationTimeoutError):
        async with controls:
            channels[0].close_on_request = False

    assert controls.state is _types.ConnectionState.CLOSING
    assert discovery.stopped

    channels[0].drop()
    assert controls.state is _types.ConnectionState.DISCONNECTED


def test_default_collaborators() -> None:
    """Test that the default discovery and channel come from the real backends."""
    import castremote.chromecast as _chromecast  # noqa: PLC0415
    import castremote.discovery as _discovery  # noqa: PLC0415

    config = ControllerConfig(discovery_timeout=3.0, connect_timeout=4.0)
    controls = MediaControls(config=config)

    assert isinstance(controls.discovery, _discovery.ZeroconfDiscovery)
    channel = controls.controller._channel_factory()  # type: ignore[reportPrivateUsage]
    assert isinstance(channel, _chromecast.ChromecastChannel)
