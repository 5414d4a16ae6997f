"""Shared fixtures for castremote tests."""

from __future__ import annotations

import pytest
from fakes import FakeChannel, FakeDiscovery

import castremote.types as _types
from castremote.config import ControllerConfig
from castremote.controller import ConnectionController
from castremote.controls import MediaControls


@pytest.fixture
def device() -> _types.Device:
    """Fixture to provide the device discovery answers with.

    :returns: A sample Device instance.
    """
    return _types.Device(name="Living Room TV", host="192.168.1.50")


@pytest.fixture
def media_app() -> _types.Session:
    """Fixture to provide a session that accepts media commands.

    :returns: A Session running the default media receiver.
    """
    return _types.Session(
        session_id="session-1",
        app_id="CC1AD845",
        display_name="Default Media Receiver",
        namespaces=(
            "urn:x-cast:com.google.cast.debugoverlay",
            _types.MEDIA_NAMESPACE,
        ),
        transport_id="transport-1",
    )


@pytest.fixture
def backdrop_app() -> _types.Session:
    """Fixture to provide a session without media support.

    :returns: A Session for the idle backdrop.
    """
    return _types.Session(
        session_id="session-2",
        app_id="E8C28D3C",
        display_name="Backdrop",
        namespaces=("urn:x-cast:com.google.cast.sse",),
        transport_id="transport-2",
        is_idle_screen=True,
    )


@pytest.fixture
def media_status() -> _types.MediaSession:
    """Fixture to provide a playing media status.

    :returns: A sample MediaSession.
    """
    return _types.MediaSession(
        media_session_id=1,
        player_state=_types.PlayerState.PLAYING,
        current_time=42.5,
        volume=_types.Volume(level=1.0, muted=False),
        media=_types.MediaInfo(
            content_id="http://example.com/movie.mp4",
            content_type="video/mp4",
            stream_type=_types.StreamType.BUFFERED,
            duration=600.0,
            metadata={"title": "Movie"},
        ),
    )


@pytest.fixture
def channels() -> list[FakeChannel]:
    """Fixture collecting every channel the factory creates.

    :returns: Empty list filled as channels are created.
    """
    return []


@pytest.fixture
def prepare_channel(
    media_app: _types.Session, media_status: _types.MediaSession
):
    """Fixture returning the hook that sets up each new channel.

    Tests may replace the sessions or media of the returned channel.

    :param media_app: The media_app fixture.
    :param media_status: The media_status fixture.
    :returns: Callable configuring a FakeChannel.
    """

    def _prepare(channel: FakeChannel) -> None:
        channel.sessions = [media_app]
        channel.device_media = media_status

    return _prepare


@pytest.fixture
def channel_factory(channels: list[FakeChannel], prepare_channel):
    """Fixture to provide a channel factory producing FakeChannels.

    :param channels: The channels fixture.
    :param prepare_channel: The prepare_channel fixture.
    :returns: Callable creating a new FakeChannel.
    """

    def _factory() -> FakeChannel:
        channel = FakeChannel(channels)
        prepare_channel(channel)
        return channel

    return _factory


@pytest.fixture
def discovery(device: _types.Device) -> FakeDiscovery:
    """Fixture to provide a discovery service that finds the device.

    :param device: The device fixture.
    :returns: A FakeDiscovery instance.
    """
    return FakeDiscovery(device)


@pytest.fixture
def config() -> ControllerConfig:
    """Fixture to provide a config with short timeouts.

    :returns: A ControllerConfig instance.
    """
    return ControllerConfig(status_timeout=0.2, close_timeout=0.1, command_timeout=0.2)


@pytest.fixture
def controller(
    discovery: FakeDiscovery, channel_factory, config: ControllerConfig
) -> ConnectionController:
    """Fixture to provide a fresh ConnectionController.

    :param discovery: The discovery fixture.
    :param channel_factory: The channel_factory fixture.
    :param config: The config fixture.
    :returns: A ConnectionController instance.
    """
    return ConnectionController(discovery, channel_factory, config)


@pytest.fixture
def controls(
    discovery: FakeDiscovery, channel_factory, config: ControllerConfig
) -> MediaControls:
    """Fixture to provide a fresh MediaControls facade.

    :param discovery: The discovery fixture.
    :param channel_factory: The channel_factory fixture.
    :param config: The config fixture.
    :returns: A MediaControls instance.
    """
    return MediaControls(discovery, channel_factory, config)
