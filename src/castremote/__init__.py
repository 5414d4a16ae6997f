"""castremote public API.

This module re-exports the caller-facing surface: the MediaControls facade,
the lifecycle controller, the data model and the error taxonomy.
"""

from __future__ import annotations

import castremote.adapter as _adapter
import castremote.config as _config
import castremote.controller as _controller
import castremote.controls as _controls
import castremote.errors as _errors
import castremote.timeout as _timeout
import castremote.types as _types

# Re-export the facade and lifecycle for public API
ConnectionController = _controller.ConnectionController
ControllerConfig = _config.ControllerConfig
MediaControls = _controls.MediaControls
Player = _adapter.Player
has_media_capability = _adapter.has_media_capability
join_current_session = _adapter.join_current_session
with_timeout = _timeout.with_timeout

# Re-export types for public API
AppDescriptor = _types.AppDescriptor
ConnectionState = _types.ConnectionState
DEFAULT_MEDIA_RECEIVER = _types.DEFAULT_MEDIA_RECEIVER
Device = _types.Device
DeviceChannel = _types.DeviceChannel
DiscoveryService = _types.DiscoveryService
MEDIA_NAMESPACE = _types.MEDIA_NAMESPACE
MediaInfo = _types.MediaInfo
MediaSession = _types.MediaSession
PlayerHandle = _types.PlayerHandle
PlayerState = _types.PlayerState
Session = _types.Session
StreamType = _types.StreamType
Subscription = _types.Subscription
Volume = _types.Volume

# Re-export errors for public API
CastRemoteError = _errors.CastRemoteError
ChannelError = _errors.ChannelError
ConnectError = _errors.ConnectError
DiscoveryError = _errors.DiscoveryError
NoSessionError = _errors.NoSessionError
NotConnectedError = _errors.NotConnectedError
OperationTimeoutError = _errors.OperationTimeoutError
UnsupportedAppError = _errors.UnsupportedAppError

__all__ = [
    "DEFAULT_MEDIA_RECEIVER",
    "MEDIA_NAMESPACE",
    "AppDescriptor",
    "CastRemoteError",
    "ChannelError",
    "ConnectError",
    "ConnectionController",
    "ConnectionState",
    "ControllerConfig",
    "Device",
    "DeviceChannel",
    "DiscoveryError",
    "DiscoveryService",
    "MediaControls",
    "MediaInfo",
    "MediaSession",
    "NoSessionError",
    "NotConnectedError",
    "OperationTimeoutError",
    "Player",
    "PlayerHandle",
    "PlayerState",
    "Session",
    "StreamType",
    "Subscription",
    "UnsupportedAppError",
    "Volume",
    "has_media_capability",
    "join_current_session",
    "with_timeout",
]
