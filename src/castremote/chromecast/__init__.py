"""Chromecast transport for castremote."""

from __future__ import annotations

import castremote.chromecast.channel as _channel

ChromecastChannel = _channel.ChromecastChannel
ChromecastPlayer = _channel.ChromecastPlayer

__all__ = ["ChromecastChannel", "ChromecastPlayer"]
