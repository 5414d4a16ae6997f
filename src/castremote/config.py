"""Configuration for castremote controllers."""

from __future__ import annotations

from dataclasses import dataclass

from castremote.types import GOOGLECAST_SERVICE_TYPE


@dataclass
class ControllerConfig:
    """Timeouts and discovery settings used by a controller.

    All durations are in seconds.

    :param service_type: DNS-SD service type queried during discovery.
    :param discovery_timeout: How long to wait for a device to answer.
    :param connect_timeout: How long the channel may take to connect.
    :param status_timeout: Bound for media status and volume reads and writes.
    :param close_timeout: How long to wait for the channel to confirm close.
    :param command_timeout: Bound for transport commands, or None for no bound.
    """

    service_type: str = GOOGLECAST_SERVICE_TYPE
    discovery_timeout: float = 10.0
    connect_timeout: float = 10.0
    status_timeout: float = 2.0
    close_timeout: float = 1.0
    command_timeout: float | None = 10.0

    def __post_init__(self) -> None:
        """Validate the configured durations.

        :returns: None
        """
        for name in (
            "discovery_timeout",
            "connect_timeout",
            "status_timeout",
            "close_timeout",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if self.command_timeout is not None and self.command_timeout <= 0:
            raise ValueError("command_timeout must be positive or None")


__all__ = ["ControllerConfig"]
