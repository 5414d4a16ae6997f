"""Exception types raised by castremote.

Every error the public API raises derives from CastRemoteError so callers can
catch the whole family with one clause.
"""

from __future__ import annotations


class CastRemoteError(Exception):
    """Base class for all castremote errors."""


class NotConnectedError(CastRemoteError):
    """Raised when an operation needs a live connection and there is none."""

    def __init__(self, message: str | None = None) -> None:
        """Initialize the error.

        :param message: Optional override for the default message.
        """
        super().__init__(
            message
            or "Not connected to a cast device. Call initialize() before any "
            "other operation."
        )


class DiscoveryError(CastRemoteError):
    """Raised when no device answered the service announcement query."""

    def __init__(self, service_type: str, timeout: float | None = None) -> None:
        """Initialize the error.

        :param service_type: The service type that was queried.
        :param timeout: Seconds spent waiting for an answer, if bounded.
        """
        self.service_type = service_type
        self.timeout = timeout
        message = f"Could not find any device for {service_type} on the network"
        if timeout is not None:
            message += f" within {timeout}s"
        super().__init__(message)


class ConnectError(CastRemoteError):
    """Raised when the transport connection to a device could not be opened."""

    def __init__(self, host: str, reason: str | None = None) -> None:
        """Initialize the error.

        :param host: The host the connection was attempted to.
        :param reason: Optional description of the underlying failure.
        """
        self.host = host
        self.reason = reason
        message = f"Could not connect to {host}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class NoSessionError(CastRemoteError):
    """Raised when the device reports no running receiver application."""

    def __init__(self) -> None:
        """Initialize the error."""
        super().__init__("The device has no active application session")


class UnsupportedAppError(CastRemoteError):
    """Raised when the running application does not support media control."""

    def __init__(self, display_name: str) -> None:
        """Initialize the error.

        :param display_name: Display name of the offending application.
        """
        self.display_name = display_name
        super().__init__(f'The app "{display_name}" does not support media controls')


class OperationTimeoutError(CastRemoteError, TimeoutError):
    """Raised when a bounded operation did not settle before its deadline."""

    def __init__(self, timeout: float) -> None:
        """Initialize the error.

        :param timeout: The deadline that elapsed, in seconds.
        """
        self.timeout = timeout
        super().__init__(f"Timeout of {self.duration_ms} ms exceeded")

    @property
    def duration_ms(self) -> int:
        """The elapsed deadline in whole milliseconds."""
        return round(self.timeout * 1000)


class ChannelError(CastRemoteError):
    """Error reported by the device channel, passed through to the caller."""


__all__ = [
    "CastRemoteError",
    "ChannelError",
    "ConnectError",
    "DiscoveryError",
    "NoSessionError",
    "NotConnectedError",
    "OperationTimeoutError",
    "UnsupportedAppError",
]
