"""Exception hierarchy for netscope."""

from typing import Optional


class NetscopeError(Exception):
    """Base class for all netscope errors."""


class ConfigError(NetscopeError):
    """Invalid configuration value."""


class CaptureError(NetscopeError):
    """Base class for errors on the capture path."""

    def __init__(self, message: str, device: Optional[str] = None):
        super().__init__(message)
        self.device = device


class DeviceOpenError(CaptureError):
    """The capture handle could not be opened (permissions, device gone)."""


class ReadError(CaptureError):
    """Transient failure while reading the next frame."""


class HandleCloseError(CaptureError):
    """Failure while closing a capture handle."""
