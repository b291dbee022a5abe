"""Exception hierarchy for the tape vision node."""

from __future__ import annotations

from typing import Optional


class VisionNodeError(Exception):
    """Base exception for all vision node errors."""

    pass


class ConfigError(VisionNodeError):
    """Base exception for configuration errors."""

    pass


class InvalidConfigError(ConfigError):
    """Raised when the configuration file is missing, unreadable or malformed."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(message)


class ConfigValidationError(ConfigError):
    """Raised when configuration fails schema validation."""

    def __init__(self, message: str, validation_errors: Optional[list] = None):
        self.validation_errors = validation_errors or []
        super().__init__(message)


class CameraError(VisionNodeError):
    """Base exception for camera-related errors."""

    def __init__(self, message: str, camera_id: Optional[str] = None):
        self.camera_id = camera_id
        super().__init__(message)


class CameraConnectionError(CameraError):
    """Raised when camera connection fails or is lost."""

    pass


class CameraConfigurationError(CameraError):
    """Raised when camera configuration fails."""

    pass


class FrameAcquisitionError(CameraError):
    """Raised when a frame cannot be read or decoded.

    Recoverable: the frame worker skips the frame and keeps waiting.
    """

    pass


class FrameStreamClosed(CameraError):
    """Raised when a frame source has no more frames to deliver."""

    pass


class BusError(VisionNodeError):
    """Raised when the control bus cannot be started or written."""

    pass
