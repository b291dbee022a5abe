"""Camera bring-up from the ``cameras`` section of the configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Sequence

from app.events import ErrorCategory, ErrorSeverity, publish_error
from capture import CameraDevice, OpenCVCamera, SimulatedCamera
from configs.settings import CameraConfig
from exceptions import CameraConfigurationError, CameraError
from log_config.logger import get_logger

logger = get_logger(__name__)

CameraFactory = Callable[[CameraConfig], CameraDevice]

BACKENDS: Dict[str, CameraFactory] = {
    "opencv": lambda config: OpenCVCamera(name=config.name),
    "sim": lambda config: SimulatedCamera(name=config.name, fps=30),
}


@dataclass
class StartedCamera:
    """A camera that came up, with the entry it was started from."""

    config: CameraConfig
    device: CameraDevice

    @property
    def name(self) -> str:
        return self.config.name


def build_camera(config: CameraConfig, backend: str = "opencv") -> CameraDevice:
    try:
        factory = BACKENDS[backend]
    except KeyError:
        raise ValueError(f"Unknown camera backend: {backend}") from None
    return factory(config)


def start_camera(config: CameraConfig, backend: str = "opencv") -> CameraDevice:
    """Open a camera and apply its configured video mode and properties.

    Raises:
        CameraError: If the device cannot be opened or configured
    """
    logger.info(f"Starting camera '{config.name}' on {config.path}")
    camera = build_camera(config, backend)
    camera.open(config.path)
    try:
        camera.apply_config(config)
    except CameraError:
        camera.close()
        raise
    except Exception as e:
        camera.close()
        raise CameraConfigurationError(
            f"Camera '{config.name}' rejected its settings: {e}", camera_id=config.name
        ) from e
    if config.stream_config is not None:
        logger.debug(f"Camera '{config.name}': stream settings ignored ({config.stream_config})")
    return camera


def start_cameras(configs: Sequence[CameraConfig], backend: str = "opencv") -> List[StartedCamera]:
    """Start every configured camera; cameras that fail are logged and skipped."""
    started: List[StartedCamera] = []
    for config in configs:
        try:
            device = start_camera(config, backend)
        except CameraError as e:
            publish_error(
                ErrorCategory.CAMERA,
                ErrorSeverity.ERROR,
                f"Camera '{config.name}' failed to start: {e}",
                source="start_cameras",
                exception=e,
                path=config.path,
            )
            continue
        started.append(StartedCamera(config=config, device=device))
    return started


__all__ = [
    "BACKENDS",
    "StartedCamera",
    "build_camera",
    "start_camera",
    "start_cameras",
]
