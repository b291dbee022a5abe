"""Configuration loading for the vision node.

The file format is the ``frc.json`` document written by the FRC vision image
(``/boot/frc.json``)::

    {
        "team": <team number>,
        "ntmode": <"client" or "server", "client" if unspecified>,
        "cameras": [
            {
                "name": <camera name>,
                "path": <path, e.g. "/dev/video0">,
                "pixel format": <"MJPEG", "YUYV", etc>,   // optional
                "width": <video mode width>,              // optional
                "height": <video mode height>,            // optional
                "fps": <video mode fps>,                  // optional
                "brightness": <percentage brightness>,    // optional
                "white balance": <"auto", "hold", value>, // optional
                "exposure": <"auto", "hold", value>,      // optional
                "properties": [{"name": ..., "value": ...}],  // optional
                "stream": {"properties": [...]}           // optional
            }
        ]
    }

Optional ``table``, ``tracking`` and ``pipeline`` sections tune the
NetworkTables table name, the tracked camera and the tape pipeline.
``.json`` files are decoded with ``json``; anything else (YAML overrides used
on a development machine) with ``yaml.safe_load``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from configs.validator import validate_config
from detect.config import ContourFilterConfig, HsvThresholdConfig, PipelineConfig
from exceptions import ConfigError, InvalidConfigError
from log_config.logger import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path("/boot/frc.json")


class NetworkMode(str, Enum):
    CLIENT = "client"
    SERVER = "server"


@dataclass(frozen=True)
class CameraConfig:
    """One camera entry.

    ``config`` is the whole JSON object for the camera; device properties are
    carried through opaquely to the capture backend.
    """

    name: str
    path: str
    config: Dict[str, Any] = field(default_factory=dict)
    stream_config: Optional[Dict[str, Any]] = None

    @property
    def width(self) -> Optional[int]:
        return self.config.get("width")

    @property
    def height(self) -> Optional[int]:
        return self.config.get("height")

    @property
    def fps(self) -> Optional[int]:
        return self.config.get("fps")

    @property
    def pixel_format(self) -> Optional[str]:
        return self.config.get("pixel format")

    @property
    def brightness(self) -> Optional[float]:
        return self.config.get("brightness")

    @property
    def white_balance(self) -> Optional[Any]:
        return self.config.get("white balance")

    @property
    def exposure(self) -> Optional[Any]:
        return self.config.get("exposure")

    @property
    def properties(self) -> List[Dict[str, Any]]:
        return list(self.config.get("properties", []))


@dataclass(frozen=True)
class TrackingConfig:
    camera: int = 0
    width: int = 320
    height: int = 240


@dataclass(frozen=True)
class VisionConfig:
    team: int
    nt_mode: NetworkMode
    cameras: Tuple[CameraConfig, ...]
    table_name: str = "TestTable"
    tracking: TrackingConfig = field(default_factory=TrackingConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)

    @property
    def server(self) -> bool:
        return self.nt_mode is NetworkMode.SERVER


def parse_nt_mode(value: Optional[str]) -> NetworkMode:
    """Parse ``ntmode`` case-insensitively.

    An unknown value is reported and the client default is kept.
    """
    if value is None:
        return NetworkMode.CLIENT
    lowered = value.lower()
    if lowered == NetworkMode.CLIENT.value:
        return NetworkMode.CLIENT
    if lowered == NetworkMode.SERVER.value:
        return NetworkMode.SERVER
    logger.error(f"could not understand ntmode value '{value}', using client mode")
    return NetworkMode.CLIENT


def read_camera_config(data: Dict[str, Any]) -> CameraConfig:
    stream = data.get("stream")
    return CameraConfig(
        name=str(data["name"]),
        path=str(data["path"]),
        config=dict(data),
        stream_config=dict(stream) if stream is not None else None,
    )


def _pipeline_from(data: Dict[str, Any]) -> PipelineConfig:
    hsv_data = data.get("hsv", {})
    defaults = HsvThresholdConfig()
    hsv = HsvThresholdConfig(
        hue=tuple(hsv_data.get("hue", defaults.hue)),
        saturation=tuple(hsv_data.get("saturation", defaults.saturation)),
        value=tuple(hsv_data.get("value", defaults.value)),
    )
    filter_data = dict(data.get("filters", {}))
    if "solidity" in filter_data:
        filter_data["solidity"] = tuple(filter_data["solidity"])
    return PipelineConfig(hsv=hsv, filters=ContourFilterConfig(**filter_data))


def parse_config(data: Any, source: str = "<memory>") -> VisionConfig:
    """Validate a decoded configuration document and build a VisionConfig.

    Args:
        data: Decoded document
        source: Where the document came from, for error messages

    Returns:
        Validated VisionConfig instance

    Raises:
        ConfigError: If the document is invalid
    """
    if not isinstance(data, dict):
        raise InvalidConfigError(f"config error in '{source}': must be JSON object", path=source)

    # Validate against JSON Schema (fills in defaults)
    validate_config(data)

    try:
        cameras = tuple(read_camera_config(camera) for camera in data["cameras"])
        tracking = TrackingConfig(**data["tracking"])
        pipeline = _pipeline_from(data["pipeline"])
        return VisionConfig(
            team=int(data["team"]),
            nt_mode=parse_nt_mode(data.get("ntmode")),
            cameras=cameras,
            table_name=data["table"],
            tracking=tracking,
            pipeline=pipeline,
        )
    except KeyError as e:
        logger.error(f"Missing required configuration key: {e}")
        raise InvalidConfigError(f"config error in '{source}': missing key {e}", path=source)
    except (TypeError, ValueError) as e:
        logger.error(f"Invalid configuration value: {e}")
        raise InvalidConfigError(f"config error in '{source}': {e}", path=source)


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> VisionConfig:
    """Load and validate configuration from a JSON (or YAML) file.

    Args:
        path: Path to configuration file

    Returns:
        Validated VisionConfig instance

    Raises:
        ConfigError: If configuration is invalid or cannot be loaded
    """
    path = Path(path)
    logger.info(f"Loading configuration from {path}")
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        logger.error(f"could not open '{path}': {e}")
        raise InvalidConfigError(f"could not open '{path}': {e}", path=str(path))
    except UnicodeDecodeError as e:
        logger.error(f"'{path}' is not UTF-8 text: {e}")
        raise InvalidConfigError(f"'{path}' is not UTF-8 text: {e}", path=str(path))

    try:
        data = json.loads(text) if path.suffix == ".json" else yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        logger.error(f"Failed to parse configuration: {e}")
        raise InvalidConfigError(f"Failed to parse configuration file '{path}': {e}", path=str(path))

    config = parse_config(data, source=str(path))
    logger.info(
        f"Configuration loaded: team={config.team}, ntmode={config.nt_mode.value}, "
        f"cameras={len(config.cameras)}"
    )
    return config


__all__ = [
    "CameraConfig",
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "NetworkMode",
    "TrackingConfig",
    "VisionConfig",
    "load_config",
    "parse_config",
    "parse_nt_mode",
    "read_camera_config",
]
