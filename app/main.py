"""Command-line entry point for the tape vision node."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

from app.camera.startup import BACKENDS
from app.vision_node import VisionNode
from configs.settings import DEFAULT_CONFIG_PATH, load_config
from exceptions import BusError, ConfigError
from log_config.logger import configure_logging, get_logger

logger = get_logger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="tape-vision",
        description="Track retro-reflective tape targets and publish them to NetworkTables.",
    )
    parser.add_argument(
        "config",
        nargs="?",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help=f"Camera/network configuration file (default: {DEFAULT_CONFIG_PATH}).",
    )
    parser.add_argument(
        "--backend",
        choices=sorted(BACKENDS),
        default="opencv",
        help="Capture backend to use (opencv or sim).",
    )
    parser.add_argument("--log-level", default="INFO", help="Console log level.")
    parser.add_argument("--log-dir", type=Path, default=None, help="Write rotating log files here.")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(level=args.log_level.upper(), log_dir=args.log_dir)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        logger.error(str(e))
        return 1

    node = VisionNode(config, backend=args.backend)
    try:
        node.start()
    except BusError as e:
        logger.error(str(e))
        node.shutdown()
        return 1

    node.install_signal_handlers()
    try:
        node.wait_forever()
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        clean = node.shutdown()
    return 0 if clean else 1


if __name__ == "__main__":
    sys.exit(main())
