"""Minimal simulated vision node demo."""

from __future__ import annotations

import argparse
from typing import Optional, Sequence

from app.bus import InMemoryBus
from app.pipeline import FramePipelineAdapter, FrameWorker, ResultPublisher
from app.pipeline.result_publisher import (
    CENTER_X_KEY,
    DISTANCE_TARGET_KEY,
    LEFT_TARGET_KEY,
    RIGHT_TARGET_KEY,
    TARGET_VALID_KEY,
)
from capture import SimulatedCamera
from detect import TapePipeline
from track.target_tracker import TargetTracker


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a simulated tape vision demo.")
    parser.add_argument("--frames", type=int, default=5)
    parser.add_argument("--width", type=int, default=320)
    parser.add_argument("--height", type=int, default=240)
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)

    camera = SimulatedCamera(max_frames=args.frames)
    camera.open("sim")
    camera.set_resolution(args.width, args.height)

    bus = InMemoryBus()
    bus.start()
    publisher = ResultPublisher(bus)
    worker = FrameWorker(FramePipelineAdapter(camera, TapePipeline()), publisher, TargetTracker(), name="demo")

    seen = 0
    worker.start()
    while seen < args.frames:
        update = publisher.wait_for_update(seen, timeout=2.0)
        if update is None:
            break
        seen, result = update
        print(
            f"frame={seen} valid={result.valid} center={result.center_x} "
            f"left={result.left_x} right={result.right_x} distance={result.distance:.2f}"
        )
    worker.join(timeout=2.0)
    worker.stop()
    camera.close()
    bus.stop()

    values = bus.snapshot()
    print(
        "bus: "
        + " ".join(
            f"{key}={values.get(key)}"
            for key in (CENTER_X_KEY, LEFT_TARGET_KEY, RIGHT_TARGET_KEY, DISTANCE_TARGET_KEY, TARGET_VALID_KEY)
        )
    )


if __name__ == "__main__":
    main()
