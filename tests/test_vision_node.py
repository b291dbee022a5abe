"""Node wiring with the simulated camera backend and an in-memory bus."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from app.bus import InMemoryBus
from app.pipeline import WorkerState
from app.pipeline.result_publisher import CENTER_X_KEY, TARGET_VALID_KEY
from app.vision_node import VisionNode
from configs.settings import parse_config
from exceptions import BusError


def make_config(cameras=1, **extra):
    return parse_config(
        {
            "team": 1234,
            "cameras": [{"name": f"cam{i}", "path": str(i)} for i in range(cameras)],
            **extra,
        }
    )


@pytest.fixture
def bus() -> InMemoryBus:
    return InMemoryBus()


class TestVisionNode:
    def test_tracks_simulated_target(self, bus):
        node = VisionNode(make_config(), backend="sim", bus=bus)
        try:
            assert node.start()
            update = node.publisher.wait_for_update(0, timeout=5.0)
            assert update is not None
            _, result = update
            assert result.valid
            assert result.center_x == 160
            assert bus.get_number(CENTER_X_KEY, 0.0) == 160.0
            assert bus.get_boolean(TARGET_VALID_KEY, False)
        finally:
            assert node.shutdown()

        assert node.worker.state is WorkerState.STOPPED
        assert not bus.running
        assert not node.tracked.device.is_open()

    def test_tracked_camera_uses_tracking_resolution(self, bus):
        config = make_config(cameras=2, tracking={"camera": 1, "width": 160, "height": 120})
        node = VisionNode(config, backend="sim", bus=bus)
        try:
            node.start()
            node.publisher.wait_for_update(0, timeout=5.0)
            assert node.tracked.name == "cam1"
            stats = node.tracked.device.get_stats()
            assert (stats.width, stats.height) == (160, 120)
            assert node.current_result().center_x == 80
        finally:
            node.shutdown()

    def test_logs_camera_count(self, bus):
        with patch("app.vision_node.logger") as logger:
            node = VisionNode(make_config(cameras=2), backend="sim", bus=bus)
            node.start()
            node.shutdown()
        logger.info.assert_any_call("Number of cameras: 2")

    def test_no_cameras_leaves_worker_idle(self, bus):
        node = VisionNode(make_config(cameras=0), backend="sim", bus=bus)

        assert node.start() is False
        assert node.worker.state is WorkerState.IDLE
        assert bus.running
        assert node.shutdown()
        assert node.worker.state is WorkerState.STOPPED

    def test_tracking_index_out_of_range(self, bus):
        node = VisionNode(make_config(cameras=1, tracking={"camera": 3}), backend="sim", bus=bus)
        assert node.start() is False
        assert node.tracked is None
        node.shutdown()

    def test_shutdown_order(self, bus):
        node = VisionNode(make_config(), backend="sim", bus=bus)
        node.start()
        assert node.cleanup_manager.task_names == ["control_bus", "camera:cam0", "frame_worker"]
        node.shutdown()

    def test_start_twice_rejected(self, bus):
        node = VisionNode(make_config(cameras=0), backend="sim", bus=bus)
        node.start()
        with pytest.raises(RuntimeError):
            node.start()
        node.shutdown()

    def test_bus_failure_propagates(self):
        bus = MagicMock()
        bus.start.side_effect = BusError("no network")
        node = VisionNode(make_config(), backend="sim", bus=bus)
        with pytest.raises(BusError):
            node.start()

    def test_wait_forever_returns_after_stop(self, bus):
        node = VisionNode(make_config(cameras=0), backend="sim", bus=bus)
        node.start()
        node.request_stop()
        node.wait_forever(poll_interval=0.01)
        assert node.stop_requested
        node.shutdown()

    def test_default_bus_is_network_tables(self):
        config = make_config(cameras=0, table="Vision", ntmode="server")
        node = VisionNode(config, backend="sim")
        assert node.bus._table_name == "Vision"
        assert node.bus._team == 1234
