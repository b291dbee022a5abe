"""Tests for the in-memory and NetworkTables control bus adapters."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from app.bus import InMemoryBus, NetworkTablesBus
from app.bus.network_tables import CLIENT_IDENTITY
from configs.settings import NetworkMode
from exceptions import BusError


class TestInMemoryBus:
    def test_values_round_trip_with_defaults(self):
        bus = InMemoryBus()
        bus.start()
        bus.put_number("centerX", 160)
        bus.put_boolean("targetValid", True)

        assert bus.running
        assert bus.get_number("centerX", -1.0) == 160.0
        assert bus.get_boolean("targetValid", False) is True
        assert bus.get_number("distanceTarget", -1.0) == -1.0

        bus.stop()
        assert not bus.running

    def test_snapshot_is_a_copy(self):
        bus = InMemoryBus()
        bus.put_number("leftTarget", 110)
        snapshot = bus.snapshot()
        snapshot["leftTarget"] = 0.0
        assert bus.get_number("leftTarget", 0.0) == 110.0


@pytest.fixture
def instance() -> MagicMock:
    return MagicMock(name="NetworkTableInstance")


class TestNetworkTablesBus:
    def test_client_mode_connects_by_team(self, instance):
        bus = NetworkTablesBus(team=1234, instance=instance)
        bus.start()

        instance.startClient4.assert_called_once_with(CLIENT_IDENTITY)
        instance.setServerTeam.assert_called_once_with(1234)
        instance.startDSClient.assert_called_once_with()
        instance.startServer.assert_not_called()

    def test_server_mode(self, instance):
        bus = NetworkTablesBus(team=1234, mode=NetworkMode.SERVER, instance=instance)
        bus.start()
        bus.stop()

        instance.startServer.assert_called_once_with()
        instance.startClient4.assert_not_called()
        instance.stopServer.assert_called_once_with()

    def test_start_is_idempotent(self, instance):
        bus = NetworkTablesBus(team=1, instance=instance)
        bus.start()
        bus.start()
        assert instance.startClient4.call_count == 1

    def test_stop_before_start_does_nothing(self, instance):
        NetworkTablesBus(team=1, instance=instance).stop()
        instance.stopClient.assert_not_called()

    def test_entries_go_to_configured_table(self, instance):
        table = instance.getTable.return_value
        table.getNumber.return_value = 42.0
        bus = NetworkTablesBus(team=1, table_name="Vision", instance=instance)

        bus.put_number("centerX", 160)
        bus.put_boolean("targetValid", False)
        bus.flush()

        instance.getTable.assert_called_once_with("Vision")
        table.putNumber.assert_called_once_with("centerX", 160.0)
        table.putBoolean.assert_called_once_with("targetValid", False)
        instance.flush.assert_called_once_with()
        assert bus.get_number("centerX", 0.0) == 42.0

    def test_start_failure_raises_bus_error(self, instance):
        instance.startClient4.side_effect = RuntimeError("no network")
        bus = NetworkTablesBus(team=1, instance=instance)

        with pytest.raises(BusError, match="no network"):
            bus.start()
