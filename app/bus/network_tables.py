"""NetworkTables control bus backed by ntcore."""

from __future__ import annotations

from typing import Optional

import ntcore

from app.bus.interface import ControlBus
from configs.settings import NetworkMode
from exceptions import BusError
from log_config.logger import get_logger

logger = get_logger(__name__)

CLIENT_IDENTITY = "tape-vision"


class NetworkTablesBus(ControlBus):
    """Publishes entries into one NetworkTables table.

    In client mode the robot is found by team number (and through the driver
    station when one is connected); in server mode the coprocessor hosts the
    tables itself.
    """

    def __init__(
        self,
        team: int,
        mode: NetworkMode = NetworkMode.CLIENT,
        table_name: str = "TestTable",
        instance: Optional[ntcore.NetworkTableInstance] = None,
    ) -> None:
        self._team = team
        self._mode = mode
        self._table_name = table_name
        self._instance = instance
        self._table = None
        self._started = False

    @property
    def instance(self) -> ntcore.NetworkTableInstance:
        if self._instance is None:
            self._instance = ntcore.NetworkTableInstance.getDefault()
        return self._instance

    @property
    def table(self):
        if self._table is None:
            self._table = self.instance.getTable(self._table_name)
        return self._table

    def start(self) -> None:
        if self._started:
            return
        try:
            if self._mode is NetworkMode.SERVER:
                logger.info("Setting up NetworkTables server")
                self.instance.startServer()
            else:
                logger.info(f"Setting up NetworkTables client for team {self._team}")
                self.instance.startClient4(CLIENT_IDENTITY)
                self.instance.setServerTeam(self._team)
                self.instance.startDSClient()
        except Exception as e:
            raise BusError(f"Failed to start NetworkTables ({self._mode.value}): {e}") from e
        self._started = True

    def stop(self) -> None:
        if not self._started:
            return
        if self._mode is NetworkMode.SERVER:
            self.instance.stopServer()
        else:
            self.instance.stopDSClient()
            self.instance.stopClient()
        self._started = False
        logger.info("NetworkTables stopped")

    def put_number(self, key: str, value: float) -> None:
        self.table.putNumber(key, float(value))

    def put_boolean(self, key: str, value: bool) -> None:
        self.table.putBoolean(key, bool(value))

    def get_number(self, key: str, default: float) -> float:
        return self.table.getNumber(key, default)

    def get_boolean(self, key: str, default: bool) -> bool:
        return self.table.getBoolean(key, default)

    def flush(self) -> None:
        self.instance.flush()
