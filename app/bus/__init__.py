"""Control bus module - key-value channel shared with the robot program.

This module provides the bus interface, the NetworkTables implementation
used on the robot and an in-memory implementation for local consumers.
"""

from .interface import ControlBus
from .memory import InMemoryBus
from .network_tables import NetworkTablesBus

__all__ = ["ControlBus", "InMemoryBus", "NetworkTablesBus"]
