"""Discrete-event core of the sensor network experiment."""

from .channel import Channel, ConstantSpeedDelay, FriisLoss, LinkResult, LogDistanceLoss, ShadowingLoss
from .config import SimulationConfig, load_config
from .errors import ConfigurationError
from .flow_monitor import FlowKey, FlowMonitor, FlowStats, ResultsRecord
from .node import Node, NodeRole
from .scheduler import EventScheduler, InvalidSchedule
from .simulator import Simulator, run_simulation
from .topology import Topology
from .traffic import Network, UdpClient, UdpServer

__all__ = [
    "Channel",
    "ConfigurationError",
    "ConstantSpeedDelay",
    "EventScheduler",
    "FlowKey",
    "FlowMonitor",
    "FlowStats",
    "FriisLoss",
    "InvalidSchedule",
    "LinkResult",
    "LogDistanceLoss",
    "Network",
    "Node",
    "NodeRole",
    "ResultsRecord",
    "ShadowingLoss",
    "SimulationConfig",
    "Simulator",
    "Topology",
    "UdpClient",
    "UdpServer",
    "load_config",
    "run_simulation",
]
