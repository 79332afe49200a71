"""Static description of a simulated node."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from ipaddress import IPv4Address


class NodeRole(str, Enum):
    SENSOR = "sensor"
    SINK = "sink"


@dataclass(frozen=True, slots=True)
class Node:
    """Sensor or sink placed once at setup.

    :param id: Index of the node. Sensors use ``0 .. n-1``, the sink ``n``.
    :param x: Position X (metres).
    :param y: Position Y (metres).
    :param role: :class:`NodeRole` of the node.
    :param address: IPv4 address reachable by the traffic applications.
    """

    id: int
    x: float
    y: float
    role: NodeRole
    address: IPv4Address

    @property
    def position(self) -> tuple[float, float]:
        return (self.x, self.y)

    @property
    def is_sink(self) -> bool:
        return self.role is NodeRole.SINK

    def distance_to(self, other: "Node") -> float:
        dx = self.x - other.x
        dy = self.y - other.y
        return (dx * dx + dy * dy) ** 0.5


__all__ = ["Node", "NodeRole"]
