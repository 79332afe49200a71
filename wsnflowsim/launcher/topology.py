"""Placement of the sensors and the sink, and address allocation."""

from __future__ import annotations

import logging
import math
from ipaddress import IPv4Address, IPv4Network
from typing import Iterable, Sequence

import numpy as np

from .config import validate_non_negative_int, validate_positive_real
from .errors import ConfigurationError
from .node import Node, NodeRole


logger = logging.getLogger(__name__)

DEFAULT_NETWORK = "10.1.1.0/24"


def _parse_network(network: str | IPv4Network) -> IPv4Network:
    try:
        return IPv4Network(network)
    except ValueError as exc:
        raise ConfigurationError(f"invalid network {network!r}: {exc}") from exc


def _allocate_addresses(network: IPv4Network, count: int) -> list[IPv4Address]:
    """Return the first ``count`` host addresses of ``network`` in order."""
    available = network.num_addresses - 2 if network.prefixlen < 31 else network.num_addresses
    if count > available:
        raise ConfigurationError(
            f"network {network} has {available} host addresses, {count} nodes requested"
        )
    addresses: list[IPv4Address] = []
    for addr in network.hosts():
        if len(addresses) == count:
            break
        addresses.append(addr)
    return addresses


class Topology:
    """Fixed set of nodes: ``n`` sensors followed by one sink.

    Node ``i`` (``0 <= i < n``) is a sensor, node ``n`` is the sink. Addresses
    are handed out in the same order, so the sink always owns the address
    right after the last sensor.
    """

    def __init__(
        self,
        sensor_positions: Sequence[tuple[float, float]],
        sink_position: tuple[float, float],
        *,
        area_size: float | None = None,
        network: str | IPv4Network = DEFAULT_NETWORK,
    ) -> None:
        for pos in list(sensor_positions) + [sink_position]:
            if len(pos) != 2 or not all(math.isfinite(c) for c in pos):
                raise ConfigurationError(f"invalid position {pos!r}")
        if area_size is not None:
            area_size = validate_positive_real("area_size", area_size)
            labelled = [("sink", sink_position)] + [
                (f"sensor {i}", p) for i, p in enumerate(sensor_positions)
            ]
            for label, pos in labelled:
                if not all(0.0 <= c <= area_size for c in pos):
                    raise ConfigurationError(
                        f"{label} position {tuple(pos)} lies outside the "
                        f"{area_size:g}m x {area_size:g}m region"
                    )
        self.area_size = area_size
        self.network = _parse_network(network)
        count = len(sensor_positions)
        addresses = _allocate_addresses(self.network, count + 1)
        self.sensors: list[Node] = [
            Node(i, float(x), float(y), NodeRole.SENSOR, addresses[i])
            for i, (x, y) in enumerate(sensor_positions)
        ]
        self.sink = Node(
            count,
            float(sink_position[0]),
            float(sink_position[1]),
            NodeRole.SINK,
            addresses[count],
        )
        self.nodes: list[Node] = self.sensors + [self.sink]
        self._by_address = {node.address: node for node in self.nodes}
        logger.debug(
            "Topology with %d sensors, sink %s at (%.2f, %.2f)",
            count,
            self.sink.address,
            self.sink.x,
            self.sink.y,
        )

    # ------------------------------------------------------------------
    @classmethod
    def random(
        cls,
        n_sensors: int,
        area_size: float,
        *,
        sink_position: tuple[float, float] | None = None,
        seed: int | None = None,
        rng: np.random.Generator | None = None,
        network: str | IPv4Network = DEFAULT_NETWORK,
    ) -> "Topology":
        """Place ``n_sensors`` uniformly at random in ``[0, area_size]²``.

        The sink sits at the centre of the region unless ``sink_position`` is
        given. ``seed`` makes the placement reproducible; ``rng`` takes
        precedence when both are supplied.
        """
        n_sensors = validate_non_negative_int("n_sensors", n_sensors)
        area_size = validate_positive_real("area_size", area_size)
        if rng is None:
            rng = np.random.default_rng(seed)
        positions = rng.uniform(0.0, area_size, size=(n_sensors, 2))
        if sink_position is None:
            sink_position = (area_size / 2.0, area_size / 2.0)
        return cls(
            [(float(x), float(y)) for x, y in positions],
            sink_position,
            area_size=area_size,
            network=network,
        )

    @classmethod
    def from_positions(
        cls,
        sensor_positions: Iterable[tuple[float, float]],
        sink_position: tuple[float, float],
        *,
        network: str | IPv4Network = DEFAULT_NETWORK,
    ) -> "Topology":
        """Build an explicit layout without region bounds."""
        return cls([tuple(p) for p in sensor_positions], tuple(sink_position), network=network)

    # ------------------------------------------------------------------
    @property
    def n_sensors(self) -> int:
        return len(self.sensors)

    @property
    def sink_address(self) -> IPv4Address:
        return self.sink.address

    def address_of(self, node_id: int) -> IPv4Address:
        if not 0 <= node_id < len(self.nodes):
            raise KeyError(node_id)
        return self.nodes[node_id].address

    def node_by_address(self, address: IPv4Address | str) -> Node:
        return self._by_address[IPv4Address(address)]

    def positions(self) -> list[tuple[float, float]]:
        return [node.position for node in self.nodes]


__all__ = ["DEFAULT_NETWORK", "Topology"]
