"""Periodic UDP-style traffic between the sensors and the sink."""

from __future__ import annotations

import logging
from ipaddress import IPv4Address

from .channel import Channel
from .config import validate_positive_real
from .errors import ConfigurationError
from .flow_monitor import FlowKey, FlowMonitor
from .node import Node
from .scheduler import EventHandle, EventScheduler
from .topology import Topology


logger = logging.getLogger(__name__)

TICK_NS = 1


def quantize(t: float, tick_ns: int = TICK_NS) -> float:
    """Round ``t`` (seconds) to an integer number of ``tick_ns`` nanoseconds."""
    return round(t * 1_000_000_000 / tick_ns) * tick_ns / 1_000_000_000


class Network:
    """Datagram delivery over the shared channel.

    Binds servers to ``(address, port)`` endpoints and turns every send into
    a flow record plus, when the channel delivers the frame, a receive event.
    """

    def __init__(
        self,
        scheduler: EventScheduler,
        channel: Channel,
        monitor: FlowMonitor,
        topology: Topology,
        *,
        events_log: list[dict] | None = None,
    ) -> None:
        self.scheduler = scheduler
        self.channel = channel
        self.monitor = monitor
        self.topology = topology
        self.events_log = events_log
        self._endpoints: dict[tuple[IPv4Address, int], UdpServer] = {}

    def bind(self, server: "UdpServer") -> None:
        key = (server.node.address, server.port)
        if key in self._endpoints:
            raise ConfigurationError(f"port {server.port} already bound on {server.node.address}")
        self._endpoints[key] = server

    def log_event(self, event: str, node_id: int, **extra) -> None:
        if self.events_log is not None:
            self.events_log.append({"time": self.scheduler.now, "event": event, "node_id": node_id, **extra})

    def send(
        self,
        source: Node,
        destination: IPv4Address,
        port: int,
        size: int,
        tx_power_dBm: float,
    ) -> bool:
        """Transmit one datagram. Return ``True`` if a reception was scheduled."""
        dest_node = self.topology.node_by_address(destination)
        flow = FlowKey(source.address, destination)
        now = self.scheduler.now
        self.monitor.record_tx(flow, size, now)

        link = self.channel.evaluate(source.position, dest_node.position, tx_power_dBm)
        server = self._endpoints.get((destination, port))
        if not link.delivered:
            logger.debug(
                "Node %d -> %s lost at t=%.3fs (rx %.2f dBm)",
                source.id,
                destination,
                now,
                link.rx_power_dBm,
            )
            self.log_event("tx", source.id, result="below_sensitivity", rx_power_dBm=link.rx_power_dBm)
            return False
        if server is None:
            logger.debug("No server on %s:%d, datagram from node %d dropped", destination, port, source.id)
            self.log_event("tx", source.id, result="port_unreachable", rx_power_dBm=link.rx_power_dBm)
            return False

        self.log_event("tx", source.id, result="in_flight", rx_power_dBm=link.rx_power_dBm)
        self.scheduler.schedule(
            link.delay,
            server.receive,
            flow,
            size,
            now,
            label=f"rx:{source.id}",
        )
        return True


class UdpServer:
    """Receive handler installed on the sink.

    Holds no per-sensor state: every reception only updates the shared flow
    table.
    """

    def __init__(self, network: Network, node: Node, port: int) -> None:
        self.network = network
        self.node = node
        self.port = port
        self.running = False
        self.received = 0
        network.bind(self)

    def start(self, at: float = 0.0) -> EventHandle:
        return self.network.scheduler.schedule_at(at, self._start, label=f"server-start:{self.node.id}")

    def stop(self, at: float) -> EventHandle:
        return self.network.scheduler.schedule_at(at, self._stop, label=f"server-stop:{self.node.id}")

    def _start(self) -> None:
        self.running = True

    def _stop(self) -> None:
        self.running = False

    def receive(self, flow: FlowKey, size: int, sent_at: float) -> None:
        now = self.network.scheduler.now
        if not self.running:
            logger.debug("Server %s stopped, datagram on flow %s discarded", self.node.address, flow)
            return
        delay = now - sent_at
        self.network.monitor.record_rx(flow, size, delay, now)
        self.received += 1
        source = self.network.topology.node_by_address(flow.source)
        self.network.log_event("rx", source.id, result="received", delay=delay)


class UdpClient:
    """Periodic sender installed on a sensor.

    Sends one ``packet_size`` byte datagram at the start time and then every
    ``interval`` seconds until stopped. ``max_packets=0`` means no limit.
    """

    def __init__(
        self,
        network: Network,
        node: Node,
        remote_address: IPv4Address,
        remote_port: int,
        *,
        interval: float,
        packet_size: int,
        tx_power_dBm: float,
        max_packets: int = 0,
    ) -> None:
        self.network = network
        self.node = node
        self.remote_address = IPv4Address(remote_address)
        try:
            network.topology.node_by_address(self.remote_address)
        except KeyError:
            raise ConfigurationError(
                f"remote address {self.remote_address} is not part of the topology"
            ) from None
        self.remote_port = remote_port
        self.interval = validate_positive_real("interval", interval)
        if packet_size <= 0:
            raise ConfigurationError("packet_size must be > 0")
        self.packet_size = int(packet_size)
        self.tx_power_dBm = float(tx_power_dBm)
        self.max_packets = max_packets
        self.sent = 0
        self.running = False
        self._start_time = 0.0
        self._stop_time: float | None = None
        self._send_event: EventHandle | None = None

    @property
    def scheduler(self) -> EventScheduler:
        return self.network.scheduler

    def start(self, at: float) -> EventHandle:
        return self.scheduler.schedule_at(at, self._start, label=f"client-start:{self.node.id}")

    def stop(self, at: float) -> EventHandle:
        self._stop_time = at
        return self.scheduler.schedule_at(at, self._stop, label=f"client-stop:{self.node.id}")

    def _start(self) -> None:
        self.running = True
        self._start_time = self.scheduler.now
        self._send()

    def next_send_time(self) -> float:
        """Time of the next datagram, ``start + sent * interval`` on the ns grid."""
        t = quantize(self._start_time + self.sent * self.interval)
        return max(t, self.scheduler.now)

    def _stop(self) -> None:
        self.running = False
        self.scheduler.cancel(self._send_event)
        self._send_event = None
        logger.debug("Client on node %d stopped after %d packets", self.node.id, self.sent)

    def _send(self) -> None:
        self._send_event = None
        if not self.running:
            return
        if self._stop_time is not None and self.scheduler.now >= self._stop_time:
            return
        self.network.send(
            self.node,
            self.remote_address,
            self.remote_port,
            self.packet_size,
            self.tx_power_dBm,
        )
        self.sent += 1
        if self.max_packets == 0 or self.sent < self.max_packets:
            self._send_event = self.scheduler.schedule_at(
                self.next_send_time(), self._send, label=f"tx:{self.node.id}"
            )


__all__ = ["Network", "UdpClient", "UdpServer"]
