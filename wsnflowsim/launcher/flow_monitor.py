"""Per-flow counters and the aggregate results of a run."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from ipaddress import IPv4Address
from typing import NamedTuple

import pandas as pd


logger = logging.getLogger(__name__)


class FlowKey(NamedTuple):
    source: IPv4Address
    destination: IPv4Address


@dataclass(slots=True)
class FlowStats:
    """Counters of one (source, destination) flow.

    ``delay_sum`` and ``jitter_sum`` only grow when a packet is delivered.
    """

    flow_id: int
    tx_packets: int = 0
    tx_bytes: int = 0
    rx_packets: int = 0
    rx_bytes: int = 0
    delay_sum: float = 0.0
    jitter_sum: float = 0.0
    last_delay: float | None = None
    time_first_tx: float | None = None
    time_last_tx: float | None = None
    time_first_rx: float | None = None
    time_last_rx: float | None = None

    @property
    def lost_packets(self) -> int:
        return self.tx_packets - self.rx_packets

    @property
    def pdr(self) -> float:
        return self.rx_packets / self.tx_packets if self.tx_packets > 0 else 0.0

    @property
    def mean_delay(self) -> float:
        return self.delay_sum / self.rx_packets if self.rx_packets > 0 else 0.0


@dataclass(frozen=True, slots=True)
class ResultsRecord:
    total_tx: int
    total_rx: int
    total_rx_bytes: int
    pdr: float
    avg_delay: float
    throughput_kbps: float

    def as_dict(self) -> dict:
        return asdict(self)


class FlowMonitor:
    """Single owner of the flow table shared by all traffic applications."""

    def __init__(self) -> None:
        self._flows: dict[FlowKey, FlowStats] = {}
        self._next_flow_id = 1

    def _get_or_create(self, flow: FlowKey) -> FlowStats:
        stats = self._flows.get(flow)
        if stats is None:
            stats = FlowStats(self._next_flow_id)
            self._next_flow_id += 1
            self._flows[flow] = stats
            logger.debug("New flow %d: %s -> %s", stats.flow_id, flow.source, flow.destination)
        return stats

    def record_tx(self, flow: FlowKey, size: int = 0, time: float | None = None) -> None:
        stats = self._get_or_create(flow)
        stats.tx_packets += 1
        stats.tx_bytes += size
        if time is not None:
            if stats.time_first_tx is None:
                stats.time_first_tx = time
            stats.time_last_tx = time

    def record_rx(
        self, flow: FlowKey, size: int, delay: float, time: float | None = None
    ) -> None:
        stats = self._flows.get(flow)
        if stats is None:
            raise ValueError(f"reception on flow {flow} that never transmitted")
        if stats.rx_packets >= stats.tx_packets:
            raise ValueError(f"flow {stats.flow_id} would receive more than it sent")
        stats.rx_packets += 1
        stats.rx_bytes += size
        stats.delay_sum += delay
        if stats.last_delay is not None:
            stats.jitter_sum += abs(delay - stats.last_delay)
        stats.last_delay = delay
        if time is not None:
            if stats.time_first_rx is None:
                stats.time_first_rx = time
            stats.time_last_rx = time

    # ------------------------------------------------------------------
    def flows(self) -> dict[FlowKey, FlowStats]:
        return dict(self._flows)

    def get(self, flow: FlowKey) -> FlowStats | None:
        return self._flows.get(flow)

    def __len__(self) -> int:
        return len(self._flows)

    def snapshot(self, sim_time: float) -> ResultsRecord:
        """Sum every flow and derive the aggregate metrics.

        Each ratio is defined as 0 when its denominator is 0.
        """
        total_tx = sum(s.tx_packets for s in self._flows.values())
        total_rx = sum(s.rx_packets for s in self._flows.values())
        total_rx_bytes = sum(s.rx_bytes for s in self._flows.values())
        sum_delay = sum(s.delay_sum for s in self._flows.values())

        pdr = total_rx / total_tx if total_tx > 0 else 0.0
        avg_delay = sum_delay / total_rx if total_rx > 0 else 0.0
        throughput_kbps = (
            total_rx_bytes * 8.0 / sim_time / 1000.0 if sim_time > 0 else 0.0
        )
        return ResultsRecord(
            total_tx=total_tx,
            total_rx=total_rx,
            total_rx_bytes=total_rx_bytes,
            pdr=pdr,
            avg_delay=avg_delay,
            throughput_kbps=throughput_kbps,
        )

    def to_dataframe(self) -> pd.DataFrame:
        """Return one row per flow ordered by flow id."""
        columns = [
            "flow_id",
            "source",
            "destination",
            "tx_packets",
            "rx_packets",
            "lost_packets",
            "tx_bytes",
            "rx_bytes",
            "pdr",
            "mean_delay_s",
            "jitter_sum_s",
            "time_first_tx",
            "time_last_rx",
        ]
        rows = []
        for key, stats in sorted(self._flows.items(), key=lambda kv: kv[1].flow_id):
            rows.append(
                {
                    "flow_id": stats.flow_id,
                    "source": str(key.source),
                    "destination": str(key.destination),
                    "tx_packets": stats.tx_packets,
                    "rx_packets": stats.rx_packets,
                    "lost_packets": stats.lost_packets,
                    "tx_bytes": stats.tx_bytes,
                    "rx_bytes": stats.rx_bytes,
                    "pdr": stats.pdr,
                    "mean_delay_s": stats.mean_delay,
                    "jitter_sum_s": stats.jitter_sum,
                    "time_first_tx": stats.time_first_tx,
                    "time_last_rx": stats.time_last_rx,
                }
            )
        return pd.DataFrame(rows, columns=columns)


__all__ = ["FlowKey", "FlowMonitor", "FlowStats", "ResultsRecord"]
