"""Command line launcher for a single sensor network run."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from wsnflowsim.launcher import ConfigurationError, SimulationConfig, Simulator, load_config
from wsnflowsim.launcher.flow_monitor import ResultsRecord


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--config", type=Path, help="INI file with a [simulation] section")
    parser.add_argument("--n-sensors", type=int, help="Number of sensor nodes")
    parser.add_argument("--sim-time", type=float, help="Simulated duration (s)")
    parser.add_argument("--packet-interval", type=float, help="Interval between packets (s)")
    parser.add_argument("--packet-size", type=int, help="Datagram size (bytes)")
    parser.add_argument("--tx-power", dest="tx_power_dBm", type=float, help="Transmit power (dBm)")
    parser.add_argument("--area-size", type=float, help="Side of the square region (m)")
    parser.add_argument("--start-time", type=float, help="First transmission time (s)")
    parser.add_argument("--seed", type=int, help="Seed of the random placement")
    parser.add_argument(
        "--loss-model",
        help="Loss model chain, e.g. 'friis' or 'log_distance+friis'",
    )
    parser.add_argument(
        "--shadowing-std", dest="shadowing_std_dB", type=float, help="Log-normal shadowing (dB)"
    )
    parser.add_argument(
        "--sensitivity", dest="sensitivity_dBm", type=float, help="Receiver sensitivity (dBm)"
    )
    parser.add_argument("--flows-csv", type=Path, help="Write per-flow statistics to this CSV file")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    return parser


def format_report(config: SimulationConfig, results: ResultsRecord) -> str:
    lines = [
        "========== RESULTS ==========",
        f"Sensors:             {config.n_sensors}",
        f"Simulation time:     {config.sim_time:g} s",
        f"TxPower:             {config.tx_power_dBm:g} dBm",
        f"Packet interval:     {config.packet_interval:g} s",
        f"Packets sent:        {results.total_tx}",
        f"Packets received:    {results.total_rx}",
        f"PDR:                 {results.pdr * 100.0:g} %",
        f"Average delay:       {results.avg_delay:g} s",
        f"Average throughput:  {results.throughput_kbps:g} kbps",
        "=============================",
    ]
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")

    try:
        config = load_config(args.config) if args.config else SimulationConfig()
        config = config.with_overrides(
            n_sensors=args.n_sensors,
            sim_time=args.sim_time,
            packet_interval=args.packet_interval,
            packet_size=args.packet_size,
            tx_power_dBm=args.tx_power_dBm,
            area_size=args.area_size,
            start_time=args.start_time,
            seed=args.seed,
            loss_model=args.loss_model,
            shadowing_std_dB=args.shadowing_std_dB,
            sensitivity_dBm=args.sensitivity_dBm,
        )
        sim = Simulator(config)
    except ConfigurationError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    results = sim.run()
    print(format_report(sim.config, results))

    if args.flows_csv is not None:
        args.flows_csv.parent.mkdir(parents=True, exist_ok=True)
        sim.monitor.to_dataframe().to_csv(args.flows_csv, index=False)
        logger.info("Per-flow statistics written to %s", args.flows_csv)
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
