#!/usr/bin/env python3
"""Run the experiment once per transmit power and write a summary CSV."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

import pandas as pd

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from wsnflowsim.launcher import SimulationConfig, Simulator

logger = logging.getLogger(__name__)

DEFAULT_TX_POWERS: Sequence[float] = (-60.0, -50.0, -40.0, -30.0, -20.0, 0.0, 20.0)


def sweep(base: SimulationConfig, tx_powers: Sequence[float]) -> pd.DataFrame:
    """Return one row of results per transmit power.

    Every run reuses the seed of ``base`` so the placement is identical
    across powers.
    """
    rows = []
    for power in tx_powers:
        config = base.with_overrides(tx_power_dBm=float(power))
        results = Simulator(config).run()
        row = {"tx_power_dBm": float(power)}
        row.update(results.as_dict())
        rows.append(row)
        logger.info("tx_power=%.1f dBm -> PDR %.3f", power, results.pdr)
    return pd.DataFrame(rows)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--tx-powers", type=float, nargs="+", default=list(DEFAULT_TX_POWERS))
    parser.add_argument("--n-sensors", type=int, default=27)
    parser.add_argument("--area-size", type=float, default=30.0)
    parser.add_argument("--sim-time", type=float, default=47.0)
    parser.add_argument("--seed", type=int, default=1)
    parser.add_argument("--output", type=Path, default=Path("results/tx_power_sweep.csv"))
    args = parser.parse_args(argv)

    base = SimulationConfig(
        n_sensors=args.n_sensors,
        area_size=args.area_size,
        sim_time=args.sim_time,
        seed=args.seed,
    )
    df = sweep(base, args.tx_powers)
    args.output.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(args.output, index=False)
    print(df.to_string(index=False))


if __name__ == "__main__":
    main()
