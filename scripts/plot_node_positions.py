#!/usr/bin/env python3
"""Plot the sensor and sink positions of a random placement."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from wsnflowsim.launcher import Channel, FriisLoss, Topology


def plot_topology(topology: Topology, output: Path, *, tx_power_dBm: float | None = None,
                  marker_size: float = 60.0) -> Path:
    """Save a scatter plot of ``topology`` to ``output`` and return the path.

    With ``tx_power_dBm`` the free-space reception range around the sink is
    drawn as a circle.
    """
    output = Path(output)
    output.parent.mkdir(parents=True, exist_ok=True)

    fig, ax = plt.subplots()
    if topology.sensors:
        xs = [n.x for n in topology.sensors]
        ys = [n.y for n in topology.sensors]
        ax.scatter(xs, ys, s=marker_size, edgecolors="black", facecolors="C0", label="Sensors")
        for n in topology.sensors:
            ax.annotate(str(n.id), (n.x, n.y), ha="center", va="center", fontsize=7, color="white")
    sink = topology.sink
    ax.scatter([sink.x], [sink.y], marker="*", s=200, edgecolors="black", facecolors="red", label="Sink")

    if tx_power_dBm is not None:
        radius = Channel(FriisLoss()).max_range(tx_power_dBm)
        ax.add_patch(plt.Circle((sink.x, sink.y), radius, fill=False, linestyle="--", color="grey"))

    if topology.area_size is not None:
        ax.set_xlim(0, topology.area_size)
        ax.set_ylim(0, topology.area_size)
    ax.set_aspect("equal")
    ax.set_xlabel("x coordinate (m)")
    ax.set_ylabel("y coordinate (m)")
    ax.legend(loc="upper right")
    fig.savefig(output, dpi=300, bbox_inches="tight")
    plt.close(fig)
    return output


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--n-sensors", type=int, default=27, help="Number of sensors")
    parser.add_argument("--area-size", type=float, default=30.0, help="Side of the square area")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    parser.add_argument("--tx-power", type=float, default=None, help="Draw the range for this power (dBm)")
    parser.add_argument("--output", default="figures/node_positions.png", help="Path of the figure")
    args = parser.parse_args(argv)

    topology = Topology.random(args.n_sensors, args.area_size, seed=args.seed)
    plot_topology(topology, Path(args.output), tx_power_dBm=args.tx_power)


if __name__ == "__main__":
    main()
