"""Experiment parameters and their validation."""

from __future__ import annotations

import configparser
import logging
import math
import numbers
from dataclasses import asdict, dataclass, fields, replace
from ipaddress import IPv4Network
from pathlib import Path

from .errors import ConfigurationError


logger = logging.getLogger(__name__)

LOSS_MODELS = ("friis", "log_distance")


def validate_positive_real(name: str, value: object) -> float:
    """Return ``value`` as a positive real number or raise a clear error."""

    if isinstance(value, bool):
        raise ConfigurationError(f"{name} must be a real number, not bool")
    if not isinstance(value, numbers.Real):
        raise ConfigurationError(f"{name} must be a real number")
    if not math.isfinite(value) or value <= 0:
        raise ConfigurationError(f"{name} must be a positive, finite number")
    return float(value)


def validate_finite_real(name: str, value: object) -> float:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ConfigurationError(f"{name} must be a real number")
    if not math.isfinite(value):
        raise ConfigurationError(f"{name} must be finite")
    return float(value)


def validate_non_negative_int(name: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise ConfigurationError(f"{name} must be an integer")
    if value < 0:
        raise ConfigurationError(f"{name} must be >= 0")
    return int(value)


@dataclass(frozen=True)
class SimulationConfig:
    """Parameters of a single run.

    Defaults reproduce the reference experiment: 27 sensors in a 30 m square
    sending 64 byte datagrams every second at 20 dBm during 47 s.
    """

    n_sensors: int = 27
    sim_time: float = 47.0
    packet_interval: float = 1.0
    packet_size: int = 64
    tx_power_dBm: float = 20.0
    area_size: float = 30.0
    sink_position: tuple[float, float] | None = None
    start_time: float = 1.0
    seed: int | None = None
    sensitivity_dBm: float = -101.0
    frequency_hz: float = 5.15e9
    loss_model: str = "friis"
    shadowing_std_dB: float = 0.0
    sink_port: int = 4000
    network: str = "10.1.1.0/24"

    def validate(self) -> "SimulationConfig":
        """Check every parameter, raising :class:`ConfigurationError`."""
        validate_non_negative_int("n_sensors", self.n_sensors)
        validate_positive_real("sim_time", self.sim_time)
        validate_positive_real("packet_interval", self.packet_interval)
        if isinstance(self.packet_size, bool) or not isinstance(self.packet_size, numbers.Integral):
            raise ConfigurationError("packet_size must be an integer")
        if self.packet_size <= 0:
            raise ConfigurationError("packet_size must be > 0")
        validate_finite_real("tx_power_dBm", self.tx_power_dBm)
        validate_positive_real("area_size", self.area_size)
        if self.sink_position is not None:
            if len(self.sink_position) != 2:
                raise ConfigurationError("sink_position must be an (x, y) pair")
            for coord in self.sink_position:
                c = validate_finite_real("sink_position", coord)
                if not 0.0 <= c <= self.area_size:
                    raise ConfigurationError(
                        f"sink_position {tuple(self.sink_position)} lies outside the region"
                    )
        start = validate_finite_real("start_time", self.start_time)
        if start < 0:
            raise ConfigurationError("start_time must be >= 0")
        if self.seed is not None:
            validate_non_negative_int("seed", self.seed)
        validate_finite_real("sensitivity_dBm", self.sensitivity_dBm)
        validate_positive_real("frequency_hz", self.frequency_hz)
        for name in self.loss_chain:
            if name not in LOSS_MODELS:
                supported = ", ".join(LOSS_MODELS)
                raise ConfigurationError(
                    f"unknown loss model '{name}', expected one of: {supported}"
                )
        if validate_finite_real("shadowing_std_dB", self.shadowing_std_dB) < 0:
            raise ConfigurationError("shadowing_std_dB must be >= 0")
        port = validate_non_negative_int("sink_port", self.sink_port)
        if port > 65535:
            raise ConfigurationError("sink_port must be <= 65535")
        try:
            IPv4Network(self.network)
        except ValueError as exc:
            raise ConfigurationError(f"invalid network {self.network!r}: {exc}") from exc
        return self

    @property
    def loss_chain(self) -> list[str]:
        """Loss model names, ``+`` separated in :attr:`loss_model`."""
        return [part.strip().lower().replace("-", "_") for part in self.loss_model.split("+")]

    def with_overrides(self, **overrides) -> "SimulationConfig":
        """Return a copy with every non-``None`` override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)

    def to_dict(self) -> dict:
        return asdict(self)


_INT_FIELDS = {"n_sensors", "packet_size", "seed", "sink_port"}
_STR_FIELDS = {"loss_model", "network"}


def load_config(path: str | Path, base: SimulationConfig | None = None) -> SimulationConfig:
    """Read the ``[simulation]`` section of an INI file.

    Keys use the field names of :class:`SimulationConfig`. Unknown keys are
    rejected. ``sink_position`` is written ``x, y``.
    """
    cfg_path = Path(path)
    if not cfg_path.is_file():
        raise ConfigurationError(f"configuration file not found: {cfg_path}")
    cp = configparser.ConfigParser()
    # keep the case of option names (tx_power_dBm)
    cp.optionxform = str
    cp.read(cfg_path)
    if not cp.has_section("simulation"):
        raise ConfigurationError(f"{cfg_path} has no [simulation] section")

    known = {f.name for f in fields(SimulationConfig)}
    values: dict[str, object] = {}
    for key, raw in cp.items("simulation"):
        if key not in known:
            raise ConfigurationError(f"unknown option '{key}' in {cfg_path}")
        try:
            if key == "sink_position":
                parts = [float(p) for p in raw.split(",")]
                values[key] = tuple(parts)
            elif key in _INT_FIELDS:
                values[key] = int(raw)
            elif key in _STR_FIELDS:
                values[key] = raw.strip()
            else:
                values[key] = float(raw)
        except ValueError as exc:
            raise ConfigurationError(f"invalid value for '{key}': {raw!r}") from exc
    logger.debug("Loaded %d options from %s", len(values), cfg_path)
    return replace(base or SimulationConfig(), **values)


__all__ = [
    "LOSS_MODELS",
    "SimulationConfig",
    "load_config",
    "validate_finite_real",
    "validate_non_negative_int",
    "validate_positive_real",
]
