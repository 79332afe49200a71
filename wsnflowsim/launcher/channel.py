"""Propagation loss, propagation delay and reception decision.

The channel keeps no per-link state: positions are read again for every
transmission, so a loss model can be swapped without touching the scheduler
or the traffic applications.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Protocol, Sequence

import numpy as np

from .errors import ConfigurationError


logger = logging.getLogger(__name__)

SPEED_OF_LIGHT = 299792458.0
# Default frequency of the free-space model (5.15 GHz Wi-Fi band)
DEFAULT_FREQUENCY_HZ = 5.15e9
# Receiver sensitivity of the Wi-Fi PHY (dBm)
DEFAULT_SENSITIVITY_DBM = -101.0


Position = tuple[float, float]


def distance(a: Position, b: Position) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


class LossModel(Protocol):
    def rx_power(self, tx_power_dBm: float, distance_m: float) -> float: ...


@dataclass(frozen=True, slots=True)
class FriisLoss:
    """Free-space path loss: received power falls with the square of distance."""

    frequency_hz: float = DEFAULT_FREQUENCY_HZ
    system_loss: float = 1.0
    min_loss_dB: float = 0.0

    def __post_init__(self) -> None:
        if not (self.frequency_hz > 0 and math.isfinite(self.frequency_hz)):
            raise ConfigurationError("frequency_hz must be a positive, finite number")
        if self.system_loss < 1.0:
            raise ConfigurationError("system_loss must be >= 1")

    @property
    def wavelength(self) -> float:
        return SPEED_OF_LIGHT / self.frequency_hz

    def rx_power(self, tx_power_dBm: float, distance_m: float) -> float:
        lam = self.wavelength
        # Friis only holds in the far field
        if distance_m <= 3 * lam:
            return tx_power_dBm - self.min_loss_dB
        numerator = lam * lam
        denominator = 16 * math.pi * math.pi * distance_m * distance_m * self.system_loss
        loss_dB = -10 * math.log10(numerator / denominator)
        return tx_power_dBm - max(loss_dB, self.min_loss_dB)


@dataclass(frozen=True, slots=True)
class LogDistanceLoss:
    """Log-distance model ``L = L0 + 10 n log10(d / d0)``."""

    exponent: float = 3.0
    reference_distance: float = 1.0
    reference_loss_dB: float = 46.6777

    def __post_init__(self) -> None:
        if self.reference_distance <= 0:
            raise ConfigurationError("reference_distance must be > 0")

    def rx_power(self, tx_power_dBm: float, distance_m: float) -> float:
        if distance_m <= self.reference_distance:
            return tx_power_dBm
        loss = self.reference_loss_dB + 10 * self.exponent * math.log10(
            distance_m / self.reference_distance
        )
        return tx_power_dBm - loss


class ShadowingLoss:
    """Zero-mean log-normal shadowing added on top of another model.

    Draws a fresh sample for every transmission. With ``std_dB == 0`` it is a
    no-op.
    """

    def __init__(self, std_dB: float, rng: np.random.Generator | None = None) -> None:
        if std_dB < 0:
            raise ConfigurationError("std_dB must be >= 0")
        self.std_dB = float(std_dB)
        self.rng = rng if rng is not None else np.random.default_rng()

    def rx_power(self, tx_power_dBm: float, distance_m: float) -> float:
        if self.std_dB == 0.0:
            return tx_power_dBm
        return tx_power_dBm + float(self.rng.normal(0.0, self.std_dB))


@dataclass(frozen=True, slots=True)
class ConstantSpeedDelay:
    speed: float = SPEED_OF_LIGHT

    def __post_init__(self) -> None:
        if not self.speed > 0:
            raise ConfigurationError("propagation speed must be > 0")

    def delay(self, distance_m: float) -> float:
        return distance_m / self.speed


@dataclass(frozen=True, slots=True)
class LinkResult:
    delivered: bool
    delay: float
    rx_power_dBm: float
    distance: float


class Channel:
    """Shared wireless medium between sensors and the sink."""

    def __init__(
        self,
        loss_models: Sequence[LossModel] | LossModel | None = None,
        delay_model: ConstantSpeedDelay | None = None,
        *,
        sensitivity_dBm: float = DEFAULT_SENSITIVITY_DBM,
    ) -> None:
        """
        :param loss_models: Loss model or chain of loss models applied in
            order. Defaults to a single :class:`FriisLoss`.
        :param delay_model: Propagation delay model (speed of light by default).
        :param sensitivity_dBm: Minimal received power for a frame to be decoded.
        """
        if loss_models is None:
            loss_models = [FriisLoss()]
        elif not isinstance(loss_models, (list, tuple)):
            loss_models = [loss_models]
        if not loss_models:
            raise ConfigurationError("at least one loss model is required")
        if not math.isfinite(sensitivity_dBm):
            raise ConfigurationError("sensitivity_dBm must be finite")
        self.loss_models = list(loss_models)
        self.delay_model = delay_model or ConstantSpeedDelay()
        self.sensitivity_dBm = float(sensitivity_dBm)

    def rx_power(self, tx_power_dBm: float, distance_m: float) -> float:
        power = tx_power_dBm
        for model in self.loss_models:
            power = model.rx_power(power, distance_m)
        return power

    def evaluate(self, tx_pos: Position, rx_pos: Position, tx_power_dBm: float) -> LinkResult:
        """Return the outcome of a single frame sent from ``tx_pos`` to ``rx_pos``."""
        d = distance(tx_pos, rx_pos)
        power = self.rx_power(tx_power_dBm, d)
        delivered = power >= self.sensitivity_dBm
        delay = self.delay_model.delay(d)
        logger.debug(
            "link d=%.2fm tx=%.1fdBm rx=%.2fdBm delivered=%s", d, tx_power_dBm, power, delivered
        )
        return LinkResult(delivered, delay, power, d)

    def max_range(self, tx_power_dBm: float, *, upper: float = 1e7) -> float:
        """Largest distance at which a frame is still received (bisection)."""
        if self.rx_power(tx_power_dBm, upper) >= self.sensitivity_dBm:
            return upper
        low, high = 0.0, upper
        for _ in range(100):
            mid = 0.5 * (low + high)
            if self.rx_power(tx_power_dBm, mid) >= self.sensitivity_dBm:
                low = mid
            else:
                high = mid
        return low


__all__ = [
    "Channel",
    "ConstantSpeedDelay",
    "FriisLoss",
    "LinkResult",
    "LogDistanceLoss",
    "ShadowingLoss",
    "SPEED_OF_LIGHT",
    "distance",
]
