import math

import numpy as np
import pytest

from wsnflowsim.launcher.channel import (
    SPEED_OF_LIGHT,
    Channel,
    ConstantSpeedDelay,
    FriisLoss,
    LogDistanceLoss,
    ShadowingLoss,
)
from wsnflowsim.launcher.errors import ConfigurationError


def test_friis_reference_loss_at_one_metre():
    friis = FriisLoss()
    assert friis.rx_power(0.0, 1.0) == pytest.approx(-46.68, abs=0.01)


def test_friis_falls_with_square_of_distance():
    friis = FriisLoss()
    p10 = friis.rx_power(20.0, 10.0)
    p20 = friis.rx_power(20.0, 20.0)
    p100 = friis.rx_power(20.0, 100.0)
    assert p10 - p20 == pytest.approx(20 * math.log10(2), abs=1e-9)
    assert p10 - p100 == pytest.approx(20.0, abs=1e-9)


def test_friis_depends_on_frequency():
    low = FriisLoss(frequency_hz=2.4e9).rx_power(20.0, 50.0)
    high = FriisLoss(frequency_hz=5.15e9).rx_power(20.0, 50.0)
    assert low > high


def test_friis_near_field_is_lossless():
    friis = FriisLoss()
    assert friis.rx_power(20.0, 0.0) == 20.0
    assert friis.rx_power(20.0, 2.9 * friis.wavelength) == 20.0
    assert FriisLoss(min_loss_dB=3.0).rx_power(20.0, 0.0) == 17.0


def test_log_distance_loss():
    model = LogDistanceLoss()
    assert model.rx_power(0.0, 10.0) == pytest.approx(-76.6777)
    assert model.rx_power(5.0, 0.5) == 5.0


def test_invalid_models_raise_configuration_error():
    with pytest.raises(ConfigurationError):
        FriisLoss(frequency_hz=0.0)
    with pytest.raises(ConfigurationError):
        FriisLoss(system_loss=0.5)
    with pytest.raises(ConfigurationError):
        ConstantSpeedDelay(speed=0.0)
    with pytest.raises(ConfigurationError):
        ShadowingLoss(-1.0)
    with pytest.raises(ConfigurationError):
        Channel(sensitivity_dBm=float("nan"))
    with pytest.raises(ConfigurationError):
        Channel([])


def test_zero_distance_link_is_delivered_without_delay():
    channel = Channel()
    result = channel.evaluate((15.0, 15.0), (15.0, 15.0), 20.0)
    assert result.delivered
    assert result.delay == 0.0
    assert result.distance == 0.0
    assert result.rx_power_dBm == 20.0


def test_delay_is_distance_over_speed_of_light():
    channel = Channel()
    result = channel.evaluate((0.0, 0.0), (30.0, 40.0), 20.0)
    assert result.distance == pytest.approx(50.0)
    assert result.delay == pytest.approx(50.0 / SPEED_OF_LIGHT)


def test_far_link_is_lost():
    channel = Channel()
    result = channel.evaluate((0.0, 0.0), (10000.0, 0.0), 20.0)
    assert not result.delivered
    assert result.rx_power_dBm < channel.sensitivity_dBm


def test_power_exactly_at_sensitivity_is_delivered():
    threshold = FriisLoss().rx_power(20.0, 100.0)
    channel = Channel(sensitivity_dBm=threshold)
    assert channel.evaluate((0.0, 0.0), (100.0, 0.0), 20.0).delivered
    assert not channel.evaluate((0.0, 0.0), (101.0, 0.0), 20.0).delivered


def test_delivery_is_monotonic_in_tx_power():
    channel = Channel()
    for d in [1.0, 50.0, 500.0, 3000.0, 6000.0, 20000.0]:
        outcomes = [
            channel.evaluate((0.0, 0.0), (d, 0.0), p).delivered
            for p in np.linspace(-60.0, 40.0, 41)
        ]
        # once delivered, a higher power keeps delivering
        first = outcomes.index(True) if True in outcomes else len(outcomes)
        assert all(outcomes[first:])


def test_max_range_matches_sensitivity():
    channel = Channel()
    radius = channel.max_range(20.0)
    assert channel.rx_power(20.0, radius) == pytest.approx(channel.sensitivity_dBm, abs=1e-6)
    assert 5000.0 < radius < 5400.0


def test_loss_models_are_chained_in_order():
    channel = Channel([LogDistanceLoss(), FriisLoss()])
    expected = FriisLoss().rx_power(LogDistanceLoss().rx_power(20.0, 10.0), 10.0)
    assert channel.rx_power(20.0, 10.0) == pytest.approx(expected)
    assert Channel(FriisLoss()).rx_power(20.0, 10.0) == FriisLoss().rx_power(20.0, 10.0)


def test_shadowing_swaps_in_without_touching_the_rest():
    a = Channel([FriisLoss(), ShadowingLoss(4.0, np.random.default_rng(5))])
    b = Channel([FriisLoss(), ShadowingLoss(4.0, np.random.default_rng(5))])
    powers_a = [a.evaluate((0.0, 0.0), (100.0, 0.0), 20.0).rx_power_dBm for _ in range(20)]
    powers_b = [b.evaluate((0.0, 0.0), (100.0, 0.0), 20.0).rx_power_dBm for _ in range(20)]
    assert powers_a == powers_b
    assert len(set(powers_a)) > 1

    flat = Channel([FriisLoss(), ShadowingLoss(0.0)])
    assert flat.rx_power(20.0, 100.0) == FriisLoss().rx_power(20.0, 100.0)
