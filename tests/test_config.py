import pytest

from wsnflowsim.launcher.config import SimulationConfig, load_config
from wsnflowsim.launcher.errors import ConfigurationError


def test_defaults_match_reference_experiment():
    cfg = SimulationConfig().validate()
    assert cfg.n_sensors == 27
    assert cfg.sim_time == 47.0
    assert cfg.packet_interval == 1.0
    assert cfg.packet_size == 64
    assert cfg.tx_power_dBm == 20.0
    assert cfg.start_time == 1.0
    assert cfg.sink_port == 4000
    assert cfg.loss_chain == ["friis"]


@pytest.mark.parametrize(
    "overrides",
    [
        {"n_sensors": -1},
        {"sim_time": 0.0},
        {"sim_time": -5.0},
        {"packet_interval": 0.0},
        {"packet_size": 0},
        {"packet_size": 12.5},
        {"tx_power_dBm": float("nan")},
        {"area_size": -30.0},
        {"sink_position": (31.0, 0.0)},
        {"sink_position": (1.0, 2.0, 3.0)},
        {"start_time": -1.0},
        {"seed": -3},
        {"frequency_hz": 0.0},
        {"loss_model": "two_ray"},
        {"shadowing_std_dB": -1.0},
        {"sink_port": 70000},
        {"network": "10.1.1.0/33"},
    ],
)
def test_invalid_values_raise_configuration_error(overrides):
    with pytest.raises(ConfigurationError):
        SimulationConfig(**overrides).validate()


def test_loss_chain_parsing():
    cfg = SimulationConfig(loss_model="Log-Distance + friis").validate()
    assert cfg.loss_chain == ["log_distance", "friis"]


def test_with_overrides_ignores_none():
    cfg = SimulationConfig().with_overrides(n_sensors=3, tx_power_dBm=None)
    assert cfg.n_sensors == 3
    assert cfg.tx_power_dBm == 20.0


def test_load_config_from_ini(tmp_path):
    path = tmp_path / "run.ini"
    path.write_text(
        """
        [simulation]
        n_sensors = 5
        sim_time = 12.5
        tx_power_dBm = 3
        sink_position = 10, 20
        loss_model = log_distance
        seed = 42
        """
    )
    cfg = load_config(path)
    assert cfg.n_sensors == 5
    assert cfg.sim_time == 12.5
    assert cfg.tx_power_dBm == 3.0
    assert cfg.sink_position == (10.0, 20.0)
    assert cfg.loss_model == "log_distance"
    assert cfg.seed == 42
    assert cfg.packet_size == 64


def test_load_config_rejects_unknown_and_bad_values(tmp_path):
    unknown = tmp_path / "unknown.ini"
    unknown.write_text("[simulation]\nwarp_speed = 9\n")
    with pytest.raises(ConfigurationError):
        load_config(unknown)

    bad = tmp_path / "bad.ini"
    bad.write_text("[simulation]\nn_sensors = many\n")
    with pytest.raises(ConfigurationError):
        load_config(bad)

    empty = tmp_path / "empty.ini"
    empty.write_text("[radio]\nfoo = 1\n")
    with pytest.raises(ConfigurationError):
        load_config(empty)

    with pytest.raises(ConfigurationError):
        load_config(tmp_path / "missing.ini")
