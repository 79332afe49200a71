from ipaddress import IPv4Address

import numpy as np
import pytest

from wsnflowsim.launcher.errors import ConfigurationError
from wsnflowsim.launcher.node import NodeRole
from wsnflowsim.launcher.topology import Topology


def test_random_placement_within_region_and_sink_at_centre():
    topo = Topology.random(50, 30.0, seed=7)
    assert topo.n_sensors == 50
    for node in topo.sensors:
        assert 0.0 <= node.x <= 30.0
        assert 0.0 <= node.y <= 30.0
        assert node.role is NodeRole.SENSOR
    assert topo.sink.position == (15.0, 15.0)
    assert topo.sink.is_sink
    assert topo.sink.id == 50


def test_same_seed_same_positions():
    a = Topology.random(10, 100.0, seed=3)
    b = Topology.random(10, 100.0, seed=3)
    c = Topology.random(10, 100.0, seed=4)
    assert a.positions() == b.positions()
    assert a.positions() != c.positions()


def test_explicit_rng_is_used():
    a = Topology.random(5, 10.0, rng=np.random.default_rng(11))
    b = Topology.random(5, 10.0, rng=np.random.default_rng(11), seed=999)
    assert a.positions() == b.positions()


def test_addresses_follow_node_order_with_sink_last():
    topo = Topology.random(3, 30.0, seed=1)
    assert [str(n.address) for n in topo.nodes] == [
        "10.1.1.1",
        "10.1.1.2",
        "10.1.1.3",
        "10.1.1.4",
    ]
    assert topo.sink_address == IPv4Address("10.1.1.4")
    assert topo.address_of(3) == topo.sink_address
    assert topo.node_by_address("10.1.1.2") is topo.sensors[1]
    with pytest.raises(KeyError):
        topo.address_of(4)
    with pytest.raises(KeyError):
        topo.address_of(-1)


def test_zero_sensors_is_legal():
    topo = Topology.random(0, 30.0, seed=1)
    assert topo.sensors == []
    assert topo.nodes == [topo.sink]
    assert str(topo.sink_address) == "10.1.1.1"


def test_custom_sink_position():
    topo = Topology.random(2, 30.0, sink_position=(0.0, 30.0), seed=1)
    assert topo.sink.position == (0.0, 30.0)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"n_sensors": -1, "area_size": 30.0},
        {"n_sensors": 2.5, "area_size": 30.0},
        {"n_sensors": True, "area_size": 30.0},
        {"n_sensors": 3, "area_size": 0.0},
        {"n_sensors": 3, "area_size": -10.0},
        {"n_sensors": 3, "area_size": float("nan")},
        {"n_sensors": 3, "area_size": float("inf")},
        {"n_sensors": 3, "area_size": 30.0, "sink_position": (40.0, 10.0)},
        {"n_sensors": 3, "area_size": 30.0, "network": "10.1.1.0/30"},
        {"n_sensors": 3, "area_size": 30.0, "network": "not-a-network"},
    ],
)
def test_invalid_topology_fails_fast(kwargs):
    with pytest.raises(ConfigurationError):
        Topology.random(**kwargs)


def test_from_positions_keeps_layout():
    topo = Topology.from_positions([(0.0, 0.0), (1000.0, 0.0)], (5.0, 5.0))
    assert [n.position for n in topo.sensors] == [(0.0, 0.0), (1000.0, 0.0)]
    assert topo.area_size is None
    assert topo.sensors[1].distance_to(topo.sensors[0]) == 1000.0
    with pytest.raises(ConfigurationError):
        Topology.from_positions([(float("inf"), 0.0)], (0.0, 0.0))
