"""Tests for scenario configuration and environment factories."""

import random

import pytest
from pydantic import ValidationError

from loranet_sim.core.device import MoteSensor
from loranet_sim.scenario import (
    ScenarioConfig,
    create_environment,
    determine_mode,
)
from loranet_sim.scenario.config import MoteConfig
from loranet_sim.scenario.factory import DEFAULT_ENERGY_LEVEL, generate_path


class TestMode:
    @pytest.mark.parametrize(
        "payload, mode",
        [
            ({}, "default"),
            ({"num_motes": 4}, "bulk"),
            ({"gateways": []}, "personalized"),
            ({"mode": "bulk", "motes": []}, "bulk"),
        ],
    )
    def test_determine_mode(self, payload, mode):
        assert determine_mode(ScenarioConfig(**payload)) == mode


class TestValidation:
    def test_power_out_of_range(self):
        with pytest.raises(ValidationError):
            ScenarioConfig(default_transmission_power=20)

    def test_unknown_sensor(self):
        with pytest.raises(ValidationError, match="Unknown sensor"):
            MoteConfig(eui=1, x_pos=0, y_pos=0, sensors=["plutonium"])

    def test_sensor_names_normalised(self):
        mc = MoteConfig(eui=1, x_pos=0, y_pos=0, sensors=["ozone", "Soot"])
        assert mc.sensors == ["OZONE", "SOOT"]

    def test_unknown_movement_type(self):
        with pytest.raises(ValidationError):
            MoteConfig(eui=1, x_pos=0, y_pos=0, movement_type="teleport")


class TestDefaultScenario:
    def test_layout(self):
        env = create_environment(ScenarioConfig(seed=1))
        assert len(env.gateways) == 4
        assert len(env.motes) == 3
        assert env.width == env.height > 2700
        assert [bool(m.path) for m in env.motes] == [True, False, True]
        assert all(m.energy_level == DEFAULT_ENERGY_LEVEL for m in env.motes)
        assert all(0 <= m.start_offset < 5 for m in env.motes)

    def test_seed_is_reproducible(self):
        a = create_environment(ScenarioConfig(seed=7))
        b = create_environment(ScenarioConfig(seed=7))
        assert [m.eui for m in a.motes] == [m.eui for m in b.motes]
        assert [g.eui for g in a.gateways] == [g.eui for g in b.gateways]


class TestBulkScenario:
    def test_defaults(self):
        env = create_environment(ScenarioConfig(num_motes=5, seed=3))
        assert env.shape == (1000, 1000)
        assert [g.eui for g in env.gateways] == [100]
        assert [m.eui for m in env.motes] == [1, 2, 3, 4, 5]
        for mote in env.motes:
            assert mote.path == [mote.position]
            assert mote.sampling_rate == 10
            assert mote.transmission_power == 14
            assert mote.spreading_factor == 12
            assert mote.energy_level == 100
            assert 0 <= mote.x < 1000 and 0 <= mote.y < 1000

    def test_overrides(self):
        env = create_environment(ScenarioConfig(
            num_motes=2, num_gateways=3,
            area_width_meters=400, area_height_meters=200,
            default_sampling_rate=3, default_spreading_factor=9,
            default_energy_level=-1,
        ))
        assert env.shape == (200, 400)
        assert len(env.gateways) == 3
        assert all(m.sampling_rate == 3 for m in env.motes)
        assert all(m.spreading_factor == 9 for m in env.motes)
        assert all(m.energy.unlimited for m in env.motes)


class TestPersonalizedScenario:
    def test_motes_and_gateways(self):
        config = ScenarioConfig(
            gateways=[{"eui": 500, "x_pos": 10, "y_pos": 20, "spreading_factor": 7}],
            motes=[
                {
                    "eui": 1, "x_pos": 0, "y_pos": 0,
                    "movement_type": "specific_path",
                    "waypoints": [{"x": 5, "y": 5}, {"x": 0, "y": 9}],
                    "sensors": ["ozone", "soot"],
                    "start_offset": 2,
                },
                {"eui": 2, "x_pos": 30, "y_pos": 30, "transmission_power": 2},
            ],
        )
        env = create_environment(config)
        gw = env.gateways[0]
        assert (gw.eui, gw.position, gw.spreading_factor) == (500, (10, 20), 7)

        first = env.mote_by_eui(1)
        assert first.path == [(5, 5), (0, 9)]
        assert first.sensors == [MoteSensor.OZONE, MoteSensor.SOOT]
        assert first.start_offset == 2

        second = env.mote_by_eui(2)
        assert second.path == []
        assert second.transmission_power == 2
        assert second.energy_level == DEFAULT_ENERGY_LEVEL

    def test_random_walk_returns_home(self):
        mc = MoteConfig(eui=1, x_pos=100, y_pos=100, movement_type="random_walk", waypoint_radius=10)
        path = generate_path(mc, random.Random(0))
        assert len(path) == 5
        assert path[-1] == (100, 100)
        assert all(abs(x - 100) <= 10 and abs(y - 100) <= 10 for x, y in path)
