"""Tests for the terrain map and the Environment class."""

import numpy as np
import pytest

from loranet_sim.core.device import Gateway, Mote
from loranet_sim.core.environment import (
    DEFAULT_MAP_ORIGIN, TERRAIN_PATH_LOSS_EXPONENT, Environment, Terrain, TerrainMap,
)
from loranet_sim.propagation.pathloss import log_distance_path_loss


class TestTerrainMap:
    def test_banded_layout(self):
        tm = TerrainMap.banded(90, 30)
        assert tm.shape == (30, 90)
        assert tm.terrain_at(0, 0) == Terrain.FOREST
        assert tm.terrain_at(45, 10) == Terrain.PLAIN
        assert tm.terrain_at(89, 29) == Terrain.CITY

    def test_cells_are_read_only(self):
        tm = TerrainMap.uniform(10, 10)
        with pytest.raises(ValueError):
            tm.cells[0, 0] = Terrain.CITY

    def test_unknown_code_raises(self):
        with pytest.raises(ValueError, match="unknown terrain"):
            TerrainMap(np.full((4, 4), 7))

    def test_empty_map_raises(self):
        with pytest.raises(ValueError):
            TerrainMap(np.zeros((0, 0)))

    def test_lookup_clamps_outside_grid(self):
        tm = TerrainMap.banded(30, 30)
        assert tm.terrain_at(-50, 5) == Terrain.FOREST
        assert tm.terrain_at(500, 5) == Terrain.CITY

    def test_exponents_one_sample_per_step(self):
        tm = TerrainMap.uniform(100, 100, Terrain.FOREST)
        exps = tm.exponents_along(0, 0, 30, 10)
        assert exps.shape == (30,)
        assert np.all(exps == TERRAIN_PATH_LOSS_EXPONENT[Terrain.FOREST])

    def test_exponents_same_point(self):
        tm = TerrainMap.uniform(10, 10, Terrain.CITY)
        assert tm.exponents_along(3, 3, 3, 3).tolist() == [TERRAIN_PATH_LOSS_EXPONENT[Terrain.CITY]]

    def test_exponents_cross_bands(self):
        tm = TerrainMap.banded(30, 1)
        exps = tm.exponents_along(0, 0, 29, 0)
        assert exps[0] == TERRAIN_PATH_LOSS_EXPONENT[Terrain.FOREST]
        assert exps[-1] == TERRAIN_PATH_LOSS_EXPONENT[Terrain.CITY]


class TestPathLoss:
    def test_uniform_terrain_matches_log_distance(self):
        env = Environment(TerrainMap.uniform(200, 200, Terrain.PLAIN))
        expected = float(log_distance_path_loss(150.0, 868.0, n=2.0))
        assert env.path_loss(0, 0, 150, 0) == pytest.approx(expected)

    def test_city_attenuates_more_than_plain(self):
        plain = Environment(TerrainMap.uniform(100, 100, Terrain.PLAIN))
        city = Environment(TerrainMap.uniform(100, 100, Terrain.CITY))
        assert city.path_loss(0, 0, 80, 60) > plain.path_loss(0, 0, 80, 60)

    def test_mixed_terrain_between_extremes(self):
        mixed = Environment(TerrainMap.banded(90, 10))
        plain = Environment(TerrainMap.uniform(90, 10, Terrain.PLAIN))
        city = Environment(TerrainMap.uniform(90, 10, Terrain.CITY))
        loss = mixed.path_loss(0, 5, 89, 5)
        assert plain.path_loss(0, 5, 89, 5) < loss < city.path_loss(0, 5, 89, 5)

    def test_symmetric_on_uniform_terrain(self):
        env = Environment(TerrainMap.uniform(100, 100, Terrain.FOREST))
        assert env.path_loss(10, 20, 70, 90) == pytest.approx(env.path_loss(70, 90, 10, 20))


class TestRegistry:
    def test_add_devices(self):
        env = Environment(TerrainMap.uniform(100, 100))
        mote = Mote(1, 10, 20)
        gw = Gateway(100, 50, 50)
        env.add_mote(mote)
        env.add_gateway(gw)
        assert env.motes == [mote]
        assert env.gateways == [gw]
        assert mote.environment is env
        assert gw.environment is env

    def test_gateways_keep_insertion_order(self):
        env = Environment(TerrainMap.uniform(10, 10))
        euis = [9, 3, 7]
        for eui in euis:
            env.add_gateway(Gateway(eui, 0, 0))
        assert [g.eui for g in env.gateways] == euis

    def test_duplicate_euis_are_not_rejected(self):
        env = Environment(TerrainMap.uniform(10, 10))
        env.add_mote(Mote(1, 0, 0))
        env.add_mote(Mote(1, 5, 5))
        assert len(env.motes) == 2
        assert env.mote_by_eui(1) is env.motes[0]

    def test_mote_by_eui_missing(self):
        env = Environment(TerrainMap.uniform(10, 10))
        assert env.mote_by_eui(42) is None

    def test_entity_belongs_to_one_environment(self):
        first = Environment(TerrainMap.uniform(10, 10))
        second = Environment(TerrainMap.uniform(10, 10))
        mote = Mote(1, 0, 0)
        gw = Gateway(100, 5, 5)
        first.add_mote(mote)
        first.add_gateway(gw)
        with pytest.raises(ValueError, match="another environment"):
            second.add_mote(mote)
        with pytest.raises(ValueError, match="another environment"):
            second.add_gateway(gw)
        assert mote.environment is first
        assert second.motes == [] and second.gateways == []


class TestRuns:
    def test_starts_with_one_run(self):
        env = Environment(TerrainMap.uniform(10, 10))
        assert env.get_number_of_runs() == 1
        assert env.current_run == 0

    def test_tick_advances_clock(self):
        env = Environment(TerrainMap.uniform(10, 10))
        env.tick(1500)
        env.tick(1500)
        assert env.clock_ms == 3000
        assert env.ticks == 2
        assert env.has_activity

    def test_add_run_opens_new_slots(self):
        env = Environment(TerrainMap.uniform(100, 100))
        gw = Gateway(100, 50, 50)
        mote = Mote(1, 40, 50)
        env.add_gateway(gw)
        env.add_mote(mote)
        first = mote.send_to_gateway()
        env.tick(1500)

        assert env.add_run() == 1
        assert env.get_number_of_runs() == 2
        assert env.clock_ms == 0.0
        assert not env.has_activity
        assert mote.sent_transmissions(1) == []
        assert mote.sent_transmissions(0) == [first]
        assert gw.received_transmissions(0) == [first]

    def test_late_entity_gets_slots_for_every_run(self):
        env = Environment(TerrainMap.uniform(10, 10))
        env.add_run()
        env.add_run()
        mote = Mote(1, 0, 0)
        env.add_mote(mote)
        assert mote.history(2) is not None
        assert mote.history(3) is None


class TestGeography:
    def test_origin_maps_to_zero(self):
        env = Environment(TerrainMap.uniform(10, 10))
        assert env.from_geo(*DEFAULT_MAP_ORIGIN) == (0, 0)

    def test_one_degree_latitude(self):
        assert Environment.distance_km(50.0, 4.0, 51.0, 4.0) == pytest.approx(111.19, abs=0.05)

    def test_from_geo_is_metres(self):
        env = Environment(TerrainMap.uniform(10, 10), map_origin=(50.0, 4.0))
        x, y = env.from_geo(50.01, 4.0)
        assert x == 0
        assert y == pytest.approx(1112, abs=1)

    def test_to_geo_moves_north_east(self):
        env = Environment(TerrainMap.uniform(10, 10), map_origin=(50.0, 4.0))
        lat, lon = env.to_geo(1000, 1000)
        assert lat > 50.0
        assert lon > 4.0
