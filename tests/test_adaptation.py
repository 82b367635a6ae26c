"""Tests for the signal-based transmission-power controller."""

import pytest

from loranet_sim.adaptation import AdaptationConfig, MoteProbe, SignalBasedAdaptation
from loranet_sim.core.device import Gateway, Mote
from loranet_sim.core.environment import Environment, Terrain, TerrainMap
from loranet_sim.core.simulation import SimulationLoop


@pytest.fixture
def mote():
    return Mote(1, 0, 0, transmission_power=10)


@pytest.fixture
def controller():
    return SignalBasedAdaptation()


class TestConfig:
    def test_defaults(self):
        cfg = AdaptationConfig()
        assert cfg.window == 5
        assert (cfg.lower_threshold_dbm, cfg.upper_threshold_dbm) == (-105.0, -95.0)
        assert (cfg.min_power_dbm, cfg.max_power_dbm) == (-3, 14)

    def test_inverted_thresholds_rejected(self):
        with pytest.raises(ValueError, match="threshold"):
            AdaptationConfig(upper_threshold_dbm=-110.0, lower_threshold_dbm=-100.0)

    def test_zero_window_rejected(self):
        with pytest.raises(ValueError, match="window"):
            AdaptationConfig(window=0)


class TestHysteresis:
    def test_strong_signal_lowers_power(self, mote, controller):
        for _ in range(5):
            controller.record(mote, -80.0)
        assert mote.transmission_power == 9

    def test_weak_signal_raises_power(self, mote, controller):
        for _ in range(5):
            controller.record(mote, -120.0)
        assert mote.transmission_power == 11

    def test_between_thresholds_keeps_power(self, mote, controller):
        for _ in range(5):
            controller.record(mote, -100.0)
        assert mote.transmission_power == 10

    def test_decision_uses_window_mean(self, mote, controller):
        for signal in (-60.0, -120.0, -120.0, -120.0, -120.0):
            controller.record(mote, signal)
        # mean -108 dBm
        assert mote.transmission_power == 11

    def test_incomplete_window_does_nothing(self, mote, controller):
        for _ in range(4):
            controller.record(mote, -80.0)
        assert mote.transmission_power == 10
        assert len(controller.buffer_of(mote)) == 4

    def test_buffer_clears_after_decision(self, mote, controller):
        for _ in range(5):
            controller.record(mote, -80.0)
        assert controller.buffer_of(mote) == []
        for _ in range(9):
            controller.record(mote, -80.0)
        assert mote.transmission_power == 8

    def test_power_floor(self, controller):
        mote = Mote(1, 0, 0, transmission_power=-3)
        for _ in range(5):
            controller.record(mote, -50.0)
        assert mote.transmission_power == -3

    def test_power_ceiling(self, controller):
        mote = Mote(1, 0, 0, transmission_power=14)
        for _ in range(5):
            controller.record(mote, -130.0)
        assert mote.transmission_power == 14

    def test_buffers_are_per_mote(self, controller):
        a = Mote(1, 0, 0, transmission_power=10)
        b = Mote(2, 0, 0, transmission_power=10)
        for _ in range(3):
            controller.record(a, -80.0)
            controller.record(b, -80.0)
        assert len(controller.buffer_of(a)) == 3
        controller.reset()
        assert controller.buffer_of(b) == []


class TestProbe:
    def test_no_gateway_heard(self):
        env = Environment(TerrainMap.uniform(10, 10))
        mote = Mote(1, 0, 0)
        env.add_mote(mote)
        mote.send_to_gateway()
        probe = MoteProbe()
        assert probe.highest_received_signal(mote) is None
        assert probe.shortest_distance_to_gateway(mote) is None

    def test_best_of_latest_receptions(self):
        env = Environment(TerrainMap.uniform(100, 100, Terrain.PLAIN))
        near = Gateway(100, 10, 0)
        far = Gateway(101, 80, 0)
        env.add_gateway(near)
        env.add_gateway(far)
        mote = Mote(1, 0, 0)
        env.add_mote(mote)
        t = mote.send_to_gateway()

        probe = MoteProbe()
        assert probe.highest_received_signal(mote) == pytest.approx(env.received_signal(t, near))
        assert probe.shortest_distance_to_gateway(mote) == pytest.approx(10.0)

    def test_unheard_mote_records_sensitivity_floor(self, controller):
        env = Environment(TerrainMap.uniform(10, 10))
        mote = Mote(1, 0, 0, spreading_factor=9)
        env.add_mote(mote)
        controller.observe(mote)
        assert controller.buffer_of(mote) == [-130.0]

    def test_unheard_level_configurable(self):
        controller = SignalBasedAdaptation(AdaptationConfig(unheard_dbm=-150.0))
        env = Environment(TerrainMap.uniform(10, 10))
        mote = Mote(1, 0, 0)
        env.add_mote(mote)
        controller.observe(mote)
        assert controller.buffer_of(mote) == [-150.0]

    def test_unheard_level_must_be_below_lower_threshold(self):
        with pytest.raises(ValueError, match="Unheard"):
            AdaptationConfig(unheard_dbm=-100.0)


class TestLoopIntegration:
    def test_close_mote_turns_power_down(self):
        env = Environment(TerrainMap.uniform(100, 100, Terrain.PLAIN))
        env.add_gateway(Gateway(100, 50, 50))
        mote = Mote(1, 40, 50, sampling_rate=1)
        env.add_mote(mote)
        loop = SimulationLoop(env, controller=SignalBasedAdaptation())

        loop.run(max_iterations=4)
        assert mote.transmission_power == 14
        loop.run(max_iterations=1)
        assert mote.transmission_power == 13
        assert [t.transmission_power for t in mote.sent_transmissions(0)] == [14] * 5

    def test_unheard_mote_climbs_back_into_range(self):
        env = Environment(TerrainMap.uniform(10, 10, Terrain.CITY))
        gateway = Gateway(100, 0, 0)
        env.add_gateway(gateway)
        mote = Mote(1, 2500, 0, transmission_power=0, sampling_rate=1)
        env.add_mote(mote)
        assert env.received_signal(mote.build_transmission(b""), gateway) < -137.0

        SimulationLoop(env, controller=SignalBasedAdaptation()).run(max_iterations=200)

        assert mote.transmission_power == 14
        assert gateway.received_transmissions(0)
        assert mote.calculate_recent_packet_loss(0, 5) == 0.0

    def test_without_controller_power_is_fixed(self):
        env = Environment(TerrainMap.uniform(100, 100, Terrain.PLAIN))
        env.add_gateway(Gateway(100, 50, 50))
        mote = Mote(1, 40, 50, sampling_rate=1)
        env.add_mote(mote)
        SimulationLoop(env).run(max_iterations=20)
        assert mote.transmission_power == 14
