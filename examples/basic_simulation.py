#!/usr/bin/env python3
"""Basic LoRa network simulation example.

Builds a 1000×1000 m banded-terrain map with one gateway in the centre, one
static mote and one mote patrolling a square, runs 600 ticks with
transmission-power adaptation enabled and saves charts for the patrolling mote.
"""

import logging

from loranet_sim.adaptation import AdaptationConfig, SignalBasedAdaptation
from loranet_sim.analysis import mote_state
from loranet_sim.core import Environment, Gateway, Mote, SimulationLoop, TerrainMap
from loranet_sim.visualization import plot_energy_usage, plot_received_signal, plot_transmission_power


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    # --- Environment (1000 m × 1000 m: forest | plain | city) ---
    env = Environment(TerrainMap.banded(1000, 1000))

    # --- Gateway at centre ---
    env.add_gateway(Gateway(eui=100, x=500, y=500))

    # --- Motes ---
    env.add_mote(Mote(eui=1, x=450, y=520, energy_level=100, sampling_rate=10, start_offset=3))
    patrol = [(200, 200), (800, 200), (800, 800), (200, 800)]
    env.add_mote(Mote(eui=2, x=200, y=200, energy_level=100, path=patrol, sampling_rate=10))

    # --- Simulate ---
    loop = SimulationLoop(env, controller=SignalBasedAdaptation(AdaptationConfig()))
    loop.run(max_iterations=600)

    # --- Report ---
    print("=" * 50)
    print("LoRa Network Simulation - Mote Report")
    print("=" * 50)
    for mote in env.motes:
        for k, v in mote_state(mote).items():
            print(f"  {k:>30s}: {v}")
        print("-" * 50)

    # --- Charts ---
    mobile = env.motes[1]
    plot_received_signal(env, mobile, save_path="received_signal.png")
    plot_transmission_power(mobile, save_path="transmission_power.png")
    plot_energy_usage(mobile, save_path="energy_usage.png")
    print("Charts saved: received_signal.png, transmission_power.png, energy_usage.png")


if __name__ == "__main__":
    main()
