"""Read-only exports of mote and gateway state for the control surface."""

from __future__ import annotations

from typing import Dict, List, Optional

from ..adaptation.probe import MoteProbe
from ..core.device import Gateway, Mote
from ..core.environment import Environment

RECENT_PACKET_LOSS_WINDOW = 20

_probe = MoteProbe()


def select_mote(env: Environment, index: Optional[int] = None, eui: Optional[int] = None) -> Optional[Mote]:
    """Look a mote up by list index or by EUI (exactly one of both).

    Raises
    ------
    ValueError
        If both or neither identifiers are given.
    """
    if (index is None) == (eui is None):
        raise ValueError("Specify exactly one of 'index' or 'eui'")
    if index is not None:
        if 0 <= index < len(env.motes):
            return env.motes[index]
        return None
    return env.mote_by_eui(eui)  # type: ignore[arg-type]


def resolve_run(env: Environment, run: Optional[int] = None) -> Optional[int]:
    """The requested run index, the latest one by default; ``None`` if out of range."""
    if run is None:
        return env.current_run
    if 0 <= run < env.get_number_of_runs():
        return run
    return None


def mote_energy_usage(env: Environment, mote: Mote, run: Optional[int] = None) -> Optional[Dict]:
    """Per-transmission energy of *mote* in *run* and its total; ``None`` for a bad run."""
    run_index = resolve_run(env, run)
    if run_index is None:
        return None
    used = list(mote.used_energy(run_index))
    return {
        "eui": mote.eui,
        "run": run_index,
        "transmission_energy": used,
        "total_energy": sum(used),
    }


def mote_state(mote: Mote, recent_window: int = RECENT_PACKET_LOSS_WINDOW) -> Dict:
    """Snapshot of a mote; cached statistics are computed when still empty."""
    run = mote.current_run
    distance = mote.shortest_distance_to_gateway
    if distance is None:
        distance = _probe.shortest_distance_to_gateway(mote)
    signal = mote.highest_received_signal
    if signal is None:
        signal = _probe.highest_received_signal(mote)
    packet_loss = mote.packet_loss
    if packet_loss is None:
        packet_loss = mote.calculate_packet_loss(run)
    used = mote.used_energy(run)
    return {
        "eui": mote.eui,
        "x_pos": mote.x,
        "y_pos": mote.y,
        "transmission_power": mote.transmission_power,
        "spreading_factor": mote.spreading_factor,
        "energy_level": mote.energy_level,
        "total_energy_consumed": sum(used),
        "movement_speed": mote.movement_speed,
        "sampling_rate": mote.sampling_rate,
        "start_offset": mote.start_offset,
        "sensors": [s.name for s in mote.sensors],
        "shortest_distance_to_gateway": distance,
        "highest_received_signal": signal,
        "packet_loss": packet_loss,
        "recent_packet_loss": mote.calculate_recent_packet_loss(run, recent_window),
        "packets_sent": mote.number_of_sent_packets,
        "packets_lost": mote.number_of_lost_packets,
    }


def gateway_state(gateway: Gateway) -> Dict:
    run = gateway.current_run
    receptions = gateway.receptions(run)
    return {
        "eui": gateway.eui,
        "x_pos": gateway.x,
        "y_pos": gateway.y,
        "transmission_power": gateway.transmission_power,
        "spreading_factor": gateway.spreading_factor,
        "packets_received": len(receptions),
        "packets_collided": sum(1 for r in receptions if r.collided),
    }


def environment_state(env: Environment) -> Dict[str, List[Dict]]:
    return {
        "motes": [mote_state(m) for m in list(env.motes)],
        "gateways": [gateway_state(g) for g in list(env.gateways)],
    }
