from .statistics import (
    environment_state, gateway_state, mote_energy_usage, mote_state, resolve_run, select_mote,
)

__all__ = [
    "environment_state", "gateway_state", "mote_energy_usage", "mote_state",
    "resolve_run", "select_mote",
]
