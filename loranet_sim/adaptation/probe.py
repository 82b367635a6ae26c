"""Read-only instrumentation of a mote's radio situation."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from loranet_sim.core.device import Mote


class MoteProbe:
    """Measures what a mote's gateways currently see of it."""

    def highest_received_signal(self, mote: Mote) -> Optional[float]:
        """Strongest signal (dBm) among each gateway's latest reception of *mote* this run.

        ``None`` when no gateway has heard the mote yet.
        """
        env = mote.environment
        if env is None:
            return None
        run = env.current_run
        best: Optional[float] = None
        for gateway in env.gateways:
            for reception in reversed(gateway.receptions(run)):
                if reception.transmission.sender == mote.eui:
                    if best is None or reception.rssi_dbm > best:
                        best = reception.rssi_dbm
                    break
        return best

    def shortest_distance_to_gateway(self, mote: Mote) -> Optional[float]:
        """Euclidean distance (m) to the nearest gateway, ``None`` without gateways."""
        env = mote.environment
        if env is None or not env.gateways:
            return None
        return min(math.hypot(g.x - mote.x, g.y - mote.y) for g in env.gateways)
