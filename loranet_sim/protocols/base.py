"""Radio parameters shared by every physical layer."""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass
class Protocol:
    """Physical-layer settings a network entity transmits with.

    ``min_tx_power_dbm`` and ``max_tx_power_dbm`` bound the power an entity
    may be configured with.
    """

    bandwidth_khz: float = 125.0
    min_tx_power_dbm: float = -3.0
    max_tx_power_dbm: float = 14.0

    def supports_tx_power(self, tx_power_dbm: float) -> bool:
        return self.min_tx_power_dbm <= tx_power_dbm <= self.max_tx_power_dbm

    def clamp_tx_power(self, tx_power_dbm: int) -> int:
        """Nearest whole-dBm setting inside the power bounds."""
        low = math.ceil(self.min_tx_power_dbm)
        high = math.floor(self.max_tx_power_dbm)
        return max(low, min(high, tx_power_dbm))
