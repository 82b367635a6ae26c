"""Energy accounting for battery-powered motes."""

from __future__ import annotations

import math

# Energy level marking a mote that never runs out.
UNLIMITED_ENERGY = -1


def transmission_energy(transmission_power_dbm: float, time_on_air_ms: float) -> float:
    """Energy (J) spent radiating *transmission_power_dbm* for *time_on_air_ms*.

    E = 10^((P − 30) / 10) · t
    """
    watts = 10.0 ** ((transmission_power_dbm - 30.0) / 10.0)
    return watts * time_on_air_ms / 1000.0


class EnergyAccount:
    """Integer energy level with a fractional consumption buffer.

    Consumption below one unit accumulates in :attr:`buffer`; whole units are
    deducted from :attr:`level` as soon as the buffer holds them and the
    remainder carries over.

    Parameters
    ----------
    level : int
        Initial energy units, or :data:`UNLIMITED_ENERGY`.
    """

    def __init__(self, level: int = UNLIMITED_ENERGY) -> None:
        self.level = level
        self.buffer = 0.0

    @property
    def unlimited(self) -> bool:
        return self.level == UNLIMITED_ENERGY

    def has_energy(self) -> bool:
        return self.unlimited or self.level > 0

    def consume(self, amount: float) -> int:
        """Book *amount* of energy; return the whole units deducted."""
        if amount <= 0 or self.unlimited:
            return 0
        self.buffer += amount
        whole = math.floor(self.buffer)
        if whole <= 0:
            return 0
        deducted = min(whole, self.level)
        self.level = max(0, self.level - whole)
        self.buffer -= whole
        return deducted

    def reset(self) -> None:
        self.buffer = 0.0

    def __repr__(self) -> str:
        level = "unlimited" if self.unlimited else self.level
        return f"EnergyAccount(level={level}, buffer={self.buffer:.6f})"
