"""Transmissions and their receptions."""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

_transmission_ids = itertools.count(1)


def next_transmission_id() -> int:
    return next(_transmission_ids)


@dataclass(frozen=True, eq=False)
class Transmission:
    """One LoRa frame put on the air.

    Equality is identity: the instance recorded as sent by the origin is the
    very instance every receiver records. ``transmission_id`` is unique per
    process and is what reception indexes are keyed on.
    """

    sender: int
    receiver: Optional[int]
    x: int
    y: int
    transmission_power: float
    bandwidth_khz: float
    spreading_factor: int
    payload: bytes
    departure_time_ms: float
    time_on_air_ms: float
    transmission_id: int = field(default_factory=next_transmission_id)

    @property
    def end_time_ms(self) -> float:
        return self.departure_time_ms + self.time_on_air_ms

    @property
    def position(self) -> Tuple[int, int]:
        return self.x, self.y


@dataclass(eq=False)
class Reception:
    """A transmission as seen by one receiver."""

    transmission: Transmission
    rssi_dbm: float
    collided: bool = False


@dataclass
class RunHistory:
    """Everything one entity sent and received during one run."""

    sent: List[Transmission] = field(default_factory=list)
    received: List[Reception] = field(default_factory=list)
    by_transmission: Dict[int, Reception] = field(default_factory=dict)
    longest_time_on_air_ms: float = 0.0

    def record_reception(self, reception: Reception) -> None:
        self.received.append(reception)
        self.by_transmission[reception.transmission.transmission_id] = reception
        self.longest_time_on_air_ms = max(
            self.longest_time_on_air_ms, reception.transmission.time_on_air_ms
        )

    def recent_receptions(self, since_ms: float) -> List[Reception]:
        """Receptions whose transmission may still be on the air at *since_ms*.

        Receptions are appended in non-decreasing departure order, so the scan
        stops at the first one that departed before ``since_ms - longest air time``.
        """
        horizon = since_ms - self.longest_time_on_air_ms
        out: List[Reception] = []
        for reception in reversed(self.received):
            if reception.transmission.departure_time_ms < horizon:
                break
            out.append(reception)
        return out
