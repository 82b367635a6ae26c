"""Collision resolution between receptions that share the air at a receiver."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, List

if TYPE_CHECKING:
    from loranet_sim.core.transmission import Reception

# A packet at least this much stronger than an overlapping one is still decoded.
CAPTURE_THRESHOLD_DB = 6.0


def time_overlap(start_a: float, end_a: float, start_b: float, end_b: float) -> bool:
    """True when the half-open intervals [start_a, end_a) and [start_b, end_b) intersect."""
    return start_a < end_b and start_b < end_a


def interferes(a: Reception, b: Reception) -> bool:
    """Whether two receptions occupy the same channel at the same time.

    Same time window at the receiver and the same spreading factor; LoRa
    spreading factors are treated as orthogonal.
    """
    ta, tb = a.transmission, b.transmission
    if ta.spreading_factor != tb.spreading_factor:
        return False
    return time_overlap(ta.departure_time_ms, ta.end_time_ms, tb.departure_time_ms, tb.end_time_ms)


def resolve_collisions(
    new: Reception,
    earlier: Iterable[Reception],
    capture_threshold_db: float = CAPTURE_THRESHOLD_DB,
) -> List[Reception]:
    """Flag *new* and every interfering earlier reception that loses the capture test.

    A reception survives an interferer only when it is at least
    *capture_threshold_db* stronger. Flags are sticky: a reception once lost
    stays lost. Returns the earlier receptions that interfere with *new*.
    """
    hits: List[Reception] = []
    for other in earlier:
        if other is new or not interferes(new, other):
            continue
        hits.append(other)
        if new.rssi_dbm - other.rssi_dbm < capture_threshold_db:
            new.collided = True
        if other.rssi_dbm - new.rssi_dbm < capture_threshold_db:
            other.collided = True
    return hits
