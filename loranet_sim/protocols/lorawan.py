"""LoRaWAN protocol parameters and LoRa time-on-air."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict

from .base import Protocol

# Sensitivity per spreading factor (dBm) for 125 kHz BW
SF_SENSITIVITY: Dict[int, float] = {
    7: -124.0,
    8: -127.0,
    9: -130.0,
    10: -133.0,
    11: -135.0,
    12: -137.0,
}

# MHDR (1) + FHDR without options (7) + FPort (1) + MIC (4)
LORAWAN_FRAME_OVERHEAD_BYTES = 13


def time_on_air_ms(
    payload_bytes: int,
    spreading_factor: int = 12,
    bandwidth_khz: float = 125.0,
    coding_rate: int = 1,
    preamble_symbols: int = 8,
    explicit_header: bool = True,
    crc: bool = True,
) -> float:
    """Air time of one LoRa frame (Semtech AN1200.13).

    T_sym     = 2^SF / BW
    T_pre     = (n_preamble + 4.25) · T_sym
    n_payload = 8 + max(ceil((8·PL − 4·SF + 28 + 16·CRC − 20·IH) / (4·(SF − 2·DE)))·(CR + 4), 0)

    *payload_bytes* is the full PHY payload length; *coding_rate* is 1..4
    for 4/5..4/8. Low data-rate optimisation (DE) is on for symbols longer
    than 16 ms.
    """
    if spreading_factor not in SF_SENSITIVITY:
        raise ValueError(f"Unsupported spreading factor {spreading_factor}")
    t_sym = (2.0 ** spreading_factor) / (bandwidth_khz * 1000.0) * 1000.0
    low_dr = 1 if t_sym > 16.0 else 0
    implicit = 0 if explicit_header else 1
    numerator = 8 * payload_bytes - 4 * spreading_factor + 28 + 16 * int(crc) - 20 * implicit
    n_payload = 8 + max(
        math.ceil(numerator / (4.0 * (spreading_factor - 2 * low_dr))) * (coding_rate + 4), 0
    )
    return (preamble_symbols + 4.25) * t_sym + n_payload * t_sym


@dataclass
class LoRaWAN(Protocol):
    """LoRaWAN uplink configuration (EU868 power bounds).

    Parameters
    ----------
    spreading_factor : int
        SF7–SF12 (default SF12).
    coding_rate : int
        1..4 for 4/5..4/8.
    """

    spreading_factor: int = 12
    coding_rate: int = 1

    def __post_init__(self) -> None:
        if self.spreading_factor not in SF_SENSITIVITY:
            raise ValueError(f"Unsupported spreading factor {self.spreading_factor}; choose from 7-12")

    def time_on_air_ms(self, app_payload_bytes: int) -> float:
        """Air time for an uplink carrying *app_payload_bytes* of FRMPayload."""
        return time_on_air_ms(
            app_payload_bytes + LORAWAN_FRAME_OVERHEAD_BYTES,
            spreading_factor=self.spreading_factor,
            bandwidth_khz=self.bandwidth_khz,
            coding_rate=self.coding_rate,
        )
