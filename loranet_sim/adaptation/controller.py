"""Closed-loop transmission-power adaptation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, List, Optional

from ..protocols.lorawan import SF_SENSITIVITY
from .probe import MoteProbe

if TYPE_CHECKING:
    from loranet_sim.core.device import Mote

logger = logging.getLogger(__name__)


@dataclass
class AdaptationConfig:
    """Hysteresis controller settings.

    Parameters
    ----------
    window : int
        Observations averaged per decision (non-overlapping windows).
    upper_threshold_dbm : float
        Mean signal above which power is lowered.
    lower_threshold_dbm : float
        Mean signal below which power is raised.
    step_db : int
        Power change per decision.
    min_power_dbm, max_power_dbm : int
        Bounds the controller never crosses.
    unheard_dbm : float, optional
        Signal recorded for a transmission no gateway heard; defaults to the
        sensitivity floor of the mote's spreading factor.
    """

    window: int = 5
    upper_threshold_dbm: float = -95.0
    lower_threshold_dbm: float = -105.0
    step_db: int = 1
    min_power_dbm: int = -3
    max_power_dbm: int = 14
    unheard_dbm: Optional[float] = None

    def __post_init__(self) -> None:
        if self.window <= 0:
            raise ValueError("Adaptation window must be positive")
        if self.lower_threshold_dbm > self.upper_threshold_dbm:
            raise ValueError("Lower threshold must not exceed the upper threshold")
        if self.min_power_dbm > self.max_power_dbm:
            raise ValueError("Minimum power must not exceed the maximum power")
        if self.unheard_dbm is not None and self.unheard_dbm >= self.lower_threshold_dbm:
            raise ValueError("Unheard signal level must lie below the lower threshold")


class SignalBasedAdaptation:
    """Lowers power when gateways hear a mote well, raises it when they barely do.

    After each transmission :meth:`observe` samples the best gateway signal
    of the mote, or the unheard floor when no gateway picked it up. Every
    ``config.window`` samples the mean is compared with the thresholds, the
    power is moved one step at most, and the buffer starts over.
    """

    def __init__(self, config: Optional[AdaptationConfig] = None, probe: Optional[MoteProbe] = None) -> None:
        self.config = config or AdaptationConfig()
        self.probe = probe or MoteProbe()
        self._buffers: Dict[Mote, List[float]] = {}

    def buffer_of(self, mote: Mote) -> List[float]:
        return self._buffers.setdefault(mote, [])

    def observe(self, mote: Mote) -> None:
        signal = self.probe.highest_received_signal(mote)
        if signal is None:
            signal = self.unheard_signal(mote)
        self.record(mote, signal)

    def unheard_signal(self, mote: Mote) -> float:
        if self.config.unheard_dbm is not None:
            return self.config.unheard_dbm
        return SF_SENSITIVITY[mote.spreading_factor]

    def record(self, mote: Mote, signal_dbm: float) -> None:
        buffer = self.buffer_of(mote)
        buffer.append(signal_dbm)
        if len(buffer) >= self.config.window:
            self._evaluate(mote, sum(buffer) / len(buffer))
            buffer.clear()

    def _evaluate(self, mote: Mote, mean_dbm: float) -> None:
        cfg = self.config
        power = mote.transmission_power
        if mean_dbm > cfg.upper_threshold_dbm:
            new_power = max(cfg.min_power_dbm, power - cfg.step_db)
        elif mean_dbm < cfg.lower_threshold_dbm:
            new_power = min(cfg.max_power_dbm, power + cfg.step_db)
        else:
            return
        new_power = mote.protocol.clamp_tx_power(new_power)
        if new_power != power:
            logger.debug("Mote %d: mean signal %.1f dBm, power %d -> %d dBm",
                         mote.eui, mean_dbm, power, new_power)
            mote.transmission_power = new_power

    def reset(self) -> None:
        self._buffers.clear()
