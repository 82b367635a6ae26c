"""Network entities: the radio-capable NetworkEntity base, Mote and Gateway."""

from __future__ import annotations

import enum
import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Dict, List, Mapping, Optional, Sequence, Tuple

from ..propagation.collision import resolve_collisions
from ..protocols.lorawan import SF_SENSITIVITY, LoRaWAN
from .energy import UNLIMITED_ENERGY, EnergyAccount, transmission_energy
from .transmission import Reception, RunHistory, Transmission

if TYPE_CHECKING:
    from .environment import Environment

logger = logging.getLogger(__name__)

Waypoint = Tuple[int, int]


class MacCommand(enum.Enum):
    """LoRaWAN uplink MAC commands (CID values)."""

    LINK_CHECK_REQ = 0x02
    LINK_ADR_ANS = 0x03
    DUTY_CYCLE_ANS = 0x04
    RX_PARAM_SETUP_ANS = 0x05
    DEV_STATUS_ANS = 0x06
    NEW_CHANNEL_ANS = 0x07
    RX_TIMING_SETUP_ANS = 0x08


class MoteSensor(enum.Enum):
    """Sensors a mote can carry, with the size of one reading in bytes."""

    SOOT = 1
    OZONE = 2
    CARBON_DIOXIDE = 2
    PARTICULATE_MATTER = 4

    def __new__(cls, reading_bytes: int) -> "MoteSensor":
        obj = object.__new__(cls)
        obj._value_ = len(cls.__members__) + 1
        obj.reading_bytes = reading_bytes
        return obj


class NetworkEntity:
    """Any radio-capable node placed in an :class:`Environment`.

    Parameters
    ----------
    eui : int
        64-bit device identifier.
    x, y : int
        Grid position (m).
    transmission_power : int
        Transmit power (dBm) within the protocol's bounds.
    spreading_factor : int
        SF7–SF12.
    sensitivity_dbm : float, optional
        Fixed receiver sensitivity; by default it follows the spreading
        factor of each incoming packet.
    """

    def __init__(
        self,
        eui: int,
        x: int,
        y: int,
        transmission_power: int = 14,
        spreading_factor: int = 12,
        sensitivity_dbm: Optional[float] = None,
    ) -> None:
        self.eui = eui
        self.x = int(x)
        self.y = int(y)
        self.protocol = LoRaWAN(spreading_factor=spreading_factor)
        self.spreading_factor = spreading_factor
        self.transmission_power = transmission_power
        self.sensitivity_dbm = sensitivity_dbm
        self.environment: Optional[Environment] = None
        self._runs: List[RunHistory] = [RunHistory()]

    # ------------------------------------------------------------------
    # Radio configuration
    # ------------------------------------------------------------------

    @property
    def transmission_power(self) -> int:
        return self._transmission_power

    @transmission_power.setter
    def transmission_power(self, value: int) -> None:
        if not self.protocol.supports_tx_power(value):
            raise ValueError(
                f"Transmission power {value} dBm outside "
                f"[{self.protocol.min_tx_power_dbm:g}, {self.protocol.max_tx_power_dbm:g}]"
            )
        self._transmission_power = value

    @property
    def spreading_factor(self) -> int:
        return self.protocol.spreading_factor

    @spreading_factor.setter
    def spreading_factor(self, value: int) -> None:
        self.protocol = replace(self.protocol, spreading_factor=value)

    def sensitivity_for(self, spreading_factor: int) -> float:
        if self.sensitivity_dbm is not None:
            return self.sensitivity_dbm
        return SF_SENSITIVITY[spreading_factor]

    @property
    def position(self) -> Waypoint:
        return self.x, self.y

    # ------------------------------------------------------------------
    # Runs
    # ------------------------------------------------------------------

    def attach(self, environment: Environment) -> None:
        """Bind to the owning environment and line up one history slot per run.

        Raises
        ------
        ValueError
            If the entity already belongs to another environment.
        """
        if self.environment is not None and self.environment is not environment:
            raise ValueError(f"{self!r} already belongs to another environment")
        self.environment = environment
        while len(self._runs) < environment.number_of_runs:
            self._new_run_slot()

    def _new_run_slot(self) -> None:
        self._runs.append(RunHistory())

    @property
    def current_run(self) -> int:
        if self.environment is not None:
            return self.environment.current_run
        return len(self._runs) - 1

    def history(self, run: int) -> Optional[RunHistory]:
        if 0 <= run < len(self._runs):
            return self._runs[run]
        return None

    def reset(self) -> None:
        """Start a new, empty history slot; earlier runs are left untouched."""
        self._new_run_slot()

    # ------------------------------------------------------------------
    # Sending / receiving
    # ------------------------------------------------------------------

    def build_transmission(self, payload: bytes, receiver: Optional[int] = None) -> Transmission:
        departure = self.environment.clock_ms if self.environment is not None else 0.0
        return Transmission(
            sender=self.eui,
            receiver=receiver,
            x=self.x,
            y=self.y,
            transmission_power=self.transmission_power,
            bandwidth_khz=self.protocol.bandwidth_khz,
            spreading_factor=self.spreading_factor,
            payload=bytes(payload),
            departure_time_ms=departure,
            time_on_air_ms=self.protocol.time_on_air_ms(len(payload)),
        )

    def lora_send(self, transmission: Transmission) -> bool:
        """Record *transmission* as sent in the current run and put it on the air."""
        self._runs[self.current_run].sent.append(transmission)
        if self.environment is not None:
            self.environment.transmit(self, transmission)
        return True

    def receive(self, transmission: Transmission, rssi_dbm: float, run: int) -> Reception:
        while len(self._runs) <= run:
            self._new_run_slot()
        history = self._runs[run]
        reception = Reception(transmission, rssi_dbm)
        resolve_collisions(reception, history.recent_receptions(transmission.departure_time_ms))
        history.record_reception(reception)
        return reception

    # ------------------------------------------------------------------
    # History accessors
    # ------------------------------------------------------------------

    def sent_transmissions(self, run: int) -> List[Transmission]:
        history = self.history(run)
        return history.sent if history is not None else []

    def received_transmissions(self, run: int) -> List[Transmission]:
        history = self.history(run)
        return [r.transmission for r in history.received] if history is not None else []

    def receptions(self, run: int) -> List[Reception]:
        history = self.history(run)
        return history.received if history is not None else []

    def all_received_transmissions(self, run: int) -> Dict[int, bool]:
        """``transmission_id -> collided`` for every packet that reached this entity."""
        history = self.history(run)
        if history is None:
            return {}
        return {tid: r.collided for tid, r in list(history.by_transmission.items())}

    def reception_of(self, transmission: Transmission, run: int) -> Optional[Reception]:
        history = self.history(run)
        if history is None:
            return None
        return history.by_transmission.get(transmission.transmission_id)

    def has_energy(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"{type(self).__name__}(eui={self.eui}, x={self.x}, y={self.y})"


class Gateway(NetworkEntity):
    """Stationary receiver with unlimited energy."""


class Mote(NetworkEntity):
    """Mobile, energy-bounded sensor node.

    Parameters
    ----------
    sensors : Sequence[MoteSensor]
        Sensors carried by the mote.
    energy_level : int
        Initial energy units, or :data:`UNLIMITED_ENERGY`.
    path : Sequence[Waypoint]
        Waypoints visited in order, cyclically.
    sampling_rate : int
        Ticks between two samples.
    movement_speed : float
        Nominal speed, reported with the mote state.
    start_offset : int
        Ticks before the first sample; 0 means one full sampling period.
    """

    def __init__(
        self,
        eui: int,
        x: int,
        y: int,
        transmission_power: int = 14,
        spreading_factor: int = 12,
        sensors: Optional[Sequence[MoteSensor]] = None,
        energy_level: int = UNLIMITED_ENERGY,
        path: Optional[Sequence[Waypoint]] = None,
        sampling_rate: int = 10,
        movement_speed: float = 1.0,
        start_offset: int = 0,
        sensitivity_dbm: Optional[float] = None,
    ) -> None:
        self._used_energy: List[List[float]] = [[]]
        super().__init__(eui, x, y, transmission_power, spreading_factor, sensitivity_dbm)
        if sampling_rate <= 0:
            raise ValueError(f"Sampling rate must be positive, got {sampling_rate}")
        self.sensors: List[MoteSensor] = list(sensors or [])
        self.path: List[Waypoint] = [(int(px), int(py)) for px, py in (path or [])]
        self.energy = EnergyAccount(energy_level)
        self.movement_speed = movement_speed
        self.start_offset = start_offset
        self._sampling_rate = sampling_rate
        self._requests_remaining = self.initial_countdown

        self.number_of_lost_packets = 0
        self.highest_received_signal: Optional[float] = None
        self.shortest_distance_to_gateway: Optional[float] = None
        self.packet_loss: Optional[float] = None

    # ------------------------------------------------------------------
    # Energy
    # ------------------------------------------------------------------

    @property
    def energy_level(self) -> int:
        return self.energy.level

    @energy_level.setter
    def energy_level(self, value: int) -> None:
        self.energy.level = value

    def has_energy(self) -> bool:
        return self.energy.has_energy()

    def used_energy(self, run: int) -> List[float]:
        """Energy (J) of every transmission sent during *run*."""
        if 0 <= run < len(self._used_energy):
            return self._used_energy[run]
        return []

    def _new_run_slot(self) -> None:
        super()._new_run_slot()
        self._used_energy.append([])

    # ------------------------------------------------------------------
    # Sampling
    # ------------------------------------------------------------------

    @property
    def sampling_rate(self) -> int:
        return self._sampling_rate

    @sampling_rate.setter
    def sampling_rate(self, value: int) -> None:
        if value <= 0:
            raise ValueError(f"Sampling rate must be positive, got {value}")
        self._sampling_rate = value
        self._requests_remaining = value

    @property
    def initial_countdown(self) -> int:
        return self.start_offset if self.start_offset > 0 else self._sampling_rate

    def should_send(self) -> bool:
        """Count one tick down; True when the countdown expires (and restarts)."""
        self._requests_remaining -= 1
        if self._requests_remaining <= 0:
            self._requests_remaining = self._sampling_rate
            return True
        return False

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    def send_to_gateway(
        self,
        data: bytes = b"",
        mac_commands: Optional[Mapping[MacCommand, bytes]] = None,
    ) -> Optional[Transmission]:
        """Send MAC command bytes followed by *data*; ``None`` when the mote is out of energy."""
        payload = b"".join(bytes(v) for v in (mac_commands or {}).values()) + bytes(data)
        transmission = self.build_transmission(payload)
        if not self.lora_send(transmission):
            return None
        return transmission

    def lora_send(self, transmission: Transmission) -> bool:
        if not self.has_energy():
            logger.debug("Mote %d has no energy left, dropping transmission", self.eui)
            return False
        run = self.current_run
        before = len(self.sent_transmissions(run))
        super().lora_send(transmission)
        self._charge_new_transmissions(run, before)
        return True

    def _charge_new_transmissions(self, run: int, before: int) -> None:
        # each transmission is charged at the power it was sent with
        for transmission in self.sent_transmissions(run)[before:]:
            consumed = transmission_energy(transmission.transmission_power, transmission.time_on_air_ms)
            self._used_energy[run].append(consumed)
            self.energy.consume(consumed)

    # ------------------------------------------------------------------
    # Packet loss
    # ------------------------------------------------------------------

    @property
    def number_of_sent_packets(self) -> int:
        return len(self.sent_transmissions(self.current_run))

    def _peer_histories(self, run: int) -> List[RunHistory]:
        """Histories of every other entity that received anything during *run*."""
        if self.environment is None:
            return []
        histories = []
        for entity in self.environment.entities:
            if entity is self:
                continue
            history = entity.history(run)
            if history is not None and history.by_transmission:
                histories.append(history)
        return histories

    @staticmethod
    def _received_cleanly(transmission: Transmission, histories: List[RunHistory]) -> bool:
        tid = transmission.transmission_id
        for history in histories:
            reception = history.by_transmission.get(tid)
            if reception is not None and not reception.collided:
                return True
        return False

    def _loss_ratio(self, transmissions: List[Transmission], run: int) -> Tuple[int, float]:
        histories = self._peer_histories(run)
        lost = sum(1 for t in transmissions if not self._received_cleanly(t, histories))
        return lost, lost / len(transmissions)

    def calculate_packet_loss(self, run: int) -> float:
        """Fraction of this run's transmissions nobody else decoded cleanly."""
        sent = self.sent_transmissions(run)
        if not sent:
            self.number_of_lost_packets = 0
            return 0.0
        lost, ratio = self._loss_ratio(sent, run)
        self.number_of_lost_packets = lost
        return ratio

    def calculate_recent_packet_loss(self, run: int, window_size: int) -> float:
        """Packet loss over the last *window_size* transmissions of *run*."""
        if window_size <= 0:
            return 0.0
        sent = self.sent_transmissions(run)
        if not sent:
            return 0.0
        _, ratio = self._loss_ratio(sent[-window_size:], run)
        return ratio

    # ------------------------------------------------------------------
    # Runs
    # ------------------------------------------------------------------

    def reset(self) -> None:
        super().reset()
        self.energy.reset()
        self._requests_remaining = self.initial_countdown
        self.number_of_lost_packets = 0
        self.highest_received_signal = None
        self.shortest_distance_to_gateway = None
        self.packet_loss = None
