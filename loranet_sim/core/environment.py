"""Simulated area: terrain grid, entity registry, run bookkeeping and the radio medium."""

from __future__ import annotations

import enum
import logging
import math
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple, Union

import numpy as np

from ..propagation.pathloss import terrain_path_loss
from .transmission import Reception, Transmission

if TYPE_CHECKING:
    from .device import Gateway, Mote, NetworkEntity

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Terrain presets: terrain class → log-distance path-loss exponent
# ---------------------------------------------------------------------------
class Terrain(enum.IntEnum):
    FOREST = 0
    PLAIN = 1
    CITY = 2


TERRAIN_PATH_LOSS_EXPONENT: Dict[Terrain, float] = {
    Terrain.FOREST: 2.8,
    Terrain.PLAIN: 2.0,
    Terrain.CITY: 3.3,
}

_EXPONENT_LOOKUP = np.array([TERRAIN_PATH_LOSS_EXPONENT[t] for t in Terrain], dtype=np.float64)

# Leuven, the origin of the default scenario map
DEFAULT_MAP_ORIGIN: Tuple[float, float] = (50.853718, 4.673155)
EARTH_RADIUS_KM = 6371.0


class TerrainMap:
    """Immutable grid of :class:`Terrain` cells, one per metre, indexed ``[y, x]``.

    Coordinates outside the grid are clamped onto its border, so entities may
    roam past the mapped area and still see the nearest terrain.
    """

    def __init__(self, cells: np.ndarray) -> None:
        cells = np.array(cells, dtype=np.int8)
        if cells.ndim != 2 or cells.size == 0:
            raise ValueError("Terrain map must be a non-empty 2-D grid")
        if cells.min() < 0 or cells.max() >= len(Terrain):
            raise ValueError("Terrain map contains unknown terrain codes")
        cells.flags.writeable = False
        self.cells: np.ndarray = cells

    @classmethod
    def uniform(cls, width: int, height: int, terrain: Terrain = Terrain.PLAIN) -> "TerrainMap":
        return cls(np.full((height, width), int(terrain), dtype=np.int8))

    @classmethod
    def banded(cls, width: int, height: int) -> "TerrainMap":
        """Forest on the first third of the x-axis, plain in the middle, city on the last third."""
        cells = np.empty((height, width), dtype=np.int8)
        cells[:, : width // 3] = Terrain.FOREST
        cells[:, width // 3 : 2 * width // 3] = Terrain.PLAIN
        cells[:, 2 * width // 3 :] = Terrain.CITY
        return cls(cells)

    @property
    def width(self) -> int:
        return int(self.cells.shape[1])

    @property
    def height(self) -> int:
        return int(self.cells.shape[0])

    @property
    def shape(self) -> tuple[int, int]:
        return self.cells.shape  # type: ignore[return-value]

    def terrain_at(self, x: int, y: int) -> Terrain:
        cx = min(max(int(x), 0), self.width - 1)
        cy = min(max(int(y), 0), self.height - 1)
        return Terrain(int(self.cells[cy, cx]))

    def exponents_along(self, x1: float, y1: float, x2: float, y2: float) -> np.ndarray:
        """Path-loss exponents of the cells on the segment (x1,y1)→(x2,y2).

        One sample per Chebyshev step, starting one step away from the sender
        and ending on the receiver cell.
        """
        steps = int(max(abs(x2 - x1), abs(y2 - y1)))
        if steps == 0:
            xs = np.array([x1])
            ys = np.array([y1])
        else:
            xs = np.linspace(x1, x2, steps + 1)[1:]
            ys = np.linspace(y1, y2, steps + 1)[1:]
        cx = np.clip(np.rint(xs).astype(np.int64), 0, self.width - 1)
        cy = np.clip(np.rint(ys).astype(np.int64), 0, self.height - 1)
        return _EXPONENT_LOOKUP[self.cells[cy, cx]]


class Environment:
    """Simulation area that owns every entity and mediates every transmission.

    Parameters
    ----------
    terrain : TerrainMap
        Terrain covering the simulated area (1 cell = 1 m).
    map_origin : Tuple[float, float]
        Latitude/longitude of grid cell (0, 0).
    frequency_mhz : float
        Carrier frequency used for the path-loss reference (default 868).
    """

    def __init__(
        self,
        terrain: TerrainMap,
        map_origin: Tuple[float, float] = DEFAULT_MAP_ORIGIN,
        frequency_mhz: float = 868.0,
    ) -> None:
        self.terrain = terrain
        self.map_origin = map_origin
        self.frequency_mhz = frequency_mhz

        self.motes: List[Mote] = []
        self.gateways: List[Gateway] = []

        self.number_of_runs = 1
        self.clock_ms = 0.0
        self.ticks = 0

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def add_mote(self, mote: Mote) -> None:
        mote.attach(self)
        self.motes.append(mote)

    def add_gateway(self, gateway: Gateway) -> None:
        gateway.attach(self)
        self.gateways.append(gateway)

    @property
    def entities(self) -> List[NetworkEntity]:
        return [*self.gateways, *self.motes]

    def mote_by_eui(self, eui: int) -> Optional[Mote]:
        for mote in self.motes:
            if mote.eui == eui:
                return mote
        return None

    # ------------------------------------------------------------------
    # Time and runs
    # ------------------------------------------------------------------

    def get_number_of_runs(self) -> int:
        return self.number_of_runs

    @property
    def current_run(self) -> int:
        return max(0, self.number_of_runs - 1)

    @property
    def has_activity(self) -> bool:
        """True once the current run has been ticked or carried traffic."""
        run = self.current_run
        return self.ticks > 0 or any(e.sent_transmissions(run) for e in self.entities)

    def tick(self, duration_ms: float) -> None:
        self.clock_ms += duration_ms
        self.ticks += 1

    def add_run(self) -> int:
        """Open a fresh history slot on every entity and rewind the clock."""
        self.number_of_runs += 1
        self.clock_ms = 0.0
        self.ticks = 0
        for entity in self.entities:
            entity.reset()
        logger.info("Started run %d (%d motes, %d gateways)",
                    self.current_run, len(self.motes), len(self.gateways))
        return self.current_run

    # ------------------------------------------------------------------
    # Radio medium
    # ------------------------------------------------------------------

    def path_loss(self, x1: float, y1: float, x2: float, y2: float) -> float:
        """Terrain-dependent path loss (dB) between two grid points."""
        distance = math.hypot(x2 - x1, y2 - y1)
        exponents = self.terrain.exponents_along(x1, y1, x2, y2)
        return terrain_path_loss(exponents, distance, self.frequency_mhz)

    def received_signal(self, transmission: Transmission, receiver: NetworkEntity) -> float:
        return transmission.transmission_power - self.path_loss(
            transmission.x, transmission.y, receiver.x, receiver.y
        )

    def transmit(self, origin: NetworkEntity, transmission: Transmission) -> List[Reception]:
        """Offer *transmission* to every entity except *origin*.

        Receivers below their sensitivity floor never see the packet; the
        others record a :class:`Reception` and resolve collisions themselves.
        """
        run = self.current_run
        receptions: List[Reception] = []
        for entity in self.entities:
            if entity is origin:
                continue
            rssi = self.received_signal(transmission, entity)
            if rssi < entity.sensitivity_for(transmission.spreading_factor):
                continue
            receptions.append(entity.receive(transmission, rssi, run))
        return receptions

    # ------------------------------------------------------------------
    # Geography
    # ------------------------------------------------------------------

    @staticmethod
    def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
        """Great-circle (haversine) distance in km."""
        phi1, phi2 = math.radians(lat1), math.radians(lat2)
        dphi = phi2 - phi1
        dlam = math.radians(lon2 - lon1)
        a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlam / 2) ** 2
        return 2.0 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))

    def from_geo(self, lat: float, lon: float) -> Tuple[int, int]:
        """Grid coordinates (m east, m north of the origin) of a geographic position."""
        lat0, lon0 = self.map_origin
        x = round(1000.0 * self.distance_km(lat0, lon0, lat0, lon))
        y = round(1000.0 * self.distance_km(lat0, lon0, lat, lon0))
        return x, y

    def to_geo(self, x: Union[int, float], y: Union[int, float]) -> Tuple[float, float]:
        lat0, lon0 = self.map_origin
        lat = lat0 + (y / 1000.0) / 111.32
        lon = lon0 + (x / 1000.0) / (111.32 * math.cos(math.radians(lat0)))
        return lat, lon

    @property
    def width(self) -> int:
        return self.terrain.width

    @property
    def height(self) -> int:
        return self.terrain.height

    @property
    def shape(self) -> tuple[int, int]:
        return self.terrain.shape
