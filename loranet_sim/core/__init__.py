from .environment import Environment, Terrain, TerrainMap, TERRAIN_PATH_LOSS_EXPONENT
from .device import NetworkEntity, Mote, Gateway, MacCommand, MoteSensor
from .energy import EnergyAccount, UNLIMITED_ENERGY, transmission_energy
from .transmission import Transmission, Reception, RunHistory
from .simulation import SimulationLoop, SimulationRunner, SimulationState, step_towards

__all__ = [
    "Environment", "Terrain", "TerrainMap", "TERRAIN_PATH_LOSS_EXPONENT",
    "NetworkEntity", "Mote", "Gateway", "MacCommand", "MoteSensor",
    "EnergyAccount", "UNLIMITED_ENERGY", "transmission_energy",
    "Transmission", "Reception", "RunHistory",
    "SimulationLoop", "SimulationRunner", "SimulationState", "step_towards",
]
