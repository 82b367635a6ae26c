"""Build populated environments from a :class:`ScenarioConfig`."""

from __future__ import annotations

import logging
import math
import random
from typing import List, Optional

from ..core.device import Gateway, Mote, MoteSensor, Waypoint
from ..core.environment import DEFAULT_MAP_ORIGIN, Environment, TerrainMap
from .config import MoteConfig, ScenarioConfig

logger = logging.getLogger(__name__)

DEFAULT_TRANSMISSION_POWER = 14
DEFAULT_SPREADING_FACTOR = 12
DEFAULT_SAMPLING_RATE = 10
DEFAULT_MOVEMENT_SPEED = 1.0
DEFAULT_ENERGY_LEVEL = 100
DEFAULT_START_OFFSET = 0
DEFAULT_NUM_MOTES = 3
DEFAULT_NUM_GATEWAYS = 1
DEFAULT_AREA_METERS = 1000

# ------------------------------------------------------------------
# Fixed Leuven layout (latitude, longitude)
# ------------------------------------------------------------------
LEUVEN_MAP_CORNER = (50.878697, 4.701200)
LEUVEN_GATEWAYS = [
    (50.859722, 4.681944),
    (50.863780, 4.677992),
    (50.867222, 4.678056),
    (50.856667, 4.676389),
]
LEUVEN_TRACK_0 = [
    (50.856020, 4.675844), (50.856545, 4.676743), (50.857852, 4.679702),
    (50.860061, 4.683473), (50.861985, 4.680993), (50.862263, 4.680672),
    (50.862696, 4.680416), (50.863049, 4.680321), (50.863455, 4.680385),
    (50.863977, 4.680610), (50.864770, 4.680898), (50.865176, 4.680973),
    (50.865583, 4.680976), (50.867980, 4.680381), (50.867881, 4.678226),
    (50.868028, 4.678175), (50.869650, 4.676740),
]
LEUVEN_TRACK_2 = [
    (50.868551, 4.698337), (50.866713, 4.695153), (50.861330, 4.685687),
    (50.857910, 4.679724), (50.856486, 4.676650), (50.856020, 4.675844),
]
LEUVEN_STATIC_MOTE = (50.868551, 4.698337)
LEUVEN_MOBILE_MOTE = (50.862752, 4.688886)


def determine_mode(config: ScenarioConfig) -> str:
    if config.mode is not None:
        return config.mode
    if config.motes is not None or config.gateways is not None:
        return "personalized"
    if config.num_motes is not None or config.num_gateways is not None:
        return "bulk"
    return "default"


def create_environment(config: Optional[ScenarioConfig] = None) -> Environment:
    """Dispatch on the scenario mode and return a fully populated environment."""
    config = config or ScenarioConfig()
    mode = determine_mode(config)
    rng = random.Random(config.seed)
    if mode == "personalized":
        env = create_personalized_environment(config, rng)
    elif mode == "bulk":
        env = create_bulk_environment(config, rng)
    else:
        env = create_default_environment(rng)
    logger.info("Created %s scenario: %d motes, %d gateways on a %dx%d m map",
                mode, len(env.motes), len(env.gateways), env.width, env.height)
    return env


def _or(value, default):
    return default if value is None else value


def create_default_environment(rng: Optional[random.Random] = None) -> Environment:
    """Hand-authored layout: four gateways and three motes around Leuven."""
    rng = rng or random.Random()
    lat0, lon0 = DEFAULT_MAP_ORIGIN
    corner_lat, corner_lon = LEUVEN_MAP_CORNER
    size = math.ceil(1000 * max(
        Environment.distance_km(lat0, lon0, corner_lat, lon0),
        Environment.distance_km(lat0, lon0, lat0, corner_lon),
    ))
    env = Environment(TerrainMap.banded(size, size), map_origin=DEFAULT_MAP_ORIGIN)

    for lat, lon in LEUVEN_GATEWAYS:
        x, y = env.from_geo(lat, lon)
        env.add_gateway(Gateway(rng.getrandbits(63), x, y, DEFAULT_TRANSMISSION_POWER, DEFAULT_SPREADING_FACTOR))

    track_0 = [env.from_geo(lat, lon) for lat, lon in LEUVEN_TRACK_0]
    track_2 = [env.from_geo(lat, lon) for lat, lon in LEUVEN_TRACK_2]
    placements = [
        (track_0[0], track_0),
        (env.from_geo(*LEUVEN_STATIC_MOTE), []),
        (env.from_geo(*LEUVEN_MOBILE_MOTE), track_2),
    ]
    for (x, y), path in placements:
        env.add_mote(Mote(
            rng.getrandbits(63), x, y,
            transmission_power=DEFAULT_TRANSMISSION_POWER,
            spreading_factor=DEFAULT_SPREADING_FACTOR,
            energy_level=DEFAULT_ENERGY_LEVEL,
            path=path,
            sampling_rate=DEFAULT_SAMPLING_RATE,
            movement_speed=0.5,
            start_offset=rng.randrange(5),
        ))
    return env


def create_bulk_environment(config: ScenarioConfig, rng: Optional[random.Random] = None) -> Environment:
    """Randomly placed gateways and static motes sharing the bulk defaults."""
    rng = rng or random.Random(config.seed)
    width = _or(config.area_width_meters, DEFAULT_AREA_METERS)
    height = _or(config.area_height_meters, width)
    env = Environment(TerrainMap.banded(width, height))

    for i in range(_or(config.num_gateways, DEFAULT_NUM_GATEWAYS)):
        env.add_gateway(Gateway(
            i + 100, rng.randrange(width), rng.randrange(height),
            DEFAULT_TRANSMISSION_POWER, DEFAULT_SPREADING_FACTOR,
        ))

    for i in range(_or(config.num_motes, DEFAULT_NUM_MOTES)):
        x, y = rng.randrange(width), rng.randrange(height)
        env.add_mote(Mote(
            i + 1, x, y,
            transmission_power=_or(config.default_transmission_power, DEFAULT_TRANSMISSION_POWER),
            spreading_factor=_or(config.default_spreading_factor, DEFAULT_SPREADING_FACTOR),
            energy_level=_or(config.default_energy_level, DEFAULT_ENERGY_LEVEL),
            path=[(x, y)],
            sampling_rate=_or(config.default_sampling_rate, DEFAULT_SAMPLING_RATE),
            movement_speed=_or(config.default_movement_speed, DEFAULT_MOVEMENT_SPEED),
            start_offset=_or(config.default_start_offset, DEFAULT_START_OFFSET),
        ))
    return env


def create_personalized_environment(config: ScenarioConfig, rng: Optional[random.Random] = None) -> Environment:
    """Gateways and motes exactly as listed in the configuration."""
    rng = rng or random.Random(config.seed)
    width = _or(config.area_width_meters, DEFAULT_AREA_METERS)
    height = _or(config.area_height_meters, width)
    env = Environment(TerrainMap.banded(width, height))

    for gw in config.gateways or []:
        env.add_gateway(Gateway(
            gw.eui, gw.x_pos, gw.y_pos,
            _or(gw.transmission_power, DEFAULT_TRANSMISSION_POWER),
            _or(gw.spreading_factor, DEFAULT_SPREADING_FACTOR),
        ))

    for mc in config.motes or []:
        env.add_mote(Mote(
            mc.eui, mc.x_pos, mc.y_pos,
            transmission_power=_or(mc.transmission_power, DEFAULT_TRANSMISSION_POWER),
            spreading_factor=_or(mc.spreading_factor, DEFAULT_SPREADING_FACTOR),
            sensors=[MoteSensor[name] for name in mc.sensors],
            energy_level=_or(mc.energy_level, DEFAULT_ENERGY_LEVEL),
            path=generate_path(mc, rng),
            sampling_rate=_or(mc.sampling_rate, DEFAULT_SAMPLING_RATE),
            movement_speed=_or(mc.movement_speed, DEFAULT_MOVEMENT_SPEED),
            start_offset=_or(mc.start_offset, DEFAULT_START_OFFSET),
        ))
    return env


def generate_path(config: MoteConfig, rng: random.Random, random_walk_points: int = 4) -> List[Waypoint]:
    """Waypoints for a mote's movement type.

    ``specific_path`` uses the configured waypoints; ``random_walk`` draws
    waypoints within ``waypoint_radius`` (default 50 m) of the start and
    returns there; ``static`` yields an empty path.
    """
    if config.movement_type == "specific_path":
        return [(wp.x, wp.y) for wp in config.waypoints]
    if config.movement_type == "random_walk":
        radius = int(_or(config.waypoint_radius, 50.0))
        path = [
            (config.x_pos + rng.randint(-radius, radius), config.y_pos + rng.randint(-radius, radius))
            for _ in range(random_walk_points)
        ]
        path.append((config.x_pos, config.y_pos))
        return path
    return []
