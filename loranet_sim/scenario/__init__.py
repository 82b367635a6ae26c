from .config import GatewayConfig, MoteConfig, ScenarioConfig, WaypointConfig
from .factory import create_environment, determine_mode

__all__ = [
    "GatewayConfig", "MoteConfig", "ScenarioConfig", "WaypointConfig",
    "create_environment", "determine_mode",
]
