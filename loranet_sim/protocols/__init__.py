from .base import Protocol
from .lorawan import LoRaWAN, SF_SENSITIVITY, time_on_air_ms

__all__ = ["Protocol", "LoRaWAN", "SF_SENSITIVITY", "time_on_air_ms"]
