from .pathloss import free_space_path_loss, log_distance_path_loss, terrain_path_loss
from .collision import CAPTURE_THRESHOLD_DB, interferes, resolve_collisions, time_overlap

__all__ = [
    "free_space_path_loss", "log_distance_path_loss", "terrain_path_loss",
    "CAPTURE_THRESHOLD_DB", "interferes", "resolve_collisions", "time_overlap",
]
