"""Scenario configuration models (validated with pydantic)."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ..core.device import MoteSensor


class WaypointConfig(BaseModel):
    x: int
    y: int


class GatewayConfig(BaseModel):
    eui: int
    x_pos: int
    y_pos: int
    transmission_power: Optional[int] = Field(default=None, ge=-3, le=14)
    spreading_factor: Optional[int] = Field(default=None, ge=7, le=12)


class MoteConfig(BaseModel):
    eui: int
    x_pos: int
    y_pos: int
    transmission_power: Optional[int] = Field(default=None, ge=-3, le=14)
    spreading_factor: Optional[int] = Field(default=None, ge=7, le=12)
    sampling_rate: Optional[int] = Field(default=None, gt=0)
    movement_speed: Optional[float] = Field(default=None, ge=0)
    start_offset: Optional[int] = Field(default=None, ge=0)
    movement_type: Literal["static", "random_walk", "specific_path"] = "static"
    waypoint_radius: Optional[float] = Field(default=None, gt=0)
    waypoints: List[WaypointConfig] = []
    energy_level: Optional[int] = Field(default=None, ge=-1)
    sensors: List[str] = []

    @field_validator("sensors")
    @classmethod
    def _known_sensors(cls, names: List[str]) -> List[str]:
        unknown = [n for n in names if n.upper() not in MoteSensor.__members__]
        if unknown:
            raise ValueError(
                f"Unknown sensor(s) {', '.join(unknown)}. Choose from: "
                + ", ".join(MoteSensor.__members__)
            )
        return [n.upper() for n in names]


class ScenarioConfig(BaseModel):
    mode: Optional[Literal["default", "bulk", "personalized"]] = None
    seed: Optional[int] = None

    # bulk mode
    num_motes: Optional[int] = Field(default=None, ge=0)
    num_gateways: Optional[int] = Field(default=None, ge=0)
    area_width_meters: Optional[int] = Field(default=None, gt=0)
    area_height_meters: Optional[int] = Field(default=None, gt=0)
    default_energy_level: Optional[int] = Field(default=None, ge=-1)
    default_sampling_rate: Optional[int] = Field(default=None, gt=0)
    default_movement_speed: Optional[float] = Field(default=None, ge=0)
    default_start_offset: Optional[int] = Field(default=None, ge=0)
    default_transmission_power: Optional[int] = Field(default=None, ge=-3, le=14)
    default_spreading_factor: Optional[int] = Field(default=None, ge=7, le=12)

    # personalized mode
    motes: Optional[List[MoteConfig]] = None
    gateways: Optional[List[GatewayConfig]] = None
