from enum import Enum
from typing import List, Optional, Dict
from pydantic import BaseModel, ConfigDict, Field

from rampmerge.domain import config

class SignalState(str, Enum):
    RED = "RED"
    GREEN = "GREEN"

class SignalName(str, Enum):
    RAMP_ENTRY = "rampEntry"
    RAMP_MIDDLE = "rampMiddle"
    MAIN_MERGE = "mainMerge"

class VehicleKind(str, Enum):
    CAR = "car"
    TRUCK = "truck"

class Road(str, Enum):
    RAMP = "ramp"
    MAIN = "main"

class UpdateMode(str, Enum):
    SEQUENTIAL = "sequential"  # In-place pass, later vehicles see this tick's updates
    SNAPSHOT = "snapshot"      # Lookups read the frozen pre-tick state

class SimulationPhase(str, Enum):
    READY = "READY"
    RUNNING = "RUNNING"
    PAUSED = "PAUSED"
    COMPLETE = "COMPLETE"

class VehicleProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    length: float
    max_velocity: float
    max_acceleration: float
    comfort_deceleration: float = 2.5
    min_gap: float = 2.0
    desired_time_headway: float = 1.2
    static_friction: float = 0.8
    rolling_friction: float = 0.15

VEHICLE_PROFILES: Dict[VehicleKind, VehicleProfile] = {
    VehicleKind.CAR: VehicleProfile(length=7.0, max_velocity=26.0, max_acceleration=2.0),
    VehicleKind.TRUCK: VehicleProfile(length=15.0, max_velocity=20.0, max_acceleration=1.2),
}

class Vehicle(BaseModel):
    id: int
    kind: VehicleKind
    road: Road
    lane: int = 0
    position: float = 0.0
    velocity: float = 0.0
    acceleration: float = 0.0

    # Fixed per kind
    length: float
    max_velocity: float
    max_acceleration: float
    comfort_deceleration: float
    min_gap: float
    desired_time_headway: float
    static_friction: float
    rolling_friction: float

    stopped_ticks: int = 0
    has_merged: bool = False
    has_exited: bool = False

    @classmethod
    def create(cls, id: int, kind: VehicleKind, road: Road, lane: int = 0,
               position: float = 0.0, velocity: float = 0.0) -> "Vehicle":
        profile = VEHICLE_PROFILES[kind]
        return cls(id=id, kind=kind, road=road, lane=lane, position=position,
                   velocity=velocity, **profile.model_dump())

    @property
    def effective_max_velocity(self) -> float:
        return self.max_velocity - self.rolling_friction * config.SPEED_CAP_FRICTION_FACTOR

class SignalBinding(BaseModel):
    name: SignalName
    stop_line: float
    state: SignalState

    @property
    def is_red(self) -> bool:
        return self.state == SignalState.RED

class SimulationSettings(BaseModel):
    vehicle_count: int = Field(config.DEFAULT_VEHICLE_COUNT,
                               ge=config.MIN_VEHICLE_COUNT, le=config.MAX_VEHICLE_COUNT)
    main_fraction: float = Field(config.MAIN_FRACTION, ge=0.0, le=1.0)
    main_car_fraction: float = Field(config.MAIN_CAR_FRACTION, ge=0.0, le=1.0)
    ramp_car_fraction: float = Field(config.RAMP_CAR_FRACTION, ge=0.0, le=1.0)
    main_spacing: float = Field(config.MAIN_SPACING, gt=0.0)
    ramp_spacing: float = Field(config.RAMP_SPACING, gt=0.0)
    seed: int = 42
    dt: float = Field(config.DT, gt=0.0)
    update_mode: UpdateMode = UpdateMode.SEQUENTIAL

# API/Response Models

class VehicleView(BaseModel):
    id: int
    kind: VehicleKind
    road: Road
    lane: int
    position: float
    velocity: float
    hasExited: bool

class CompletionEvent(BaseModel):
    elapsedTime: float
    ticks: int
    vehicleCount: int

class SimulationSnapshot(BaseModel):
    tick: int
    time: float
    phase: SimulationPhase
    signals: Dict[SignalName, SignalState]
    vehicles: List[VehicleView]
    activeVehicleCount: int
    congestion: float
    completion: Optional[CompletionEvent] = None

class SignalUpdate(BaseModel):
    state: SignalState

class StartRequest(BaseModel):
    vehicleCount: int = Field(config.DEFAULT_VEHICLE_COUNT,
                              ge=config.MIN_VEHICLE_COUNT, le=config.MAX_VEHICLE_COUNT)
    seed: Optional[int] = None

class RoadOverview(BaseModel):
    roadId: str  # "ramp", "main-0", "main-1"
    vehicles: int
    congestion: float
    flow: str  # "optimal", "moderate", "congested"

class SimulationOverview(BaseModel):
    roads: List[RoadOverview]
    congestion: float

class BestTime(BaseModel):
    bestTime: Optional[float] = None
    runsCompleted: int = 0
