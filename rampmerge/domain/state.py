from typing import List, Optional
from pydantic import BaseModel, ConfigDict
from rampmerge.domain.models import (
    Vehicle, SimulationSettings, SimulationPhase, CompletionEvent
)
from rampmerge.domain.graph import RoadNetwork

class SimulationState(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    tick_id: int = 0
    time: float = 0.0
    phase: SimulationPhase = SimulationPhase.READY
    settings: SimulationSettings = SimulationSettings()
    vehicles: List[Vehicle] = []
    congestion: float = 0.0
    completion: Optional[CompletionEvent] = None

    # Graph based structure
    road_network: Optional[RoadNetwork] = None

    @property
    def active_vehicles(self) -> List[Vehicle]:
        return [v for v in self.vehicles if not v.has_exited]
