from typing import Any, Dict
from rampmerge.domain.models import Road
from rampmerge.domain.state import SimulationState

class SnapshotBuilder:
    def build(self, state: SimulationState, signals: Dict[Any, Any]) -> Dict[str, Any]:
        active = state.active_vehicles
        return {
            "tick": state.tick_id,
            "time": round(state.time, 4),
            "phase": state.phase.value,
            "active": len(active),
            "merged": sum(1 for v in state.vehicles if v.has_merged),
            "onRamp": sum(1 for v in active if v.road == Road.RAMP),
            "congestion": round(state.congestion, 2),
            "signals": {name.value: s.value for name, s in signals.items()},
        }
