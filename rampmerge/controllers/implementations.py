from typing import Any, Dict, List, Optional
from pydantic import BaseModel
from rampmerge.controllers.base import Controller
from rampmerge.domain.models import SignalName, SignalState
from rampmerge.kernel.commands import SetSignalCommand

class SignalChange(BaseModel):
    time: float  # Simulated seconds
    signal: SignalName
    state: SignalState

class FixedController(Controller):
    def __init__(self, plan: Optional[Dict[SignalName, SignalState]] = None):
        self.plan = {SignalName(k): SignalState(v) for k, v in (plan or {}).items()}

    def run_tick(self, kernel: Any):
        # Re-assert the plan if anything drifted
        for name, state in self.plan.items():
            if kernel.signals.get(name) != state:
                kernel.queue_command(SetSignalCommand(name, state))

class ScheduleController(Controller):
    def __init__(self, schedule: List[SignalChange]):
        self.schedule = sorted(schedule, key=lambda change: change.time)
        self._next = 0

    def run_tick(self, kernel: Any):
        while self._next < len(self.schedule) and self.schedule[self._next].time <= kernel.state.time:
            change = self.schedule[self._next]
            kernel.queue_command(SetSignalCommand(change.signal, change.state))
            self._next += 1

    @property
    def pending(self) -> int:
        return len(self.schedule) - self._next
