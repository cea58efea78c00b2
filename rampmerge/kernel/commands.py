from abc import ABC, abstractmethod
from typing import Any, Optional, Union
from rampmerge.domain.models import (
    SignalName, SignalState, SimulationPhase, SimulationSettings
)

class Command(ABC):
    @abstractmethod
    def execute(self, kernel: Any):
        pass

class SetSignalCommand(Command):
    def __init__(self, name: Union[SignalName, str], state: Union[SignalState, str]):
        self.name = SignalName(name)
        self.state = SignalState(state)

    def execute(self, kernel: Any):
        return kernel.set_signal(self.name, self.state)

class ToggleSignalCommand(Command):
    def __init__(self, name: Union[SignalName, str]):
        self.name = SignalName(name)

    def execute(self, kernel: Any):
        return kernel.signals.toggle(self.name)

class StartCommand(Command):
    def __init__(self, settings: Optional[SimulationSettings] = None):
        self.settings = settings

    def execute(self, kernel: Any):
        kernel.initialize(self.settings)

class PauseCommand(Command):
    def execute(self, kernel: Any):
        if kernel.state.phase == SimulationPhase.RUNNING:
            kernel.state.phase = SimulationPhase.PAUSED

class ResumeCommand(Command):
    def execute(self, kernel: Any):
        if kernel.state.phase == SimulationPhase.PAUSED:
            kernel.state.phase = SimulationPhase.RUNNING

class ResetCommand(Command):
    def execute(self, kernel: Any):
        kernel.reset()
