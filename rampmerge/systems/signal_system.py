import logging
from typing import Dict, Union
from rampmerge.domain.models import SignalName, SignalState

log = logging.getLogger(__name__)

class SignalController:
    """Owns the three operator signals. Transitions are instantaneous."""

    def __init__(self):
        self.states: Dict[SignalName, SignalState] = {}
        self.reset()

    def reset(self):
        self.states = {name: SignalState.GREEN for name in SignalName}

    def get(self, name: Union[SignalName, str]) -> SignalState:
        return self.states[SignalName(name)]

    def is_red(self, name: Union[SignalName, str]) -> bool:
        return self.get(name) == SignalState.RED

    def set(self, name: Union[SignalName, str], state: Union[SignalState, str]) -> SignalState:
        name, state = SignalName(name), SignalState(state)
        if self.states[name] != state:
            log.info("Signal %s -> %s", name.value, state.value)
        self.states[name] = state
        return state

    def toggle(self, name: Union[SignalName, str]) -> SignalState:
        current = self.get(name)
        return self.set(name, SignalState.GREEN if current == SignalState.RED else SignalState.RED)

    def as_dict(self) -> Dict[SignalName, SignalState]:
        return dict(self.states)
