from abc import ABC, abstractmethod
from typing import Any

class Controller(ABC):
    """Operator stand-in: drives signals through queued commands only."""

    @abstractmethod
    def run_tick(self, kernel: Any):
        pass
