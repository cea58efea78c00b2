from collections import deque
from typing import Deque, Iterator
from rampmerge.kernel.commands import Command

class CommandQueue:
    """Operator commands waiting for the next tick, in arrival order."""

    def __init__(self):
        self._pending: Deque[Command] = deque()

    def add(self, command: Command):
        self._pending.append(command)

    @property
    def pending(self) -> int:
        return len(self._pending)

    def drain(self) -> Iterator[Command]:
        # Commands queued while draining wait for the following tick
        batch, self._pending = self._pending, deque()
        while batch:
            yield batch.popleft()

    def clear(self):
        self._pending.clear()
