"""
latch.py — Rising-edge detector for gamepad buttons.

A Latch turns a held button into a single one-shot event, so that holding
e.g. D-pad Up for many control cycles only steps the clearance once.
"""

from enum import Enum, auto


class LatchState(Enum):
    """Latch state machine."""
    IDLE = auto()    # input released (or never pressed)
    ACTIVE = auto()  # input held, edge already reported


class Latch:
    """Edge detector: run() is True only on the first True of each press."""

    def __init__(self):
        self.state = LatchState.IDLE

    @property
    def active(self) -> bool:
        return self.state is LatchState.ACTIVE

    def run(self, pressed: bool) -> bool:
        """Feed the current input. Returns True exactly once per press."""
        if not pressed:
            self.state = LatchState.IDLE
            return False
        if self.state is LatchState.ACTIVE:
            return False
        self.state = LatchState.ACTIVE
        return True

    def reset(self) -> None:
        self.state = LatchState.IDLE


__all__ = ['Latch', 'LatchState']
