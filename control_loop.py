"""
control_loop.py — Fixed-period coordinator for the hexapod's collaborators.

The loop owns the single State instance and, once per cycle, calls
tick(now, state) on each collaborator in list order (e.g. teleop controller
first, then the gait/IK engine). Collaborators are never ticked concurrently,
so State needs no lock as long as it is only touched from here.

The loop ends once State.shutdown is set; every collaborator still sees the
cycle in which it was raised.
"""

from __future__ import annotations
import time
import logging
from typing import Callable, Optional, Sequence

from hex_state import State

# Reset the schedule instead of bursting when this far behind
MAX_LAG_S = 0.050


class ControlLoop:
    """Runs collaborators' tick() at a fixed rate until shutdown."""

    def __init__(self,
                 collaborators: Sequence,
                 state: Optional[State] = None,
                 period_s: float = 1.0 / 60.0,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep,
                 logger: Optional[logging.Logger] = None):
        if period_s <= 0:
            raise ValueError(f"period_s must be positive, got {period_s}")
        self.collaborators = list(collaborators)
        self.state = state if state is not None else State()
        self.period_s = period_s
        self.clock = clock
        self.sleep = sleep
        self.log = logger or logging.getLogger(__name__)
        self.cycles = 0

    def step(self, now: float) -> None:
        """Tick every collaborator once, in order, against the shared state."""
        for collaborator in self.collaborators:
            collaborator.tick(now, self.state)
        self.cycles += 1

    def run(self, max_cycles: Optional[int] = None) -> int:
        """Step at the configured period until shutdown (or max_cycles).

        Returns the number of cycles run.
        """
        start_cycles = self.cycles
        next_tick = self.clock()
        self.log.info("Control loop running at %.1f Hz", 1.0 / self.period_s)

        while not self.state.shutdown:
            if max_cycles is not None and self.cycles - start_cycles >= max_cycles:
                break

            self.step(self.clock())

            next_tick += self.period_s
            sleep_time = next_tick - self.clock()
            if sleep_time > 0:
                self.sleep(sleep_time)
            elif sleep_time < -MAX_LAG_S:
                self.log.debug("Loop %.1f ms behind, resetting schedule", -sleep_time * 1000.0)
                next_tick = self.clock()

        ran = self.cycles - start_cycles
        self.log.info("Control loop stopped after %d cycles (shutdown=%s)", ran, self.state.shutdown)
        return ran


__all__ = ['ControlLoop', 'MAX_LAG_S']
