"""
ClockDriver -- converts elapsed real time into interpreter work.

The interpreter itself has no notion of time.  Hosts call
:meth:`ClockDriver.advance` with the seconds elapsed since the previous
call; the driver accumulates fractional budgets for instruction steps and
timer ticks and spends the whole part of each.

Steps and ticks are interleaved so that a timer tick lands after roughly
``instructions_per_second / timer_hz`` instructions, as it would on the
original hardware.
"""

from __future__ import annotations

from dataclasses import dataclass

from chipper.core.interpreter import Interpreter
from chipper.core.types import StepOutcome

DEFAULT_INSTRUCTIONS_PER_SECOND: int = 700
DEFAULT_TIMER_HZ: int = 60

# Longest stretch of real time a single advance() will try to catch up on.
MAX_CATCH_UP_SECONDS: float = 0.25


@dataclass(frozen=True)
class ClockReport:
    """What one :meth:`ClockDriver.advance` call did."""

    steps: int
    ticks: int
    blocked: bool


class ClockDriver:
    """Schedules :meth:`Interpreter.step` and :meth:`Interpreter.tick_timers`.

    Parameters
    ----------
    interpreter:
        The machine to drive.
    instructions_per_second:
        Target instruction rate.  Must be positive.
    timer_hz:
        Timer tick rate, conventionally 60.  Must be positive.
    """

    def __init__(
        self,
        interpreter: Interpreter,
        instructions_per_second: int = DEFAULT_INSTRUCTIONS_PER_SECOND,
        timer_hz: int = DEFAULT_TIMER_HZ,
    ) -> None:
        if instructions_per_second <= 0:
            raise ValueError(
                f"instructions_per_second must be positive, got {instructions_per_second}"
            )
        if timer_hz <= 0:
            raise ValueError(f"timer_hz must be positive, got {timer_hz}")

        self.interpreter: Interpreter = interpreter
        self.instructions_per_second: int = instructions_per_second
        self.timer_hz: int = timer_hz

        self._step_budget: float = 0.0
        self._tick_budget: float = 0.0

    def advance(self, seconds: float) -> ClockReport:
        """Run the steps and ticks due after *seconds* of real time.

        While the interpreter is blocked on a key wait, the remaining step
        budget of this call is dropped; timer ticks still happen.

        Raises:
            Chip8Error: Whatever the interpreter raised while stepping.
        """
        if seconds < 0:
            raise ValueError(f"seconds must not be negative, got {seconds}")
        seconds = min(seconds, MAX_CATCH_UP_SECONDS)

        self._step_budget += seconds * self.instructions_per_second
        self._tick_budget += seconds * self.timer_hz
        steps_due = int(self._step_budget)
        ticks_due = int(self._tick_budget)
        self._step_budget -= steps_due
        self._tick_budget -= ticks_due

        interp = self.interpreter
        steps = 0
        blocked = False

        # Split the steps into ticks_due + 1 slices with a tick between each.
        slices = ticks_due + 1
        for slice_no in range(slices):
            quota = steps_due * (slice_no + 1) // slices - steps_due * slice_no // slices
            for _ in range(quota):
                if blocked:
                    break
                if interp.step() is StepOutcome.BLOCKED:
                    blocked = True
                else:
                    steps += 1
            if slice_no < ticks_due:
                interp.tick_timers()

        return ClockReport(steps=steps, ticks=ticks_due, blocked=blocked)

    def reset_budget(self) -> None:
        """Forget accumulated fractional time (e.g. after a pause)."""
        self._step_budget = 0.0
        self._tick_budget = 0.0
