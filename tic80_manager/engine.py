"""Execution state machine for a single run of a step plan.

Phases are modelled as separate frozen variants so a finished run always
carries an outcome and a menu never carries steps.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, replace
from typing import Optional, Tuple, Union

from .plan import Operation, Step
from .runner import StepOutcome

logger = logging.getLogger(__name__)

COMPLETED_MESSAGE = "Process Completed."


class StateError(RuntimeError):
    pass


class InvariantError(StateError):
    pass


class Phase(enum.Enum):
    MENU = "menu"
    RUNNING = "running"
    DONE = "done"


@dataclass(frozen=True)
class Success:
    message: str = COMPLETED_MESSAGE


@dataclass(frozen=True)
class Failure:
    diagnostic: str


Outcome = Union[Success, Failure]


@dataclass(frozen=True)
class MenuPhase:
    cursor: int = 0


@dataclass(frozen=True)
class RunningPhase:
    operation: Operation
    steps: Tuple[Step, ...]
    index: int = 0
    log: str = ""


@dataclass(frozen=True)
class DonePhase:
    operation: Operation
    steps: Tuple[Step, ...]
    index: int
    log: str
    outcome: Outcome


PhaseState = Union[MenuPhase, RunningPhase, DonePhase]


def transcript_entry(step: Step, output: str) -> str:
    return f">>> {step.description}\n{output}\n"


class StateMachine:
    def __init__(self) -> None:
        self.state: PhaseState = MenuPhase()

    # Flat view of the current variant.

    @property
    def phase(self) -> Phase:
        if isinstance(self.state, RunningPhase):
            return Phase.RUNNING
        if isinstance(self.state, DonePhase):
            return Phase.DONE
        return Phase.MENU

    @property
    def steps(self) -> Tuple[Step, ...]:
        return () if isinstance(self.state, MenuPhase) else self.state.steps

    @property
    def current_step(self) -> int:
        return 0 if isinstance(self.state, MenuPhase) else self.state.index

    @property
    def log_text(self) -> str:
        return "" if isinstance(self.state, MenuPhase) else self.state.log

    @property
    def last_error(self) -> Optional[str]:
        if isinstance(self.state, DonePhase) and isinstance(self.state.outcome, Failure):
            return self.state.outcome.diagnostic
        return None

    @property
    def cursor(self) -> int:
        return self.state.cursor if isinstance(self.state, MenuPhase) else 0

    @property
    def running_step(self) -> Optional[Step]:
        if isinstance(self.state, RunningPhase):
            return self.state.steps[self.state.index]
        return None

    # Transitions.

    def move_cursor(self, delta: int, n_items: int) -> None:
        if not isinstance(self.state, MenuPhase):
            return
        cursor = max(0, min(n_items - 1, self.state.cursor + delta))
        self.state = MenuPhase(cursor=cursor)

    def start(self, operation: Operation, steps: Tuple[Step, ...]) -> Optional[Step]:
        """Begin a run; returns the first step to execute, or None if there is nothing to do."""
        if not isinstance(self.state, MenuPhase):
            raise StateError(f"cannot start a run from {self.phase.value}")
        if not steps:
            logger.info("Empty plan for %s; nothing to run", operation.name)
            self.state = DonePhase(operation=operation, steps=(), index=0, log="", outcome=Success())
            return None
        logger.info("Starting %s (%d steps)", operation.name, len(steps))
        self.state = RunningPhase(operation=operation, steps=tuple(steps))
        return self.state.steps[0]

    def complete(self, outcome: StepOutcome) -> Optional[Step]:
        """Record the current step's completion; returns the next step to execute, if any."""
        st = self.state
        if not isinstance(st, RunningPhase):
            raise StateError(f"step completion received while {self.phase.value}")

        step = st.steps[st.index]
        log = st.log + transcript_entry(step, outcome.output)

        if outcome.failed:
            logger.warning("Step %d/%d failed: %s", st.index + 1, len(st.steps), step.description)
            self.state = DonePhase(
                operation=st.operation,
                steps=st.steps,
                index=st.index,
                log=log,
                outcome=Failure(outcome.diagnostic or f"{step.description} failed"),
            )
            return None

        index = st.index + 1
        if index >= len(st.steps):
            logger.info("%s completed (%d steps)", st.operation.name, len(st.steps))
            self.state = DonePhase(operation=st.operation, steps=st.steps, index=index, log=log, outcome=Success())
            return None

        self.state = replace(st, index=index, log=log)
        return st.steps[index]

    def back_to_menu(self, cursor: int = 0) -> None:
        if not isinstance(self.state, DonePhase):
            raise StateError(f"cannot return to menu from {self.phase.value}")
        self.state = MenuPhase(cursor=cursor)

    def check_invariants(self) -> None:
        st = self.state
        if isinstance(st, MenuPhase):
            if self.steps or self.current_step != 0:
                raise InvariantError("menu phase must not hold steps")
        elif isinstance(st, RunningPhase):
            if not 0 <= st.index < len(st.steps):
                raise InvariantError(f"running index {st.index} outside 0..{len(st.steps) - 1}")
        elif isinstance(st, DonePhase):
            if isinstance(st.outcome, Success) and st.index != len(st.steps):
                raise InvariantError("successful run must have executed every step")
            if isinstance(st.outcome, Failure) and not st.outcome.diagnostic:
                raise InvariantError("failed run must carry a diagnostic")
