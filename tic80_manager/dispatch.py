from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Tuple, Union

from .engine import Phase, StateMachine
from .plan import MENU, Operation, Step, plan
from .plan_config import ManagerConfig
from .runner import StepOutcome

logger = logging.getLogger(__name__)

SPINNER_FRAMES: Tuple[str, ...] = ("⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏")
TICK_INTERVAL = 1 / 12

QUIT_KEYS = {"ctrl+c", "q"}
TOGGLE_KEYS = {"space", "tab"}
UP_KEYS = {"up", "k"}
DOWN_KEYS = {"down", "j"}


# Events.


@dataclass(frozen=True)
class KeyPress:
    key: str


@dataclass(frozen=True)
class Resize:
    width: int
    height: int


@dataclass(frozen=True)
class Tick:
    pass


@dataclass(frozen=True)
class StepCompleted:
    index: int
    outcome: StepOutcome


Event = Union[KeyPress, Resize, Tick, StepCompleted]


# Actions.


@dataclass(frozen=True)
class ExecuteStep:
    index: int
    step: Step


@dataclass(frozen=True)
class Quit:
    code: int = 0


Action = Union[ExecuteStep, Quit]


@dataclass
class Viewport:
    visible: bool = False
    offset: int = 0
    follow: bool = True

    def scroll(self, delta: int, n_lines: int, height: int) -> None:
        top = max(0, n_lines - height)
        self.offset = max(0, min(top, self.offset + delta))
        self.follow = self.offset >= top

    def pin_bottom(self, n_lines: int, height: int) -> None:
        self.offset = max(0, n_lines - height)
        self.follow = True


class Dispatcher:
    """Routes one event at a time into the state machine.

    Returns the follow-up actions the loop must perform; the dispatcher
    itself never runs commands.
    """

    def __init__(self, cfg: ManagerConfig) -> None:
        self.cfg = cfg
        self.machine = StateMachine()
        self.viewport = Viewport()
        self.width = 0
        self.height = 0
        self.spinner_frame = 0

    @property
    def choices(self) -> Tuple[str, ...]:
        return self.cfg.menu_labels

    @property
    def viewport_height(self) -> int:
        return max(1, self.height // 3)

    @property
    def viewport_width(self) -> int:
        return max(1, self.width - 4)

    @property
    def log_lines(self) -> List[str]:
        return self.machine.log_text.splitlines()

    def dispatch(self, event: Event) -> List[Action]:
        if isinstance(event, KeyPress):
            return self._on_key(event.key)
        if isinstance(event, Resize):
            self.width, self.height = event.width, event.height
            if self.viewport.follow:
                self.viewport.pin_bottom(len(self.log_lines), self.viewport_height)
            return []
        if isinstance(event, Tick):
            if self.machine.phase is Phase.RUNNING:
                self.spinner_frame = (self.spinner_frame + 1) % len(SPINNER_FRAMES)
            return []
        if isinstance(event, StepCompleted):
            return self._on_completed(event)
        raise TypeError(f"unknown event {event!r}")

    def _on_key(self, key: str) -> List[Action]:
        m = self.machine
        if key in QUIT_KEYS:
            return [Quit(0)]
        if key in TOGGLE_KEYS:
            self.viewport.visible = not self.viewport.visible
            return []
        if key in {"pageup", "pagedown", "home", "end"}:
            self._scroll(key)
            return []

        if m.phase is Phase.MENU:
            if key in UP_KEYS:
                m.move_cursor(-1, len(MENU))
            elif key in DOWN_KEYS:
                m.move_cursor(1, len(MENU))
            elif key == "enter":
                return self._select(MENU[m.cursor])
        elif m.phase is Phase.DONE:
            if key == "enter":
                return [Quit(0)]
            if key == "r":
                m.back_to_menu()
                self.viewport.pin_bottom(0, self.viewport_height)
        return []

    def _select(self, operation: Operation) -> List[Action]:
        if operation is Operation.EXIT:
            return [Quit(0)]
        self.spinner_frame = 0
        first = self.machine.start(operation, plan(operation, self.cfg))
        self.viewport.pin_bottom(0, self.viewport_height)
        if first is None:
            return []
        return [ExecuteStep(0, first)]

    def _on_completed(self, event: StepCompleted) -> List[Action]:
        m = self.machine
        if m.phase is not Phase.RUNNING or event.index != m.current_step:
            logger.warning("Ignoring stale completion for step %d", event.index)
            return []
        nxt = m.complete(event.outcome)
        # New output always brings the newest line into view.
        self.viewport.pin_bottom(len(self.log_lines), self.viewport_height)
        if nxt is None:
            return []
        return [ExecuteStep(m.current_step, nxt)]

    def _scroll(self, key: str) -> None:
        if not self.viewport.visible:
            return
        n, h = len(self.log_lines), self.viewport_height
        if key == "pageup":
            self.viewport.scroll(-h, n, h)
        elif key == "pagedown":
            self.viewport.scroll(h, n, h)
        elif key == "home":
            self.viewport.scroll(-n, n, h)
        else:
            self.viewport.pin_bottom(n, h)
