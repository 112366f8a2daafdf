"""Full-screen terminal front end.

Textual owns the event loop: keys, resizes and the spinner timer are turned
into dispatcher events, and each step runs in a thread worker whose result
comes back as a StepFinished message. Nothing here decides what happens
next; that is the dispatcher's job.
"""

from __future__ import annotations

import logging
from functools import partial
from typing import Any

from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.message import Message
from textual.widgets import Static

from tic80_manager.dispatch import (
    TICK_INTERVAL,
    Dispatcher,
    Event,
    ExecuteStep,
    KeyPress,
    Quit,
    Resize,
    StepCompleted,
    Tick,
)
from tic80_manager.engine import Phase
from tic80_manager.plan_config import ManagerConfig
from tic80_manager.runner import CommandRunner, StepOutcome
from tic80_manager.view import DB16, Palette, render

logger = logging.getLogger(__name__)


class StepFinished(Message):
    """Posted from the worker thread when a step's command exits."""

    def __init__(self, index: int, outcome: StepOutcome) -> None:
        self.index = index
        self.outcome = outcome
        super().__init__()


class ManagerApp(App):
    CSS = """
    Screen {
        background: #140c1c;
        overflow: hidden;
    }

    #frame {
        width: 100%;
        height: 100%;
    }
    """

    # Priority so Textual's own tab/ctrl+c handling never sees them first.
    BINDINGS = [
        Binding("ctrl+c", "key('ctrl+c')", "Quit", priority=True, show=False),
        Binding("tab", "key('tab')", "Logs", priority=True, show=False),
    ]

    def __init__(
        self,
        *,
        cfg: ManagerConfig,
        runner: CommandRunner,
        palette: Palette = DB16,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.dispatcher = Dispatcher(cfg)
        self.runner = runner
        self.frame_palette = palette

    def compose(self) -> ComposeResult:
        yield Static(id="frame")

    def on_mount(self) -> None:
        self.set_interval(TICK_INTERVAL, self._spin)
        self._dispatch(Resize(self.size.width, self.size.height))

    def on_resize(self, event: events.Resize) -> None:
        self._dispatch(Resize(event.size.width, event.size.height))

    def on_key(self, event: events.Key) -> None:
        event.stop()
        event.prevent_default()
        self._dispatch(KeyPress(event.key))

    def action_key(self, key: str) -> None:
        self._dispatch(KeyPress(key))

    def on_step_finished(self, message: StepFinished) -> None:
        self._dispatch(StepCompleted(message.index, message.outcome))

    def _spin(self) -> None:
        if self.dispatcher.machine.phase is Phase.RUNNING:
            self._dispatch(Tick())

    def _dispatch(self, event: Event) -> None:
        for action in self.dispatcher.dispatch(event):
            if isinstance(action, ExecuteStep):
                self._execute(action)
            elif isinstance(action, Quit):
                if self.runner.busy:
                    logger.warning("Quit requested while a step is running")
                self.runner.terminate()
                self.exit(return_code=action.code)
        self._redraw()

    def _execute(self, action: ExecuteStep) -> None:
        logger.info("Step %d: %s", action.index + 1, action.step.description)
        self.run_worker(
            partial(self._run_step, action),
            name=f"step-{action.index}",
            group="steps",
            thread=True,
            exit_on_error=False,
        )

    def _run_step(self, action: ExecuteStep) -> None:
        try:
            outcome = self.runner.run(action.step)
        except Exception as e:
            # A crashed runner still ends the step.
            logger.exception("Step runner crashed")
            outcome = StepOutcome(
                output=str(e),
                failed=True,
                diagnostic=f"{action.step.description} crashed: {e}",
            )
        self.post_message(StepFinished(action.index, outcome))

    def _redraw(self) -> None:
        # query() rather than query_one(): completions can land during shutdown.
        for frame in self.query("#frame").results(Static):
            frame.update(render(self.dispatcher, self.frame_palette))
