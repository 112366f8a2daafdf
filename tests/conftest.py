import copy
from typing import Callable, Dict, List, Optional

import pytest

from tic80_manager.plan import Step
from tic80_manager.plan_config import ManagerConfig, load_config
from tic80_manager.runner import StepOutcome


@pytest.fixture
def cfg() -> ManagerConfig:
    return load_config()


@pytest.fixture
def make_cfg(cfg: ManagerConfig) -> Callable[..., ManagerConfig]:
    """Copy of the bundled config with top-level sections replaced."""

    def _make(**sections) -> ManagerConfig:
        raw: Dict = copy.deepcopy(cfg.raw)
        raw.update(sections)
        return ManagerConfig(raw=raw)

    return _make


class FakeRunner:
    """Stands in for CommandRunner; fails the steps whose description is listed."""

    def __init__(self, fail: Optional[List[str]] = None) -> None:
        self.fail = set(fail or [])
        self.ran: List[Step] = []
        self.terminated = 0
        self.busy = False

    def run(self, step: Step) -> StepOutcome:
        self.ran.append(step)
        if step.description in self.fail:
            return StepOutcome(output="boom", failed=True, diagnostic=f"{step.description} failed (exit status 1)\nboom")
        return StepOutcome(output=f"ok: {step.command}", failed=False)

    def terminate(self) -> None:
        self.terminated += 1


@pytest.fixture
def fake_runner_cls():
    return FakeRunner
