from __future__ import annotations

import logging
import os
import signal
import subprocess
import threading
from dataclasses import dataclass
from typing import Optional

from .lib.command import run_cmd, shell_argv
from .plan import Step

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StepOutcome:
    output: str
    failed: bool
    diagnostic: str = ""


def _diagnostic(step: Step, returncode: Optional[int], output: str) -> str:
    status = "could not be started" if returncode is None else f"failed (exit status {returncode})"
    head = f"{step.description} {status}"
    body = output.strip()
    return f"{head}\n{body}" if body else head


class CommandRunner:
    """Executes one step at a time and keeps a handle on the live child."""

    def __init__(self, *, dry_run: bool = False) -> None:
        self.dry_run = dry_run
        self._lock = threading.Lock()
        self._proc: Optional[subprocess.Popen] = None

    def _track(self, proc: subprocess.Popen) -> None:
        with self._lock:
            self._proc = proc

    def run(self, step: Step) -> StepOutcome:
        try:
            r = run_cmd(
                shell_argv(step.command),
                check=False,
                dry_run=self.dry_run,
                on_start=self._track,
            )
        except OSError as e:
            logger.warning("Could not spawn step %r: %s", step.description, e)
            output = str(e)
            return StepOutcome(output=output, failed=True, diagnostic=_diagnostic(step, None, output))
        finally:
            with self._lock:
                self._proc = None

        if r.returncode != 0:
            logger.warning("Step %r exited with %s", step.description, r.returncode)
            return StepOutcome(
                output=r.output,
                failed=True,
                diagnostic=_diagnostic(step, r.returncode, r.output),
            )
        return StepOutcome(output=r.output, failed=False)

    @property
    def busy(self) -> bool:
        with self._lock:
            return self._proc is not None

    def terminate(self) -> None:
        """Send SIGTERM to the in-flight step's process group, if any."""
        with self._lock:
            proc = self._proc
        if proc is None or proc.poll() is not None:
            return
        logger.warning("Terminating in-flight command (pid %s)", proc.pid)
        try:
            os.killpg(proc.pid, signal.SIGTERM)
        except ProcessLookupError:
            pass
