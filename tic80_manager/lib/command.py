from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

logger = logging.getLogger(__name__)


class CommandError(RuntimeError):
    def __init__(self, result: "CmdResult") -> None:
        super().__init__(f"Command failed ({result.returncode}): {_fmt_argv(result.argv)}\n{result.output}")
        self.result = result


@dataclass(frozen=True)
class CmdResult:
    argv: list[str]
    returncode: int
    output: str


def _fmt_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


def shell_argv(command: str) -> list[str]:
    """Wrap a composed command string for the shell.

    The command tables are operator-authored, so the string is passed through
    verbatim; metacharacters (&&, $(...)) are interpreted by bash.
    """
    return ["bash", "-c", command]


def run_cmd(
    argv: Sequence[str],
    *,
    check: bool = True,
    dry_run: bool = False,
    on_start: Optional[Callable[[subprocess.Popen], None]] = None,
) -> CmdResult:
    """Run a command with consistent logging.

    - Always logs the command.
    - stdout and stderr are merged into one stream, in the order written.
    - dry_run logs but does not execute.
    - on_start receives the live process (used to terminate it on quit).
    """

    argv_list = list(argv)
    logger.info("CMD %s", _fmt_argv(argv_list))

    if dry_run:
        return CmdResult(argv=argv_list, returncode=0, output="")

    p = subprocess.Popen(
        argv_list,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        errors="replace",
        start_new_session=True,
    )
    if on_start is not None:
        on_start(p)
    output, _ = p.communicate()

    if output:
        logger.debug("OUTPUT %s", output.strip())

    result = CmdResult(argv=argv_list, returncode=p.returncode, output=output or "")
    if check and p.returncode != 0:
        raise CommandError(result)

    return result
