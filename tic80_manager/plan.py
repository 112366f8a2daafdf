from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import List, Tuple

from .plan_config import ManagerConfig

logger = logging.getLogger(__name__)


class Operation(enum.Enum):
    """Menu entries, in display order."""

    INSTALL = 0
    UPGRADE = 1
    UNINSTALL = 2
    EXIT = 3


MENU: Tuple[Operation, ...] = tuple(Operation)


@dataclass(frozen=True)
class Step:
    description: str
    command: str


def compose_command(template: str, **values: str) -> str:
    """Single place where step command strings are assembled."""
    return template.format(**values)


def _build_steps(cfg: ManagerConfig) -> List[Step]:
    build_dir = cfg.build_dir
    src = cfg.checkout_dir
    out = f"{src}/build"

    steps: List[Step] = []
    if cfg.group_install_cmd:
        steps.append(Step("Installing Group Tools...", cfg.group_install_cmd))
    steps.append(
        Step(
            "Installing Deps (GLU/Curl/X11)...",
            compose_command("{cmd} {pkgs}", cmd=cfg.package_install_cmd, pkgs=" ".join(cfg.dependency_packages)),
        )
    )
    steps += [
        Step("Cleaning previous builds...", compose_command("rm -rf {d}", d=build_dir)),
        Step("Creating build directory...", compose_command("mkdir -p {d}", d=build_dir)),
        Step(
            "Cloning Repository...",
            compose_command("git clone --recursive {url} {src}", url=cfg.repo_url, src=src),
        ),
    ]

    pin = cfg.pin
    if pin is not None:
        steps.append(
            Step(
                "Patching SDL2...",
                compose_command(
                    "cd {src}/{path} && git fetch --tags && git checkout {ref}",
                    src=src,
                    path=pin.path,
                    ref=pin.ref,
                ),
            )
        )

    steps += [
        Step(
            "Configuring CMake (Forcing Pro)...",
            compose_command(
                "mkdir -p {out} && cd {out} && cmake {flags} ..",
                out=out,
                flags=" ".join(cfg.cmake_flags),
            ),
        ),
        Step("Compiling...", compose_command("cd {out} && make -j{jobs}", out=out, jobs=cfg.jobs_expr)),
        Step("Installing...", compose_command("cd {out} && make install", out=out)),
        Step("Cleaning up...", compose_command("rm -rf {d}", d=build_dir)),
    ]
    return steps


def _uninstall_steps(cfg: ManagerConfig) -> List[Step]:
    return [Step(t.description, compose_command("rm -f {p}", p=t.path)) for t in cfg.uninstall_targets]


def plan(operation: Operation, cfg: ManagerConfig) -> Tuple[Step, ...]:
    """Return the ordered steps for an operation.

    Install and Upgrade share the full rebuild. Exit (or anything unknown)
    yields an empty plan, which the engine completes immediately.
    """
    if operation in (Operation.INSTALL, Operation.UPGRADE):
        steps = _build_steps(cfg)
    elif operation is Operation.UNINSTALL:
        steps = _uninstall_steps(cfg)
    else:
        steps = []
    logger.debug("Plan for %s: %d step(s)", operation.name, len(steps))
    return tuple(steps)
