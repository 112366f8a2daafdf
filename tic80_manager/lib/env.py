from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Paths:
    log_default: str = "/var/log/tic80-manager.log"
    log_fallback_name: str = "tic80-manager.log"


PATHS = Paths()


def is_root() -> bool:
    return os.geteuid() == 0
