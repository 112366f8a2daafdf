from __future__ import annotations

import logging
from pathlib import Path

from .lib.env import PATHS

DEFAULT_LOG_PATH = PATHS.log_default

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


def _open_log(log_path: str) -> tuple[logging.FileHandler, str]:
    try:
        Path(log_path).parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(log_path), log_path
    except OSError:
        fallback = str(Path.cwd() / PATHS.log_fallback_name)
        return logging.FileHandler(fallback), fallback


def configure_logging(log_path: str = DEFAULT_LOG_PATH, *, verbose: bool = False) -> str:
    """Send the manager's log to a file and return the path actually used.

    The TUI owns the terminal, so nothing is logged to the console. Commands
    and state transitions are logged at INFO; with ``verbose`` the captured
    command output is recorded too (DEBUG).

    An unwritable path (e.g. /var/log on a dry run as a normal user) falls
    back to a file in the working directory. Calling this again only
    adjusts the level.
    """

    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else logging.INFO)

    if getattr(root, "_tic80_log_path", None):
        return root._tic80_log_path

    handler, chosen_path = _open_log(log_path)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(handler)
    root._tic80_log_path = chosen_path

    logging.getLogger(__name__).info(
        "Logging to %s (requested %s, verbose=%s)", chosen_path, log_path, verbose
    )
    return chosen_path
