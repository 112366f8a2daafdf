from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional

from ui.tui import ManagerApp

from .lib.env import is_root
from .logging_utils import DEFAULT_LOG_PATH, configure_logging
from .plan_config import ConfigError, load_config
from .runner import CommandRunner

logger = logging.getLogger(__name__)

ROOT_REQUIRED = "Error: This program must be run as root (sudo)."


def run(*, config_path: Optional[str], log_path: str, dry_run: bool, verbose: bool) -> int:
    """Start the interactive manager; returns the process exit code."""

    actual_log_path = configure_logging(log_path=log_path, verbose=verbose)

    try:
        cfg = load_config(config_path)
    except ConfigError as e:
        logger.error("Config error: %s", e)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    runner = CommandRunner(dry_run=dry_run)
    app = ManagerApp(cfg=cfg, runner=runner)
    logger.info("Starting UI (dry_run=%s, log=%s)", dry_run, actual_log_path)
    try:
        app.run()
    except Exception as e:
        logger.exception("UI failed")
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        runner.terminate()

    code = app.return_code or 0
    logger.info("Exiting with %s", code)
    return code


def main(argv: Optional[list[str]] = None) -> int:
    p = argparse.ArgumentParser(prog="tic80-manager")
    p.add_argument("--config", default=None, help="Path to plan config (yaml); defaults to the bundled plan")
    p.add_argument("--log", default=DEFAULT_LOG_PATH, help="Path to manager log")
    p.add_argument("--dry-run", action="store_true", help="Log commands instead of executing them")
    p.add_argument("--verbose", action="store_true", help="Log command output (DEBUG)")

    args = p.parse_args(argv)

    # A dry run executes nothing, so it does not need root.
    if not args.dry_run and not is_root():
        print(ROOT_REQUIRED)
        return 1

    return run(
        config_path=args.config,
        log_path=args.log,
        dry_run=bool(args.dry_run),
        verbose=bool(args.verbose),
    )
