"""
Timeline batch downloader - Main entry point.

Walks the transaction timeline of a broker web app in a real browser, opens
every entry in a date (or index) range and saves each attached document under
a name built from the entry's title, subtitle and date.
"""

import sys

import click

from utils.Args import Args
from utils.Logger import Logger


def setup() -> None:
    """
    Initialize the application: configuration and logging.
    
    Note: Args must be initialized before Logger since Logger configuration
    comes from Args. Args uses print() for warnings, not Logger, so this order is safe.
    """
    Args.initialize()

    log_level = Args.log_level
    Logger.initialize(log_level=log_level, log_color=bool(Args.log_color))

    Logger.info("Timeline batch downloader starting...")
    Logger.debug(f"Python version: {sys.version}")

    if Args.config_file:
        Logger.info(f"Using config file: {Args.config_file}")
    Logger.info(f"Log level: {log_level}")


def main() -> int:
    """Main entry point. Returns the process exit code (1 if a run ended with an error status)."""
    setup()

    from orchestration import Orchestrator
    from orchestration.RunState import RunStatus

    result = Orchestrator.run(Args.module)
    if Args.module in ("timeline", "timeline_index"):
        if result is None:
            return 1
        if result.status not in (RunStatus.COMPLETED, RunStatus.ABORTED, RunStatus.NO_MATCHES):
            return 1
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except SystemExit:
        raise  # Preserve exit code from --help etc.
    except click.ClickException as e:
        print(e.format_message(), file=sys.stderr)
        sys.exit(e.exit_code)
