"""
Shared error/warning reporting for the timeline batch downloader.

Components report problems here:
- A "crash" is a fatal problem that stops the entire process (e.g. the
  preferences database is unusable).
- An "error" abandons the current timeline item; the run continues with the next.
- A "warning" is non-fatal; processing of the current item continues.

Run-level conditions that end a run with a terminal status are raised as the
exception types below and turned into a status by the run loop.
"""

from __future__ import annotations

from typing import NoReturn, Optional

from utils.Logger import Logger


class RunAbort(Exception):
    """Base class for conditions that end a run with a terminal status."""


class InvalidDateInputError(RunAbort):
    """A range bound could not be parsed as a date."""

    def __init__(self, label: str, value: str) -> None:
        self.label = label
        self.value = value
        super().__init__(f"Invalid date for {label}: {value!r}")


class InvalidIndexRangeError(RunAbort):
    """Index bounds are not numbers or start lies after end."""

    def __init__(self, start: object, end: object) -> None:
        self.start = start
        self.end = end
        super().__init__(f"Invalid index range: {start!r}..{end!r}")


class SessionLostError(RunAbort):
    """The authenticated timeline view disappeared mid-run."""

    def __init__(self, index: int, reason: str = "") -> None:
        self.index = index
        self.reason = reason
        msg = f"Session lost at item {index}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


def record_crash(msg: str) -> NoReturn:
    """
    Record a crash: log at exception level and raise so the process stops.

    Raises:
        RuntimeError: Always, with the given message.
    """
    Logger.exception(msg)
    raise RuntimeError(msg)


def record_error(index: Optional[int], error_msg: str) -> None:
    """
    Record an error for a timeline item: the item is abandoned, the run continues.

    Args:
        index: Item index, or None when the error is not tied to an item.
        error_msg: Message to log.
    """
    if index is None:
        Logger.error(error_msg)
    else:
        Logger.error(error_msg, extra={"item": index})


def record_warning(index: Optional[int], warning_msg: str) -> None:
    """Record a non-fatal problem for a timeline item; processing continues."""
    if index is None:
        Logger.warning(warning_msg)
    else:
        Logger.warning(warning_msg, extra={"item": index})
