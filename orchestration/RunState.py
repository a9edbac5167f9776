"""
Process-wide state of the current run and its terminal statuses.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class RunStatus(Enum):
    """How a run ended. The value is the status key reported to the user."""

    COMPLETED = "statusRunDone"
    NO_MATCHES = "statusNoRange"
    ABORTED = "statusAborted"
    SESSION_LOST = "statusSessionLost"
    INVALID_DATE = "statusInvalidDate"
    INVALID_RANGE = "statusInvalidRange"
    NO_ENTRIES = "statusNoEntries"


class Severity(Enum):
    """Status color and the log level the status line is logged at."""

    INFO = ("#9fdcff", logging.INFO)
    WARN = ("#ffd27a", logging.WARNING)
    ERROR = ("#ffb4b4", logging.ERROR)
    FATAL = ("#ff6b6b", logging.ERROR)
    SUCCESS = ("#b6f3b6", logging.INFO)

    @property
    def color(self) -> str:
        return self.value[0]

    @property
    def log_level(self) -> int:
        return self.value[1]


@dataclass
class RunState:
    """running/stop_requested/current_index of one run; reset at start, torn down at end."""

    running: bool = False
    stop_requested: bool = False
    current_index: Optional[int] = None

    def start(self) -> None:
        self.running = True
        self.stop_requested = False
        self.current_index = None

    def request_stop(self) -> None:
        self.stop_requested = True

    def finish(self) -> None:
        self.running = False
