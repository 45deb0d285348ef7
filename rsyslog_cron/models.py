"""Message and job-outcome models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

SEVERITY_ERROR = 3
SEVERITY_INFO = 6


@dataclass(frozen=True)
class Message:
    timestamp: datetime
    job_name: str
    text: str
    severity: int = SEVERITY_INFO


class Outcome(Enum):
    SUCCESS = "success"
    EXIT_CODE = "exit_code"
    EXEC_ERROR = "exec_error"


@dataclass(frozen=True)
class ExecutionResult:
    """Result of a single job run.

    ``exit_code`` is set for SUCCESS and EXIT_CODE, ``error`` only for
    EXEC_ERROR (the command could not be started at all).
    """

    outcome: Outcome
    exit_code: int | None = None
    error: str = ""
    duration_seconds: float = field(default=0.0, compare=False)

    @property
    def success(self) -> bool:
        return self.outcome is Outcome.SUCCESS

