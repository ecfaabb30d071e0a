"""Pipeline step model: step names, statuses, errors and step validation."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class ValidationError(ValueError):
    """Raised when a model holds field values that are not allowed."""


def _now() -> datetime:
    return datetime.now(timezone.utc)


class StepName(str, Enum):
    """The stages a pipeline job can run through."""

    IMPORT = "import"
    DIMP = "dimp"
    VALIDATION = "validation"
    CSV_CONVERSION = "csv_conversion"
    PARQUET_CONVERSION = "parquet_conversion"

    def __str__(self) -> str:
        return self.value


class StepStatus(str, Enum):
    """Execution state of a single pipeline step."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"

    def __str__(self) -> str:
        return self.value

    def can_transition_to(self, next_status) -> bool:
        """Return whether moving from this status to ``next_status`` is allowed.

        pending -> in_progress; in_progress -> completed | failed;
        failed -> in_progress (retry); completed is terminal.
        """
        return next_status in _STEP_TRANSITIONS[self]


_STEP_TRANSITIONS = {
    StepStatus.PENDING: frozenset({StepStatus.IN_PROGRESS}),
    StepStatus.IN_PROGRESS: frozenset({StepStatus.COMPLETED, StepStatus.FAILED}),
    StepStatus.FAILED: frozenset({StepStatus.IN_PROGRESS}),
    StepStatus.COMPLETED: frozenset(),
}


class ErrorType(str, Enum):
    """Classification of a failure for the retry strategy."""

    TRANSIENT = "transient"
    NON_TRANSIENT = "non_transient"

    def __str__(self) -> str:
        return self.value


@dataclass
class StepError:
    """Details of the last failure of a step."""

    error_type: ErrorType
    message: str
    http_status: int = 0
    timestamp: datetime = field(default_factory=_now)

    def __str__(self) -> str:
        if self.http_status > 0:
            return f"HTTP {self.http_status}: {self.message}"
        return self.message

    def is_retryable(self, max_retries: int, current_retries: int) -> bool:
        """Return whether this error should trigger an automatic retry."""
        return self.error_type == ErrorType.TRANSIENT and current_retries < max_retries


@dataclass
class PipelineStep:
    """A discrete stage of a pipeline job and its progress."""

    name: StepName
    status: StepStatus = StepStatus.PENDING
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    files_processed: int = 0
    bytes_processed: int = 0
    retry_count: int = 0
    last_error: Optional[StepError] = None

    def validate(self) -> None:
        """Raise ValidationError if any field holds an invalid value."""
        if not is_valid_step_name(self.name):
            raise ValidationError(f"invalid step name: {self.name}")
        if not is_valid_step_status(self.status):
            raise ValidationError(f"invalid step status: {self.status}")
        if self.retry_count < 0:
            raise ValidationError("retry_count cannot be negative")
        if self.files_processed < 0:
            raise ValidationError("files_processed cannot be negative")
        if self.bytes_processed < 0:
            raise ValidationError("bytes_processed cannot be negative")
        if (
            self.status in (StepStatus.IN_PROGRESS, StepStatus.COMPLETED)
            and self.started_at is None
        ):
            raise ValidationError(
                "started_at must be set when step is in_progress or completed"
            )
        if self.status == StepStatus.COMPLETED and self.completed_at is None:
            raise ValidationError("completed_at must be set when step is completed")


def is_valid_step_name(name) -> bool:
    """Return whether ``name`` is a recognised step name."""
    try:
        StepName(name)
    except ValueError:
        return False
    return True


def is_valid_step_status(status) -> bool:
    """Return whether ``status`` is a recognised step status."""
    try:
        StepStatus(status)
    except ValueError:
        return False
    return True


def is_transient_http_status(status: int) -> bool:
    """Return whether an HTTP status code indicates a transient failure."""
    return 500 <= status < 600 or status in (408, 429)