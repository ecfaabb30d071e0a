"""Pipeline jobs: input types, job statuses and job validation."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List
from urllib.parse import urlsplit
import uuid

from .config import ProjectConfig
from .steps import PipelineStep, ValidationError


def _now() -> datetime:
    return datetime.now(timezone.utc)


class InputType(str, Enum):
    """Where the FHIR data of a job comes from."""

    LOCAL = "local_directory"
    HTTP = "http_url"
    CRTDL = "crtdl_file"
    TORCH_URL = "torch_result_url"

    def __str__(self) -> str:
        return self.value


class JobStatus(str, Enum):
    """Execution state of a pipeline job."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"

    def __str__(self) -> str:
        return self.value

    def can_transition_to(self, next_status) -> bool:
        """Return whether moving from this status to ``next_status`` is allowed.

        pending -> in_progress; in_progress -> completed | failed;
        failed -> in_progress (manual retry); completed is terminal.
        """
        return next_status in _JOB_TRANSITIONS[self]


_JOB_TRANSITIONS = {
    JobStatus.PENDING: frozenset({JobStatus.IN_PROGRESS}),
    JobStatus.IN_PROGRESS: frozenset({JobStatus.COMPLETED, JobStatus.FAILED}),
    JobStatus.FAILED: frozenset({JobStatus.IN_PROGRESS}),
    JobStatus.COMPLETED: frozenset(),
}


def is_valid_input_type(value) -> bool:
    """Return whether ``value`` is a recognised input type."""
    try:
        InputType(value)
    except ValueError:
        return False
    return True


def is_valid_job_status(value) -> bool:
    """Return whether ``value`` is a recognised job status."""
    try:
        JobStatus(value)
    except ValueError:
        return False
    return True


@dataclass
class PipelineJob:
    """A single execution of the data use process pipeline."""

    job_id: str
    input_source: str
    input_type: InputType
    status: JobStatus = JobStatus.PENDING
    current_step: str = ""
    steps: List[PipelineStep] = field(default_factory=list)
    config: ProjectConfig = field(default_factory=ProjectConfig)
    total_files: int = 0
    total_bytes: int = 0
    error_message: str = ""
    torch_extraction_url: str = ""
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    def validate(self) -> None:
        """Raise ValidationError if any field holds an invalid value."""
        if not self.job_id:
            raise ValidationError("job_id is required")
        try:
            uuid.UUID(self.job_id)
        except ValueError as exc:
            raise ValidationError(
                f"invalid job_id: must be a valid UUID: {exc}"
            ) from exc

        if not self.input_source:
            raise ValidationError("input_source is required")

        if self.input_type == InputType.HTTP:
            if not self.input_source.startswith(("http://", "https://")):
                raise ValidationError(
                    "input_source must be a valid HTTP(S) URL when input_type is http_url"
                )
            try:
                urlsplit(self.input_source)
            except ValueError as exc:
                raise ValidationError(f"invalid input_source URL: {exc}") from exc

        if not is_valid_input_type(self.input_type):
            raise ValidationError(f"invalid input_type: {self.input_type}")
        if not is_valid_job_status(self.status):
            raise ValidationError(f"invalid status: {self.status}")

        if self.current_step and not any(
            step.name == self.current_step for step in self.steps
        ):
            raise ValidationError(
                f"current_step '{self.current_step}' not found in job steps"
            )

        if self.total_files < 0:
            raise ValidationError("total_files cannot be negative")
        if self.total_bytes < 0:
            raise ValidationError("total_bytes cannot be negative")