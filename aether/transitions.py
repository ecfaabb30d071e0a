"""Pure functions that derive new job and step states from old ones."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from .jobs import JobStatus, PipelineJob
from .steps import ErrorType, PipelineStep, StepError, StepStatus


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _copy_steps(steps: Iterable[PipelineStep]) -> List[PipelineStep]:
    return [replace(step) for step in steps]


def _derive_job(job: PipelineJob, **changes) -> PipelineJob:
    changes.setdefault("steps", _copy_steps(job.steps))
    return replace(job, updated_at=_now(), **changes)


def update_job_status(job: PipelineJob, status: JobStatus) -> PipelineJob:
    """Return a copy of ``job`` with a new status."""
    return _derive_job(job, status=status)


def update_current_step(job: PipelineJob, step) -> PipelineJob:
    """Return a copy of ``job`` whose current step is ``step``."""
    return _derive_job(job, current_step=str(getattr(step, "value", step)))


def add_error(job: PipelineJob, error_msg: str) -> PipelineJob:
    """Return a failed copy of ``job`` carrying ``error_msg``."""
    return _derive_job(job, error_message=error_msg, status=JobStatus.FAILED)


def update_job_metrics(job: PipelineJob, files: int, total_bytes: int) -> PipelineJob:
    """Return a copy of ``job`` with new file and byte totals."""
    return _derive_job(job, total_files=files, total_bytes=total_bytes)


def start_step(step: PipelineStep) -> PipelineStep:
    """Return a copy of ``step`` marked as in progress from now."""
    return replace(step, status=StepStatus.IN_PROGRESS, started_at=_now())


def complete_step(
    step: PipelineStep, files_processed: int, bytes_processed: int
) -> PipelineStep:
    """Return a copy of ``step`` marked as completed with its final metrics."""
    return replace(
        step,
        status=StepStatus.COMPLETED,
        completed_at=_now(),
        files_processed=files_processed,
        bytes_processed=bytes_processed,
    )


def fail_step(
    step: PipelineStep, error_type: ErrorType, error_msg: str, http_status: int = 0
) -> PipelineStep:
    """Return a copy of ``step`` marked as failed with the error details."""
    error = StepError(
        error_type=error_type,
        message=error_msg,
        http_status=http_status,
        timestamp=_now(),
    )
    return replace(step, status=StepStatus.FAILED, last_error=error)


def increment_retry(step: PipelineStep) -> PipelineStep:
    """Return a copy of ``step`` with its retry count raised by one."""
    return replace(step, retry_count=step.retry_count + 1)


def update_step_progress(
    step: PipelineStep, files_processed: int, bytes_processed: int
) -> PipelineStep:
    """Return a copy of ``step`` with new progress metrics."""
    return replace(step, files_processed=files_processed, bytes_processed=bytes_processed)


def replace_step(job: PipelineJob, updated_step: PipelineStep) -> PipelineJob:
    """Return a copy of ``job`` in which the step of the same name is replaced."""
    steps = _copy_steps(job.steps)
    for index, step in enumerate(steps):
        if step.name == updated_step.name:
            steps[index] = updated_step
            break
    return _derive_job(job, steps=steps)


def initialize_steps(enabled_steps: Iterable) -> List[PipelineStep]:
    """Create a pending step for each enabled step name, in order."""
    return [PipelineStep(name=name) for name in enabled_steps]


def get_step_by_name(job: PipelineJob, name) -> Optional[PipelineStep]:
    """Return a copy of the step called ``name``, or None if the job has none."""
    found = next((step for step in job.steps if step.name == name), None)
    return replace(found) if found is not None else None


def is_job_complete(job: PipelineJob) -> bool:
    """Return whether the job has steps and all of them are completed."""
    return bool(job.steps) and all(
        step.status == StepStatus.COMPLETED for step in job.steps
    )


def get_next_pending_step(job: PipelineJob) -> Optional[PipelineStep]:
    """Return a copy of the first pending step, or None if there is none."""
    found = next(
        (step for step in job.steps if step.status == StepStatus.PENDING), None
    )
    return replace(found) if found is not None else None