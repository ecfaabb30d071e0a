"""Job lifecycle operations: starting, finishing, failing and summarising jobs."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from .jobs import JobStatus, PipelineJob
from .steps import PipelineStep
from .transitions import (
    add_error,
    get_step_by_name,
    replace_step,
    start_step,
    update_job_metrics,
    update_job_status,
)


def start_job(job: PipelineJob) -> PipelineJob:
    """Return a copy of ``job`` in progress, with its first step started."""
    updated = update_job_status(job, JobStatus.IN_PROGRESS)
    if updated.steps:
        updated = replace_step(updated, start_step(updated.steps[0]))
    return updated


def complete_job(job: PipelineJob) -> PipelineJob:
    """Return a completed copy of ``job`` with no current step."""
    updated = update_job_status(job, JobStatus.COMPLETED)
    updated.current_step = ""
    return updated


def fail_job(job: PipelineJob, error_msg: str) -> PipelineJob:
    """Return a failed copy of ``job`` carrying ``error_msg``."""
    return add_error(job, error_msg)


def get_current_step(job: PipelineJob) -> Optional[PipelineStep]:
    """Return a copy of the step being executed, or None."""
    if not job.current_step:
        return None
    return get_step_by_name(job, job.current_step)


def update_job_progress(job: PipelineJob, files: int, total_bytes: int) -> PipelineJob:
    """Return a copy of ``job`` with new file and byte totals."""
    return update_job_metrics(job, files, total_bytes)


def _format_duration(seconds: float) -> str:
    total = int(seconds + 0.5) if seconds >= 0 else -int(-seconds + 0.5)
    sign = "-" if total < 0 else ""
    total = abs(total)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{sign}{hours}h{minutes}m{secs}s"
    if minutes:
        return f"{sign}{minutes}m{secs}s"
    return f"{sign}{secs}s"


def get_job_summary(job: PipelineJob) -> str:
    """Return a human-readable multi-line summary of ``job``."""
    elapsed = (datetime.now(timezone.utc) - job.created_at).total_seconds()
    lines = [
        f"Job {job.job_id}",
        f"Status: {job.status}",
        f"Current Step: {job.current_step}",
        f"Files: {job.total_files}",
        f"Duration: {_format_duration(elapsed)}",
    ]
    if job.error_message:
        lines.append(f"Error: {job.error_message}")
    return "".join(f"{line}\n" for line in lines)