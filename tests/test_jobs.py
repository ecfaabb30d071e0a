import uuid

import pytest

from aether.jobs import (
    InputType,
    JobStatus,
    PipelineJob,
    is_valid_input_type,
    is_valid_job_status,
)
from aether.steps import PipelineStep, StepName, ValidationError


def make_job(**overrides):
    fields = dict(
        job_id=str(uuid.uuid4()),
        input_source="/data/input",
        input_type=InputType.LOCAL,
        current_step="import",
        steps=[PipelineStep(name=StepName.IMPORT)],
    )
    fields.update(overrides)
    return PipelineJob(**fields)


@pytest.mark.parametrize(
    "current, nxt, allowed",
    [
        (JobStatus.PENDING, JobStatus.IN_PROGRESS, True),
        (JobStatus.PENDING, JobStatus.COMPLETED, False),
        (JobStatus.IN_PROGRESS, JobStatus.COMPLETED, True),
        (JobStatus.IN_PROGRESS, JobStatus.FAILED, True),
        (JobStatus.IN_PROGRESS, JobStatus.PENDING, False),
        (JobStatus.FAILED, JobStatus.IN_PROGRESS, True),
        (JobStatus.FAILED, JobStatus.COMPLETED, False),
        (JobStatus.COMPLETED, JobStatus.IN_PROGRESS, False),
        (JobStatus.COMPLETED, JobStatus.FAILED, False),
    ],
)
def test_job_status_transitions(current, nxt, allowed):
    assert current.can_transition_to(nxt) is allowed


@pytest.mark.parametrize(
    "value, member",
    [
        ("local_directory", InputType.LOCAL),
        ("http_url", InputType.HTTP),
        ("crtdl_file", InputType.CRTDL),
        ("torch_result_url", InputType.TORCH_URL),
    ],
)
def test_input_type_values(value, member):
    assert InputType(value) is member
    assert is_valid_input_type(value) is True


@pytest.mark.parametrize(
    "value, expected",
    [("local_directory", True), ("torch_result_url", True), ("ftp", False), ("", False)],
)
def test_is_valid_input_type(value, expected):
    assert is_valid_input_type(value) is expected


@pytest.mark.parametrize(
    "value, expected",
    [("pending", True), ("failed", True), ("done", False)],
)
def test_is_valid_job_status(value, expected):
    assert is_valid_job_status(value) is expected


def test_valid_job_passes_validation():
    job = make_job()
    job.validate()
    assert job.status == JobStatus.PENDING


def test_missing_job_id():
    with pytest.raises(ValidationError, match="job_id is required"):
        make_job(job_id="").validate()


def test_invalid_uuid():
    with pytest.raises(ValidationError, match="invalid job_id"):
        make_job(job_id="not-a-uuid").validate()


def test_missing_input_source():
    with pytest.raises(ValidationError, match="input_source is required"):
        make_job(input_source="").validate()


def test_http_type_requires_http_url():
    with pytest.raises(ValidationError, match="valid HTTP\\(S\\) URL"):
        make_job(input_type=InputType.HTTP, input_source="/local/path").validate()


def test_http_type_accepts_https():
    job = make_job(input_type=InputType.HTTP, input_source="https://example.com/data.ndjson")
    job.validate()
    assert job.input_type == InputType.HTTP


def test_invalid_input_type():
    with pytest.raises(ValidationError, match="invalid input_type"):
        make_job(input_type="carrier_pigeon").validate()


def test_invalid_status():
    with pytest.raises(ValidationError, match="invalid status"):
        make_job(status="sleeping").validate()


def test_current_step_must_exist():
    with pytest.raises(ValidationError, match="current_step 'dimp' not found"):
        make_job(current_step="dimp").validate()


def test_empty_current_step_is_allowed():
    job = make_job(current_step="")
    job.validate()
    assert job.current_step == ""


def test_negative_totals():
    with pytest.raises(ValidationError, match="total_files cannot be negative"):
        make_job(total_files=-1).validate()
    with pytest.raises(ValidationError, match="total_bytes cannot be negative"):
        make_job(total_bytes=-1).validate()