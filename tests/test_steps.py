from datetime import datetime, timezone

import pytest

from aether.steps import (
    ErrorType,
    PipelineStep,
    StepError,
    StepName,
    StepStatus,
    ValidationError,
    is_transient_http_status,
    is_valid_step_name,
    is_valid_step_status,
)


def test_step_names_match_wire_values():
    assert StepName("csv_conversion") is StepName.CSV_CONVERSION
    assert str(StepName.PARQUET_CONVERSION) == "parquet_conversion"


@pytest.mark.parametrize(
    "name, expected",
    [
        ("import", True),
        ("dimp", True),
        ("validation", True),
        (StepName.CSV_CONVERSION, True),
        ("parquet_conversion", True),
        ("unknown", False),
        ("", False),
        (None, False),
    ],
)
def test_is_valid_step_name(name, expected):
    assert is_valid_step_name(name) is expected


@pytest.mark.parametrize(
    "status, expected",
    [
        ("pending", True),
        ("in_progress", True),
        ("completed", True),
        (StepStatus.FAILED, True),
        ("done", False),
        ("", False),
    ],
)
def test_is_valid_step_status(status, expected):
    assert is_valid_step_status(status) is expected


@pytest.mark.parametrize(
    "current, nxt, expected",
    [
        (StepStatus.PENDING, StepStatus.IN_PROGRESS, True),
        (StepStatus.PENDING, StepStatus.COMPLETED, False),
        (StepStatus.IN_PROGRESS, StepStatus.COMPLETED, True),
        (StepStatus.IN_PROGRESS, StepStatus.FAILED, True),
        (StepStatus.IN_PROGRESS, StepStatus.PENDING, False),
        (StepStatus.FAILED, StepStatus.IN_PROGRESS, True),
        (StepStatus.FAILED, StepStatus.COMPLETED, False),
        (StepStatus.COMPLETED, StepStatus.IN_PROGRESS, False),
        (StepStatus.COMPLETED, StepStatus.FAILED, False),
    ],
)
def test_step_status_transitions(current, nxt, expected):
    assert current.can_transition_to(nxt) is expected


def test_transition_accepts_plain_string():
    assert StepStatus.PENDING.can_transition_to("in_progress") is True
    assert StepStatus.PENDING.can_transition_to("bogus") is False


@pytest.mark.parametrize(
    "status, expected",
    [
        (500, True),
        (503, True),
        (599, True),
        (408, True),
        (429, True),
        (400, False),
        (404, False),
        (200, False),
        (600, False),
    ],
)
def test_is_transient_http_status(status, expected):
    assert is_transient_http_status(status) is expected


def test_step_error_message_without_http_status():
    error = StepError(ErrorType.NON_TRANSIENT, "boom")
    assert str(error) == "boom"


def test_step_error_message_with_http_status():
    error = StepError(ErrorType.TRANSIENT, "boom", http_status=503)
    assert str(error) == "HTTP 503: boom"


@pytest.mark.parametrize(
    "error_type, max_retries, current, expected",
    [
        (ErrorType.TRANSIENT, 3, 0, True),
        (ErrorType.TRANSIENT, 3, 2, True),
        (ErrorType.TRANSIENT, 3, 3, False),
        (ErrorType.NON_TRANSIENT, 3, 0, False),
    ],
)
def test_step_error_is_retryable(error_type, max_retries, current, expected):
    error = StepError(error_type, "failure")
    assert error.is_retryable(max_retries, current) is expected


def test_new_step_defaults():
    step = PipelineStep(StepName.IMPORT)
    assert step.status == StepStatus.PENDING
    assert (step.files_processed, step.bytes_processed, step.retry_count) == (0, 0, 0)
    assert step.started_at is None
    assert step.last_error is None


@pytest.mark.parametrize(
    "kwargs, message",
    [
        ({"name": "unknown"}, "invalid step name: unknown"),
        ({"name": StepName.DIMP, "status": "weird"}, "invalid step status: weird"),
        ({"name": StepName.DIMP, "retry_count": -1}, "retry_count cannot be negative"),
        ({"name": StepName.DIMP, "files_processed": -1}, "files_processed cannot be negative"),
        ({"name": StepName.DIMP, "bytes_processed": -5}, "bytes_processed cannot be negative"),
        (
            {"name": StepName.DIMP, "status": StepStatus.IN_PROGRESS},
            "started_at must be set when step is in_progress or completed",
        ),
        (
            {"name": StepName.DIMP, "status": StepStatus.COMPLETED},
            "started_at must be set when step is in_progress or completed",
        ),
        (
            {
                "name": StepName.DIMP,
                "status": StepStatus.COMPLETED,
                "started_at": datetime.now(timezone.utc),
            },
            "completed_at must be set when step is completed",
        ),
    ],
)
def test_step_validate_errors(kwargs, message):
    step = PipelineStep(**kwargs)
    with pytest.raises(ValidationError) as excinfo:
        step.validate()
    assert str(excinfo.value) == message


def test_validation_error_is_value_error():
    with pytest.raises(ValueError):
        PipelineStep("nope").validate()