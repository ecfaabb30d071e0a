# aether

`aether` models the jobs that move FHIR NDJSON data through a data use
process pipeline made of the steps import, pseudonymization (DIMP),
validation, and CSV or Parquet conversion. It holds the project
configuration, the pipeline steps and their state machines, the FHIR files
a step produces, and pure functions that derive a job's next state from its
current one.

It needs only the Python standard library and supports Python 3.10 and
later.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Modules

- `aether.steps`: `StepName`, `StepStatus`, `ErrorType`, `StepError`,
  `PipelineStep` and the `ValidationError` exception (a `ValueError`),
  with `is_valid_step_name`, `is_valid_step_status` and
  `is_transient_http_status`.
- `aether.config`: `ProjectConfig`, `ServiceConfig`, `TorchConfig`,
  `PipelineConfig`, `RetryConfig`, `default_config()` and
  `validate_jobs_dir(path)`.
- `aether.files`: `FhirDataFile`, `is_valid_fhir_file`, `is_safe_path`
  and `get_resource_type_from_filename`.
- `aether.jobs`: `InputType`, `JobStatus`, `PipelineJob`,
  `is_valid_input_type` and `is_valid_job_status`.
- `aether.transitions`: functions that return updated copies of jobs and
  steps: `update_job_status`, `update_current_step`, `add_error`,
  `update_job_metrics`, `start_step`, `complete_step`, `fail_step`,
  `increment_retry`, `update_step_progress`, `replace_step`,
  `initialize_steps`, `get_step_by_name`, `is_job_complete` and
  `get_next_pending_step`.
- `aether.lifecycle`: job-level operations: `start_job`, `complete_job`,
  `fail_job`, `get_current_step`, `update_job_progress` and
  `get_job_summary`.

## State machines

`StepStatus` and `JobStatus` allow the same transitions:

```
pending -> in_progress
in_progress -> completed | failed
failed -> in_progress   (retry)
completed               (terminal)
```

```python
from aether.steps import StepStatus

StepStatus.PENDING.can_transition_to(StepStatus.IN_PROGRESS)    # True
StepStatus.COMPLETED.can_transition_to(StepStatus.IN_PROGRESS)  # False
```

`PipelineStep.validate()` and `PipelineJob.validate()` raise
`ValidationError` for unknown names or statuses, negative counters, a
started or completed step without its timestamps, a job id that is not a
UUID, an `http_url` input that does not start with `http://` or
`https://`, or a current step the job does not have.

## Configuration

`default_config()` returns a configuration with only the import step
enabled, five retry attempts with a backoff from 1000 ms to 30000 ms, and
`./jobs` as the jobs directory. `ProjectConfig.validate()` raises
`ValidationError` when there are no enabled steps, the first step is not
`import`, an enabled DIMP, CSV or Parquet step has no service URL, or the
retry settings are out of range (1 to 10 attempts, positive backoffs, the
initial below the maximum). `TorchConfig.validate()` checks the TORCH
base URL, credentials, extraction timeout and polling intervals.

```python
from aether.config import default_config
from aether.steps import StepName

config = default_config()
config.validate()
config.pipeline.is_step_enabled(StepName.IMPORT)   # True
config.pipeline.get_next_step(StepName.IMPORT)     # None: no further step
```

`validate_jobs_dir(path)` creates the jobs directory when it is missing and
raises `ValidationError` when the path is not a writable directory.
`ProjectConfig.validate_service_connectivity()` sends a `HEAD` request with
a five-second timeout to the host of the TORCH base URL and of each enabled
step's service; any HTTP response counts as reachable, and a connection
failure raises `ConnectionError`.

## FHIR files

```python
from aether.files import (
    get_resource_type_from_filename,
    is_safe_path,
    is_valid_fhir_file,
)

is_valid_fhir_file("Patient_001.ndjson")               # True
get_resource_type_from_filename("Patient_001.ndjson")  # "Patient"
is_safe_path("import/Patient.ndjson")                  # True
is_safe_path("../../etc/passwd")                       # False
```

## Moving a job through the pipeline

The functions in `aether.transitions` and `aether.lifecycle` never change
the job or step they are given; each returns a new one.

```python
import uuid

from aether.config import default_config
from aether.jobs import InputType, PipelineJob
from aether.lifecycle import complete_job, get_job_summary, start_job
from aether.steps import StepName
from aether.transitions import complete_step, get_step_by_name, initialize_steps, replace_step

config = default_config()
job = PipelineJob(
    job_id=str(uuid.uuid4()),
    input_source="./data",
    input_type=InputType.LOCAL,
    current_step="import",
    steps=initialize_steps(config.pipeline.enabled_steps),
    config=config,
)
job.validate()

started = start_job(job)
step = get_step_by_name(started, StepName.IMPORT)
done = replace_step(started, complete_step(step, 3, 4096))
finished = complete_job(done)
print(get_job_summary(finished))
```

Errors are classified for retrying: `is_transient_http_status` treats 5xx,
408 and 429 as transient, and `StepError.is_retryable(max_retries,
current_retries)` allows a retry only for a transient error below the
limit.

## What this package does not do

The package is a model of jobs and their configuration. It has no
command-line program, does not import, download, pseudonymize or convert
any data, does not talk to a TORCH server beyond the connectivity check
above, and does not save or load job state on disk. Those parts are left to
the code that uses these models.