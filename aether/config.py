"""Project configuration: services, pipeline steps, retry policy and jobs directory."""

from __future__ import annotations

import contextlib
import os
import stat
import urllib.error
import urllib.request
import uuid
from dataclasses import dataclass, field
from typing import List, Optional
from urllib.parse import urlsplit

from .steps import StepName, ValidationError, is_valid_step_name

_CONNECTIVITY_TIMEOUT_SECONDS = 5

_SERVICE_ATTRS = {
    StepName.DIMP: "dimp_url",
    StepName.CSV_CONVERSION: "csv_conversion_url",
    StepName.PARQUET_CONVERSION: "parquet_conversion_url",
}

_SERVICE_NAMES = {
    StepName.DIMP: "DIMP",
    StepName.CSV_CONVERSION: "CSV Conversion",
    StepName.PARQUET_CONVERSION: "Parquet Conversion",
}


def _check_url(url: str, message: str) -> None:
    try:
        urlsplit(url)
    except ValueError as exc:
        raise ValidationError(f"{message}: {exc}") from exc


@dataclass
class TorchConfig:
    """TORCH server connection and extraction polling settings."""

    base_url: str = ""
    file_server_url: str = ""
    username: str = ""
    password: str = ""
    extraction_timeout_minutes: int = 30
    polling_interval_seconds: int = 5
    max_polling_interval_seconds: int = 30

    def validate(self) -> None:
        """Raise ValidationError if a required field is missing or out of range."""
        if not self.base_url:
            raise ValidationError("TORCH base_url is required")
        _check_url(self.base_url, "invalid TORCH base_url")
        if not self.username:
            raise ValidationError("TORCH username is required")
        if not self.password:
            raise ValidationError("TORCH password is required")
        if self.extraction_timeout_minutes <= 0:
            raise ValidationError(
                "extraction_timeout_minutes must be > 0, "
                f"got {self.extraction_timeout_minutes}"
            )
        if not 0 < self.polling_interval_seconds <= 60:
            raise ValidationError(
                f"polling_interval_seconds must be 1-60, got {self.polling_interval_seconds}"
            )
        if self.max_polling_interval_seconds < self.polling_interval_seconds:
            raise ValidationError(
                f"max_polling_interval_seconds ({self.max_polling_interval_seconds}) "
                f"must be >= polling_interval_seconds ({self.polling_interval_seconds})"
            )


@dataclass
class ServiceConfig:
    """URLs of the external HTTP services used by pipeline steps."""

    dimp_url: str = ""
    csv_conversion_url: str = ""
    parquet_conversion_url: str = ""
    torch: TorchConfig = field(default_factory=TorchConfig)

    def has_service_url(self, step) -> bool:
        """Return whether the service needed by ``step`` is configured.

        Steps that need no external service always count as configured.
        """
        attr = _SERVICE_ATTRS.get(step)
        return attr is None or bool(getattr(self, attr))

    def get_service_url(self, step) -> str:
        """Return the service URL for ``step``, or an empty string."""
        attr = _SERVICE_ATTRS.get(step)
        return getattr(self, attr) if attr else ""


@dataclass
class PipelineConfig:
    """Which steps are enabled, in execution order."""

    enabled_steps: List[StepName] = field(default_factory=lambda: [StepName.IMPORT])

    def is_step_enabled(self, step) -> bool:
        """Return whether ``step`` is among the enabled steps."""
        return step in self.enabled_steps

    def get_next_step(self, current) -> Optional[StepName]:
        """Return the enabled step after ``current``, or None if there is none."""
        steps = iter(self.enabled_steps)
        for step in steps:
            if step == current:
                return next(steps, None)
        return None


@dataclass
class RetryConfig:
    """Retry policy for transient errors."""

    max_attempts: int = 5
    initial_backoff_ms: int = 1000
    max_backoff_ms: int = 30000


@dataclass
class ProjectConfig:
    """Top-level configuration of the pipeline."""

    services: ServiceConfig = field(default_factory=ServiceConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    jobs_dir: str = "./jobs"

    def validate(self) -> None:
        """Raise ValidationError if the configuration is inconsistent."""
        steps = self.pipeline.enabled_steps
        if not steps:
            raise ValidationError("at least one pipeline step must be enabled")
        if steps[0] != StepName.IMPORT:
            raise ValidationError("first enabled step must be 'import'")
        for step in steps:
            if not is_valid_step_name(step):
                raise ValidationError(f"unrecognized step in enabled_steps: {step}")
        for step in steps:
            if not self.services.has_service_url(step):
                raise ValidationError(f"service URL required for enabled step '{step}'")

        for label, url in (
            ("dimp_url", self.services.dimp_url),
            ("csv_conversion_url", self.services.csv_conversion_url),
            ("parquet_conversion_url", self.services.parquet_conversion_url),
        ):
            if url:
                _check_url(url, f"invalid {label}")

        retry = self.retry
        if not 1 <= retry.max_attempts <= 10:
            raise ValidationError("max_attempts must be between 1 and 10")
        if retry.initial_backoff_ms <= 0:
            raise ValidationError("initial_backoff_ms must be positive")
        if retry.max_backoff_ms <= 0:
            raise ValidationError("max_backoff_ms must be positive")
        if retry.initial_backoff_ms >= retry.max_backoff_ms:
            raise ValidationError("initial_backoff_ms must be less than max_backoff_ms")

        if not self.jobs_dir:
            raise ValidationError("jobs_dir is required")

    def validate_service_connectivity(self) -> None:
        """Send a HEAD request to each configured service host.

        Any HTTP response counts as reachable; a connection failure raises
        ConnectionError.
        """
        if self.services.torch.base_url:
            _check_reachable(self.services.torch.base_url, "TORCH")

        for step in self.pipeline.enabled_steps:
            name = _SERVICE_NAMES.get(step)
            if name is None:
                continue
            url = self.services.get_service_url(step)
            if url:
                _check_reachable(url, name)


def _check_reachable(url: str, service_name: str) -> None:
    try:
        parts = urlsplit(url)
    except ValueError as exc:
        raise ValidationError(f"invalid {service_name} service URL: {exc}") from exc

    host = parts.netloc.rpartition("@")[2]
    check_url = f"{parts.scheme}://{host}"
    try:
        request = urllib.request.Request(check_url, method="HEAD")
    except ValueError as exc:
        raise ValidationError(
            f"failed to create request for {service_name} service: {exc}"
        ) from exc

    try:
        with urllib.request.urlopen(request, timeout=_CONNECTIVITY_TIMEOUT_SECONDS):
            pass
    except urllib.error.HTTPError as exc:
        exc.close()
    except ValueError as exc:
        raise ValidationError(
            f"failed to create request for {service_name} service: {exc}"
        ) from exc
    except OSError as exc:
        raise ConnectionError(
            f"{service_name} service unreachable at {check_url}: {exc}"
        ) from exc


def default_config() -> ProjectConfig:
    """Return the default project configuration."""
    return ProjectConfig()


def validate_jobs_dir(path) -> None:
    """Make sure ``path`` is a writable directory, creating it if missing."""
    try:
        info = os.stat(path)
    except FileNotFoundError:
        try:
            os.makedirs(path, mode=0o755, exist_ok=True)
        except OSError as exc:
            raise ValidationError(f"failed to create jobs directory: {exc}") from exc
        return
    except OSError as exc:
        raise ValidationError(f"cannot access jobs directory: {exc}") from exc

    if not stat.S_ISDIR(info.st_mode):
        raise ValidationError(f"jobs_dir is not a directory: {path}")

    probe = os.path.join(path, f".write_test_{uuid.uuid4()}")
    try:
        with open(probe, "x"):
            pass
    except OSError as exc:
        raise ValidationError(f"jobs directory is not writable: {exc}") from exc
    with contextlib.suppress(OSError):
        os.remove(probe)