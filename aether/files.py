"""FHIR NDJSON data files tracked by the pipeline."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone

from .steps import StepName, ValidationError, is_valid_step_name

_NDJSON_SUFFIX = ".ndjson"
_NAME_DELIMITERS = re.compile(r"[_\-.]")


@dataclass
class FhirDataFile:
    """A single FHIR NDJSON file produced by a pipeline step."""

    file_name: str
    file_path: str
    resource_type: str = ""
    file_size: int = 0
    source_step: StepName = StepName.IMPORT
    line_count: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def validate(self) -> None:
        """Raise ValidationError if any field holds an invalid value."""
        if not is_valid_fhir_file(self.file_name):
            raise ValidationError("file_name must end with .ndjson")
        if not is_safe_path(self.file_path):
            raise ValidationError(f"unsafe file_path detected: {self.file_path}")
        if self.file_size <= 0:
            raise ValidationError("file_size must be greater than 0")
        if self.line_count < 0:
            raise ValidationError("line_count cannot be negative")
        if not is_valid_step_name(self.source_step):
            raise ValidationError(f"invalid source_step: {self.source_step}")


def is_valid_fhir_file(filename: str) -> bool:
    """Return whether ``filename`` has the NDJSON extension, in any case."""
    return filename.lower().endswith(_NDJSON_SUFFIX)


def is_safe_path(path: str) -> bool:
    """Return whether ``path`` stays inside the job directory.

    Absolute paths and paths that climb to a parent directory are rejected.
    """
    clean = os.path.normpath(path)
    if os.path.isabs(clean):
        return False
    return not clean.startswith("..")


def get_resource_type_from_filename(filename: str) -> str:
    """Guess the FHIR resource type from a file name such as ``Patient_001.ndjson``."""
    base = filename[: -len(_NDJSON_SUFFIX)] if filename.endswith(_NDJSON_SUFFIX) else filename
    parts = [part for part in _NAME_DELIMITERS.split(base) if part]
    return parts[0] if parts else "Unknown"