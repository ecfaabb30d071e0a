"""Models of jobs, steps, FHIR files and configuration for a FHIR data use process pipeline."""

__version__ = "1.0.0"

__all__ = ["config", "files", "jobs", "lifecycle", "steps", "transitions"]