"""Pipeline error taxonomy.

Every failure the pipeline can report is one of:

- ConfigurationError: a required variable is missing or invalid, or a values
  file is absent. Raised before any external tool is invoked.
- ExternalToolFailure: a delegated command (docker, helm, kubectl, aws)
  exited nonzero. The captured output is carried verbatim in ``details``.
- TimeoutFailure: a bounded wait (rollout, connectivity test) was exceeded.

None of them are recovered locally. A failure aborts the current stage, and
the orchestrator stops at the first failed stage.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Raised when a pipeline operation fails."""

    def __init__(
        self,
        message: str,
        details: str | None = None,
        returncode: int = 1,
    ):
        self.message = message
        self.details = details
        self.returncode = returncode
        super().__init__(message)


class ConfigurationError(PipelineError):
    """Raised when configuration is missing or invalid."""


class ExternalToolFailure(PipelineError):
    """Raised when a delegated command exits with a nonzero status."""


class TimeoutFailure(ExternalToolFailure):
    """Raised when a bounded wait inside an external tool is exceeded."""
