from models.backend_result import NormalizedError


class PipelineError(Exception):
    """Base class for errors surfaced by the orchestration layer."""


class QueryValidationError(PipelineError):
    """The request was rejected before any backend was called."""

    def __init__(self, message: str, field: str = "query"):
        super().__init__(message)
        self.message = message
        self.field = field


class BackendCallError(PipelineError):
    """A single-provider step failed and has no local recovery."""

    def __init__(self, error: NormalizedError, step: str):
        super().__init__(f"{step} failed ({error.provider}: {error.code}): {error.message}")
        self.error = error
        self.step = step


def require_text(value: str | None, field: str = "query") -> str:
    """Return ``value`` stripped, or raise QueryValidationError when it is blank."""
    if value is None or not str(value).strip():
        raise QueryValidationError(f"{field} is required", field=field)
    return str(value).strip()
