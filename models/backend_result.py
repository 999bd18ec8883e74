from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

T = TypeVar("T")

ERROR_CODES = frozenset(
    {
        "timeout",
        "auth",
        "rate_limit",
        "bad_request",
        "provider_error",
        "malformed_response",
        "capability_unsupported",
        "not_configured",
        "unknown",
    }
)


@dataclass(frozen=True)
class NormalizedError:
    code: str
    message: str
    provider: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.code not in ERROR_CODES:
            object.__setattr__(self, "code", "unknown")

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "provider": self.provider,
            "retryable": self.retryable,
            "details": self.details,
        }


@dataclass(frozen=True)
class BackendResult(Generic[T]):
    """
    Outcome of a single backend call.

    Exactly one of ``value`` / ``error`` is set. Backend clients always return
    one of these instead of raising.
    """

    provider: str
    value: T | None = None
    error: NormalizedError | None = None
    latency_ms: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if (self.value is None) == (self.error is None):
            raise ValueError("BackendResult needs exactly one of value or error")

    @property
    def is_success(self) -> bool:
        return self.error is None

    @property
    def is_error(self) -> bool:
        return self.error is not None
