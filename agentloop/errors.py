"""
Error taxonomy and backend failure classification.

Every backend failure is normalized into one ErrorKind:
- QUOTA_EXCEEDED: rate or quota limit reported by the backend
- AUTH_FAILURE: credential rejected or insufficient access tier
- TRANSIENT_BACKEND_FAILURE: any other backend or transport failure
- UNCLASSIFIED: failures that did not come from the backend at all

The loop never retries. The kind only decides which message the user sees.
"""

from dataclasses import dataclass
from enum import StrEnum

from agentloop import strings


class ErrorKind(StrEnum):
    """Normalized class of a backend failure."""

    QUOTA_EXCEEDED = "quota_exceeded"
    AUTH_FAILURE = "auth_failure"
    TRANSIENT_BACKEND_FAILURE = "transient_backend_failure"
    UNCLASSIFIED = "unclassified"


class AgentLoopError(Exception):
    """Base class for all agentloop errors."""


class ConfigurationError(AgentLoopError):
    """Raised when configuration values are missing or malformed."""


class TaskNotFoundError(AgentLoopError):
    """Raised when a task id is not present in the task store."""

    def __init__(self, task_id: str):
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class InvalidTaskTransitionError(AgentLoopError):
    """Raised when a task status would move backwards or skip a state."""

    def __init__(self, task_id: str, current: str, requested: str):
        super().__init__(f"Task {task_id}: cannot transition from '{current}' to '{requested}'")
        self.task_id = task_id
        self.current = current
        self.requested = requested


class BackendError(AgentLoopError):
    """
    Failure reported by an execution backend.

    Args:
        message: Human-readable description
        status: HTTP status code, or None for transport/in-process failures
        kind: Pre-classified kind; derived from status/message when omitted
    """

    def __init__(
        self,
        message: str,
        status: int | None = None,
        kind: ErrorKind | None = None,
    ):
        super().__init__(message)
        self.status = status
        self.kind = kind or _kind_from_status(status, message)

    def __repr__(self) -> str:
        return f"BackendError(status={self.status!r}, kind={self.kind.value!r}, message={str(self)!r})"


_QUOTA_PATTERNS: tuple[str, ...] = (
    "quota",
    "rate limit",
    "too many requests",
    "insufficient_quota",
    "billing",
)
_AUTH_PATTERNS: tuple[str, ...] = (
    "unauthorized",
    "forbidden",
    "invalid api key",
    "incorrect api key",
    "authentication",
    "does not have access",
)


def _kind_from_status(status: int | None, message: str) -> ErrorKind:
    if status == 429:
        return ErrorKind.QUOTA_EXCEEDED
    if status in (401, 403, 404):
        # 404 from the platform means the key has no access to the requested model tier
        return ErrorKind.AUTH_FAILURE
    if status is not None:
        return ErrorKind.TRANSIENT_BACKEND_FAILURE

    haystack = message.lower()
    if _first_match(haystack, _QUOTA_PATTERNS):
        return ErrorKind.QUOTA_EXCEEDED
    if _first_match(haystack, _AUTH_PATTERNS):
        return ErrorKind.AUTH_FAILURE
    return ErrorKind.TRANSIENT_BACKEND_FAILURE


def _first_match(haystack: str, patterns: tuple[str, ...]) -> str | None:
    for pattern in patterns:
        if pattern in haystack:
            return pattern
    return None


@dataclass
class ErrorClassification:
    """Result of classifying an exception raised by a backend call."""

    kind: ErrorKind
    status: int | None
    message_key: str
    detail: str

    @property
    def user_message(self) -> str:
        return strings.get(self.message_key)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "status": self.status,
            "message_key": self.message_key,
            "detail": self.detail,
        }


_INITIAL_TASKS_MESSAGE_KEYS: dict[ErrorKind, str] = {
    ErrorKind.QUOTA_EXCEEDED: "ERROR_API_KEY_QUOTA",
    ErrorKind.AUTH_FAILURE: "ERROR_ACCESSING_API_KEY",
    ErrorKind.TRANSIENT_BACKEND_FAILURE: "ERROR_ACCESSING_API_KEY",
    ErrorKind.UNCLASSIFIED: "ERROR_RETRIEVE_INITIAL_TASKS",
}


def classify_backend_error(error: BaseException) -> ErrorClassification:
    """Classify a failure from the initial decomposition call."""
    if not isinstance(error, BackendError):
        return ErrorClassification(
            kind=ErrorKind.UNCLASSIFIED,
            status=None,
            message_key=_INITIAL_TASKS_MESSAGE_KEYS[ErrorKind.UNCLASSIFIED],
            detail=str(error),
        )

    message_key = _INITIAL_TASKS_MESSAGE_KEYS[error.kind]
    if error.kind == ErrorKind.AUTH_FAILURE and error.status == 404:
        message_key = "ERROR_API_KEY_NO_MODEL_ACCESS"

    return ErrorClassification(
        kind=error.kind,
        status=error.status,
        message_key=message_key,
        detail=str(error),
    )
