"""
Domain exceptions for the module development loop.

Callers of the orchestrator never branch on these: run outcomes are carried by
OrchestrationResult. These exist for the seams between collaborators.
"""

import errno

from modloop.domain.models import CriticalErrorKind


class ConfigurationError(Exception):
    """Raised when configuration files are invalid or missing."""

    pass


class ModelError(Exception):
    """
    Raised by a model client when an invocation fails.

    Only errors flagged model_unavailable are retried against the fallback
    chain; everything else propagates on first occurrence.
    """

    def __init__(
        self, message: str, model: str | None = None, model_unavailable: bool = False
    ):
        """
        Args:
            message: Human-readable error message
            model: The model the failing call targeted, if known
            model_unavailable: True when the model itself could not be reached
        """
        super().__init__(message)
        self.model = model
        self.model_unavailable = model_unavailable


class OperationCancelled(Exception):
    """Raised at a suspension point once the run's CancellationToken fires."""

    pass


class SecurityViolation(Exception):
    """Raised by collaborators for security failures. Always critical."""

    pass


_RESOURCE_ERRNOS = frozenset({errno.ENOSPC, errno.EMFILE, errno.ENFILE, errno.ENOMEM})


def classify_critical_error(error: BaseException) -> CriticalErrorKind | None:
    """
    Map an error to a critical kind, or None when it is an ordinary failure.

    Network-level OSErrors (ConnectionError, TimeoutError) are transient and
    stay ordinary failures. The chained cause is inspected once, so a
    ModelError wrapping a PermissionError is still critical.
    """
    kind = _classify(error)
    if kind is None and error.__cause__ is not None:
        kind = _classify(error.__cause__)
    return kind


def _classify(error: BaseException) -> CriticalErrorKind | None:
    if isinstance(error, SecurityViolation):
        return CriticalErrorKind.SECURITY
    if isinstance(error, MemoryError):
        return CriticalErrorKind.RESOURCE_EXHAUSTED
    if isinstance(error, PermissionError):
        return CriticalErrorKind.PERMISSION
    if isinstance(error, (ConnectionError, TimeoutError)):
        return None
    if isinstance(error, OSError):
        if error.errno in _RESOURCE_ERRNOS:
            return CriticalErrorKind.RESOURCE_EXHAUSTED
        return CriticalErrorKind.IO
    return None
