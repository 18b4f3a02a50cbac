"""
Error taxonomy for job-status.

This module provides a small hierarchical exception system with:
- Error codes for programmatic handling
- Retryable vs non-retryable classification
- Structured context for debugging
- Mapping of store client failures onto the taxonomy
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standardized error codes for the status overlay."""

    # Container errors (1xxx)
    CONTAINER_ERROR = "ERR_1000"
    CONTAINER_NOT_FOUND = "ERR_1001"
    ILLEGAL_TRANSITION = "ERR_1002"
    INVALID_PROGRESS = "ERR_1003"

    # Store errors (2xxx)
    STORE_ERROR = "ERR_2000"
    STORE_UNAVAILABLE = "ERR_2001"
    STORE_CORRUPT_RECORD = "ERR_2002"

    # Execution errors (3xxx)
    JOB_KILLED = "ERR_3001"

    # Configuration errors (6xxx)
    CONFIG_ERROR = "ERR_6000"
    INVALID_CONFIG = "ERR_6002"

    # Internal errors (9xxx)
    INTERNAL_ERROR = "ERR_9000"


@dataclass
class ErrorContext:
    """Structured context for error debugging."""

    job_id: str | None = None
    job_type: str | None = None
    operation: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "job_id": self.job_id,
            "job_type": self.job_type,
            "operation": self.operation,
            **self.extra,
        }


class JobStatusError(Exception):
    """
    Base exception for all job-status errors.

    Attributes:
        code: Standardized error code for programmatic handling
        message: Human-readable error message
        retryable: Whether the operation can be retried
        context: Structured debugging context
        cause: Original exception that caused this error
    """

    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if retryable is not None:
            self.retryable = retryable
        self.context = context or ErrorContext()
        self.cause = cause

    def __str__(self) -> str:
        parts = [f"[{self.code.value}] {self.message}"]
        if self.context.job_id:
            parts.append(f"(job_id={self.context.job_id})")
        return " ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code.value,
            "message": self.message,
            "retryable": self.retryable,
            "context": self.context.to_dict(),
            "cause": str(self.cause) if self.cause else None,
        }


# =============================================================================
# Container Errors
# =============================================================================


class ContainerError(JobStatusError):
    """Base class for status container errors."""

    code = ErrorCode.CONTAINER_ERROR


class ContainerNotFoundError(ContainerError):
    """No status record exists for the job id (never created, expired or deleted)."""

    code = ErrorCode.CONTAINER_NOT_FOUND

    def __init__(self, job_id: str, *, operation: str | None = None, **kwargs):
        kwargs.setdefault("context", ErrorContext(job_id=job_id, operation=operation))
        super().__init__(f"Status container not found for job {job_id}", **kwargs)
        self.job_id = job_id


class IllegalTransitionError(ContainerError):
    """Requested status change is not an edge of the lifecycle graph."""

    code = ErrorCode.ILLEGAL_TRANSITION

    def __init__(self, current_status: str, target_status: str, *, job_id: str | None = None, **kwargs):
        kwargs.setdefault("context", ErrorContext(job_id=job_id, operation="set_status"))
        super().__init__(f"Cannot transition from {current_status} to {target_status}", **kwargs)
        self.current_status = current_status
        self.target_status = target_status


class InvalidProgressError(ContainerError, ValueError):
    """``at``/``total`` are negative, not integers, or ``at`` overshoots ``total``."""

    code = ErrorCode.INVALID_PROGRESS


# =============================================================================
# Store Errors
# =============================================================================


class StoreError(JobStatusError):
    """Base class for store adapter errors."""

    code = ErrorCode.STORE_ERROR


class StoreUnavailableError(StoreError):
    """The shared store cannot be reached."""

    code = ErrorCode.STORE_UNAVAILABLE
    retryable = True


class CorruptRecordError(StoreError):
    """A persisted record could not be decoded."""

    code = ErrorCode.STORE_CORRUPT_RECORD


# =============================================================================
# Execution Errors
# =============================================================================


class JobKilledError(JobStatusError):
    """Raised at a checkpoint once a kill has been requested for the running job.

    The worker wrapper catches it and finalizes the job as ``killed``; it never
    reaches the host queue.
    """

    code = ErrorCode.JOB_KILLED

    def __init__(self, job_id: str | None = None, **kwargs):
        kwargs.setdefault("context", ErrorContext(job_id=job_id, operation="checkpoint"))
        super().__init__("Job was killed", **kwargs)
        self.job_id = job_id


# =============================================================================
# Config Errors
# =============================================================================


class ConfigError(JobStatusError):
    """Base class for configuration errors."""

    code = ErrorCode.CONFIG_ERROR


class InvalidConfigError(ConfigError, ValueError):
    """Configuration is invalid."""

    code = ErrorCode.INVALID_CONFIG


# =============================================================================
# Utilities
# =============================================================================


def is_retryable(error: Exception) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, JobStatusError):
        return error.retryable
    return isinstance(error, (ConnectionError, TimeoutError))


__all__ = [
    "ErrorCode",
    "ErrorContext",
    "JobStatusError",
    "ContainerError",
    "ContainerNotFoundError",
    "IllegalTransitionError",
    "InvalidProgressError",
    "StoreError",
    "StoreUnavailableError",
    "CorruptRecordError",
    "JobKilledError",
    "ConfigError",
    "InvalidConfigError",
    "is_retryable",
]
