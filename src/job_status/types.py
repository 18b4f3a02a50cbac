"""
Status types for job-status.

This module defines the JobStatus enum, the lifecycle transition table and
the StatusRecord dataclass persisted for every tracked job.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Mapping

from .errors import CorruptRecordError, ErrorContext, InvalidProgressError


class JobStatus(str, Enum):
    """Job lifecycle states.

    State transitions:
    - QUEUED -> WORKING (worker picked the job up)
    - QUEUED -> KILLED (kill requested before the job ever ran)
    - WORKING -> COMPLETE (body returned)
    - WORKING -> FAILED (body raised)
    - WORKING -> KILLED (kill observed at a checkpoint or at finalize)
    """
    QUEUED = "queued"
    WORKING = "working"
    COMPLETE = "complete"
    FAILED = "failed"
    KILLED = "killed"

    @property
    def is_terminal(self) -> bool:
        """Check if this is a terminal state."""
        return self in {
            JobStatus.COMPLETE,
            JobStatus.FAILED,
            JobStatus.KILLED,
        }

    @property
    def is_active(self) -> bool:
        """Check if the job may still run (and so may still be killed)."""
        return self in {
            JobStatus.QUEUED,
            JobStatus.WORKING,
        }

    def can_transition_to(self, new_status: JobStatus) -> bool:
        return new_status in VALID_TRANSITIONS.get(self, set())


VALID_TRANSITIONS: dict[JobStatus, set[JobStatus]] = {
    JobStatus.QUEUED: {JobStatus.WORKING, JobStatus.KILLED},
    JobStatus.WORKING: {
        JobStatus.COMPLETE,
        JobStatus.FAILED,
        JobStatus.KILLED,
    },
    # Terminal states have no valid transitions
    JobStatus.COMPLETE: set(),
    JobStatus.FAILED: set(),
    JobStatus.KILLED: set(),
}


def validate_progress(at: int, total: int) -> None:
    """Reject negative, non-integer or overshooting progress values."""
    for name, value in (("at", at), ("total", total)):
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidProgressError(f"{name} must be an integer, got {value!r}")
        if value < 0:
            raise InvalidProgressError(f"{name} cannot be negative")
    if total > 0 and at > total:
        raise InvalidProgressError(f"at={at} should be less than or equal to total={total}")


@dataclass
class StatusRecord:
    """Persistent status of one enqueued job.

    ``total == 0`` means the amount of work is unknown.
    """
    job_id: str

    status: JobStatus = JobStatus.QUEUED

    # Progress
    at: int = 0
    total: int = 0
    message: str | None = None
    payload: Any = None

    # Captured at enqueue, never rewritten
    args: list[Any] = field(default_factory=list)
    job_type: str | None = None
    queue: str | None = None

    kill_requested: bool = False

    # Epoch seconds
    created_at: int = field(default_factory=lambda: int(time.time()))
    updated_at: int = field(default_factory=lambda: int(time.time()))
    expires_at: int = 0

    @property
    def pct_complete(self) -> int:
        if self.total <= 0:
            return 0
        return int(round(self.at * 100 / self.total))

    def with_updates(self, **changes: Any) -> StatusRecord:
        """Return a copy with ``changes`` applied."""
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "job_id": self.job_id,
            "status": self.status.value,
            "at": self.at,
            "total": self.total,
            "message": self.message,
            "payload": self.payload,
            "args": list(self.args),
            "job_type": self.job_type,
            "queue": self.queue,
            "kill_requested": self.kill_requested,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "expires_at": self.expires_at,
            "pct_complete": self.pct_complete,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> StatusRecord:
        """Deserialize from dictionary."""
        now = int(time.time())
        return cls(
            job_id=data["job_id"],
            status=JobStatus(data.get("status", "queued")),
            at=int(data.get("at") or 0),
            total=int(data.get("total") or 0),
            message=data.get("message"),
            payload=data.get("payload"),
            args=list(data.get("args") or []),
            job_type=data.get("job_type"),
            queue=data.get("queue"),
            kill_requested=bool(data.get("kill_requested", False)),
            created_at=int(data.get("created_at", now)),
            updated_at=int(data.get("updated_at", now)),
            expires_at=int(data.get("expires_at", 0)),
        )

    def to_mapping(self) -> dict[str, str]:
        """Encode every field as JSON, one hash field per record field."""
        return encode_fields({f.name: getattr(self, f.name) for f in fields(self)})

    @classmethod
    def from_mapping(cls, mapping: Mapping[Any, Any]) -> StatusRecord:
        """Decode a hash read back from the store."""
        data: dict[str, Any] = {}
        for key, raw in mapping.items():
            name = key.decode("utf-8") if isinstance(key, bytes) else str(key)
            if isinstance(raw, bytes):
                raw = raw.decode("utf-8")
            try:
                data[name] = json.loads(raw)
            except (TypeError, json.JSONDecodeError) as exc:
                raise CorruptRecordError(
                    f"Field {name!r} is not valid JSON",
                    context=ErrorContext(job_id=_raw_job_id(mapping), operation="load"),
                    cause=exc,
                ) from exc
        if "job_id" not in data:
            raise CorruptRecordError("Record has no job_id field", context=ErrorContext(operation="load"))
        return cls.from_dict(data)


def _raw_job_id(mapping: Mapping[Any, Any]) -> str | None:
    raw = mapping.get("job_id", mapping.get(b"job_id"))
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    if raw is None:
        return None
    try:
        return str(json.loads(raw))
    except json.JSONDecodeError:
        return str(raw)


def encode_fields(values: Mapping[str, Any]) -> dict[str, str]:
    """JSON-encode a partial field mapping for a store write."""
    encoded: dict[str, str] = {}
    for name, value in values.items():
        if isinstance(value, JobStatus):
            value = value.value
        encoded[name] = json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return encoded


RECORD_FIELDS: frozenset[str] = frozenset(f.name for f in fields(StatusRecord))


__all__ = [
    "JobStatus",
    "StatusRecord",
    "VALID_TRANSITIONS",
    "RECORD_FIELDS",
    "encode_fields",
    "validate_progress",
]
