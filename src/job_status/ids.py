from __future__ import annotations

import secrets


def generate_job_id() -> str:
    """Return a random 24-character hex job id."""
    return secrets.token_hex(12)


__all__ = ["generate_job_id"]
