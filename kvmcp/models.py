"""
Record model shared by both storage backends.
"""

from dataclasses import dataclass
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Record:
    """One key-value row. `key` is the sole identity within a backend."""
    key: str
    value: str
    created_at: datetime
    updated_at: datetime
