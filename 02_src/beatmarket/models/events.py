"""Change-feed data models."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class ChangeType(str, Enum):
    """Kinds of row change published on the feed."""

    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass
class ChangeEvent:
    """A row change on a named table."""

    table: str
    type: ChangeType
    record: dict  # the new row (old row for DELETE)
    timestamp: datetime
