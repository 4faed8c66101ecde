"""Log, counter and progress models for a transfer run."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from .resource import Resource, ResourceKind


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LogLevel(str, Enum):
    """Severity of a transfer log entry."""
    ERROR = "error"
    WARNING = "warning"
    SUCCESS = "success"


@dataclass
class Log:
    """A log entry, optionally tagged with the resource it pertains to."""
    level: LogLevel
    message: str
    timestamp: datetime = field(default_factory=utcnow)
    resource: Optional[Resource] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "level": self.level.value,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
            "resource": {
                "type": self.resource.resource_name(),
                "id": self.resource.id,
            } if self.resource is not None else None,
        }


@dataclass(frozen=True)
class Progress:
    """Snapshot of a resource kind's counters, emitted once per processed batch."""
    resource: ResourceKind
    timestamp: datetime
    total: int
    current: int
    failed: int
    skipped: int

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "resource": self.resource.value,
            "timestamp": self.timestamp.isoformat(),
            "total": self.total,
            "current": self.current,
            "failed": self.failed,
            "skipped": self.skipped,
        }


@dataclass
class Counters:
    """Running counters for one resource kind."""
    total: int = 0
    current: int = 0
    failed: int = 0
    skipped: int = 0

    def snapshot(self, resource: ResourceKind) -> Progress:
        """Freeze the counters into a Progress snapshot."""
        return Progress(
            resource=resource,
            timestamp=utcnow(),
            total=self.total,
            current=self.current,
            failed=self.failed,
            skipped=self.skipped,
        )
