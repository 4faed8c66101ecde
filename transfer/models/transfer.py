"""Transfer configuration and run models."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from enum import Enum
from datetime import datetime
import json
import os
import uuid

from .progress import Log, Progress, utcnow
from .resource import ResourceKind, TRANSFER_ORDER
from ..exceptions import ConfigurationError


class TransferStatus(str, Enum):
    """Status of a transfer run."""
    PENDING = "pending"
    CHECKING = "checking"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


def _expand(value: Any) -> Any:
    """Expand ``${VAR}`` references in string options."""
    if isinstance(value, str):
        return os.path.expandvars(value)
    if isinstance(value, dict):
        return {k: _expand(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_expand(v) for v in value]
    return value


def parse_resources(names: List[str]) -> List[ResourceKind]:
    """Parse resource kind names (case-insensitive)."""
    kinds = []
    lookup = {kind.value.lower(): kind for kind in ResourceKind}
    for name in names:
        kind = lookup.get(str(name).strip().lower())
        if kind is None:
            raise ConfigurationError(
                f"Unknown resource: {name}. "
                f"Available resources: {', '.join(k.value for k in ResourceKind)}"
            )
        kinds.append(kind)
    return kinds


@dataclass
class AdapterConfig:
    """Configuration for a source or destination adapter."""
    type: str
    options: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation, without secret values."""
        return {
            "type": self.type,
            "options": {
                k: ("***" if any(s in k.lower() for s in ("password", "key", "secret")) else v)
                for k, v in self.options.items()
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AdapterConfig":
        """Create from dictionary representation."""
        if not data.get("type"):
            raise ConfigurationError("Adapter type is required")
        return cls(
            type=data["type"],
            options=_expand(data.get("options", {})),
        )


@dataclass
class TransferConfig:
    """Configuration for a transfer."""
    name: str
    source: AdapterConfig
    destination: AdapterConfig
    resources: List[ResourceKind] = field(default_factory=lambda: list(TRANSFER_ORDER))
    batch_size: int = 100
    file_batch_size: int = 5
    check_before_run: bool = True

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "name": self.name,
            "source": self.source.to_dict(),
            "destination": self.destination.to_dict(),
            "resources": [r.value for r in self.resources],
            "batch_size": self.batch_size,
            "file_batch_size": self.file_batch_size,
            "check_before_run": self.check_before_run,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TransferConfig":
        """Create from dictionary representation."""
        if "source" not in data or "destination" not in data:
            raise ConfigurationError("Both source and destination are required")

        resources = data.get("resources")
        batch_size = int(data.get("batch_size", 100))
        if batch_size < 1:
            raise ConfigurationError("batch_size must be positive")

        return cls(
            name=data.get("name", ""),
            source=AdapterConfig.from_dict(data["source"]),
            destination=AdapterConfig.from_dict(data["destination"]),
            resources=parse_resources(resources) if resources else list(TRANSFER_ORDER),
            batch_size=batch_size,
            file_batch_size=int(data.get("file_batch_size", 5)),
            check_before_run=data.get("check_before_run", True),
        )

    @classmethod
    def from_json_file(cls, file_path: str) -> "TransferConfig":
        """Load configuration from JSON file."""
        with open(file_path, 'r') as f:
            data = json.load(f)
        return cls.from_dict(data)


@dataclass
class TransferRun:
    """A complete transfer run."""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    name: str = ""
    status: TransferStatus = TransferStatus.PENDING
    resources: List[ResourceKind] = field(default_factory=list)

    # Timing
    created_at: datetime = field(default_factory=utcnow)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    # Latest snapshot per resource kind
    progress: Dict[ResourceKind, Progress] = field(default_factory=dict)
    logs: List[Log] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status.value,
            "resources": [r.value for r in self.resources],
            "created_at": self.created_at.isoformat(),
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
            "progress": {k.value: p.to_dict() for k, p in self.progress.items()},
            "logs": [log.to_dict() for log in self.logs],
            "error": self.error,
        }

    @property
    def duration_seconds(self) -> Optional[float]:
        """Get duration in seconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    @property
    def total_failed(self) -> int:
        return sum(p.failed for p in self.progress.values())
