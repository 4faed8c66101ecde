"""Run-scoped state owned by the orchestrator: resource cache, counters and logs."""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from .models.database import Collection, Database
from .models.progress import Counters, Log, LogLevel
from .models.resource import Resource, ResourceKind

logger = logging.getLogger(__name__)


# Only schema is retained for the whole run; every other kind is streamed.
CACHED_KINDS = (ResourceKind.DATABASES, ResourceKind.COLLECTIONS)


@dataclass
class ResourceCache:
    """Already-exported resources that later export steps can read."""
    resources: Dict[ResourceKind, List[Resource]] = field(default_factory=dict)

    def add(self, kind: ResourceKind, batch: Sequence[Resource]) -> None:
        if kind not in CACHED_KINDS:
            return
        self.resources.setdefault(kind, []).extend(batch)

    def get(self, kind: ResourceKind) -> List[Resource]:
        return list(self.resources.get(kind, []))

    @property
    def databases(self) -> List[Database]:
        return [r for r in self.get(ResourceKind.DATABASES) if isinstance(r, Database)]

    @property
    def collections(self) -> List[Collection]:
        """Every cached collection, from cached databases first."""
        collections = [c for db in self.databases for c in db.collections]
        collections.extend(
            r for r in self.get(ResourceKind.COLLECTIONS) if isinstance(r, Collection)
        )
        return collections


class TransferState:
    """
    State of a single transfer run.

    The orchestrator creates one per run and passes it to every adapter
    call; adapters never keep a reference to it. Counters are created
    lazily, seeded to zero, the first time a resource kind is accessed.
    """

    def __init__(self):
        self.cache = ResourceCache()
        self.counters: Dict[ResourceKind, Counters] = {}
        self.logs: List[Log] = []

    def counter(self, kind: ResourceKind) -> Counters:
        """Get (or lazily create) the counters of a resource kind."""
        if kind not in self.counters:
            self.counters[kind] = Counters()
        return self.counters[kind]

    def log(
        self,
        level: LogLevel,
        message: str,
        resource: Optional[Resource] = None
    ) -> Log:
        """Append a log entry and mirror it to the module logger."""
        entry = Log(level=level, message=message, resource=resource)
        self.logs.append(entry)

        subject = f" [{resource.resource_name()} {resource.id}]" if resource is not None else ""
        if level == LogLevel.ERROR:
            logger.error(f"{message}{subject}")
        elif level == LogLevel.WARNING:
            logger.warning(f"{message}{subject}")
        else:
            logger.debug(f"{message}{subject}")

        return entry

    def error(self, message: str, resource: Optional[Resource] = None) -> Log:
        return self.log(LogLevel.ERROR, message, resource)

    def warning(self, message: str, resource: Optional[Resource] = None) -> Log:
        return self.log(LogLevel.WARNING, message, resource)

    def success(self, message: str, resource: Optional[Resource] = None) -> Log:
        return self.log(LogLevel.SUCCESS, message, resource)

    def logs_by_level(self, level: LogLevel) -> List[Log]:
        return [entry for entry in self.logs if entry.level == level]
