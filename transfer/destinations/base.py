"""Base destination interface."""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Set
import logging

from ..exceptions import TransferError, UnsupportedOperation
from ..models.progress import Progress
from ..models.resource import Resource, ResourceKind
from ..state import TransferState

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[Progress], None]


class Destination(ABC):
    """
    Base class for all destinations.

    Destinations write batches of resources into a target backend. A
    failure on one item is logged and counted, and the batch carries on
    with the next item. Each batch ends with exactly one Progress snapshot.
    """

    @abstractmethod
    def name(self) -> str:
        """Name of the adapter."""
        pass

    @abstractmethod
    def supported_resources(self) -> Set[ResourceKind]:
        """Resource kinds this destination can import."""
        pass

    @abstractmethod
    def check(self, resources: Optional[Iterable[ResourceKind]] = None) -> Dict[ResourceKind, List[str]]:
        """
        Probe connectivity and permissions for each requested kind.

        Returns:
            Problems per kind; an empty list means the kind is ready
        """
        pass

    def import_resources(
        self,
        kind: ResourceKind,
        state: TransferState,
        batch: Sequence[Resource],
        callback: ProgressCallback
    ) -> None:
        """Import one batch of a resource kind."""
        importers = {
            ResourceKind.USERS: self.import_users,
            ResourceKind.DATABASES: self.import_databases,
            ResourceKind.DOCUMENTS: self.import_documents,
            ResourceKind.FILES: self.import_files,
            ResourceKind.FUNCTIONS: self.import_functions,
        }
        importer = importers.get(kind)
        if importer is None:
            raise UnsupportedOperation(f"{self.name()} has no import operation for {kind.value}")
        importer(state, batch, callback)

    def import_users(self, state: TransferState, batch: Sequence[Resource], callback: ProgressCallback) -> None:
        raise self._unsupported(ResourceKind.USERS)

    def import_databases(self, state: TransferState, batch: Sequence[Resource], callback: ProgressCallback) -> None:
        raise self._unsupported(ResourceKind.DATABASES)

    def import_documents(self, state: TransferState, batch: Sequence[Resource], callback: ProgressCallback) -> None:
        raise self._unsupported(ResourceKind.DOCUMENTS)

    def import_files(self, state: TransferState, batch: Sequence[Resource], callback: ProgressCallback) -> None:
        raise self._unsupported(ResourceKind.FILES)

    def import_functions(self, state: TransferState, batch: Sequence[Resource], callback: ProgressCallback) -> None:
        raise self._unsupported(ResourceKind.FUNCTIONS)

    def _unsupported(self, kind: ResourceKind) -> UnsupportedOperation:
        return UnsupportedOperation(
            f"{self.name()} does not support importing {kind.value}. "
            "Please check if your destination adapter supports this method."
        )

    @staticmethod
    def empty_report(resources: Iterable[ResourceKind]) -> Dict[ResourceKind, List[str]]:
        return {kind: [] for kind in resources}

    def _import_batch(
        self,
        state: TransferState,
        kind: ResourceKind,
        batch: Sequence[Resource],
        import_one: Callable[[TransferState, Resource], Any],
        callback: ProgressCallback,
        counted: Callable[[Resource], bool] = lambda resource: True
    ) -> Progress:
        """
        Import a batch one item at a time.

        Args:
            state: Run state receiving counters and logs
            kind: Resource kind the counters belong to
            batch: Items to import
            import_one: Creates a single item on the destination
            callback: Receives the Progress snapshot once the batch is done
            counted: Whether a successful item counts towards ``current``

        Returns:
            The Progress snapshot handed to the callback
        """
        counter = state.counter(kind)

        for resource in batch:
            try:
                import_one(state, resource)
            except TransferError as e:
                counter.failed += 1
                state.error(f"Failed to import {resource.resource_name()}: {e.message}", resource)
                continue
            except Exception as e:
                counter.failed += 1
                state.error(f"Failed to import {resource.resource_name()}: {e}", resource)
                continue

            if counted(resource):
                counter.current += 1
                state.success(f"Imported {resource.resource_name()}", resource)

        progress = counter.snapshot(kind)
        logger.debug(
            f"{self.name()} {kind.value}: {progress.current}/{progress.total} imported, "
            f"{progress.failed} failed"
        )
        callback(progress)
        return progress
