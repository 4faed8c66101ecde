"""Base source interface."""

from abc import ABC, abstractmethod
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Set, TypeVar
import logging

from ..exceptions import UnsupportedOperation
from ..models.resource import Resource, ResourceKind
from ..state import TransferState

logger = logging.getLogger(__name__)

T = TypeVar("T")

BatchCallback = Callable[[List[Resource]], None]


class Source(ABC):
    """
    Base class for all sources.

    Sources pull resources from an origin backend page by page and hand
    each converted page to a callback. The next page is only fetched once
    the callback has returned, so the caller controls the pace.
    """

    @abstractmethod
    def name(self) -> str:
        """Name of the adapter."""
        pass

    @abstractmethod
    def supported_resources(self) -> Set[ResourceKind]:
        """Resource kinds this source can export."""
        pass

    @abstractmethod
    def check(self, resources: Optional[Iterable[ResourceKind]] = None) -> Dict[ResourceKind, List[str]]:
        """
        Probe connectivity and permissions for each requested kind.

        Args:
            resources: Kinds to check, all supported kinds when omitted

        Returns:
            Problems per kind; an empty list means the kind is ready
        """
        pass

    def export(
        self,
        kind: ResourceKind,
        state: TransferState,
        batch_size: int,
        callback: BatchCallback
    ) -> None:
        """Export one resource kind."""
        exporters = {
            ResourceKind.USERS: self.export_users,
            ResourceKind.DATABASES: self.export_databases,
            ResourceKind.DOCUMENTS: self.export_documents,
            ResourceKind.FILES: self.export_files,
            ResourceKind.FUNCTIONS: self.export_functions,
        }
        exporter = exporters.get(kind)
        if exporter is None:
            raise UnsupportedOperation(f"{self.name()} has no export operation for {kind.value}")
        exporter(state, batch_size, callback)

    def export_users(self, state: TransferState, batch_size: int, callback: BatchCallback) -> None:
        raise self._unsupported(ResourceKind.USERS)

    def export_databases(self, state: TransferState, batch_size: int, callback: BatchCallback) -> None:
        raise self._unsupported(ResourceKind.DATABASES)

    def export_documents(self, state: TransferState, batch_size: int, callback: BatchCallback) -> None:
        raise self._unsupported(ResourceKind.DOCUMENTS)

    def export_files(self, state: TransferState, batch_size: int, callback: BatchCallback) -> None:
        raise self._unsupported(ResourceKind.FILES)

    def export_functions(self, state: TransferState, batch_size: int, callback: BatchCallback) -> None:
        raise self._unsupported(ResourceKind.FUNCTIONS)

    def close(self) -> None:
        """Release connections held by the source."""
        pass

    def _unsupported(self, kind: ResourceKind) -> UnsupportedOperation:
        return UnsupportedOperation(
            f"{self.name()} does not support exporting {kind.value}. "
            "Please check if your source adapter supports this method."
        )

    @staticmethod
    def empty_report(resources: Iterable[ResourceKind]) -> Dict[ResourceKind, List[str]]:
        return {kind: [] for kind in resources}

    @staticmethod
    def stream(
        fetch_page: Callable[[int, int], Sequence[T]],
        batch_size: int,
        total: Optional[int] = None
    ) -> Iterator[Sequence[T]]:
        """
        Stream pages of rows using offset pagination.

        Args:
            fetch_page: ``fetch_page(offset, limit)`` returning one page
            batch_size: Size of each page
            total: Known row count; when omitted, stops at the first short page

        Yields:
            Non-empty pages of rows
        """
        offset = 0

        while total is None or offset < total:
            page = fetch_page(offset, batch_size)
            if not page:
                break

            yield page
            offset += len(page)

            if len(page) < batch_size:
                break
