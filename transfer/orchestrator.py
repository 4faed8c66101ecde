"""Transfer orchestrator - drives a source into a destination, one resource kind at a time."""

import logging
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Union

from .destinations.base import Destination
from .exceptions import ConnectivityError, ResourceDependencyError, UnsupportedResource
from .models.progress import Progress, utcnow
from .models.resource import Resource, ResourceKind, TRANSFER_ORDER
from .models.transfer import TransferRun, TransferStatus
from .sources.base import Source
from .state import TransferState

logger = logging.getLogger(__name__)

BatchSink = Callable[[ResourceKind, List[Resource]], None]


class TransferOrchestrator:
    """
    Orchestrates a transfer run.

    Handles:
    - Capability checks on both adapters
    - Ordering resource kinds so dependencies export first
    - Streaming source batches into the resource cache and the destination
    - Collecting progress snapshots and logs into a TransferRun

    Export and import are interleaved: a batch is fully imported before
    the source fetches the next one.
    """

    def __init__(
        self,
        source: Source,
        destination: Optional[Destination] = None,
        batch_size: int = 100,
        file_batch_size: int = 5
    ):
        """
        Initialize the orchestrator.

        Args:
            source: Adapter to export from
            destination: Adapter to import into, required by ``transfer``
            batch_size: Page size for most resource kinds
            file_batch_size: Page size for files, whose batches carry bytes
        """
        self.source = source
        self.destination = destination
        self.batch_size = batch_size
        self.file_batch_size = file_batch_size
        self.state = TransferState()

    def check(self, resources: Optional[Iterable[ResourceKind]] = None) -> Dict[ResourceKind, List[str]]:
        """
        Check both adapters for the requested kinds.

        Returns:
            Problems per kind, source problems first
        """
        requested = list(resources) if resources else sorted(
            self.source.supported_resources(), key=self._priority
        )

        report: Dict[ResourceKind, List[str]] = {kind: [] for kind in requested}

        for kind, problems in self.source.check(requested).items():
            report.setdefault(kind, []).extend(f"{self.source.name()}: {p}" for p in problems)

        if self.destination is not None:
            for kind, problems in self.destination.check(requested).items():
                report.setdefault(kind, []).extend(
                    f"{self.destination.name()}: {p}" for p in problems
                )

        return report

    def run(self, resources: Iterable[ResourceKind], callback: BatchSink) -> None:
        """
        Export the requested kinds, handing every batch to ``callback``.

        Kinds are processed in transfer order whatever order they are given
        in. Each batch is added to the resource cache before the callback
        sees it.

        Raises:
            UnsupportedResource: If the source cannot export a requested kind
            ResourceDependencyError: If Documents are requested without schema
        """
        kinds = self.order(resources)
        self._require_support(self.source, kinds)

        if (
            ResourceKind.DOCUMENTS in kinds
            and ResourceKind.DATABASES not in kinds
            and not self.state.cache.databases
        ):
            raise ResourceDependencyError(
                "Documents resource requires Databases resource to be enabled.",
                details={"resource": ResourceKind.DOCUMENTS.value},
            )

        for kind in kinds:
            logger.info(f"Transferring {kind.value}...")

            def handle(batch: Sequence[Resource], kind: ResourceKind = kind) -> None:
                batch = list(batch)
                self.state.cache.add(kind, batch)
                callback(kind, batch)

            batch_size = self.file_batch_size if kind == ResourceKind.FILES else self.batch_size
            self.source.export(kind, self.state, batch_size, handle)

            counter = self.state.counter(kind)
            logger.info(
                f"Finished {kind.value}: {counter.current}/{counter.total} transferred, "
                f"{counter.failed} failed, {counter.skipped} skipped"
            )

    def transfer(
        self,
        resources: Iterable[ResourceKind],
        on_progress: Optional[Callable[[Progress], None]] = None,
        check: bool = True,
        run: Optional[TransferRun] = None
    ) -> TransferRun:
        """
        Run a complete transfer from the source into the destination.

        Args:
            resources: Kinds to transfer
            on_progress: Receives every Progress snapshot
            check: Run the adapter checks first and refuse to start on problems
            run: Run record to update, a new one is created when omitted

        Returns:
            TransferRun with status, latest progress per kind and logs

        Raises:
            ConnectivityError: If the pre-flight check reports problems
            UnsupportedResource: If either adapter cannot handle a kind
        """
        if self.destination is None:
            raise ValueError("A destination is required to transfer")

        kinds = self.order(resources)
        run = run or TransferRun()
        run.resources = kinds
        run.logs = self.state.logs
        run.started_at = utcnow()

        try:
            self._require_support(self.source, kinds)
            self._require_support(self.destination, kinds)

            if check:
                run.status = TransferStatus.CHECKING
                problems = {k: p for k, p in self.check(kinds).items() if p}
                if problems:
                    summary = "; ".join(
                        f"{kind.value}: {', '.join(messages)}" for kind, messages in problems.items()
                    )
                    raise ConnectivityError(
                        f"Transfer check failed: {summary}",
                        details={kind.value: messages for kind, messages in problems.items()},
                    )

            run.status = TransferStatus.RUNNING

            def record(progress: Progress) -> None:
                run.progress[progress.resource] = progress
                if on_progress:
                    on_progress(progress)

            def sink(kind: ResourceKind, batch: List[Resource]) -> None:
                self.destination.import_resources(kind, self.state, batch, record)

            self.run(kinds, sink)

            # Kinds whose source had nothing to export still get a final snapshot.
            for kind in kinds:
                if kind not in run.progress:
                    record(self.state.counter(kind).snapshot(kind))

            run.status = TransferStatus.COMPLETED
            logger.info(f"Transfer {run.id} completed with {run.total_failed} failed items")

        except Exception as e:
            logger.error(f"Transfer {run.id} failed: {e}")
            run.status = TransferStatus.FAILED
            run.error = str(e)
            raise

        finally:
            run.completed_at = utcnow()

        return run

    def close(self) -> None:
        """Close the source connections."""
        self.source.close()

    @staticmethod
    def _require_support(adapter: Union[Source, Destination], kinds: Sequence[ResourceKind]) -> None:
        supported = adapter.supported_resources()
        for kind in kinds:
            if kind not in supported:
                raise UnsupportedResource(
                    f"Resource {kind.value} is not supported by {adapter.name()}",
                    details={"resource": kind.value, "adapter": adapter.name()},
                )

    @classmethod
    def order(cls, resources: Iterable[ResourceKind]) -> List[ResourceKind]:
        """Deduplicate and sort kinds into transfer order."""
        return sorted(set(resources), key=cls._priority)

    @staticmethod
    def _priority(kind: ResourceKind) -> int:
        if kind in TRANSFER_ORDER:
            return TRANSFER_ORDER.index(kind)
        return len(TRANSFER_ORDER)
