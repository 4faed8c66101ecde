"""Local destination: stages a transfer on disk as JSON plus file sidecars."""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Union

from .base import Destination, ProgressCallback
from ..exceptions import ConnectivityError
from ..models.resource import Resource, ResourceKind
from ..models.storage import File, FileData
from ..state import TransferState

logger = logging.getLogger(__name__)


class LocalDestination(Destination):
    """
    Writes every imported resource into ``<path>/backup.json``.

    The JSON document holds one array per resource kind and is rewritten
    atomically after each batch. Staged records live in one JSON Lines file
    per kind under ``<path>/.staging``, so only the current batch is held
    in memory. File bytes are appended to
    ``<path>/files/<file name>``; the File resource itself resets that
    sidecar so a re-run never appends to stale content.
    """

    BACKUP_FILE = "backup.json"
    FILES_DIR = "files"
    STAGING_DIR = ".staging"

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.kinds: List[str] = []

    @classmethod
    def from_config(cls, options: Dict[str, Any]) -> "LocalDestination":
        """Create a destination from adapter options."""
        return cls(options["path"])

    @property
    def backup_path(self) -> Path:
        return self.path / self.BACKUP_FILE

    @property
    def files_path(self) -> Path:
        return self.path / self.FILES_DIR

    @property
    def staging_path(self) -> Path:
        return self.path / self.STAGING_DIR

    def staged_path(self, kind: str) -> Path:
        return self.staging_path / f"{kind}.jsonl"

    def name(self) -> str:
        return "Local"

    def supported_resources(self) -> Set[ResourceKind]:
        return {
            ResourceKind.USERS,
            ResourceKind.DATABASES,
            ResourceKind.DOCUMENTS,
            ResourceKind.FILES,
            ResourceKind.FUNCTIONS,
        }

    def check(self, resources: Optional[Iterable[ResourceKind]] = None) -> Dict[ResourceKind, List[str]]:
        """
        Verify the staging path can be written.

        Raises:
            ConnectivityError: If the directory cannot be created or written
        """
        requested = set(resources) if resources else self.supported_resources()

        try:
            self.files_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConnectivityError(
                f"Unable to create staging directory {self.path}: {e}",
                details={"path": str(self.path)},
            ) from e

        for target in (self.path, self.files_path):
            if not os.access(target, os.W_OK):
                raise ConnectivityError(
                    f"Staging directory {target} is not writable",
                    details={"path": str(target)},
                )

        if self.backup_path.exists() and not os.access(self.backup_path, os.W_OK):
            raise ConnectivityError(
                f"Staging file {self.backup_path} is not writable",
                details={"path": str(self.backup_path)},
            )

        report = self.empty_report(requested)
        for kind in requested - self.supported_resources():
            report[kind].append(f"{kind.value} is not supported by {self.name()}")
        return report

    def import_users(self, state: TransferState, batch: Sequence[Resource], callback: ProgressCallback) -> None:
        self._stage(state, ResourceKind.USERS, batch, callback)

    def import_databases(self, state: TransferState, batch: Sequence[Resource], callback: ProgressCallback) -> None:
        self._stage(state, ResourceKind.DATABASES, batch, callback)

    def import_documents(self, state: TransferState, batch: Sequence[Resource], callback: ProgressCallback) -> None:
        self._stage(state, ResourceKind.DOCUMENTS, batch, callback)

    def import_files(self, state: TransferState, batch: Sequence[Resource], callback: ProgressCallback) -> None:
        self._stage(state, ResourceKind.FILES, batch, callback)

    def import_functions(self, state: TransferState, batch: Sequence[Resource], callback: ProgressCallback) -> None:
        self._stage(state, ResourceKind.FUNCTIONS, batch, callback)

    def _stage(
        self,
        state: TransferState,
        kind: ResourceKind,
        batch: Sequence[Resource],
        callback: ProgressCallback
    ) -> None:
        self.files_path.mkdir(parents=True, exist_ok=True)
        self.staging_path.mkdir(parents=True, exist_ok=True)
        lines: List[str] = []

        def stage_one(state: TransferState, resource: Resource) -> None:
            if isinstance(resource, FileData):
                with open(self.sidecar_path(resource.file), "ab") as f:
                    f.write(resource.chunk)
                return

            if isinstance(resource, File):
                # Truncate any sidecar left over from an earlier run.
                self.sidecar_path(resource).write_bytes(b"")

            lines.append(json.dumps(resource.to_dict(), default=str))

        # Progress is emitted after the batch has been persisted.
        pending: List[Any] = []
        self._import_batch(
            state,
            kind,
            batch,
            stage_one,
            pending.append,
            counted=lambda resource: not isinstance(resource, FileData),
        )
        self.append(kind.value, lines)
        self.sync()

        for progress in pending:
            callback(progress)

    def append(self, kind: str, lines: List[str]) -> None:
        """Append staged records for a kind, starting fresh on its first batch."""
        mode = "a"
        if kind not in self.kinds:
            self.kinds.append(kind)
            mode = "w"
        with open(self.staged_path(kind), mode, encoding="utf-8") as f:
            for line in lines:
                f.write(line + "\n")

    def sidecar_path(self, file: File) -> Path:
        """Sidecar holding a file's bytes, named after the file."""
        return self.files_path / os.path.basename(file.file_name or file.id)

    def sync(self) -> None:
        """Rewrite ``backup.json`` atomically, streaming the staged records."""
        self.path.mkdir(parents=True, exist_ok=True)

        fd, temp_path = tempfile.mkstemp(
            dir=self.path,
            prefix=f".{self.BACKUP_FILE}.",
            suffix=".tmp"
        )

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                self._write_backup(f)
                f.flush()
                os.fsync(f.fileno())

            os.replace(temp_path, self.backup_path)
        except Exception:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise

        logger.debug(f"Synced {self.backup_path}")

    def _write_backup(self, out) -> None:
        out.write("{")
        for i, kind in enumerate(self.kinds):
            out.write(",\n" if i else "\n")
            out.write(f"  {json.dumps(kind)}: [")
            with open(self.staged_path(kind), encoding="utf-8") as staged:
                for j, line in enumerate(staged):
                    out.write(",\n    " if j else "\n    ")
                    out.write(line.rstrip("\n"))
            out.write("\n  ]")
        out.write("\n}\n")
