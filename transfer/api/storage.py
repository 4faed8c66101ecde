"""In-memory store of transfer runs."""

import threading
from typing import Dict, List, Optional

from ..models.transfer import TransferConfig, TransferRun


class TransferStorage:
    """Keeps runs and their configs for the lifetime of the process."""

    def __init__(self):
        self._lock = threading.Lock()
        self._runs: Dict[str, TransferRun] = {}
        self._configs: Dict[str, TransferConfig] = {}

    def create(self, config: TransferConfig) -> TransferRun:
        run = TransferRun(name=config.name, resources=list(config.resources))
        with self._lock:
            self._runs[run.id] = run
            self._configs[run.id] = config
        return run

    def get(self, run_id: str) -> Optional[TransferRun]:
        with self._lock:
            return self._runs.get(run_id)

    def get_config(self, run_id: str) -> Optional[TransferConfig]:
        with self._lock:
            return self._configs.get(run_id)

    def list_all(self) -> List[TransferRun]:
        with self._lock:
            return sorted(self._runs.values(), key=lambda r: r.created_at, reverse=True)

    def clear(self) -> None:
        with self._lock:
            self._runs.clear()
            self._configs.clear()


transfer_storage = TransferStorage()
