"""
Selection stores for the current account.

InMemorySelectionStore is for tests and single-process use.
JsonFileSelectionStore keeps the selection across restarts in a small
JSON document: {"account_id": 3}.
"""

import json
from pathlib import Path
from typing import Optional

import structlog

from ledgerdash.services.storage.interface import SelectionStoreInterface, StorageError


logger = structlog.get_logger()


class InMemorySelectionStore(SelectionStoreInterface):
    """Keeps the selection for the lifetime of the process."""

    def __init__(self, account_id: Optional[int] = None):
        self._account_id = account_id

    def load(self) -> Optional[int]:
        return self._account_id

    def save(self, account_id: int) -> None:
        self._account_id = account_id

    def clear(self) -> None:
        self._account_id = None


class JsonFileSelectionStore(SelectionStoreInterface):
    """Persists the selection to a JSON file."""

    def __init__(self, path: Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Optional[int]:
        if not self._path.exists():
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("selection_file_unreadable", path=str(self._path), error=str(e))
            return None

        account_id = data.get("account_id") if isinstance(data, dict) else None
        if isinstance(account_id, bool) or not isinstance(account_id, int):
            return None
        return account_id

    def save(self, account_id: int) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps({"account_id": account_id}), encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to save selection to {self._path}: {e}")

    def clear(self) -> None:
        try:
            self._path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to clear selection at {self._path}: {e}")
