"""
Storage Backend Module

Provides the whole-snapshot data store interface, in-memory, JSON-file and
SQLite implementations, and the Dataset coordinator through which every
registry reads and rewrites the dataset.

The persisted document always has the four top-level keys
``config``, ``entities``, ``fields`` and ``records``.
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, Optional, Union
from datetime import datetime, timezone
from pathlib import Path
from contextlib import contextmanager
import copy
import json
import logging
import os
import sqlite3
import tempfile
import threading

from .config import FlexregConfig, get_config


logger = logging.getLogger(__name__)

SNAPSHOT_KEYS = ("config", "entities", "fields", "records")


def default_dataset_config(settings: Optional[FlexregConfig] = None) -> Dict[str, Any]:
    """Config object written into a brand new dataset"""
    settings = settings or get_config()
    return {
        "title": settings.title,
        "description": settings.description,
        "entityName": settings.entity_name,
        "navbarTitle": settings.navbar_title,
        "kpiFields": []
    }


def default_snapshot(settings: Optional[FlexregConfig] = None) -> Dict[str, Any]:
    """Empty dataset with default config"""
    return {
        "config": default_dataset_config(settings),
        "entities": [],
        "fields": [],
        "records": []
    }


def _upgrade_snapshot(data: Dict[str, Any]) -> Dict[str, Any]:
    """Fill keys that older snapshots may lack"""
    for key in ("entities", "fields", "records"):
        if data.get(key) is None:
            data[key] = []
    if data.get("config") is None:
        data["config"] = default_dataset_config()
    if "kpiFields" not in data["config"]:
        data["config"]["kpiFields"] = []
    return data


class DataStoreInterface(ABC):
    """Abstract interface for snapshot stores"""

    @abstractmethod
    def get_data(self) -> Dict[str, Any]:
        """Return the full dataset snapshot"""
        pass

    @abstractmethod
    def save_data(self, data: Dict[str, Any]) -> None:
        """Replace the full persisted snapshot"""
        pass

    def close(self) -> None:
        """Release backend resources (default no-op)"""
        pass


class InMemoryDataStore(DataStoreInterface):
    """In-memory store for testing and ephemeral use"""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data = _upgrade_snapshot(copy.deepcopy(initial)) if initial else default_snapshot()

    def get_data(self) -> Dict[str, Any]:
        # Deep copy to prevent external mutation
        return copy.deepcopy(self._data)

    def save_data(self, data: Dict[str, Any]) -> None:
        self._data = copy.deepcopy(data)


class JSONFileDataStore(DataStoreInterface):
    """Snapshot persisted as a single JSON document on disk"""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        if not self.path.exists():
            logger.info(f"Initializing new dataset file at {self.path}")
            self.save_data(default_snapshot())

    def get_data(self) -> Dict[str, Any]:
        with open(self.path, "r", encoding="utf-8") as f:
            return _upgrade_snapshot(json.load(f))

    def save_data(self, data: Dict[str, Any]) -> None:
        directory = self.path.parent
        directory.mkdir(parents=True, exist_ok=True)

        # Readers only ever see a complete file
        fd, tmp_path = tempfile.mkstemp(dir=str(directory), suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except Exception:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise


class SQLiteDataStore(DataStoreInterface):
    """Snapshot persisted as one JSON row in SQLite"""

    SNAPSHOT_ID = "dataset"

    def __init__(self, db_path: Union[str, Path] = ":memory:"):
        self.db_path = str(db_path)
        self._connection = sqlite3.connect(self.db_path, check_same_thread=False)
        self._connection.row_factory = sqlite3.Row
        self._lock = threading.RLock()

        with self._lock:
            if self.db_path != ":memory:":
                self._connection.execute("PRAGMA journal_mode = WAL")
            self._connection.execute("""
                CREATE TABLE IF NOT EXISTS snapshots (
                    id TEXT PRIMARY KEY,
                    data TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            self._connection.commit()

        if self._load_row() is None:
            logger.info(f"Initializing new dataset in {self.db_path}")
            self.save_data(default_snapshot())

    def _load_row(self) -> Optional[str]:
        with self._lock:
            cursor = self._connection.execute(
                "SELECT data FROM snapshots WHERE id = ?", (self.SNAPSHOT_ID,)
            )
            row = cursor.fetchone()
            return row["data"] if row else None

    def get_data(self) -> Dict[str, Any]:
        return _upgrade_snapshot(json.loads(self._load_row()))

    def save_data(self, data: Dict[str, Any]) -> None:
        with self._lock:
            self._connection.execute("""
                INSERT OR REPLACE INTO snapshots (id, data, updated_at)
                VALUES (?, ?, ?)
            """, (self.SNAPSHOT_ID, json.dumps(data), datetime.now(timezone.utc).isoformat()))
            self._connection.commit()

    def close(self) -> None:
        with self._lock:
            if self._connection:
                self._connection.close()
                self._connection = None


def create_data_store(settings: Optional[FlexregConfig] = None) -> DataStoreInterface:
    """Build the store backend named in settings"""
    settings = settings or get_config()
    backend = settings.store_backend.lower()

    if backend == "memory":
        return InMemoryDataStore()
    if backend == "json":
        return JSONFileDataStore(settings.data_path)
    if backend == "sqlite":
        return SQLiteDataStore(settings.data_path)
    raise ValueError(f"Unsupported store backend: {settings.store_backend}")


class Dataset:
    """
    Single owner of the dataset.

    Every read goes through ``snapshot()`` and every write through
    ``mutate()``, which holds the coordinator lock across the whole
    read-modify-write so concurrent callers cannot interleave and lose
    each other's changes.
    """

    def __init__(self, store: DataStoreInterface):
        self.store = store
        self._lock = threading.RLock()

    def snapshot(self) -> Dict[str, Any]:
        """Private copy of the current dataset"""
        with self._lock:
            return copy.deepcopy(self.store.get_data())

    @contextmanager
    def mutate(self):
        """Yield a mutable copy of the dataset and persist it on clean exit"""
        with self._lock:
            data = copy.deepcopy(self.store.get_data())
            yield data
            self.store.save_data(data)

    def replace(self, data: Dict[str, Any]) -> None:
        """Overwrite the whole dataset"""
        with self._lock:
            self.store.save_data(copy.deepcopy(data))

    def get_config(self) -> Dict[str, Any]:
        """Current dataset config object"""
        return self.snapshot()["config"]

    def update_config(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Merge changes into the dataset config"""
        with self.mutate() as data:
            data["config"] = {**data.get("config", {}), **changes}
            updated = dict(data["config"])
        logger.info(f"Dataset config updated: {sorted(changes.keys())}")
        return updated

    def close(self) -> None:
        self.store.close()
