"""
Durable Store
=============

Whole-collection load/save for the bookstore's named collections
(users, books, reviews, orders). No business rules live here.
"""
import json
import os
import tempfile
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional

import structlog
from pymongo import MongoClient
from pymongo.errors import PyMongoError

from config import Settings, StoreBackend
from errors import PersistenceFailure

logger = structlog.get_logger()

USERS = "users"
BOOKS = "books"
REVIEWS = "reviews"
ORDERS = "orders"

COLLECTIONS = (USERS, BOOKS, REVIEWS, ORDERS)


class Store(ABC):
    """
    Abstract store handle injected into every component.

    load() returns None when a collection has never been saved.
    save() replaces the whole collection; it either succeeds or raises
    PersistenceFailure and leaves the previously saved records untouched.
    """

    def __init__(self, latency_ms: int = 0):
        self._latency = latency_ms / 1000.0
        self._locks: Dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    def lock(self, name: str) -> threading.RLock:
        """Re-entrant lock serializing read-modify-write on one collection."""
        with self._locks_guard:
            if name not in self._locks:
                self._locks[name] = threading.RLock()
            return self._locks[name]

    def _pause(self) -> None:
        if self._latency > 0:
            time.sleep(self._latency)

    def load(self, name: str) -> Optional[List[dict]]:
        self._pause()
        return self._load(name)

    def save(self, name: str, records: List[dict]) -> None:
        self._pause()
        self._save(name, records)

    @abstractmethod
    def _load(self, name: str) -> Optional[List[dict]]:
        pass

    @abstractmethod
    def _save(self, name: str, records: List[dict]) -> None:
        pass

    @abstractmethod
    def ping(self) -> bool:
        pass


class JsonFileStore(Store):
    """One <name>.json file per collection, replaced atomically on save."""

    def __init__(self, data_dir: str, latency_ms: int = 0):
        super().__init__(latency_ms)
        self.data_dir = data_dir

    def _path(self, name: str) -> str:
        return os.path.join(self.data_dir, f"{name}.json")

    def _load(self, name: str) -> Optional[List[dict]]:
        path = self._path(name)
        if not os.path.exists(path):
            return None
        try:
            with open(path, "r", encoding="utf-8") as fh:
                records = json.load(fh)
        except (OSError, ValueError) as e:
            logger.error("store_load_failed", collection=name, error=str(e))
            raise PersistenceFailure(name, str(e))
        if not isinstance(records, list):
            raise PersistenceFailure(name, "stored collection is not a list")
        return records

    def _save(self, name: str, records: List[dict]) -> None:
        tmp_path = None
        try:
            os.makedirs(self.data_dir, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=f".{name}-", suffix=".json", dir=self.data_dir)
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(records, fh, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self._path(name))
        except (OSError, TypeError, ValueError) as e:
            logger.error("store_save_failed", collection=name, error=str(e))
            if tmp_path and os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise PersistenceFailure(name, str(e))

    def ping(self) -> bool:
        try:
            os.makedirs(self.data_dir, exist_ok=True)
        except OSError:
            return False
        return os.access(self.data_dir, os.W_OK)


class MongoStore(Store):
    """
    Each collection is a single document {_id: name, records: [...]}
    so a save is one atomic document replacement.
    """

    COLLECTION_NAME = "collections"

    def __init__(self, uri: str, db_name: str, latency_ms: int = 0, client: Optional[MongoClient] = None):
        super().__init__(latency_ms)
        self._client = client or MongoClient(uri)
        self._db = self._client[db_name]
        self._collection = self._db[self.COLLECTION_NAME]

    def _load(self, name: str) -> Optional[List[dict]]:
        try:
            doc = self._collection.find_one({"_id": name})
        except PyMongoError as e:
            logger.error("store_load_failed", collection=name, error=str(e))
            raise PersistenceFailure(name, str(e))
        if not doc:
            return None
        return list(doc.get("records", []))

    def _save(self, name: str, records: List[dict]) -> None:
        try:
            self._collection.replace_one({"_id": name}, {"_id": name, "records": records}, upsert=True)
        except PyMongoError as e:
            logger.error("store_save_failed", collection=name, error=str(e))
            raise PersistenceFailure(name, str(e))

    def ping(self) -> bool:
        try:
            self._client.admin.command("ping")
            return True
        except PyMongoError:
            return False


def load_or_seed(store: Store, name: str, seed: Callable[[], List[dict]]) -> List[dict]:
    """Return the stored collection, persisting the built-in seed on first use."""
    records = store.load(name)
    if records is None:
        records = seed()
        store.save(name, records)
        logger.info("collection_seeded", collection=name, count=len(records))
    return records


def get_store(config: Settings) -> Store:
    if config.STORE_BACKEND == StoreBackend.MONGO:
        return MongoStore(config.MONGO_URI, config.DB_NAME, latency_ms=config.SIMULATED_LATENCY_MS)
    return JsonFileStore(config.DATA_DIR, latency_ms=config.SIMULATED_LATENCY_MS)
