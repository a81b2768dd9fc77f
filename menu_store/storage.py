"""
JSON Document Store with Concurrency Control

Flat-file persistence for the menu resources, with the semantics of a
json-server style REST backend:

    - Collections (branches, categories, dishes): list / get / create /
      replace / patch / delete, addressed by string id
    - Singleton (branding): get / replace / patch

When constructed with a path, every operation loads the file, applies the
change and writes it back while holding a file lock, so several server
workers can share one file. Without a path the document lives in memory
(used by the mock remote store).

Version: 1.0.0
"""

import copy
import json
import logging
import os
import threading
import uuid
from pathlib import Path
from typing import Any, Optional, Union

from filelock import FileLock

logger = logging.getLogger(__name__)

COLLECTIONS = ("branches", "categories", "dishes")
SINGLETONS = ("branding",)

DEFAULT_DOCUMENT: dict[str, Any] = {
    "branding": {
        "restaurantName": "My Restaurant",
        "logoUrl": "",
        "primaryColor": "#f97316",
        "backgroundColor": "#f9fafb",
        "cardColor": "#ffffff",
        "textColor": "#111827",
        "mutedColor": "#6b7280",
        "accentColor": "#10b981",
    },
    "branches": [],
    "categories": [],
    "dishes": [],
}


class UnknownResource(LookupError):
    """The resource name is not part of the document."""


class DocumentNotFound(LookupError):
    """No document with the given id exists in the collection."""


def generate_id() -> str:
    """New persisted id: short random hex, never starts with the placeholder prefix."""
    return uuid.uuid4().hex[:12]


class JsonDocumentStore:
    """
    Thread-safe JSON document store.

    Attributes:
        path: Backing file, or None for an in-memory document
        lock_timeout: Seconds to wait for the file lock
    """

    def __init__(
        self,
        path: Optional[Union[str, Path]] = None,
        initial: Optional[dict[str, Any]] = None,
        lock_timeout: int = 30,
    ):
        self.path = Path(path) if path is not None else None
        self.lock_timeout = lock_timeout
        seed = copy.deepcopy(initial if initial is not None else DEFAULT_DOCUMENT)

        if self.path is None:
            self._lock = threading.RLock()
            self._memory: Optional[dict[str, Any]] = seed
        else:
            self._lock = FileLock(f"{self.path}.lock", timeout=lock_timeout)
            self._memory = None
            if not self.path.exists():
                self.path.parent.mkdir(parents=True, exist_ok=True)
                self._write(seed)
                logger.info(f"Created database file: {self.path}")

    # =========================================================================
    # FILE ACCESS
    # =========================================================================

    def _read(self) -> dict[str, Any]:
        if self._memory is not None:
            return self._memory
        with open(self.path, encoding="utf-8") as fh:
            document = json.load(fh)
        for name in COLLECTIONS:
            document.setdefault(name, [])
        return document

    def _write(self, document: dict[str, Any]) -> None:
        if self._memory is not None:
            self._memory = document
            return
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as fh:
            json.dump(document, fh, ensure_ascii=False, indent=2)
        os.replace(tmp_path, self.path)

    @staticmethod
    def _check_collection(resource: str) -> None:
        if resource not in COLLECTIONS:
            raise UnknownResource(resource)

    @staticmethod
    def _check_singleton(resource: str) -> None:
        if resource not in SINGLETONS:
            raise UnknownResource(resource)

    @staticmethod
    def _index_of(items: list[dict], doc_id: str) -> int:
        for index, item in enumerate(items):
            if str(item.get("id")) == doc_id:
                return index
        raise DocumentNotFound(doc_id)

    # =========================================================================
    # COLLECTIONS
    # =========================================================================

    def list_documents(self, resource: str) -> list[dict[str, Any]]:
        self._check_collection(resource)
        with self._lock:
            return copy.deepcopy(self._read()[resource])

    def get(self, resource: str, doc_id: str) -> dict[str, Any]:
        self._check_collection(resource)
        with self._lock:
            items = self._read()[resource]
            return copy.deepcopy(items[self._index_of(items, doc_id)])

    def create(self, resource: str, body: dict[str, Any]) -> dict[str, Any]:
        self._check_collection(resource)
        with self._lock:
            document = self._read()
            created = {**copy.deepcopy(body), "id": str(body.get("id") or generate_id())}
            document[resource].append(created)
            self._write(document)
            logger.debug(f"Created {resource}/{created['id']}")
            return copy.deepcopy(created)

    def replace(self, resource: str, doc_id: str, body: dict[str, Any]) -> dict[str, Any]:
        self._check_collection(resource)
        with self._lock:
            document = self._read()
            items = document[resource]
            index = self._index_of(items, doc_id)
            items[index] = {**copy.deepcopy(body), "id": doc_id}
            self._write(document)
            return copy.deepcopy(items[index])

    def patch(self, resource: str, doc_id: str, body: dict[str, Any]) -> dict[str, Any]:
        self._check_collection(resource)
        with self._lock:
            document = self._read()
            items = document[resource]
            index = self._index_of(items, doc_id)
            items[index] = {**items[index], **copy.deepcopy(body), "id": doc_id}
            self._write(document)
            return copy.deepcopy(items[index])

    def delete(self, resource: str, doc_id: str) -> dict[str, Any]:
        self._check_collection(resource)
        with self._lock:
            document = self._read()
            items = document[resource]
            del items[self._index_of(items, doc_id)]
            self._write(document)
            logger.debug(f"Deleted {resource}/{doc_id}")
            return {}

    # =========================================================================
    # SINGLETONS
    # =========================================================================

    def get_singleton(self, resource: str) -> dict[str, Any]:
        self._check_singleton(resource)
        with self._lock:
            return copy.deepcopy(self._read().get(resource) or {})

    def replace_singleton(self, resource: str, body: dict[str, Any]) -> dict[str, Any]:
        self._check_singleton(resource)
        with self._lock:
            document = self._read()
            document[resource] = copy.deepcopy(body)
            self._write(document)
            return copy.deepcopy(body)

    def patch_singleton(self, resource: str, body: dict[str, Any]) -> dict[str, Any]:
        self._check_singleton(resource)
        with self._lock:
            document = self._read()
            document[resource] = {**(document.get(resource) or {}), **copy.deepcopy(body)}
            self._write(document)
            return copy.deepcopy(document[resource])
