"""Process-local substitute for the DynamoDB record store."""

from __future__ import annotations

import copy
import logging
import threading
from typing import Any, Dict, Optional, Protocol

logger = logging.getLogger(__name__)


class RecordStore(Protocol):
    """Key-value records addressed by a (pk, sk) pair."""

    def put_item(self, item: Dict[str, Any]) -> None: ...

    def get_item(
        self, *, partition_key: str, sort_key: str
    ) -> Optional[Dict[str, Any]]: ...

    def delete_item(self, *, partition_key: str, sort_key: str) -> None: ...

    def query_items(self, *, partition_key: str) -> list[Dict[str, Any]]: ...


class InMemoryRecordStore:
    """Dictionary-backed store used when no DynamoDB table is configured.

    Records live for the lifetime of the process and are not shared between
    workers, so this is only suitable for local development.
    """

    def __init__(self) -> None:
        self._records: dict[tuple[str, str], Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def put_item(self, item: Dict[str, Any]) -> None:
        pk = item.get("pk")
        sk = item.get("sk")
        if not pk or not sk:
            raise ValueError("Item must include 'pk' and 'sk' keys")
        with self._lock:
            self._records[(pk, sk)] = copy.deepcopy(item)

    def get_item(
        self, *, partition_key: str, sort_key: str
    ) -> Optional[Dict[str, Any]]:
        with self._lock:
            record = self._records.get((partition_key, sort_key))
        return copy.deepcopy(record) if record is not None else None

    def delete_item(self, *, partition_key: str, sort_key: str) -> None:
        with self._lock:
            self._records.pop((partition_key, sort_key), None)

    def query_items(self, *, partition_key: str) -> list[Dict[str, Any]]:
        with self._lock:
            return [
                copy.deepcopy(item)
                for (pk, _), item in self._records.items()
                if pk == partition_key
            ]


__all__ = ["InMemoryRecordStore", "RecordStore"]
