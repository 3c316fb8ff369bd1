"""Ordered list of case records mirrored under a single store key."""
from __future__ import annotations

import json
import logging
from typing import Any, List, Optional, Protocol

from pydantic import ValidationError

from case_tree.records import CaseRecord

logger = logging.getLogger(__name__)

STORAGE_KEY = "family-case-tree-cases"


class KeyValueStore(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class CaseStore:
    def __init__(self, kv: KeyValueStore, key: str = STORAGE_KEY):
        self.kv = kv
        self.key = key
        self._records: List[CaseRecord] = []

    @property
    def records(self) -> List[CaseRecord]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def is_valid_index(self, index: Any) -> bool:
        return isinstance(index, int) and 0 <= index < len(self._records)

    def get(self, index: int) -> Optional[CaseRecord]:
        return self._records[index] if self.is_valid_index(index) else None

    def load(self) -> List[CaseRecord]:
        """Replace the in-memory list with what the store holds.

        Missing, corrupt or non-array data loads as an empty list; entries that
        are not valid records are dropped. Nothing here raises.
        """
        raw = self.kv.get_item(self.key)
        self._records = []
        if not raw:
            return self.records
        try:
            data = json.loads(raw)
        except ValueError as e:
            logger.warning(f"[cases] Stored case list under '{self.key}' is not valid JSON, starting empty: {e}")
            return self.records
        if not isinstance(data, list):
            logger.warning(f"[cases] Stored case list under '{self.key}' is not an array, starting empty")
            return self.records
        for i, item in enumerate(data):
            try:
                self._records.append(CaseRecord.model_validate(item))
            except ValidationError as ve:
                logger.warning(f"[cases] Skipping stored case #{i}: {ve.error_count()} validation error(s)")
        return self.records

    def save(self) -> None:
        self.kv.set_item(self.key, json.dumps([r.to_json() for r in self._records], ensure_ascii=False))

    def upsert(self, record: CaseRecord, index: Any = -1) -> int:
        """Replace the record at ``index``, or append when it is out of range."""
        if self.is_valid_index(index):
            self._records[index] = record
        else:
            self._records.append(record)
            index = len(self._records) - 1
        self.save()
        return index

    def delete(self, index: Any) -> bool:
        if not self.is_valid_index(index):
            return False
        del self._records[index]
        self.save()
        return True
