#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Append-only experience log with search, statistics and bounded retention.

Write rules (keep memory trustworthy):
- a read failure degrades to an empty result and is logged, never raised
- a write, delete or export failure is raised as StoreError
- the write path reads strictly, so an unreadable log is never overwritten
- once stored, an experience is only ever removed, never edited
"""

import json
import math
import threading
import time
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, NamedTuple, Optional, Union

from raju import config
from raju.debug_logger import get_logger, log_function
from raju.exceptions import StorageUnavailableError, StoreError
from raju.memory.storage import KeyValueStorage
from raju.models.experience import ExecutionMode, Experience


@dataclass
class MemoryStats:
    total_experiences: int = 0
    total_memory_size: int = 0
    last_cleanup: float = 0.0
    schema_version: int = config.STORAGE_SCHEMA_VERSION

    @classmethod
    def empty(cls) -> 'MemoryStats':
        return cls(last_cleanup=time.time())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MemoryStats':
        return cls(
            total_experiences=int(data.get("total_experiences", 0)),
            total_memory_size=int(data.get("total_memory_size", 0)),
            last_cleanup=float(data.get("last_cleanup", 0.0)),
            schema_version=int(data.get("schema_version", config.STORAGE_SCHEMA_VERSION)),
        )


class SuccessRate(NamedTuple):
    successful: int
    failed: int
    rate: float  # percentage, 0-100


def _serialize(records: List[Experience]) -> str:
    return json.dumps([record.to_dict() for record in records], ensure_ascii=False)


class ExperienceStore:
    """Durable log of task outcomes kept under a single storage key."""

    def __init__(
        self,
        storage: Optional[KeyValueStorage] = None,
        max_experiences: Optional[int] = None,
        keep_ratio: Optional[float] = None,
    ):
        self.storage = storage or KeyValueStorage()
        self.max_experiences = max_experiences if max_experiences is not None else config.MAX_EXPERIENCES
        self.keep_ratio = keep_ratio if keep_ratio is not None else config.EVICTION_KEEP_RATIO
        if self.max_experiences < 1:
            raise ValueError("max_experiences must be at least 1")
        if not 0 <= self.keep_ratio < 1:
            raise ValueError("keep_ratio must be in [0, 1)")
        # Single-writer point: every read-modify-write runs under this lock
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Internal persistence helpers
    # ------------------------------------------------------------------

    def _load_records_strict(self) -> List[Experience]:
        """Load the full record list, raising StoreError if it cannot be read."""
        try:
            raw = self.storage.get_item(config.EXPERIENCES_STORAGE_KEY)
        except StorageUnavailableError as e:
            raise StoreError(f"Failed to read experiences: {e}") from e
        if not raw:
            return []
        try:
            return [Experience.from_dict(item) for item in json.loads(raw)]
        except (ValueError, KeyError, TypeError) as e:
            raise StoreError(f"Stored experiences are unreadable: {e}") from e

    def _load_records(self, operation: str) -> List[Experience]:
        """Load the record list for a read operation, degrading to [] on failure."""
        try:
            return self._load_records_strict()
        except StoreError as e:
            get_logger().log_error("store", e, {"operation": operation})
            return []

    def _write_records(self, records: List[Experience], operation: str) -> str:
        payload = _serialize(records)
        try:
            self.storage.set_item(config.EXPERIENCES_STORAGE_KEY, payload)
        except StorageUnavailableError as e:
            get_logger().log_error("store", e, {"operation": operation})
            raise StoreError(f"Failed to {operation}") from e
        return payload

    def _read_stats(self) -> Optional[MemoryStats]:
        raw = self.storage.get_item(config.MEMORY_STATS_KEY)
        if not raw:
            return None
        return MemoryStats.from_dict(json.loads(raw))

    def _write_stats(self, stats: MemoryStats) -> None:
        self.storage.set_item(config.MEMORY_STATS_KEY, json.dumps(asdict(stats)))

    def _refresh_stats(self, payload: str, count: int, cleaned_up: bool = False) -> None:
        """Recompute aggregate stats. Stats are advisory, so failures are only logged."""
        try:
            previous = self._read_stats() or MemoryStats.empty()
            self._write_stats(MemoryStats(
                total_experiences=count,
                total_memory_size=len(payload.encode("utf-8")),
                last_cleanup=time.time() if cleaned_up else previous.last_cleanup,
            ))
        except Exception as e:
            get_logger().log_error("store", e, {"operation": "update_stats"})

    def _evict(self, records: List[Experience]) -> List[Experience]:
        """Keep the newest floor(max * keep_ratio) records, preserving their order."""
        keep_count = math.floor(self.max_experiences * self.keep_ratio)
        # Equal timestamps rank by position, later records count as newer
        ranked = sorted(range(len(records)), key=lambda i: (records[i].timestamp, i), reverse=True)
        keep_positions = set(ranked[:keep_count])
        kept = [record for i, record in enumerate(records) if i in keep_positions]
        get_logger().log("store", "EVICTION", {
            "before": len(records),
            "after": len(kept),
            "max_experiences": self.max_experiences,
        })
        return kept

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Ensure the stats record exists. Never raises."""
        try:
            with self._lock:
                if self._read_stats() is None:
                    self._write_stats(MemoryStats.empty())
        except Exception as e:
            get_logger().log_error("store", e, {"operation": "initialize"})

    @log_function("store")
    def store(self, experience: Experience) -> None:
        """Append an experience, evicting the oldest records first if the store is full."""
        with self._lock:
            records = self._load_records_strict()
            if any(record.id == experience.id for record in records):
                raise StoreError(f"Experience {experience.id} is already stored")

            cleaned_up = False
            if len(records) >= self.max_experiences:
                records = self._evict(records)
                cleaned_up = True

            records.append(experience)
            payload = self._write_records(records, "store experience")
            self._refresh_stats(payload, len(records), cleaned_up=cleaned_up)

    def get_all(self) -> List[Experience]:
        """Return every record, oldest first."""
        return self._load_records("get_all")

    def get_by_id(self, experience_id: str) -> Optional[Experience]:
        for record in self._load_records("get_by_id"):
            if record.id == experience_id:
                return record
        return None

    def search(self, query: str) -> List[Experience]:
        """Case-insensitive substring search over task description, input and output."""
        needle = (query or "").lower()
        return [
            record for record in self._load_records("search")
            if needle in record.task_description.lower()
            or needle in record.input.lower()
            or needle in record.output.lower()
        ]

    def find_similar(self, task_description: str) -> List[Experience]:
        """Records whose task description contains, or is contained in, the given text."""
        text = (task_description or "").lower()
        similar = []
        for record in self._load_records("find_similar"):
            past = record.task_description.lower()
            if text in past or past in text:
                similar.append(record)
        return similar

    def filter_by_model(self, model: str) -> List[Experience]:
        return [r for r in self._load_records("filter_by_model") if r.model == model]

    def filter_by_mode(self, mode: Union[ExecutionMode, str]) -> List[Experience]:
        mode = ExecutionMode(mode)
        return [r for r in self._load_records("filter_by_mode") if r.mode == mode]

    @log_function("store")
    def delete(self, experience_id: str) -> None:
        """Remove a record. Deleting an unknown id is a no-op."""
        with self._lock:
            records = self._load_records_strict()
            remaining = [record for record in records if record.id != experience_id]
            if len(remaining) == len(records):
                return
            payload = self._write_records(remaining, "delete experience")
            self._refresh_stats(payload, len(remaining))

    @log_function("store")
    def clear_all(self) -> None:
        with self._lock:
            try:
                self.storage.remove_item(config.EXPERIENCES_STORAGE_KEY)
                self._write_stats(MemoryStats.empty())
            except StorageUnavailableError as e:
                get_logger().log_error("store", e, {"operation": "clear_all"})
                raise StoreError("Failed to clear experiences") from e

    def get_stats(self) -> MemoryStats:
        try:
            stats = self._read_stats()
            if stats is None:
                stats = MemoryStats.empty()
                self._write_stats(stats)
            return stats
        except Exception as e:
            get_logger().log_error("store", e, {"operation": "get_stats"})
            return MemoryStats.empty()

    def get_success_rate(self) -> SuccessRate:
        records = self._load_records("get_success_rate")
        successful = sum(1 for record in records if record.success)
        failed = len(records) - successful
        rate = (successful / len(records)) * 100 if records else 0.0
        return SuccessRate(successful, failed, rate)

    def export(self) -> str:
        """Serialize all records as indented JSON for backup."""
        try:
            records = self._load_records_strict()
        except StoreError as e:
            get_logger().log_error("store", e, {"operation": "export"})
            raise StoreError("Failed to export experiences") from e
        return json.dumps([record.to_dict() for record in records], indent=2, ensure_ascii=False)

    def count(self) -> int:
        return len(self.get_all())


_default_store: Optional[ExperienceStore] = None


def get_experience_store() -> ExperienceStore:
    """Return the process-wide store backed by the configured storage directory."""
    global _default_store
    if _default_store is None:
        _default_store = ExperienceStore()
    return _default_store


def reset_experience_store() -> None:
    global _default_store
    _default_store = None
