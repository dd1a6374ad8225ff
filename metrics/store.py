"""
metrics/store.py

Storage collaborator for MetricRecord rows keyed by (agent_id, day).
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from datetime import date

from app.domain.metrics import MetricRecord
from app.errors import ConflictError


class MetricStore(ABC):
    """
    Keyed get/insert/update. ``insert`` must enforce uniqueness of the key.
    """

    @abstractmethod
    def get(self, agent_id: int, day: date) -> MetricRecord | None:
        raise NotImplementedError

    @abstractmethod
    def insert(self, record: MetricRecord) -> MetricRecord:
        """Insert a new record; raise ConflictError when the key already exists."""
        raise NotImplementedError

    @abstractmethod
    def update(self, record: MetricRecord) -> MetricRecord:
        raise NotImplementedError


class InMemoryMetricStore(MetricStore):
    """
    Dict-backed store used by tests and by processes without a database.
    """

    def __init__(self) -> None:
        self._records: dict[tuple[int, date], MetricRecord] = {}
        self._lock = threading.Lock()

    def get(self, agent_id: int, day: date) -> MetricRecord | None:
        with self._lock:
            return self._records.get((agent_id, day))

    def insert(self, record: MetricRecord) -> MetricRecord:
        with self._lock:
            if record.key in self._records:
                raise ConflictError(agent_id=record.agent_id, day=record.day)
            self._records[record.key] = record
            return record

    def update(self, record: MetricRecord) -> MetricRecord:
        with self._lock:
            self._records[record.key] = record
            return record

    def all(self) -> list[MetricRecord]:
        with self._lock:
            return sorted(self._records.values(), key=lambda item: item.key)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
