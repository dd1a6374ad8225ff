"""
metrics/merge.py

Field-level KPI merge: last write wins per field, nulls never overwrite.

Writes to the same (agent_id, day) are serialized by a keyed lock; different
keys proceed independently. A ConflictError from the store (another process
inserted the key first) is retried a bounded number of times.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Any, Mapping

from app.domain.metrics import MergeResult, MetricRecord
from app.errors import ConflictError
from metrics.locks import KeyedLockRegistry
from metrics.store import MetricStore
from metrics.validation import validate_metric_fields

logger = logging.getLogger(__name__)


class MetricMergeEngine:
    """
    Sole writer of MetricRecord rows.
    """

    def __init__(
        self,
        store: MetricStore,
        *,
        max_attempts: int = 3,
        locks: KeyedLockRegistry | None = None,
    ) -> None:
        self._store = store
        self._max_attempts = max(1, max_attempts)
        self._locks = locks or KeyedLockRegistry()

    def merge(self, agent_id: int, day: date, fields: Mapping[str, Any]) -> MergeResult:
        """
        Validate then merge a partial metric mapping into the stored record.

        Invalid fields are reported in ``rejections``; the valid ones still merge.
        """

        accepted, rejections = validate_metric_fields(fields)
        for rejection in rejections:
            logger.info(
                "Metric field rejected agent_id=%s date=%s field=%s: %s",
                agent_id,
                day,
                rejection.field,
                rejection.message,
            )

        with self._locks.hold((agent_id, day)):
            attempt = 1
            while True:
                try:
                    record, created = self._merge_once(agent_id, day, accepted)
                    break
                except ConflictError:
                    if attempt >= self._max_attempts:
                        logger.warning(
                            "Metric merge conflict not resolved agent_id=%s date=%s attempts=%d",
                            agent_id,
                            day,
                            attempt,
                        )
                        raise
                    logger.info(
                        "Metric merge conflict agent_id=%s date=%s attempt=%d/%d; retrying",
                        agent_id,
                        day,
                        attempt,
                        self._max_attempts,
                    )
                    attempt += 1

        applied = tuple(name for name, value in accepted.items() if value is not None)
        return MergeResult(record=record, created=created, applied_fields=applied, rejections=rejections)

    def _merge_once(
        self,
        agent_id: int,
        day: date,
        accepted: Mapping[str, float | None],
    ) -> tuple[MetricRecord, bool]:
        incoming = {name: value for name, value in accepted.items() if value is not None}
        existing = self._store.get(agent_id, day)

        if existing is None:
            return self._store.insert(MetricRecord(agent_id=agent_id, day=day, **incoming)), True

        merged = replace(existing, **incoming)
        if merged == existing:
            return existing, False
        return self._store.update(merged), False
