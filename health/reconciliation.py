"""
Reconciliation lookup, built once per projection run.

Storage keeps every edit of a reconciliation as its own record. The engine
only ever wants the latest record per (entity, cycle), and for scoring the
latest cycle per entity. Both are indexed up front instead of re-scanning the
flat list for every account.
"""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, Optional, Tuple

from core.schema import ReconciliationRecord


class ReconciliationIndex:
    """Latest record per (entity, cycle) and per entity."""

    def __init__(self, by_cycle: Dict[Tuple[str, str], ReconciliationRecord]):
        self._by_cycle = dict(by_cycle)
        latest: Dict[str, ReconciliationRecord] = {}
        for (entity_id, key), record in self._by_cycle.items():
            current = latest.get(entity_id)
            if current is None or key > current.cycle_key:
                latest[entity_id] = record
        self._latest = latest

    @classmethod
    def build(cls, records: Iterable[ReconciliationRecord]) -> "ReconciliationIndex":
        by_cycle: Dict[Tuple[str, str], ReconciliationRecord] = {}
        for record in records:
            key = (str(record.entity_id), str(record.cycle_key))
            existing = by_cycle.get(key)
            # ties keep the first record seen
            if existing is None or record.updated_at > existing.updated_at:
                by_cycle[key] = record
        return cls(by_cycle)

    def get(self, entity_id: str, cycle_key: str) -> Optional[ReconciliationRecord]:
        return self._by_cycle.get((str(entity_id), str(cycle_key)))

    def latest_for(self, entity_id: str) -> Optional[ReconciliationRecord]:
        return self._latest.get(str(entity_id))

    def is_reconciled(self, entity_id: str, cycle_key: str) -> bool:
        record = self.get(entity_id, cycle_key)
        return record is not None and bool(record.reconciled)

    def entity_ids(self) -> Iterator[str]:
        return iter(self._latest)

    def __len__(self) -> int:
        return len(self._by_cycle)
