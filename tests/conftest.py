"""Shared fixtures: an in-memory stand-in for the record service."""
import uuid
from typing import Any, Iterable, Optional

import pytest

from db.repositories.records import RecordNotFound
from dml.matching import build_lookup

_COLLECTION_TYPES = (list, tuple, set, frozenset)


class InMemoryRecordService:
    """RecordService double that keeps records in dicts keyed by model and id.

    Stored objects are the ones handed in, so identity is preserved the same
    way a session's identity map preserves it. ``find_calls`` records every
    query for asserting on bulk-fetch behaviour.
    """

    def __init__(self):
        self.tables: dict[type, dict[uuid.UUID, Any]] = {}
        self.find_calls: list[tuple[type, dict]] = []

    def _table(self, model: type) -> dict:
        return self.tables.setdefault(model, {})

    @staticmethod
    def _matches(record, criteria: dict) -> bool:
        for field, value in criteria.items():
            actual = getattr(record, field)
            if isinstance(value, _COLLECTION_TYPES):
                if actual not in value:
                    return False
            elif actual != value:
                return False
        return True

    @staticmethod
    def _check_required(record) -> None:
        for column in type(record).__table__.columns:
            required = (
                not column.nullable
                and column.default is None
                and column.server_default is None
            )
            if required and getattr(record, column.key) is None:
                raise ValueError(
                    f"{type(record).__name__}.{column.key} is required"
                )

    async def find(self, model: type, **criteria: Any) -> list:
        self.find_calls.append((model, criteria))
        return [r for r in self._table(model).values() if self._matches(r, criteria)]

    async def count(self, model: type, **criteria: Any) -> int:
        return sum(1 for r in self._table(model).values() if self._matches(r, criteria))

    async def insert(self, batch: Iterable) -> list[uuid.UUID]:
        records = list(batch)
        for record in records:
            self._check_required(record)
            table = self._table(type(record))
            if record.id is None:
                record.id = uuid.uuid4()
            elif record.id in table:
                raise ValueError(f"duplicate id {record.id}")
            table[record.id] = record
        return [r.id for r in records]

    async def update(self, batch: Iterable) -> list[uuid.UUID]:
        records = list(batch)
        for record in records:
            if record.id is None:
                raise ValueError(f"{type(record).__name__} has no id; insert it first")
            stored = self._table(type(record)).get(record.id)
            if stored is None:
                raise RecordNotFound(type(record), record.id)
            if stored is not record:
                for column in type(record).__table__.columns:
                    if column.key in vars(record):
                        setattr(stored, column.key, getattr(record, column.key))
            self._check_required(stored)
        return [r.id for r in records]

    async def save(self, batch: Iterable) -> list[uuid.UUID]:
        records = list(batch)
        await self.update([r for r in records if r.id is not None])
        await self.insert([r for r in records if r.id is None])
        return [r.id for r in records]

    async def upsert(self, batch: Iterable, key: Optional[str] = None) -> list[uuid.UUID]:
        records = list(batch)
        if key is None or not records:
            return await self.save(records)
        model = type(records[0])
        values = {getattr(r, key) for r in records}
        existing = build_lookup(await self.find(model, **{key: values}), key)
        for record in records:
            match = existing.get(getattr(record, key))
            if match is not None and record.id is None:
                record.id = match.id
        return await self.save(records)

    async def delete(self, batch: Iterable) -> None:
        records = list(batch)
        for record in records:
            if record.id is None:
                raise ValueError(f"{type(record).__name__} has no id; insert it first")
            if self._table(type(record)).pop(record.id, None) is None:
                raise RecordNotFound(type(record), record.id)


@pytest.fixture
def service() -> InMemoryRecordService:
    return InMemoryRecordService()
