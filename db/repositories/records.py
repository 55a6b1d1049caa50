"""Record service: the CRUD surface every DML example runs against.

The operations in dml.operations never touch a session directly; they take a
RecordService and call find/insert/update/save/upsert/delete on it. Failures
raised by the database (integrity errors, missing required fields) propagate
unchanged.
"""
import logging
import uuid
from typing import Any, Iterable, Optional, Protocol

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import Base
from dml.matching import build_lookup

logger = logging.getLogger(__name__)

_COLLECTION_TYPES = (list, tuple, set, frozenset)


class RecordNotFound(LookupError):
    """Raised when an update or delete targets a record that does not exist."""

    def __init__(self, model: type, record_id: Any):
        self.model = model
        self.record_id = record_id
        super().__init__(f"{model.__name__} {record_id} does not exist")


class RecordService(Protocol):
    async def find(self, model: type, **criteria: Any) -> list: ...

    async def count(self, model: type, **criteria: Any) -> int: ...

    async def insert(self, batch: Iterable) -> list[uuid.UUID]: ...

    async def update(self, batch: Iterable) -> list[uuid.UUID]: ...

    async def save(self, batch: Iterable) -> list[uuid.UUID]: ...

    async def upsert(
        self, batch: Iterable, key: Optional[str] = None
    ) -> list[uuid.UUID]: ...

    async def delete(self, batch: Iterable) -> None: ...


def _require_id(record: Base) -> uuid.UUID:
    if record.id is None:
        raise ValueError(f"{type(record).__name__} has no id; insert it first")
    return record.id


def _where(stmt: Select, model: type, criteria: dict[str, Any]) -> Select:
    """Apply equality filters; collection values become IN filters."""
    for field, value in criteria.items():
        column = getattr(model, field)
        if isinstance(value, _COLLECTION_TYPES):
            stmt = stmt.where(column.in_(list(value)))
        else:
            stmt = stmt.where(column == value)
    return stmt


class SqlRecordService:
    """RecordService backed by an SQLAlchemy AsyncSession.

    The session is owned by the caller (usually ``db.get_db()``), which
    commits or rolls back; this class only flushes.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find(self, model: type, **criteria: Any) -> list:
        """Return all records of ``model`` matching ``criteria``, oldest first."""
        stmt = _where(select(model), model, criteria).order_by(model.created_at)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count(self, model: type, **criteria: Any) -> int:
        stmt = _where(select(func.count()).select_from(model), model, criteria)
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def insert(self, batch: Iterable) -> list[uuid.UUID]:
        """Create every record in the batch and populate its id."""
        records = list(batch)
        if not records:
            return []
        self.session.add_all(records)
        await self.session.flush()
        logger.debug("Inserted %d records", len(records))
        return [r.id for r in records]

    async def update(self, batch: Iterable) -> list[uuid.UUID]:
        """Write the fields of existing records back to the database."""
        records = list(batch)
        ids = []
        for record in records:
            record_id = _require_id(record)
            current = await self.session.get(type(record), record_id)
            if current is None:
                raise RecordNotFound(type(record), record_id)
            if current is not record:
                await self.session.merge(record)
            ids.append(record_id)
        await self.session.flush()
        logger.debug("Updated %d records", len(ids))
        return ids

    async def save(self, batch: Iterable) -> list[uuid.UUID]:
        """Upsert by id: records with an id are updated, the rest inserted."""
        records = list(batch)
        await self.update([r for r in records if r.id is not None])
        await self.insert([r for r in records if r.id is None])
        return [r.id for r in records]

    async def upsert(
        self, batch: Iterable, key: Optional[str] = None
    ) -> list[uuid.UUID]:
        """Upsert by id, or by the external matching field ``key``.

        With a key, existing records are found in one query and their ids
        copied onto the matching batch records before saving.
        """
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
            record_id = _require_id(record)
            current = record if record in self.session else None
            if current is None:
                current = await self.session.get(type(record), record_id)
            if current is None:
                raise RecordNotFound(type(record), record_id)
            await self.session.delete(current)
        await self.session.flush()
        logger.debug("Deleted %d records", len(records))
