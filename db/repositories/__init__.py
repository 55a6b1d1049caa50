"""Repository layer for the CRM DML examples.

Provides the injected record service the examples run against:
- RecordService: find, count, insert, update, save, upsert, delete
- SqlRecordService: implementation over an SQLAlchemy AsyncSession
"""
from db.repositories.records import RecordNotFound, RecordService, SqlRecordService

__all__ = ["RecordNotFound", "RecordService", "SqlRecordService"]
