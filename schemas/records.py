"""Default field sets and result summaries for the DML examples."""
from datetime import date
from decimal import Decimal
from typing import Any, Optional

from dateutil.relativedelta import relativedelta
from pydantic import BaseModel, Field


def _three_months_out() -> date:
    return date.today() + relativedelta(months=3)


class OpportunityDefaults(BaseModel):
    stage_name: str = "Qualification"
    close_date: date = Field(default_factory=_three_months_out)
    amount: Decimal = Decimal("50000")

    def as_fields(self) -> dict[str, Any]:
        """Return the defaults keyed by Opportunity attribute name."""
        return self.model_dump()


class RecordRef(BaseModel):
    """Printable reference to a persisted record."""

    object_type: str
    id: Optional[str] = None
    name: Optional[str] = None

    @classmethod
    def of(cls, record: Any) -> "RecordRef":
        name = getattr(record, "name", None) or getattr(record, "last_name", None)
        if name is None:
            name = getattr(record, "subject", None)
        record_id = getattr(record, "id", None)
        return cls(
            object_type=type(record).__name__,
            id=str(record_id) if record_id is not None else None,
            name=name,
        )


class OperationResult(BaseModel):
    command: str
    records: list[RecordRef] = Field(default_factory=list)
    count: Optional[int] = None
