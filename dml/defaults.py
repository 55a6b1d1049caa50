"""Uniform field defaults applied to a batch before it is persisted."""
from typing import Any, Iterable, Mapping


def apply_defaults(batch: Iterable, defaults: Mapping[str, Any]) -> list:
    """Set every default on every record, overwriting whatever was there."""
    records = list(batch)
    for record in records:
        for field, value in defaults.items():
            setattr(record, field, value)
    return records
