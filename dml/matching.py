"""Find-or-create matching on a natural key.

One bulk fetch builds the lookup; every candidate key is then resolved
against it, so matching N candidates costs one query instead of N.
"""
import logging
from typing import Any, Hashable, Iterable, Mapping

logger = logging.getLogger(__name__)


def build_lookup(records: Iterable, key_field: str = "name") -> dict[Hashable, Any]:
    """Map each key value to one existing record; the first record seen wins."""
    lookup: dict[Hashable, Any] = {}
    for record in records:
        key = getattr(record, key_field)
        if key in lookup:
            logger.debug("Duplicate %s=%r ignored in lookup", key_field, key)
            continue
        lookup[key] = record
    return lookup


def resolve(
    keys: Iterable[Hashable],
    existing: Mapping[Hashable, Any],
    model: type,
    key_field: str = "name",
) -> list:
    """Return the existing record for each key, or a new stub with only the key set.

    Keys are de-duplicated in first-seen order. Nothing is persisted.
    """
    resolved = []
    seen = set()
    for key in keys:
        if key in seen:
            continue
        seen.add(key)
        record = existing.get(key)
        if record is None:
            record = model(**{key_field: key})
        resolved.append(record)
    return resolved
