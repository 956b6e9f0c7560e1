"""Deduplicate records by normalized name and fill in missing fields."""

from dataclasses import replace
from typing import Dict, Iterable, List

from .constants import UNKNOWN_NAME
from .models import Record

# Fields completed from later duplicates; is_research_active is deliberately absent.
MERGEABLE_FIELDS = ("email", "profile_url", "title")


def normalize_name(name: str) -> str:
    return str(name or "").strip().lower()


def is_mergeable_key(key: str) -> bool:
    return bool(key) and key != UNKNOWN_NAME


def merge_records(records: Iterable[Record]) -> List[Record]:
    """
    Merge records in arrival order.

    The first record seen for a key is kept; later duplicates only fill
    fields that are still empty. Populated fields are never overwritten and
    the first research-active classification sticks. Input records are not
    mutated.
    """
    merged: Dict[str, Record] = {}
    for record in records:
        key = normalize_name(record.full_name)
        if not is_mergeable_key(key):
            continue
        existing = merged.get(key)
        if existing is None:
            merged[key] = replace(record)
            continue
        updates = {
            name: getattr(record, name)
            for name in MERGEABLE_FIELDS
            if not getattr(existing, name) and getattr(record, name)
        }
        if updates:
            merged[key] = replace(existing, **updates)
    return list(merged.values())
