"""Name-based duplicate grouping.

Two records are duplicates when their names normalize to the same key:
lowercase, trimmed, internal whitespace collapsed, leading and trailing
punctuation removed. There is no fuzzy or semantic matching.
"""

from __future__ import annotations

import unicodedata
from collections import OrderedDict
from typing import Any, Dict, Iterable, List, Mapping

from .schemas import DuplicateGroup, DuplicateRecordRef


def _is_punctuation(ch: str) -> bool:
    return unicodedata.category(ch).startswith("P")


def normalize_name(name: Any) -> str:
    text = " ".join(str(name or "").lower().split())
    start, end = 0, len(text)
    while start < end and _is_punctuation(text[start]):
        start += 1
    while end > start and _is_punctuation(text[end - 1]):
        end -= 1
    # Punctuation may have shielded whitespace ("- zinc -").
    return " ".join(text[start:end].split())


def group_by_name(records: Iterable[Mapping[str, Any]]) -> "OrderedDict[str, List[Mapping[str, Any]]]":
    """All records keyed by normalized name, first-seen order kept."""
    groups: "OrderedDict[str, List[Mapping[str, Any]]]" = OrderedDict()
    for record in records:
        key = normalize_name(record.get("name"))
        if not key:
            continue
        groups.setdefault(key, []).append(record)
    return groups


def find_duplicate_groups(records: Iterable[Mapping[str, Any]]) -> List[DuplicateGroup]:
    """Groups with two or more members, largest first, then by key."""
    duplicates: List[DuplicateGroup] = []
    for key, members in group_by_name(records).items():
        if len(members) < 2:
            continue
        duplicates.append(
            DuplicateGroup(
                name=key,
                count=len(members),
                records=[
                    DuplicateRecordRef(
                        id=str(member.get("id")),
                        category=member.get("category"),
                        source=member.get("source"),
                    )
                    for member in members
                ],
            )
        )
    duplicates.sort(key=lambda group: (-group.count, group.name))
    return duplicates


def members_by_group(
    records: Iterable[Mapping[str, Any]], groups: Iterable[DuplicateGroup]
) -> Dict[str, List[Mapping[str, Any]]]:
    """Resolve the id references of each group back to full records."""
    by_id = {str(record.get("id")): record for record in records}
    resolved: Dict[str, List[Mapping[str, Any]]] = {}
    for group in groups:
        members = [by_id[ref.id] for ref in group.records if ref.id in by_id]
        if len(members) >= 2:
            resolved[group.name] = members
    return resolved
