"""Consolidation of duplicate groups into one primary record.

Primary selection order: highest dataQuality, then highest completeness,
then earliest ``created_at`` (records without one sort last), then the
smallest id. Scalars keep the primary's value unless it is empty, in which
case the first non-empty value in that same order wins. Lists are unioned
case-insensitively in first-seen order, primary first; a single value meeting
a list (or a mapping meeting a non-mapping) is unioned the same way. Mappings
merge recursively by the same rules.

The store has no transactions. The primary is written before any loser is
deleted, so a failed delete leaves a smaller duplicate group behind that the
next run merges again without losing anything.
"""

from __future__ import annotations

import copy
import json
import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from healthscan_catalog.core.exceptions import CatalogError
from healthscan_catalog.store.kv_store import RecordStore, record_key
from healthscan_catalog.utils.batching import paced_chunks

from .duplicates import members_by_group
from .quality import is_present, score_record
from .schemas import DuplicateGroup, FieldDefinition, GroupMergeResult, MergeResult, QualityAnalysisItem
from .standardizer import utc_now_iso

logger = logging.getLogger(__name__)

PROTECTED_FIELDS = frozenset({"id"})


def _created_sort_key(value: Any) -> Tuple[int, float]:
    if isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return (1, 0.0)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return (0, parsed.timestamp())
    return (1, 0.0)


def rank_members(
    members: Iterable[Mapping[str, Any]], scores: Mapping[str, QualityAnalysisItem]
) -> List[Mapping[str, Any]]:
    """Members ordered by merge priority; the first one becomes primary."""

    def key(record: Mapping[str, Any]):
        record_id = str(record.get("id"))
        item = scores.get(record_id)
        quality = item.data_quality if item else 0
        completeness = item.completeness if item else 0
        return (-quality, -completeness, _created_sort_key(record.get("created_at")), record_id)

    return sorted(members, key=key)


def _identity(item: Any) -> str:
    if isinstance(item, str):
        return item.strip().casefold()
    return json.dumps(item, sort_keys=True, default=str).casefold()


def union_values(*lists: Sequence[Any]) -> List[Any]:
    seen = set()
    merged: List[Any] = []
    for values in lists:
        for item in values:
            if not is_present(item):
                continue
            ident = _identity(item)
            if ident in seen:
                continue
            seen.add(ident)
            merged.append(copy.deepcopy(item))
    return merged


def unique_ids(*lists: Sequence[Any]) -> List[str]:
    """Ids are opaque: exact-match de-duplication, first-seen order."""
    seen = set()
    ids: List[str] = []
    for values in lists:
        for item in values:
            if not is_present(item):
                continue
            record_id = str(item)
            if record_id not in seen:
                seen.add(record_id)
                ids.append(record_id)
    return ids


def merge_value(current: Any, incoming: Any) -> Any:
    if not is_present(incoming):
        return current
    if not is_present(current):
        return copy.deepcopy(incoming)
    current_is_list = isinstance(current, (list, tuple))
    incoming_is_list = isinstance(incoming, (list, tuple))
    if current_is_list or incoming_is_list:
        # A single value on one side joins the other side's list.
        return union_values(
            current if current_is_list else [current],
            incoming if incoming_is_list else [incoming],
        )
    if isinstance(current, Mapping) and isinstance(incoming, Mapping):
        merged = dict(current)
        for key, value in incoming.items():
            merged[key] = merge_value(merged.get(key), value)
        return merged
    if isinstance(current, Mapping) or isinstance(incoming, Mapping):
        return union_values([current], [incoming])
    return current


def merge_records(ranked: Sequence[Mapping[str, Any]]) -> Dict[str, Any]:
    """Fold ``ranked[1:]`` into a copy of ``ranked[0]``."""
    merged = copy.deepcopy(dict(ranked[0]))
    for other in ranked[1:]:
        for key, value in other.items():
            if key in PROTECTED_FIELDS:
                continue
            merged[key] = merge_value(merged.get(key), value)
    return merged


class MergeEngine:
    def __init__(
        self,
        store: RecordStore,
        batch_size: int = 50,
        batch_delay_seconds: float = 0.0,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], str] = utc_now_iso,
    ):
        self.store = store
        self.batch_size = batch_size
        self.batch_delay_seconds = batch_delay_seconds
        self.sleep = sleep
        self.clock = clock

    def merge_group(
        self,
        category: str,
        name: str,
        members: Sequence[Mapping[str, Any]],
        scores: Mapping[str, QualityAnalysisItem],
        schema: Mapping[str, FieldDefinition],
        errors: List[str],
    ) -> Optional[GroupMergeResult]:
        ranked = rank_members(members, scores)
        primary_id = str(ranked[0].get("id"))
        loser_ids = [str(member.get("id")) for member in ranked[1:]]

        merged = merge_records(ranked)
        now = self.clock()
        merged["merged_ids"] = unique_ids(
            merged.get("merged_ids") or [],
            *[member.get("merged_ids") or [] for member in ranked[1:]],
            loser_ids,
        )
        merged["merged_at"] = now
        merged["updated_at"] = now
        if schema:
            merged["quality_score"] = score_record(merged, schema).data_quality

        logger.debug("Merging '%s': primary %s absorbs %s", name, primary_id, loser_ids)
        try:
            self.store.set(record_key(category, primary_id), merged)
        except CatalogError as exc:
            # Nothing deleted yet; the group is untouched.
            logger.warning("Merge of '%s' aborted, primary %s not saved: %s", name, primary_id, exc)
            errors.append(f"{name}: could not save primary {primary_id}: {exc}")
            return None

        deleted: List[str] = []
        for loser_id in loser_ids:
            try:
                self.store.delete(record_key(category, loser_id))
            except CatalogError as exc:
                logger.warning("Duplicate %s of '%s' left in place: %s", loser_id, name, exc)
                errors.append(f"{name}: could not delete duplicate {loser_id} (data already merged, re-run to retry): {exc}")
                continue
            deleted.append(loser_id)

        return GroupMergeResult(name=name, primary_id=primary_id, merged_ids=deleted, total_merged=len(ranked))

    def merge_duplicates(
        self,
        category: str,
        groups: Sequence[DuplicateGroup],
        records: Sequence[Mapping[str, Any]],
        scores: Mapping[str, QualityAnalysisItem],
        schema: Mapping[str, FieldDefinition],
    ) -> MergeResult:
        result = MergeResult(duplicate_groups=len(groups))
        resolved = members_by_group(records, groups)

        for chunk in paced_chunks(list(groups), self.batch_size, self.batch_delay_seconds, self.sleep):
            for group in chunk:
                members = resolved.get(group.name)
                if not members:
                    continue
                outcome = self.merge_group(category, group.name, members, scores, schema, result.errors)
                if outcome is None:
                    continue
                result.merged += 1
                result.deleted += len(outcome.merged_ids)
                result.merge_results.append(outcome)

        logger.info(
            "Merged %d/%d %s duplicate groups, deleted %d records (%d errors)",
            result.merged, result.duplicate_groups, category, result.deleted, len(result.errors),
        )
        return result
