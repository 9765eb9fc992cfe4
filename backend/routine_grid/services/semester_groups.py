"""Semester parity groups.

Semesters are bucketed into the institution's two scheduling cohorts. The
buckets are not arithmetic parity: semesters 1-4 are shifted up by one before
the parity test, which gives Odd = {2, 4, 5, 7} and Even = {1, 3, 6, 8}.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Iterable

from routine_grid.core.exceptions import InvalidSemesterError
from routine_grid.schemas.routine import RoutineSlotRecord, SemesterGroup

logger = logging.getLogger(__name__)

MIN_SEMESTER = 1
MAX_SEMESTER = 8

SEMESTER_GROUP_MEMBERS: dict[SemesterGroup, frozenset[int]] = {
    SemesterGroup.odd: frozenset({2, 4, 5, 7}),
    SemesterGroup.even: frozenset({1, 3, 6, 8}),
}


def _require_semester(semester: int) -> int:
    if isinstance(semester, bool) or not isinstance(semester, int):
        raise InvalidSemesterError(semester)
    if semester < MIN_SEMESTER or semester > MAX_SEMESTER:
        raise InvalidSemesterError(semester)
    return semester


def transform_semester_for_grouping(semester: int) -> int:
    semester = _require_semester(semester)
    if semester <= 4:
        return semester + 1
    return semester


def classify(semester: int) -> SemesterGroup:
    if transform_semester_for_grouping(semester) % 2 == 1:
        return SemesterGroup.odd
    return SemesterGroup.even


def is_odd_group(semester: int) -> bool:
    return classify(semester) is SemesterGroup.odd


def is_even_group(semester: int) -> bool:
    return classify(semester) is SemesterGroup.even


def members_of(group: SemesterGroup | str) -> frozenset[int]:
    try:
        key = SemesterGroup(group) if isinstance(group, SemesterGroup) else SemesterGroup(str(group).strip().capitalize())
    except ValueError as exc:
        raise ValueError(f"Unknown semester group {group!r}") from exc
    return SEMESTER_GROUP_MEMBERS[key]


def partition_by_semester_group(
    records: Iterable[RoutineSlotRecord],
) -> dict[SemesterGroup, list[RoutineSlotRecord]]:
    partitions: dict[SemesterGroup, list[RoutineSlotRecord]] = defaultdict(list)
    for record in records:
        partitions[classify(record.semester)].append(record)
    return {group: partitions.get(group, []) for group in SemesterGroup}


def filter_by_semester_group(
    records: Iterable[RoutineSlotRecord],
    group: SemesterGroup | str,
) -> list[RoutineSlotRecord]:
    members = members_of(group)
    return [record for record in records if record.semester in members]


def find_misclassified_records(
    records: Iterable[RoutineSlotRecord],
) -> list[tuple[RoutineSlotRecord, SemesterGroup | None, SemesterGroup]]:
    """Return records whose stored semester group disagrees with ``classify``.

    Records labelled with plain odd/even arithmetic show up here. Each entry is
    ``(record, stored_group, expected_group)``; a record with no stored group
    is reported with ``stored_group`` set to ``None``.
    """
    mismatches: list[tuple[RoutineSlotRecord, SemesterGroup | None, SemesterGroup]] = []
    checked = 0
    for record in records:
        checked += 1
        expected = classify(record.semester)
        if record.semester_group != expected:
            mismatches.append((record, record.semester_group, expected))

    if mismatches:
        logger.warning(
            "Found %d of %d routine slot(s) with a stale semester group",
            len(mismatches),
            checked,
        )
    return mismatches
