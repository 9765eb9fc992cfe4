from __future__ import annotations

import logging
from collections import defaultdict
from typing import Iterable, Mapping

from routine_grid.core.config import get_settings
from routine_grid.core.exceptions import ConflictError
from routine_grid.schemas.grid import MultiGroupCell, SingleCell
from routine_grid.schemas.routine import ALL_LAB_GROUPS, Coordinate, RoutineSlotRecord

logger = logging.getLogger(__name__)

MAX_GROUPS_PER_CELL = 2


def lab_groups_for_section(
    section: str | None,
    section_lab_groups: Mapping[str, tuple[str, str] | list[str]] | None = None,
) -> tuple[str, str]:
    if section_lab_groups is None:
        return get_settings().lab_groups_for_section(section)
    groups = section_lab_groups.get((section or "").strip().upper())
    if not groups:
        return get_settings().lab_groups_for_section(None)
    if len(groups) != 2:
        raise ValueError(f"Section {section} must map to exactly two lab groups, got {len(groups)}")
    return groups[0], groups[1]


def section_lab_group_label(
    lab_group: str | None,
    section: str | None,
    section_lab_groups: Mapping[str, tuple[str, str] | list[str]] | None = None,
) -> str:
    if not lab_group:
        return ""
    if lab_group == ALL_LAB_GROUPS:
        return f"Groups {' & '.join(lab_groups_for_section(section, section_lab_groups))}"
    return f"Group {lab_group}"


def lab_group_sort_key(record: RoutineSlotRecord) -> tuple[int, str, str]:
    # A < B < other letters < ALL < no group; record id breaks remaining ties.
    group = record.lab_group
    if group is None:
        return (3, "", record.id)
    if group == ALL_LAB_GROUPS:
        return (2, "", record.id)
    return (0 if group in ("A", "B") else 1, group, record.id)


def _merge_teachers(records: Iterable[RoutineSlotRecord]) -> tuple[str, ...]:
    seen: set[str] = set()
    merged: list[str] = []
    for record in records:
        for teacher in record.teacher_refs:
            if teacher in seen:
                continue
            seen.add(teacher)
            merged.append(teacher)
    return tuple(merged)


def merge_lab_groups(
    coordinate: Coordinate,
    records: list[RoutineSlotRecord],
    section_lab_groups: Mapping[str, tuple[str, str] | list[str]] | None = None,
) -> MultiGroupCell:
    record_ids = [record.id for record in records]
    if len(records) > MAX_GROUPS_PER_CELL:
        raise ConflictError(
            f"{len(records)} routine slots share coordinate {coordinate}; at most {MAX_GROUPS_PER_CELL} lab groups can be merged",
            coordinate,
            record_ids,
        )

    ordered = sorted(records, key=lab_group_sort_key)
    first = ordered[0]
    for other in ordered[1:]:
        if other.subject_ref != first.subject_ref:
            raise ConflictError(
                f"Routine slots at {coordinate} disagree on subject: {first.subject_ref} vs {other.subject_ref}",
                coordinate,
                record_ids,
            )
        if other.class_kind != first.class_kind:
            raise ConflictError(
                f"Routine slots at {coordinate} disagree on class kind: {first.class_kind.value} vs {other.class_kind.value}",
                coordinate,
                record_ids,
            )

    groups = [record.lab_group for record in ordered]
    if len(set(groups)) != len(groups):
        raise ConflictError(
            f"Routine slots at {coordinate} repeat lab group {groups[0] or 'none'}",
            coordinate,
            record_ids,
        )

    if ALL_LAB_GROUPS in groups:
        combined_label = section_lab_group_label(ALL_LAB_GROUPS, first.section, section_lab_groups)
    else:
        # Missing lab groups have no letter to show; a lone letter still reads "Group A".
        combined_label = " & ".join(f"Group {group}" for group in groups if group)

    return MultiGroupCell(
        records=tuple(ordered),
        combined_label=combined_label,
        subject_ref=first.subject_ref,
        class_kind=first.class_kind,
        teacher_refs=_merge_teachers(ordered),
    )


def group_slots(
    records: Iterable[RoutineSlotRecord],
    *,
    section_lab_groups: Mapping[str, tuple[str, str] | list[str]] | None = None,
) -> dict[Coordinate, SingleCell | MultiGroupCell]:
    partitions: dict[Coordinate, list[RoutineSlotRecord]] = defaultdict(list)
    for record in records:
        partitions[record.coordinate].append(record)

    grid: dict[Coordinate, SingleCell | MultiGroupCell] = {}
    merged = 0
    for coordinate, constituents in partitions.items():
        if len(constituents) == 1:
            record = constituents[0]
            grid[coordinate] = SingleCell(
                record=record,
                label=section_lab_group_label(record.lab_group, record.section, section_lab_groups),
            )
            continue
        grid[coordinate] = merge_lab_groups(coordinate, constituents, section_lab_groups)
        merged += 1

    logger.debug("Grouped routine slots into %d cell(s), %d merged across lab groups", len(grid), merged)
    return grid
