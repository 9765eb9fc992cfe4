from __future__ import annotations

import logging
from typing import Iterable, Mapping, Sequence

from routine_grid.core.config import get_settings
from routine_grid.core.exceptions import InvalidSlotMappingError
from routine_grid.schemas.grid import EMPTY_CELL, AssembledRoutine
from routine_grid.schemas.routine import RoutineSlotRecord, TimeSlotDefinition, order_time_slots
from routine_grid.services.slot_grouping import group_slots
from routine_grid.services.span_resolution import resolve_spans

logger = logging.getLogger(__name__)


def assemble_routine(
    records: Iterable[RoutineSlotRecord],
    time_slots: Sequence[TimeSlotDefinition],
    *,
    day_indexes: Iterable[int] | None = None,
    section_lab_groups: Mapping[str, tuple[str, str] | list[str]] | None = None,
) -> AssembledRoutine:
    """Build the day x time-slot grid for one program/semester/section.

    ``records`` are trusted to be already filtered to a single routine. Every
    coordinate of the active days and time slots gets a cell; coordinates
    without a class hold ``EmptyCell``.
    """
    settings = get_settings()
    active_days = tuple(sorted(set(day_indexes if day_indexes is not None else settings.routine_day_indexes)))
    ordered_slots = tuple(order_time_slots(list(time_slots)))
    known_positions = {slot.slot_position for slot in ordered_slots}

    records = list(records)
    for record in records:
        if record.day_index not in active_days or record.slot_position not in known_positions:
            raise InvalidSlotMappingError(record.id, record.day_index, record.slot_position)

    grouped = group_slots(records, section_lab_groups=section_lab_groups)
    resolved, span_ranges = resolve_spans(grouped, records, time_slots=ordered_slots)

    cells = {
        (day_index, slot.slot_position): resolved.get((day_index, slot.slot_position), EMPTY_CELL)
        for day_index in active_days
        for slot in ordered_slots
    }

    logger.debug(
        "Assembled routine grid: %d record(s), %d day(s) x %d slot(s), %d span(s)",
        len(records),
        len(active_days),
        len(ordered_slots),
        len(span_ranges),
    )
    return AssembledRoutine(
        cells=cells,
        span_ranges=tuple(span_ranges),
        time_slots=ordered_slots,
        day_indexes=active_days,
        day_names=tuple(settings.day_names),
    )
