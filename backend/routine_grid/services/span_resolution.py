"""Multi-period span resolution.

A span is a class occupying several contiguous time slots on one day. All of
its records share a ``span_id`` and exactly one of them is the master: the
coordinate whose cell is drawn. Every other coordinate of the run becomes a
``SpannedEmptyCell`` pointing back at the master, and a ``SpanRange`` tells
the renderer which horizontal run to merge.

Spans move through ``pending -> validated -> resolved``; any integrity
violation moves a span to ``rejected`` and fails the whole call before a
single cell is overwritten.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from enum import Enum
from typing import Iterable, Mapping, Sequence

from routine_grid.core.exceptions import SpanIntegrityError
from routine_grid.schemas.grid import MultiGroupCell, SingleCell, SpannedEmptyCell, SpanRange
from routine_grid.schemas.routine import (
    Coordinate,
    RoutineSlotRecord,
    SlotPosition,
    TimeSlotDefinition,
    order_time_slots,
)

logger = logging.getLogger(__name__)


class SpanState(str, Enum):
    pending = "pending"
    validated = "validated"
    resolved = "resolved"
    rejected = "rejected"


class _SpanResolution:
    def __init__(self, span_id: str, records: list[RoutineSlotRecord]) -> None:
        self.span_id = span_id
        self.records = records
        self.state = SpanState.pending
        self.range: SpanRange | None = None

    def reject(self, reason: str) -> SpanIntegrityError:
        self.state = SpanState.rejected
        return SpanIntegrityError(self.span_id, reason, [record.id for record in self.records])

    def validate(self, slot_index: Mapping[SlotPosition, int] | None) -> SpanRange:
        masters = [record for record in self.records if record.span_is_master]
        if not masters:
            raise self.reject("no master slot")
        if len(masters) > 1:
            raise self.reject(f"{len(masters)} master slots ({', '.join(record.id for record in masters)})")

        days = {record.day_index for record in self.records}
        if len(days) > 1:
            raise self.reject(f"constituents span several days ({', '.join(str(day) for day in sorted(days))})")

        indexed: list[tuple[int, RoutineSlotRecord]] = []
        for record in self.records:
            index = self._position_index(record.slot_position, slot_index)
            indexed.append((index, record))
        indexed.sort(key=lambda item: item[0])

        # Two lab groups of the same period legitimately share a position.
        positions = sorted({index for index, _ in indexed})
        for previous, current in zip(positions, positions[1:]):
            if current != previous + 1:
                raise self.reject(f"slot positions are not contiguous (gap after position index {previous})")

        first_position = indexed[0][1].slot_position
        last_position = indexed[-1][1].slot_position
        ordered_positions: list[SlotPosition] = []
        for _, record in indexed:
            if record.slot_position not in ordered_positions:
                ordered_positions.append(record.slot_position)

        master = masters[0]
        self.range = SpanRange(
            span_id=self.span_id,
            day_index=master.day_index,
            start_slot_position=first_position,
            end_slot_position=last_position,
            master_coordinate=master.coordinate,
            slot_positions=tuple(ordered_positions),
        )
        self.state = SpanState.validated
        return self.range

    def _position_index(
        self,
        position: SlotPosition,
        slot_index: Mapping[SlotPosition, int] | None,
    ) -> int:
        if slot_index is None:
            if isinstance(position, bool) or not isinstance(position, int):
                raise self.reject(f"slot position {position!r} cannot be ordered without time slot definitions")
            return position
        if position not in slot_index:
            raise self.reject(f"slot position {position!r} is not an active time slot")
        return slot_index[position]


def _slot_index(time_slots: Sequence[TimeSlotDefinition] | None) -> dict[SlotPosition, int] | None:
    if time_slots is None:
        return None
    return {slot.slot_position: index for index, slot in enumerate(order_time_slots(list(time_slots)))}


def _check_claims(
    grid: Mapping[Coordinate, SingleCell | MultiGroupCell],
    resolutions: list[_SpanResolution],
) -> None:
    # Lab-group spans of one period share coordinates; they must share the whole run too.
    by_id = {resolution.span_id: resolution for resolution in resolutions}
    claimed: dict[Coordinate, _SpanResolution] = {}
    for resolution in resolutions:
        span_range = resolution.range
        if span_range.master_coordinate not in grid:
            raise resolution.reject(f"master coordinate {span_range.master_coordinate} has no cell")
        for position in span_range.slot_positions:
            coordinate = (span_range.day_index, position)
            owner = claimed.setdefault(coordinate, resolution)
            if owner is not resolution and (
                owner.range.master_coordinate != span_range.master_coordinate
                or owner.range.slot_positions != span_range.slot_positions
            ):
                raise resolution.reject(f"overlaps span {owner.span_id} at {coordinate}")
            if coordinate == span_range.master_coordinate:
                continue
            # Every record hidden behind the marker must render through this master.
            cell = grid.get(coordinate)
            if cell is None:
                continue
            for record in cell.records:
                other = by_id.get(record.span_id) if record.span_id is not None else None
                if other is None or other.range.master_coordinate != span_range.master_coordinate:
                    raise resolution.reject(
                        f"routine slot {record.id} at {coordinate} is not part of the span and would be hidden"
                    )


def resolve_spans(
    grid: Mapping[Coordinate, SingleCell | MultiGroupCell],
    records: Iterable[RoutineSlotRecord],
    *,
    time_slots: Sequence[TimeSlotDefinition] | None = None,
) -> tuple[dict[Coordinate, SingleCell | MultiGroupCell | SpannedEmptyCell], list[SpanRange]]:
    by_span: dict[str, list[RoutineSlotRecord]] = defaultdict(list)
    for record in records:
        if record.span_id is not None:
            by_span[record.span_id].append(record)

    slot_index = _slot_index(time_slots)
    resolutions = [_SpanResolution(span_id, constituents) for span_id, constituents in by_span.items()]

    try:
        for resolution in resolutions:
            resolution.validate(slot_index)
        _check_claims(grid, resolutions)
    except SpanIntegrityError as exc:
        logger.warning("Rejected span %s: %s", exc.span_id, exc.reason)
        raise

    # Spans sharing a master describe one merged region; the lowest span id stands for it.
    canonical: dict[Coordinate, _SpanResolution] = {}
    for resolution in sorted(resolutions, key=lambda item: item.span_id):
        canonical.setdefault(resolution.range.master_coordinate, resolution)

    final_grid: dict[Coordinate, SingleCell | MultiGroupCell | SpannedEmptyCell] = dict(grid)
    span_ranges: list[SpanRange] = []
    for resolution in resolutions:
        resolution.state = SpanState.resolved
        if canonical[resolution.range.master_coordinate] is not resolution:
            continue
        span_range = resolution.range
        for position in span_range.slot_positions:
            coordinate = (span_range.day_index, position)
            if coordinate == span_range.master_coordinate:
                continue
            final_grid[coordinate] = SpannedEmptyCell(
                span_id=resolution.span_id,
                master_coordinate=span_range.master_coordinate,
            )
        span_ranges.append(span_range)

    def range_order(item: SpanRange) -> tuple:
        start = item.start_slot_position
        start_index = slot_index[start] if slot_index is not None else start
        return (item.day_index, start_index, item.span_id)

    span_ranges.sort(key=range_order)
    logger.debug("Resolved %d span(s) across %d cell(s)", len(span_ranges), len(final_grid))
    return final_grid, span_ranges
