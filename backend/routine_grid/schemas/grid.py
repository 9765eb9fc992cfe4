from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Annotated, Literal, Mapping, Union

from pydantic import BaseModel, ConfigDict, Field

from routine_grid.schemas.routine import (
    ClassKind,
    Coordinate,
    RoutineSlotRecord,
    SlotPosition,
    TimeSlotDefinition,
)


class EmptyCell(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["empty"] = "empty"

    @property
    def is_drawable(self) -> bool:
        return False


class SingleCell(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["single"] = "single"
    record: RoutineSlotRecord
    label: str = ""

    @property
    def is_drawable(self) -> bool:
        return True

    @property
    def records(self) -> tuple[RoutineSlotRecord, ...]:
        return (self.record,)

    @property
    def subject_ref(self) -> str:
        return self.record.subject_ref

    @property
    def class_kind(self) -> ClassKind:
        return self.record.class_kind

    @property
    def teacher_refs(self) -> tuple[str, ...]:
        return self.record.teacher_refs


class MultiGroupCell(BaseModel):
    """Lab groups of one class sharing a coordinate, merged into one display cell.

    ``records`` is ordered A, B, ALL, then records without a lab group, so the
    cell renders identically whatever order the records were stored in.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["multi_group"] = "multi_group"
    records: tuple[RoutineSlotRecord, ...]
    combined_label: str
    subject_ref: str
    class_kind: ClassKind
    teacher_refs: tuple[str, ...]

    @property
    def is_drawable(self) -> bool:
        return True


class SpannedEmptyCell(BaseModel):
    """Coordinate inside a multi-period class; content lives on the master cell."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["spanned_empty"] = "spanned_empty"
    span_id: str
    master_coordinate: Coordinate

    @property
    def is_drawable(self) -> bool:
        return False


LogicalCell = Annotated[
    Union[EmptyCell, SingleCell, MultiGroupCell, SpannedEmptyCell],
    Field(discriminator="kind"),
]

EMPTY_CELL = EmptyCell()


class SpanRange(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    span_id: str = Field(alias="spanId")
    day_index: int = Field(alias="dayIndex", ge=0, le=6)
    start_slot_position: SlotPosition = Field(alias="startSlotPosition")
    end_slot_position: SlotPosition = Field(alias="endSlotPosition")
    master_coordinate: Coordinate = Field(alias="masterCoordinate")
    slot_positions: tuple[SlotPosition, ...] = Field(default=(), alias="slotPositions")

    def covers(self, coordinate: Coordinate) -> bool:
        day_index, slot_position = coordinate
        return day_index == self.day_index and slot_position in self.slot_positions


@dataclass(frozen=True)
class AssembledRoutine:
    cells: Mapping[Coordinate, LogicalCell]
    span_ranges: tuple[SpanRange, ...]
    time_slots: tuple[TimeSlotDefinition, ...]
    day_indexes: tuple[int, ...]
    day_names: tuple[str, ...] = ()
    _span_by_id: Mapping[str, SpanRange] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "cells", MappingProxyType(dict(self.cells)))
        object.__setattr__(
            self,
            "_span_by_id",
            MappingProxyType({span.span_id: span for span in self.span_ranges}),
        )

    def cell_at(self, day_index: int, slot_position: SlotPosition) -> LogicalCell:
        return self.cells.get((day_index, slot_position), EMPTY_CELL)

    def row(self, day_index: int) -> list[tuple[TimeSlotDefinition, LogicalCell]]:
        return [(slot, self.cell_at(day_index, slot.slot_position)) for slot in self.time_slots]

    def drawable_coordinates(self) -> list[Coordinate]:
        positions = {slot.slot_position: index for index, slot in enumerate(self.time_slots)}
        drawable = [coordinate for coordinate, cell in self.cells.items() if cell.is_drawable]
        return sorted(drawable, key=lambda item: (item[0], positions.get(item[1], len(positions))))

    def day_name(self, day_index: int) -> str:
        if 0 <= day_index < len(self.day_names):
            return self.day_names[day_index]
        return str(day_index)

    def span_for(self, span_id: str) -> SpanRange | None:
        return self._span_by_id.get(span_id)
