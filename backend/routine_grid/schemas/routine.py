from __future__ import annotations

import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

SlotPosition = int | str
Coordinate = tuple[int, SlotPosition]

ALL_LAB_GROUPS = "ALL"

CLASS_KIND_CODES = {
    "L": "Lecture",
    "P": "Practical",
    "T": "Tutorial",
}


def parse_time_to_minutes(value: str) -> int:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


class ClassKind(str, Enum):
    lecture = "Lecture"
    practical = "Practical"
    tutorial = "Tutorial"


class SemesterGroup(str, Enum):
    odd = "Odd"
    even = "Even"


class RoutineSlotRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(min_length=1, max_length=64)
    day_index: int = Field(alias="dayIndex", ge=0, le=6)
    slot_position: SlotPosition = Field(alias="slotPosition")
    subject_ref: str = Field(alias="subjectRef", min_length=1, max_length=200)
    subject_code: str | None = Field(default=None, alias="subjectCode", max_length=50)
    teacher_refs: tuple[str, ...] = Field(default=(), alias="teacherRefs")
    room_ref: str | None = Field(default=None, alias="roomRef", max_length=100)
    class_kind: ClassKind = Field(alias="classKind")
    lab_group: str | None = Field(default=None, alias="labGroup")
    span_id: str | None = Field(default=None, alias="spanId", min_length=1, max_length=64)
    span_is_master: bool = Field(default=False, alias="spanIsMaster")
    program_code: str = Field(alias="programCode", min_length=1, max_length=20)
    semester: int = Field(ge=1, le=8)
    section: str = Field(min_length=1, max_length=20)
    semester_group: SemesterGroup | None = Field(default=None, alias="semesterGroup")
    is_alternative_week: bool = Field(default=False, alias="isAlternativeWeek")
    is_elective_class: bool = Field(default=False, alias="isElectiveClass")
    elective_label: str | None = Field(default=None, alias="electiveLabel", max_length=100)
    notes: str = ""

    @field_validator("class_kind", mode="before")
    @classmethod
    def expand_class_kind_code(cls, value):
        if isinstance(value, str):
            return CLASS_KIND_CODES.get(value.strip().upper(), value.strip())
        return value

    @field_validator("lab_group", mode="before")
    @classmethod
    def normalize_lab_group(cls, value: str | None) -> str | None:
        if value is None:
            return None
        group = str(value).strip().upper()
        if not group:
            return None
        if group != ALL_LAB_GROUPS and not (len(group) == 1 and group.isalpha()):
            raise ValueError("Lab group must be a single letter or ALL")
        return group

    @field_validator("teacher_refs", mode="before")
    @classmethod
    def clean_teacher_refs(cls, value):
        if value is None:
            return ()
        cleaned: list[str] = []
        for teacher in value:
            name = str(teacher).strip()
            if name and name not in cleaned:
                cleaned.append(name)
        return tuple(cleaned)

    @field_validator("program_code", "section")
    @classmethod
    def normalize_upper(cls, value: str) -> str:
        return value.strip().upper()

    @model_validator(mode="after")
    def validate_span_flags(self) -> "RoutineSlotRecord":
        if self.span_is_master and self.span_id is None:
            raise ValueError(f"Routine slot {self.id} is marked as span master without a spanId")
        return self

    @property
    def coordinate(self) -> Coordinate:
        return (self.day_index, self.slot_position)


class TimeSlotDefinition(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    slot_position: SlotPosition = Field(alias="slotPosition")
    label: str | None = Field(default=None, max_length=100)
    start_time: str | None = Field(default=None, alias="startTime")
    end_time: str | None = Field(default=None, alias="endTime")
    is_break: bool = Field(default=False, alias="isBreak")
    sort_order: int = Field(default=0, alias="sortOrder")

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, value: str | None) -> str | None:
        if value is not None and not TIME_PATTERN.match(value):
            raise ValueError("Time must be in HH:MM 24-hour format")
        return value

    @model_validator(mode="after")
    def validate_time_order(self) -> "TimeSlotDefinition":
        if self.start_time and self.end_time:
            if parse_time_to_minutes(self.end_time) <= parse_time_to_minutes(self.start_time):
                raise ValueError("End time must be after start time")
        return self

    @property
    def header(self) -> str:
        if self.is_break:
            return "BREAK"
        if self.label:
            return self.label
        if self.start_time and self.end_time:
            return f"{self.start_time}-{self.end_time}"
        return str(self.slot_position)


def order_time_slots(time_slots: list[TimeSlotDefinition]) -> list[TimeSlotDefinition]:
    ordered = sorted(enumerate(time_slots), key=lambda item: (item[1].sort_order, item[0]))
    seen: set[SlotPosition] = set()
    duplicates: set[str] = set()
    for _, slot in ordered:
        if slot.slot_position in seen:
            duplicates.add(str(slot.slot_position))
        seen.add(slot.slot_position)
    if duplicates:
        raise ValueError(f"Duplicate time slot position(s): {', '.join(sorted(duplicates))}")
    return [slot for _, slot in ordered]
