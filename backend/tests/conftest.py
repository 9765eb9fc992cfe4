import pytest

from routine_grid.core.config import get_settings
from routine_grid.schemas.routine import RoutineSlotRecord, TimeSlotDefinition


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    # Settings are cached per process; reset so env overrides in one test don't leak.
    for name in ("ROUTINE_GRID_SECTION_LAB_GROUPS", "ROUTINE_GRID_DEFAULT_LAB_GROUPS", "ROUTINE_GRID_ROUTINE_DAY_INDEXES"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def make_record():
    counter = {"value": 0}

    def factory(**overrides):
        counter["value"] += 1
        payload = {
            "id": f"rs-{counter['value']}",
            "dayIndex": 1,
            "slotPosition": 3,
            "subjectRef": "Algorithms",
            "teacherRefs": ["T1"],
            "roomRef": "Room 101",
            "classKind": "Lecture",
            "programCode": "BCT",
            "semester": 3,
            "section": "AB",
        }
        payload.update(overrides)
        return RoutineSlotRecord.model_validate(payload)

    return factory


@pytest.fixture
def time_slots():
    return [
        TimeSlotDefinition(slotPosition=0, startTime="10:15", endTime="11:05", sortOrder=1),
        TimeSlotDefinition(slotPosition=1, startTime="11:05", endTime="11:55", sortOrder=2),
        TimeSlotDefinition(slotPosition=2, startTime="11:55", endTime="12:45", sortOrder=3),
        TimeSlotDefinition(slotPosition=3, startTime="12:45", endTime="13:35", sortOrder=4, isBreak=True),
        TimeSlotDefinition(slotPosition=4, startTime="13:35", endTime="14:25", sortOrder=5),
        TimeSlotDefinition(slotPosition=5, startTime="14:25", endTime="15:15", sortOrder=6),
        TimeSlotDefinition(slotPosition=6, startTime="15:15", endTime="16:05", sortOrder=7),
    ]
