import pytest

from routine_grid.core.exceptions import ConflictError
from routine_grid.schemas.grid import MultiGroupCell, SingleCell
from routine_grid.schemas.routine import ClassKind
from routine_grid.services.slot_grouping import group_slots, section_lab_group_label


def test_empty_input_produces_empty_grid():
    assert group_slots([]) == {}


def test_single_record_becomes_single_cell(make_record):
    record = make_record(dayIndex=0, slotPosition=1)
    grid = group_slots([record])

    cell = grid[(0, 1)]
    assert isinstance(cell, SingleCell)
    assert cell.record == record
    assert cell.label == ""
    assert (1, 3) not in grid


def test_lab_groups_merge_into_one_cell(make_record):
    group_a = make_record(labGroup="A", teacherRefs=["T1"], classKind="P")
    group_b = make_record(labGroup="B", teacherRefs=["T2"], classKind="P")

    grid = group_slots([group_a, group_b])

    cell = grid[(1, 3)]
    assert isinstance(cell, MultiGroupCell)
    assert cell.combined_label == "Group A & Group B"
    assert cell.teacher_refs == ("T1", "T2")
    assert cell.subject_ref == "Algorithms"
    assert cell.class_kind is ClassKind.practical
    assert [record.lab_group for record in cell.records] == ["A", "B"]


def test_merge_is_independent_of_input_order(make_record):
    group_b = make_record(labGroup="B", teacherRefs=["T2", "T3"])
    group_a = make_record(labGroup="A", teacherRefs=["T1", "T2"])

    forward = group_slots([group_a, group_b])
    reverse = group_slots([group_b, group_a])

    assert forward == reverse
    assert forward[(1, 3)].teacher_refs == ("T1", "T2", "T3")
    assert forward[(1, 3)].combined_label == "Group A & Group B"


def test_grouping_twice_yields_identical_grids(make_record):
    records = [
        make_record(labGroup="A"),
        make_record(labGroup="B", teacherRefs=["T2"]),
        make_record(dayIndex=2, slotPosition=0, subjectRef="Networks"),
    ]
    assert group_slots(records) == group_slots(records)


def test_all_group_renders_section_pair(make_record):
    whole = make_record(labGroup="ALL", section="CD", teacherRefs=["T4"])
    group_c = make_record(labGroup="C", section="CD", teacherRefs=["T5"])

    cell = group_slots([whole, group_c])[(1, 3)]

    assert cell.combined_label == "Groups C & D"
    assert [record.lab_group for record in cell.records] == ["C", "ALL"]


def test_single_cell_label_uses_section_mapping(make_record):
    grid = group_slots([make_record(labGroup="ALL", section="XY")])
    assert grid[(1, 3)].label == "Groups A & B"

    custom = group_slots([make_record(labGroup="ALL", section="EF")], section_lab_groups={"EF": ("E", "F")})
    assert custom[(1, 3)].label == "Groups E & F"


def test_section_mapping_needs_two_groups(make_record):
    with pytest.raises(ValueError):
        section_lab_group_label("ALL", "EF", {"EF": ["E"]})
    with pytest.raises(ValueError):
        group_slots([make_record(labGroup="ALL", section="EF")], section_lab_groups={"EF": ["E", "F", "G"]})


def test_section_lab_group_label_defaults():
    assert section_lab_group_label(None, "AB") == ""
    assert section_lab_group_label("B", "AB") == "Group B"
    assert section_lab_group_label("ALL", "CD") == "Groups C & D"
    assert section_lab_group_label("ALL", "unknown") == "Groups A & B"


def test_different_subjects_at_same_coordinate_conflict(make_record):
    first = make_record(labGroup="A")
    second = make_record(labGroup="B", subjectRef="Networks")

    with pytest.raises(ConflictError) as excinfo:
        group_slots([first, second])

    assert excinfo.value.coordinate == (1, 3)
    assert set(excinfo.value.record_ids) == {first.id, second.id}
    assert excinfo.value.status_code == 409


def test_different_class_kinds_conflict(make_record):
    with pytest.raises(ConflictError):
        group_slots([make_record(labGroup="A", classKind="L"), make_record(labGroup="B", classKind="T")])


def test_more_than_two_groups_conflict(make_record):
    records = [make_record(labGroup="A"), make_record(labGroup="B"), make_record(labGroup="ALL")]
    with pytest.raises(ConflictError):
        group_slots(records)


def test_repeated_lab_group_conflicts(make_record):
    with pytest.raises(ConflictError):
        group_slots([make_record(labGroup="A"), make_record(labGroup="A", teacherRefs=["T9"])])
    with pytest.raises(ConflictError):
        group_slots([make_record(), make_record(teacherRefs=["T9"])])
