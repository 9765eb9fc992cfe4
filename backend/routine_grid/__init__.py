from routine_grid.services.routine_grid import assemble_routine
from routine_grid.services.semester_groups import classify, members_of
from routine_grid.services.slot_grouping import group_slots
from routine_grid.services.span_resolution import resolve_spans

__all__ = ["assemble_routine", "classify", "group_slots", "members_of", "resolve_spans"]
