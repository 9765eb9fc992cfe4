class AppError(Exception):
    """Base class for all routine grid exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class InvalidSemesterError(AppError):
    """Raised when a semester outside 1-8 is given to the parity classifier."""
    def __init__(self, semester):
        super().__init__(
            f"Semester must be an integer between 1 and 8, got {semester!r}",
            status_code=422,
            details={"semester": semester},
        )
        self.semester = semester

class ConflictError(AppError):
    """Raised when records sharing a grid coordinate cannot be merged into one cell."""
    def __init__(self, message: str, coordinate: tuple, record_ids: list[str]):
        super().__init__(
            message,
            status_code=409,
            details={"coordinate": list(coordinate), "record_ids": list(record_ids)},
        )
        self.coordinate = coordinate
        self.record_ids = list(record_ids)

class SpanIntegrityError(AppError):
    """Raised when a multi-period span is structurally invalid."""
    def __init__(self, span_id: str, reason: str, record_ids: list[str] = None):
        super().__init__(
            f"Span {span_id}: {reason}",
            status_code=422,
            details={"span_id": span_id, "reason": reason, "record_ids": list(record_ids or [])},
        )
        self.span_id = span_id
        self.reason = reason

class InvalidSlotMappingError(AppError):
    """Raised when a record points at a day or time slot outside the active grid."""
    def __init__(self, record_id: str, day_index: int, slot_position):
        super().__init__(
            f"Routine slot {record_id} maps to unknown coordinate (day={day_index}, slot={slot_position})",
            status_code=422,
            details={"record_id": record_id, "coordinate": [day_index, slot_position]},
        )
        self.record_id = record_id
