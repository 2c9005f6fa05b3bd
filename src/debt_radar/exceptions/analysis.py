"""Analysis exceptions: fact records, hierarchy, persistence of results."""

from typing import Optional

from .base import DebtRadarError


class AnalysisError(DebtRadarError):
    """Base class for errors raised while computing criticality."""
    pass


class InvalidFactError(AnalysisError):
    """Raised when a fact record carries values no collector can produce."""

    def __init__(self, file_path: str, field_name: str, value: object, reason: str):
        super().__init__(
            f"Invalid fact for {file_path}: {field_name}={value}",
            details={"file_path": file_path, "field": field_name, "reason": reason},
        )
        self.file_path = file_path
        self.field_name = field_name
        self.value = value
        self.reason = reason


class PersistenceError(AnalysisError):
    """Raised when a snapshot's results cannot be written atomically.

    The transaction has been rolled back when this is raised, so the
    snapshot's derived data is left exactly as it was before the write.
    """

    def __init__(self, operation: str, reason: str, snapshot_id: Optional[int] = None):
        details = {"operation": operation, "reason": reason}
        if snapshot_id is not None:
            details["snapshot_id"] = str(snapshot_id)

        super().__init__(f"Failed to {operation}", details=details)
        self.operation = operation
        self.reason = reason
        self.snapshot_id = snapshot_id
