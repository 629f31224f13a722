class BrainSpaceError(Exception):
    """Base exception for all task engine errors."""
    pass

class InputError(BrainSpaceError, ValueError):
    """The caller passed an argument that can never be valid - a caller bug, not a data issue."""
    pass

class UnknownTaskError(InputError, KeyError):
    """The task id is not present in the snapshot."""

    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(f"Unknown task id: {task_id!r}")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]

class InvalidStatusError(InputError):
    """Status value outside the task status enum."""
    pass

class InvalidDateError(InputError):
    """Date argument that is neither a date nor an ISO calendar day."""
    pass

class InvalidInstanceIdError(InputError):
    """Instance id without a trailing date segment."""
    pass

class SnapshotError(BrainSpaceError):
    """Snapshot file cannot be parsed or has an incompatible schema version."""
    pass

class FileOperationError(SnapshotError):
    """File operation failed but can be retried."""
    pass
