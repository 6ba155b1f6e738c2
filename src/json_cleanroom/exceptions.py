"""
Custom exception classes for json_cleanroom.

These never escape ``validate``; they are raised by the document loaders
and used internally by the repair engine.
"""


class CleanroomError(Exception):
    """Base exception for all json_cleanroom errors."""
    pass


class DocumentLoadError(CleanroomError):
    """Error loading a schema, expectations or options document."""

    def __init__(self, file_name: str, message: str):
        self.file_name = file_name
        self.message = message
        super().__init__(f"Error loading {file_name}: {message}")


class RepairBudgetExceeded(CleanroomError):
    """The running edit count of a repair attempt went over its budget."""

    def __init__(self, threshold: int, after_pass: str):
        self.threshold = threshold
        self.after_pass = after_pass
        super().__init__(
            f"Repair budget of {threshold} edits exceeded after pass {after_pass}"
        )
