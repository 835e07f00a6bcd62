"""
Error taxonomy for the progression engine.

Three families:
- PreconditionViolation: the caller broke a contract (programming error, never retried)
- GenerationFailed: the content producer could not deliver a usable result
- StoreError: the persistent store rejected a read or write
"""


class ProgressionError(Exception):
    """Base class for all progression engine errors."""
    pass


class PreconditionViolation(ProgressionError):
    """Raised when an operation is invoked in a state that forbids it."""
    pass


class GenerationFailed(ProgressionError):
    """Raised when deck, exam or node generation fails. No state has been changed."""

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation} generation failed: {reason}")


class StoreError(ProgressionError):
    """Raised when the persistent store fails to read or write an aggregate."""
    pass


class PathNotFound(StoreError):
    """Raised when a learning path id is unknown to the store."""

    def __init__(self, path_id: str):
        self.path_id = path_id
        super().__init__(f"Learning path not found: {path_id}")
