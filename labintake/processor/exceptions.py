class ProcessorError(Exception):
    """Base exception for pipeline orchestration errors."""


class PipelineCancelledError(ProcessorError):
    """Raised when the caller cancels a run between batches."""

    def __init__(self, message: str, completed_batches: int = 0) -> None:
        super().__init__(message)
        self.completed_batches = completed_batches
