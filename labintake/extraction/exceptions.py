class ExtractionError(Exception):
    """Raised when a batch could not be turned into extraction results."""


class ExtractionValidationError(ExtractionError):
    """Raised when the parsed response does not have the expected shape."""


class ExtractionNetworkError(ExtractionError):
    """Raised when the AI provider call fails due to network/infrastructure issues."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class PayloadTooLargeError(ExtractionError):
    """Raised before dispatch when a request exceeds a hard ceiling."""

    status_code = 413
