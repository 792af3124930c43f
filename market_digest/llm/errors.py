"""Errors raised by model clients and response parsing."""


class LlmAuthError(Exception):
    """No usable model credentials."""


class LlmApiError(Exception):
    """Model API call failure.

    Attributes:
        status_code: HTTP status code from the API response, 0 if none.
    """

    def __init__(self, message: str, status_code: int = 0) -> None:
        super().__init__(message)
        self.status_code = status_code


class LlmProcessingError(Exception):
    """Model output could not be parsed into the expected shape."""
