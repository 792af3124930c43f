"""Error types for the publishers module."""


class PublishError(Exception):
    """A single message could not be delivered.

    Attributes:
        status_code: HTTP status code, 0 when the request never completed.
    """

    def __init__(self, message: str, status_code: int = 0) -> None:
        super().__init__(message)
        self.status_code = status_code
