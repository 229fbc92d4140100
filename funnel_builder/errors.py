from fastapi import status


class ValidationError(Exception):
    """Request-level failure that maps to a 4xx response with a readable message."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class NotFoundError(ValidationError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(ValidationError):
    status_code = status.HTTP_409_CONFLICT
