from fastapi import status


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ValidationFailed(ServiceError):
    """Payload is well-formed but fails a business rule. Raised before any write."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class ConflictError(ServiceError):
    """Target key is already taken (e.g. a week with the same number and year)."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_409_CONFLICT)


class DependentRecordsError(ServiceError):
    """Delete blocked by dependent rows; count is the number of blocking rows."""

    def __init__(self, message: str, count: int) -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST)
        self.count = count
