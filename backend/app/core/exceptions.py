class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class InvalidRequestError(AppError):
    """Raised when a request is missing required fields or carries unusable values."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)

class PermissionDeniedError(AppError):
    """Raised when the caller's role may not perform the operation."""
    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(message, status_code=403)

class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with id {resource_id} not found",
            status_code=404,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )

class InternalServiceError(AppError):
    """Raised for unexpected storage failures; the message stays opaque."""
    def __init__(self, message: str = "Internal server error"):
        super().__init__(message, status_code=500)
