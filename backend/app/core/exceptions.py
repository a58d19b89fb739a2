class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class SchedulingValidationError(AppError):
    """Raised when scheduling input is malformed (bad times, empty weekday set, ...)."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=422, details=details)

class DataUnavailableError(AppError):
    """Raised when a data-layer query needed for a scheduling decision fails."""
    def __init__(self, source: str, details: dict = None):
        super().__init__(f"Unable to load {source}", status_code=503, details=details)
        self.source = source

class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(f"{resource_type} with id {resource_id} not found", status_code=404)
