class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class SchedulerError(AppError):
    """Raised when the scheduling input cannot produce any bookable slot."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)

class GenerationCancelledError(SchedulerError):
    """Raised when the host abandons a run between two phases."""
    def __init__(self, phase: str):
        super().__init__(f"Timetable generation cancelled after {phase}", details={"phase": phase})
        self.status_code = 409
        self.phase = phase

class ConfigurationError(AppError):
    """Raised when system configuration is invalid."""
    def __init__(self, message: str):
        super().__init__(message, status_code=500)
