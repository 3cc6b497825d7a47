# aquatrack/core/errors.py

class ConsoleError(Exception):
    """Base class for every error the console reports to an operator."""
    pass


class ValidationError(ConsoleError):
    """Raised when operator input is rejected before any network call."""
    pass


class ConflictError(ConsoleError):
    """Raised when a workflow guard refuses an action given current state."""
    pass
