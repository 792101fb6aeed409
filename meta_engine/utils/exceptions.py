"""
Custom exceptions for the meta engine with caller-facing error messages.

Parse-level problems are never raised; these cover caller errors
(unknown ids, bad arguments) and store failures.
"""

class MetaEngineError(Exception):
    """Base exception for meta engine errors."""
    def __init__(self, message: str, user_message: str = None):
        super().__init__(message)
        self.user_message = user_message or message

class UnknownFormatError(MetaEngineError):
    """Raised when an import names an unsupported CSV format."""
    def __init__(self, format_id: str):
        super().__init__(
            f"Unknown import format '{format_id}'",
            f"Format '{format_id}' is not supported. Use A, B or C."
        )
        self.format_id = format_id

class ImportValidationError(MetaEngineError):
    """Raised when import arguments are missing or empty."""
    def __init__(self, field: str, reason: str):
        super().__init__(
            f"Invalid import argument '{field}': {reason}",
            f"{field} {reason}"
        )
        self.field = field

class PlayerNotFoundError(MetaEngineError):
    """Raised when a Glicko player id does not exist."""
    def __init__(self, player_id: str):
        super().__init__(
            f"Glicko player '{player_id}' not found",
            f"No rated player with id '{player_id}'."
        )
        self.player_id = player_id

class UserNotFoundError(MetaEngineError):
    """Raised when a platform account id does not exist."""
    def __init__(self, user_id: str):
        super().__init__(
            f"Platform user '{user_id}' not found",
            f"No account with id '{user_id}'."
        )
        self.user_id = user_id

class ImportNotFoundError(MetaEngineError):
    """Raised when an import id does not exist."""
    def __init__(self, import_id: str):
        super().__init__(
            f"Import '{import_id}' not found",
            f"No tournament import with id '{import_id}'."
        )
        self.import_id = import_id

class DatabaseError(MetaEngineError):
    """Raised when database operations fail."""
    def __init__(self, operation: str, details: str = None):
        super().__init__(
            f"Database error during {operation}: {details}",
            "Database error occurred. Please try again later."
        )
        self.operation = operation
