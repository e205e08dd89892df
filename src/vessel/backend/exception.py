"""Custom exceptions for Vessel application"""


class VesselException(Exception):
    """Base exception for all Vessel errors

    All custom exceptions should inherit from this class.
    The global exception handler will catch this and return ErrorResponse.

    Attributes:
        message: Human-readable error message
        code: Error code for client-side error handling
    """

    def __init__(self, message: str, code: str):
        """Initialize Vessel exception

        Args:
            message: Human-readable error message
            code: Error code (e.g., "VALIDATION_ERROR", "CONFLICT")
        """
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(VesselException):
    """Validation error (invalid input data)

    Examples:
        - Empty workspace name
        - Unknown split direction
    """

    def __init__(self, message: str):
        super().__init__(message, "VALIDATION_ERROR")


class NotFoundError(VesselException):
    """Resource not found error

    Examples:
        - Workspace not found
        - Terminal session not found
    """

    def __init__(self, message: str):
        super().__init__(message, "NOT_FOUND")


class ConfigError(VesselException):
    """Configuration error

    Examples:
        - Invalid [terminal] values in config.toml
        - Missing [server] section
    """

    def __init__(self, message: str):
        super().__init__(message, "CONFIG_ERROR")


# ==================== Terminal Layer Exceptions ====================


class TerminalException(VesselException):
    """Base exception for all terminal (session manager) errors"""

    def __init__(self, message: str, code: str):
        super().__init__(message, code)


class SessionConflictError(TerminalException):
    """Session id already registered (or used before)

    Examples:
        - create() called twice with the same id
        - create() called with the id of a destroyed session
    """

    def __init__(self, message: str):
        super().__init__(message, "SESSION_CONFLICT")


class SpawnError(TerminalException):
    """The OS refused to create the pseudo-terminal or the shell process

    Examples:
        - Shell executable not found
        - Working directory does not exist
        - Out of pseudo-terminals
    """

    def __init__(self, message: str):
        super().__init__(message, "SPAWN_FAILED")


# ==================== Layout Layer Exceptions ====================


class LayoutInvariantError(Exception):
    """A layout tree edit produced (or was handed) an ill-formed tree

    This is a programming error in the layout engine. It is never caught
    by the engine itself, and it is not a VesselException, so the API
    reports it as an internal server error rather than an ErrorResponse.

    Examples:
        - Split node with other than two children
        - Same terminal id bound to two leaves
        - Workspace terminal_ids out of sync with its tree
    """

    def __init__(self, message: str):
        self.message = message
        self.code = "LAYOUT_INVARIANT"
        super().__init__(message)
