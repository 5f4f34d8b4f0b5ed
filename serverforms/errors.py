"""
Exception types for the server forms system.

Only conditions that cross a component boundary are exceptions. Rejections
inside the Session Engine (duplicate submission, busy session, ...) are
reported as Outcome values on a FormResult instead (see results.py).
"""


class ServerFormsError(Exception):
    """Base exception for server forms errors"""
    pass


class ValidationError(ServerFormsError, ValueError):
    """Raised when the forms configuration is malformed"""

    def __init__(self, message, errors=None):
        super().__init__(message)
        self.errors = list(errors or [])


class PersistenceError(ServerFormsError):
    """Raised when an answer record cannot be read or written"""
    pass


class PlayerNotFound(ServerFormsError, LookupError):
    """Raised when a display name has no known identity"""

    def __init__(self, player_name: str):
        super().__init__(f"Player '{player_name}' does not exist or has never joined the server.")
        self.player_name = player_name


class IllegalStateError(ServerFormsError, RuntimeError):
    """Raised when a FormSession is used outside its valid state (programming error)"""
    pass
