"""Custom exceptions for objtools."""


class ObjtoolsError(Exception):
    """Base exception for objtools errors."""
    pass


class InvalidArgumentError(ObjtoolsError):
    """Raised when an operation is called with arguments it cannot honor."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class MaskParseError(ObjtoolsError):
    """Raised when a mask definition file cannot be parsed."""
    def __init__(self, message: str, path: str = None, reason: str = None):
        super().__init__(message)
        self.message = message
        self.path = path
        self.reason = reason
