"""
Failures raised by the directory and matching layers.

The HTTP layer maps each of these to a response in main.py; any other
presentation layer can catch them directly.
"""
from typing import Dict, Optional


class DirectoryError(Exception):
    message = "Directory operation failed"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class ValidationError(DirectoryError):
    """Input failed a precondition. ``errors`` maps field name to message."""

    message = "Please correct the highlighted fields"

    def __init__(self, errors: Dict[str, str], message: Optional[str] = None):
        super().__init__(message)
        self.errors = errors


class NotLoggedIn(ValidationError):
    message = "Log in with your registered phone number first"

    def __init__(self):
        super().__init__({"phone": self.message}, self.message)


class DuplicatePhone(DirectoryError):
    message = "This phone number is already registered!"


class NotFound(DirectoryError):
    message = "Record not found"


class StoreUnavailable(DirectoryError):
    message = "Operation failed. Please check the database configuration."
