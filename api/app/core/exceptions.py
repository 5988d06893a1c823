"""
Custom exceptions for the application.
"""


class ParlonsException(Exception):
    """Base exception for all Parlons application exceptions."""
    pass


class NotFoundError(ParlonsException):
    """Raised when a requested resource is not found."""
    pass


class InvalidArgumentError(ParlonsException):
    """Raised when an argument or stored card state fails validation."""
    pass


class ConflictError(ParlonsException):
    """Raised when there's a conflict (e.g., duplicate entry or concurrent update)."""
    pass


class SessionStateError(ParlonsException):
    """Raised when a practice session operation is not valid in its current state."""
    pass


class RepositoryError(ParlonsException):
    """Raised when the card store fails to read or write."""
    pass
