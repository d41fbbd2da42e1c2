"""
Custom exceptions for the University Management System.
"""

from typing import Optional, Any, Dict


class UmsException(Exception):
    """Base exception for all UMS errors."""
    
    def __init__(self, message: str, error_code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}


class ValidationError(UmsException):
    """Raised when input is malformed, out of range or duplicates an existing identifier."""
    pass


class NotFoundError(UmsException):
    """Raised when a referenced entity does not exist."""
    pass


class CapacityError(UmsException):
    """Raised when a course has reached its enrollment limit."""
    pass


class PersistenceError(UmsException):
    """Raised when a durable write or read fails while the backend is live."""
    pass


class BackendUnavailableError(PersistenceError):
    """Raised when no durable backend could be provisioned at startup."""
    pass


class ConfigurationError(UmsException):
    """Raised when configuration is invalid."""
    pass
