"""
Custom Exceptions for ChatDesk

Every error raised by services carries a message plus a details dict;
main.py maps the subclasses onto HTTP status codes.
"""

from typing import Optional, Dict, Any


class ChatDeskError(Exception):
    """Root of the hierarchy. Anything not mapped more specifically becomes a 500."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.original_error = original_error

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details
        }


class ValidationError(ChatDeskError):
    """Bad admin input or a business rule refusal (400)."""


class InvalidPhoneNumberError(ValidationError):
    """Raised when a sender address cannot be normalized to a phone number."""

    def __init__(self, message: str, address: Optional[str] = None):
        details = {}
        if address is not None:
            details["address"] = address
        super().__init__(message, details)
        self.address = address


class DatabaseError(ChatDeskError):
    """Storage failure, tagged with the operation and table involved."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        table: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if operation:
            details["operation"] = operation
        if table:
            details["table"] = table
        super().__init__(message, details, original_error)


class NotFoundError(DatabaseError):
    """Unknown user, plan or message id (404)."""


class DuplicateError(DatabaseError):
    """Unique constraint hit: username, whatsapp number or (upstream_id, user_id)."""


class AIServiceError(ChatDeskError):
    """Gemini call failed or returned nothing usable."""

    def __init__(
        self,
        message: str,
        model: Optional[str] = None,
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None
    ):
        details = dict(details or {})
        if model:
            details["model"] = model
        if operation:
            details["operation"] = operation
        super().__init__(message, details, original_error)


class RateLimitError(AIServiceError):
    """Gemini quota exhausted (429)."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        retry_after: Optional[int] = None,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if retry_after:
            details["retry_after_seconds"] = retry_after
        super().__init__(message, details=details, original_error=original_error)


class UpstreamAPIError(ChatDeskError):
    """Raised when the WhatsiPlus API is unreachable or returns garbage."""

    def __init__(
        self,
        message: str,
        endpoint: Optional[str] = None,
        status_code: Optional[int] = None,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if endpoint:
            details["endpoint"] = endpoint
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, details, original_error)
        self.status_code = status_code


class ConfigurationError(ChatDeskError):
    """A required setting or stored credential is missing."""

    def __init__(
        self,
        message: str,
        missing_keys: Optional[list] = None,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if missing_keys:
            details["missing_keys"] = missing_keys
        super().__init__(message, details, original_error)
