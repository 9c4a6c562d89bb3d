"""
Custom exceptions for the exchange client module.

This module defines a hierarchy of exceptions for the distinct ways a call
against the Cryptsy API can fail. Callers branch on the class:

- TransportError: the request never produced a response body
- ProtocolError: a body arrived but is not a valid response envelope
- ApplicationFailureError: the exchange reported the call as failed
- DomainParseError: a field inside a successful payload could not be mapped
- NotSupportedError: the operation is recognised but not implemented
"""

from typing import Any, Optional


class ExchangeError(Exception):
    """Base exception for all exchange-related errors."""

    def __init__(self, message: str, error_code: str = None, details: dict = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def __str__(self) -> str:
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message


class TransportError(ExchangeError):
    """
    Exception raised when the request could not be delivered or the response
    could not be read.

    Examples: connection refused, DNS resolution failure, timeout, TLS error.
    The client never retries these; backoff policy belongs to the caller.
    """

    def __init__(self, message: str = "Transport error occurred", details: dict = None):
        super().__init__(message, error_code="TRANSPORT_ERROR", details=details)


class ProtocolError(ExchangeError):
    """Base exception for response bodies that do not form a valid envelope."""


class MalformedResponseError(ProtocolError):
    """
    Exception raised when the response body is not a JSON object.

    Covers undecodable bytes, invalid JSON, and well-formed JSON whose top-level
    value is an array, string or number.
    """

    def __init__(self, message: str = "Could not parse response", details: dict = None):
        super().__init__(message, error_code="MALFORMED_RESPONSE", details=details)


class MissingSuccessFieldError(ProtocolError):
    """Exception raised when a JSON object response lacks the 'success' field."""

    def __init__(
        self,
        message: str = "No success value returned in response",
        details: dict = None
    ):
        super().__init__(message, error_code="MISSING_SUCCESS_FIELD", details=details)


class ApplicationFailureError(ExchangeError):
    """
    Exception raised when the exchange reports the call as failed.

    The exchange's own error text, when it sent one, is kept verbatim in
    ``server_message``. Examples: "Invalid nonce", "Insufficient funds".
    """

    def __init__(self, server_message: Optional[str] = None, details: dict = None):
        if server_message is None:
            message = "Error response returned from exchange"
        else:
            message = f"Error response returned from exchange: {server_message}"
        super().__init__(message, error_code="APPLICATION_FAILURE", details=details)
        self.server_message = server_message


class DomainParseError(ExchangeError):
    """
    Exception raised when a payload field fails semantic parsing.

    Raised for missing fields, malformed quantities, unknown enum values,
    unparseable timestamps and invalid identifiers. One bad record fails the
    whole batch it belongs to.
    """

    def __init__(
        self,
        message: str,
        field: str = None,
        record_index: Optional[int] = None,
        value: Any = None,
        details: dict = None
    ):
        super().__init__(message, error_code="DOMAIN_PARSE_ERROR", details=details)
        self.field = field
        self.record_index = record_index
        self.value = value

    def __str__(self) -> str:
        location = f"field '{self.field}'" if self.field else "payload"
        if self.record_index is not None:
            location += f" of record {self.record_index}"
        return f"[{self.error_code}] {self.message} ({location})"


class NotSupportedError(ExchangeError):
    """Exception raised for operations the client deliberately does not implement."""

    def __init__(self, operation: str, details: dict = None):
        super().__init__(
            f"Operation not supported: {operation}",
            error_code="NOT_SUPPORTED",
            details=details
        )
        self.operation = operation
