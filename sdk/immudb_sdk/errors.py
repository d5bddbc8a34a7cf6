"""
Error types for the immudb SDK.

This module defines all exception types raised by the SDK:
- ImmuDbError: Base exception
- TransportError: Channel-level failure
- ProtocolError: Server answered with a failure status
- DecodeError: Result shape does not match the requested target
- TypeMismatchError: Wire value variant outside the accepted set
- InvalidInputError: Caller value cannot be represented on the wire
- UnexpectedError: Invariant violation

Invariants:
    - All errors inherit from ImmuDbError
    - Server status codes and details are kept verbatim
    - Nothing in this package retries on error
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class ImmuDbError(Exception):
    """Base exception for all immudb SDK errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "IMMUDB_ERROR"
        self.details = details or {}


class TransportError(ImmuDbError):
    """The channel to the server failed.

    Raised when:
    - Server is unreachable
    - Connection or call deadline expires
    """

    def __init__(
        self,
        message: str,
        address: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            code="TRANSPORT_ERROR",
            details={"address": address},
        )
        self.address = address


class ProtocolError(ImmuDbError):
    """The server returned a non-OK status.

    The status code name and the server's detail string are propagated
    unchanged; the statement that caused the failure is not attached.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[str] = None,
        server_details: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            code="PROTOCOL_ERROR",
            details={"status_code": status_code, "server_details": server_details},
        )
        self.status_code = status_code
        self.server_details = server_details


class DecodeError(ImmuDbError):
    """A result could not be converted to the requested shape.

    Raised when:
    - Result is empty but a scalar was requested
    - Row count differs from what was expected
    - A row cannot be mapped onto the target type
    """

    def __init__(self, message: str, code: Optional[str] = None, **details: Any) -> None:
        super().__init__(message, code=code or "DECODE_ERROR", details=details)


class TypeMismatchError(DecodeError):
    """A wire value has a variant the target type does not accept.

    Attributes:
        expected: Name of the expected kind
        actual: Name of the wire variant that was received
    """

    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(
            f"expected {expected}, got {actual}",
            code="TYPE_MISMATCH",
            expected=expected,
            actual=actual,
        )
        self.expected = expected
        self.actual = actual


class InvalidInputError(ImmuDbError):
    """A caller-supplied value cannot be sent to the server."""

    def __init__(self, message: str, value: Any = None) -> None:
        super().__init__(
            message,
            code="INVALID_INPUT",
            details={"value": repr(value) if value is not None else None},
        )


class UnexpectedError(ImmuDbError):
    """An internal invariant was violated."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="UNEXPECTED")
