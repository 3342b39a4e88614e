"""
Typed errors raised by the gateway client, and the table that maps gRPC
status codes onto them.
"""

from typing import Dict, Optional, Type, Union

import grpc


class VTException(Exception):
    """
    Base class for every error surfaced by the client.

    Also raised directly for status codes that have no dedicated subclass.
    The raw status code and detail text are kept for diagnostics.
    """

    code: Union[grpc.StatusCode, int, None]
    details: str

    def __init__(self, message: str, code: Union[grpc.StatusCode, int, None] = None, details: str = ""):
        self.code = code
        self.details = details
        super().__init__(message)

    @property
    def code_name(self) -> Optional[str]:
        """Status code name for logs, e.g. "NOT_FOUND"; raw numbers are stringified."""
        if isinstance(self.code, grpc.StatusCode):
            return self.code.name
        return None if self.code is None else str(self.code)


class BadInputError(VTException):
    """The gateway rejected the request as malformed."""


class DeadlineExceededError(VTException):
    """The call did not complete before its deadline."""


class IntegrityError(VTException):
    """The request violated a uniqueness or integrity constraint."""


class UnauthenticatedError(VTException):
    """The caller could not be authenticated."""


class TransientError(VTException):
    """The gateway is temporarily unavailable; the call may be retried."""


STATUS_ERRORS: Dict[grpc.StatusCode, Type[VTException]] = {
    grpc.StatusCode.INVALID_ARGUMENT: BadInputError,
    grpc.StatusCode.DEADLINE_EXCEEDED: DeadlineExceededError,
    grpc.StatusCode.ALREADY_EXISTS: IntegrityError,
    grpc.StatusCode.UNAUTHENTICATED: UnauthenticatedError,
    grpc.StatusCode.UNAVAILABLE: TransientError,
}

_CODES_BY_NUMBER = {code.value[0]: code for code in grpc.StatusCode}


def status_code(code: Union[grpc.StatusCode, int]) -> Union[grpc.StatusCode, int]:
    """Normalize a numeric status code to its grpc.StatusCode member.

    Numbers outside the gRPC vocabulary are returned unchanged.
    """
    if isinstance(code, grpc.StatusCode):
        return code
    return _CODES_BY_NUMBER.get(code, code)


def numeric_code(code: Union[grpc.StatusCode, int]) -> int:
    if isinstance(code, grpc.StatusCode):
        return code.value[0]
    return code


def error_for_status(code: Union[grpc.StatusCode, int, None], details: Optional[str] = None) -> Optional[VTException]:
    """
    Build the error for a call status without raising it.

    Returns:
        None for OK or a missing status, otherwise the typed error for the code
    """
    if code is None:
        return None
    code = status_code(code)
    if code is grpc.StatusCode.OK:
        return None

    details = details or ""
    error_class = STATUS_ERRORS.get(code)
    if error_class is not None:
        return error_class(details, code=code, details=details)
    return VTException(f"{numeric_code(code)}: {details}", code=code, details=details)


def check_error(code: Union[grpc.StatusCode, int, None], details: Optional[str] = None) -> None:
    """
    Raise the typed error for a non-OK status.

    Args:
        code: Status code of a finished call; None means no status was reported
        details: Detail text that accompanied the status

    Raises:
        VTException: or one of its subclasses, for any code other than OK
    """
    error = error_for_status(code, details)
    if error is not None:
        raise error


def translate_rpc_error(error: grpc.RpcError) -> VTException:
    """Translate an exception raised by the gRPC runtime into a client error."""
    code = error.code() if hasattr(error, "code") else None
    details = error.details() if hasattr(error, "details") else str(error)
    # An RpcError never legitimately carries OK
    if code is None or code is grpc.StatusCode.OK:
        code = grpc.StatusCode.UNKNOWN
    return error_for_status(code, details)
