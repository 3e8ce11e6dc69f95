import logging
from enum import Enum
from typing import Any, Dict, Optional, Type

import requests

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    NETWORK = 'network'
    HTTP = 'http'
    CERT_NOT_FOUND = 'cert_not_found'
    CERT_EXISTS = 'cert_exists'


class APIManagerError(Exception):
    """A failed call to the API Manager.

    ``status`` is the HTTP status (None when no response arrived), ``code`` the
    vendor error code from the body (falling back to the status) and
    ``details`` the decoded body. ``expected`` marks outcomes the caller
    anticipates, which are raised but not logged.
    """

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.HTTP, status: Optional[int] = None,
                 code: Optional[str] = None, details: Any = None, expected: bool = False):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.status = status
        self.code = code
        self.details = details
        self.expected = expected


class RegistrationError(APIManagerError):
    pass


class TokenError(APIManagerError):
    pass


class CertificateNotFoundError(APIManagerError):
    pass


class CertificateExistsError(APIManagerError):
    pass


ERROR_CLASSES: Dict[ErrorKind, Type[APIManagerError]] = {
    ErrorKind.CERT_NOT_FOUND: CertificateNotFoundError,
    ErrorKind.CERT_EXISTS: CertificateExistsError,
}


def error_code(response: requests.Response) -> str:
    """Vendor error code from the body, or the HTTP status if the body has none."""
    try:
        body = response.json()
    except requests.exceptions.JSONDecodeError:
        body = None
    if isinstance(body, dict) and body.get('code') is not None:
        return str(body['code'])
    return str(response.status_code)


def classify_error(exc: requests.exceptions.RequestException,
                   expected: Optional[Dict[int, ErrorKind]] = None) -> ErrorKind:
    """Sort a requests failure into an ErrorKind. Does no logging.

    An ``expected`` entry matches on either the HTTP status or the vendor body code.
    """
    if exc.response is None:
        return ErrorKind.NETWORK
    codes = {str(exc.response.status_code), error_code(exc.response)}
    for status, kind in (expected or {}).items():
        if str(status) in codes:
            return kind
    return ErrorKind.HTTP


def build_error(exc: requests.exceptions.RequestException,
                error_cls: Type[APIManagerError] = APIManagerError,
                expected: Optional[Dict[int, ErrorKind]] = None) -> APIManagerError:
    kind = classify_error(exc, expected)
    if exc.response is None:
        return error_cls(str(exc), kind=kind)

    response = exc.response
    try:
        details = response.json()
    except requests.exceptions.JSONDecodeError:
        details = response.text
    return ERROR_CLASSES.get(kind, error_cls)(
        str(exc),
        kind=kind,
        status=response.status_code,
        code=error_code(response),
        details=details,
        expected=kind in ERROR_CLASSES,
    )


def render_error(error: APIManagerError) -> None:
    """Log a failed call. The only place errors are written out."""
    if error.kind == ErrorKind.NETWORK:
        logger.error(f"{type(error).__name__}: no response from API Manager: {error.message}")
        return
    logger.error(f"{type(error).__name__} (status {error.status}, code {error.code}): {error.message}")
    if error.details:
        logger.error(f"Response details: {error.details}")
