"""
Error taxonomy and exception helpers.
"""

import socket
import ssl
from enum import Enum
from typing import Optional

import httpx


class CatalogError(Exception):
    """The extension catalog could not be downloaded, read or parsed."""


class ErrorCategory(str, Enum):
    TIMEOUT = "TIMEOUT"
    DNS_ERROR = "DNS_ERROR"
    SSL_ERROR = "SSL_ERROR"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    PROTOCOL_ERROR = "PROTOCOL_ERROR"
    REDIRECT_ERROR = "REDIRECT_ERROR"
    INVALID_URL = "INVALID_URL"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


_DNS_MARKERS = (
    "name or service not known",
    "nodename nor servname",
    "getaddrinfo failed",
    "temporary failure in name resolution",
    "no address associated",
)
_SSL_MARKERS = ("ssl", "certificate", "tls")


def _chain(exc: BaseException):
    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def categorize_exception(exc: BaseException) -> ErrorCategory:
    """
    Map httpx/socket/ssl exceptions raised by a probe to an ErrorCategory.

    httpx wraps the low-level error, so the cause chain and the message are
    both inspected to tell DNS and TLS failures apart from plain refusals.
    """
    if isinstance(exc, (httpx.TimeoutException, TimeoutError)):
        return ErrorCategory.TIMEOUT

    if isinstance(exc, (httpx.InvalidURL, httpx.UnsupportedProtocol)):
        return ErrorCategory.INVALID_URL

    if isinstance(exc, httpx.TooManyRedirects):
        return ErrorCategory.REDIRECT_ERROR

    for item in _chain(exc):
        if isinstance(item, (socket.gaierror, socket.herror)):
            return ErrorCategory.DNS_ERROR
        if isinstance(item, (ssl.SSLError, ssl.CertificateError)):
            return ErrorCategory.SSL_ERROR

    message = str(exc).lower()
    if any(marker in message for marker in _DNS_MARKERS):
        return ErrorCategory.DNS_ERROR
    if any(marker in message for marker in _SSL_MARKERS):
        return ErrorCategory.SSL_ERROR

    if isinstance(exc, (httpx.RemoteProtocolError, httpx.LocalProtocolError)):
        return ErrorCategory.PROTOCOL_ERROR

    if isinstance(exc, (httpx.ConnectError, httpx.NetworkError, httpx.ProxyError, ConnectionError)):
        return ErrorCategory.CONNECTION_ERROR

    return ErrorCategory.UNKNOWN_ERROR


def error_category_to_reason(category: Optional[ErrorCategory]) -> str:
    """User-facing reason string."""
    mapping = {
        ErrorCategory.TIMEOUT: "Timed out",
        ErrorCategory.DNS_ERROR: "DNS resolution failure",
        ErrorCategory.SSL_ERROR: "TLS/certificate error",
        ErrorCategory.CONNECTION_ERROR: "Connection failed",
        ErrorCategory.PROTOCOL_ERROR: "HTTP protocol error",
        ErrorCategory.REDIRECT_ERROR: "Too many redirects",
        ErrorCategory.INVALID_URL: "URL rejected by HTTP client",
        ErrorCategory.UNKNOWN_ERROR: "Network error",
        None: "",
    }
    return mapping.get(category, "Network error")


def describe_exception(exc: BaseException) -> str:
    """Short diagnostic for a probe failure: reason plus exception class."""
    reason = error_category_to_reason(categorize_exception(exc))
    return f"{reason} ({type(exc).__name__})"
