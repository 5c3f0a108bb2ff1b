"""
Network utility functions.
"""

import re
import socket
from typing import Optional
from urllib.parse import urlsplit

ALLOWED_SCHEMES = ("http", "https")


def is_valid_ip(ip: str) -> bool:
    """
    Check if a string is a valid IPv4 or IPv6 address.

    Args:
        ip: String to check

    Returns:
        True if valid IP address
    """
    for family in (socket.AF_INET, socket.AF_INET6):
        try:
            socket.inet_pton(family, ip)
            return True
        except (OSError, ValueError):
            continue
    return False


def is_valid_hostname(hostname: str) -> bool:
    """
    Check if a string is a valid hostname.

    Internationalized names are checked in their IDNA (punycode) form.
    Underscores are accepted in labels.

    Args:
        hostname: String to check

    Returns:
        True if valid hostname
    """
    if not hostname:
        return False

    # Remove trailing dot
    if hostname.endswith('.'):
        hostname = hostname[:-1]

    try:
        hostname = hostname.encode('idna').decode('ascii')
    except UnicodeError:
        return False

    if not hostname or len(hostname) > 253:
        return False

    # Check each label
    allowed = re.compile(r'^[a-zA-Z0-9_]([a-zA-Z0-9_-]{0,61}[a-zA-Z0-9_])?$')

    return all(allowed.match(label) for label in hostname.split('.'))


def url_syntax_error(url: str) -> Optional[str]:
    """
    Validate the syntax of an HTTP(S) URL without touching the network.

    Args:
        url: Raw URL string as found in the catalog

    Returns:
        None when the URL is usable, otherwise a short reason
    """
    if not isinstance(url, str) or not url.strip():
        return "empty URL"
    if any(ch.isspace() for ch in url):
        return "URL contains whitespace"

    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError as e:
        return f"unparseable URL: {e}"

    if parts.scheme.lower() not in ALLOWED_SCHEMES:
        return f"unsupported scheme {parts.scheme!r}" if parts.scheme else "missing scheme"

    host = parts.hostname
    if not host:
        return "missing host"
    if not (is_valid_ip(host) or is_valid_hostname(host)):
        return f"invalid host {host!r}"
    if port is not None and port == 0:
        return "invalid port 0"

    return None


def is_valid_url(url: str) -> bool:
    """Check if a string is a probeable http(s) URL."""
    return url_syntax_error(url) is None
