"""
Utility functions.
"""

from panther.utils.network import is_valid_hostname, is_valid_ip, is_valid_url, url_syntax_error

__all__ = [
    "is_valid_ip",
    "is_valid_hostname",
    "is_valid_url",
    "url_syntax_error",
]
