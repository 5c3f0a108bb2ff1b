"""
Core functionality components.
"""

from panther.core.config import AppConfig, load_config_file
from panther.core.errors import CatalogError, ErrorCategory, categorize_exception

__all__ = [
    "AppConfig",
    "CatalogError",
    "ErrorCategory",
    "categorize_exception",
    "load_config_file",
]
