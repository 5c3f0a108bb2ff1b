"""
Extension catalog loading.
"""

from panther.catalog.loader import (
    DEFAULT_CATALOG_URL,
    download_catalog,
    filter_by_language,
    iter_source_records,
    load_catalog,
    parse_catalog,
    read_catalog,
    source_records,
)
from panther.catalog.models import Extension, ExtensionSource

__all__ = [
    "DEFAULT_CATALOG_URL",
    "Extension",
    "ExtensionSource",
    "download_catalog",
    "filter_by_language",
    "iter_source_records",
    "load_catalog",
    "parse_catalog",
    "read_catalog",
    "source_records",
]
