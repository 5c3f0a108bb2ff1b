"""
Catalog download, loading and flattening into source records.
"""

import json
from pathlib import Path
from typing import Any, Iterable, Iterator, List, Optional

import httpx
from loguru import logger
from pydantic import TypeAdapter, ValidationError

from panther.catalog.models import Extension
from panther.core.errors import CatalogError
from panther.modules.base import SourceRecord

DEFAULT_CATALOG_URL = "https://raw.githubusercontent.com/keiyoushi/extensions/refs/heads/repo/index.min.json"
DEFAULT_CATALOG_FILENAME = "index.min.json"

_CATALOG_ADAPTER = TypeAdapter(List[Extension])


def is_remote(source: str) -> bool:
    return source.lower().startswith(("http://", "https://"))


def download_catalog(
    url: str,
    output_path: Path,
    timeout: float = 30.0,
    transport: Optional[httpx.BaseTransport] = None,
) -> Path:
    """
    Download the catalog JSON to a local file.

    Args:
        url: Catalog URL
        output_path: Where to save the file
        timeout: Request timeout in seconds
        transport: Optional httpx transport (tests)

    Returns:
        Path of the saved file

    Raises:
        CatalogError: on network errors or a non-success status
    """
    logger.info(f"Downloading catalog from {url}")
    try:
        with httpx.Client(transport=transport, timeout=timeout, follow_redirects=True) as client:
            response = client.get(url)
            response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise CatalogError(f"Catalog download failed: {url} responded with {e.response.status_code}") from e
    except httpx.HTTPError as e:
        raise CatalogError(f"Catalog download failed: {type(e).__name__}: {e}") from e

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(response.content)
    logger.info(f"Catalog saved to {output_path} ({len(response.content)} bytes)")
    return output_path


def parse_catalog(data: Any) -> List[Extension]:
    """
    Validate decoded catalog JSON.

    Raises:
        CatalogError: if the data is not a list of extension objects
    """
    try:
        return _CATALOG_ADAPTER.validate_python(data)
    except ValidationError as e:
        raise CatalogError(f"Invalid catalog format: {e.error_count()} validation error(s)\n{e}") from e


def read_catalog(path: Path) -> List[Extension]:
    """Read and parse a catalog JSON file."""
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise CatalogError(f"Cannot read catalog file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise CatalogError(f"Catalog file {path} is not valid JSON: {e}") from e

    extensions = parse_catalog(data)
    logger.debug(f"Loaded {len(extensions)} extension(s) from {path}")
    return extensions


def load_catalog(
    source: str,
    output_dir: Path,
    timeout: float = 30.0,
    transport: Optional[httpx.BaseTransport] = None,
) -> List[Extension]:
    """
    Load a catalog from a URL (downloaded into output_dir) or a local path.
    """
    if is_remote(source):
        path = download_catalog(source, Path(output_dir) / DEFAULT_CATALOG_FILENAME, timeout, transport)
    else:
        path = Path(source).expanduser()
    return read_catalog(path)


def filter_by_language(extensions: Iterable[Extension], lang: Optional[str]) -> List[Extension]:
    """Keep extensions whose language matches lang (case-insensitive); None keeps all."""
    if not lang:
        return list(extensions)
    wanted = lang.lower()
    return [ext for ext in extensions if ext.lang.lower() == wanted]


def iter_source_records(extensions: Iterable[Extension]) -> Iterator[SourceRecord]:
    """Flatten extensions into source records, preserving catalog order."""
    for extension in extensions:
        for source in extension.sources:
            yield SourceRecord(owner_id=extension.owner_id, location=source.base_url)


def source_records(extensions: Iterable[Extension], lang: Optional[str] = None) -> List[SourceRecord]:
    return list(iter_source_records(filter_by_language(extensions, lang)))
