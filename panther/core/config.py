"""
Configuration management.
"""

from pathlib import Path
from datetime import datetime
from typing import Any, List, Optional
import json

import yaml
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, field_validator

from panther.catalog.loader import DEFAULT_CATALOG_URL
from panther.modules.http_probe import ProbeConfig
from panther.parallel.executor import SchedulerConfig

CONFIG_FILE_NAME = ".panther.yaml"

# Keys accepted from the YAML file; 'timeout' is kept as a shorthand
_FILE_KEYS = {
    "output_dir",
    "verbose",
    "catalog",
    "lang",
    "max_concurrency",
    "per_probe_timeout",
    "run_timeout",
    "use_head",
    "follow_redirects",
    "verify_ssl",
    "extra_reachable_statuses",
}


def load_config_file(candidates: Optional[List[Path]] = None) -> dict[str, Any]:
    """
    Load optional config from ~/.panther.yaml or ./.panther.yaml.
    The first existing file wins. Unknown keys are ignored and missing keys are
    omitted so callers can use their own defaults. Values are validated later
    by AppConfig.
    """
    if candidates is None:
        candidates = [
            Path.home() / CONFIG_FILE_NAME,
            Path.cwd() / CONFIG_FILE_NAME,
        ]

    raw: dict[str, Any] = {}
    for path in candidates:
        if path.exists():
            try:
                with open(path, "r", encoding="utf-8") as f:
                    raw = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                logger.warning(f"Ignoring unreadable config file {path}: {e}")
                raw = {}
            break

    if not isinstance(raw, dict):
        logger.warning("Ignoring config file: top level must be a mapping")
        return {}

    result: dict[str, Any] = {}
    if "timeout" in raw and "per_probe_timeout" not in raw:
        result["per_probe_timeout"] = raw["timeout"]
    for key in _FILE_KEYS:
        if key in raw:
            result[key] = raw[key]
    if "output_dir" in result:
        result["output_dir"] = Path(str(result["output_dir"])).expanduser().resolve()
    return result


class AppConfig(BaseModel):
    """Application configuration."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    output_dir: Path = Field(default=Path("output"))
    verbose: bool = False
    catalog: str = DEFAULT_CATALOG_URL
    lang: Optional[str] = None
    max_concurrency: int = Field(default=10, gt=0)
    per_probe_timeout: float = Field(default=10.0, gt=0)
    run_timeout: Optional[float] = Field(default=None, gt=0)
    use_head: bool = True
    follow_redirects: bool = True
    verify_ssl: bool = True
    extra_reachable_statuses: List[int] = Field(default_factory=list)

    @field_validator('output_dir', mode='before')
    @classmethod
    def validate_output_dir(cls, v):
        """Validate and convert output_dir to Path."""
        if v is None:
            return Path("output")
        if isinstance(v, str):
            return Path(v)
        return v

    @field_validator('extra_reachable_statuses')
    @classmethod
    def validate_statuses(cls, v):
        for code in v:
            if not 100 <= code <= 599:
                raise ValueError(f"invalid HTTP status code {code}")
        return v

    def model_post_init(self, __context):
        """Ensure output directory exists and is resolved to absolute path."""
        self.output_dir = self.output_dir.resolve()
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def scheduler_config(self) -> SchedulerConfig:
        return SchedulerConfig(
            max_concurrency=self.max_concurrency,
            per_probe_timeout=self.per_probe_timeout,
            run_timeout=self.run_timeout,
        )

    def probe_config(self) -> ProbeConfig:
        return ProbeConfig(
            timeout=self.per_probe_timeout,
            use_head=self.use_head,
            follow_redirects=self.follow_redirects,
            verify_ssl=self.verify_ssl,
            extra_reachable_statuses=frozenset(self.extra_reachable_statuses),
        )

    def create_run_dir(self, run_name: str) -> Path:
        """Create a timestamped directory for a check run."""
        timestamp = datetime.now().strftime("%Y-%m-%d_%H%M%S")
        run_dir = self.output_dir / f"{timestamp}_{run_name}"
        run_dir.mkdir(parents=True, exist_ok=True)
        return run_dir

    def save_metadata(self, run_dir: Path, metadata: dict):
        """Save run metadata to JSON file."""
        metadata_file = run_dir / "metadata.json"

        # Add timestamp
        metadata["timestamp"] = datetime.now().isoformat()

        with open(metadata_file, "w") as f:
            json.dump(metadata, f, indent=2, default=str)
