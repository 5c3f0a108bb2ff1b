"""
Extension catalog models.
"""

from typing import List

from pydantic import BaseModel, ConfigDict, Field


class ExtensionSource(BaseModel):
    """One source (site) provided by an extension."""

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True, frozen=True)

    name: str = ""
    lang: str = ""
    id: str = ""
    base_url: str = Field(default="", alias="baseUrl")


class Extension(BaseModel):
    """Extension entry as published in the catalog index."""

    model_config = ConfigDict(coerce_numbers_to_str=True, frozen=True)

    name: str
    pkg: str
    apk: str = ""
    lang: str = ""
    code: int = 0
    version: str = ""
    nsfw: int = 0
    sources: List[ExtensionSource] = Field(default_factory=list)

    @property
    def owner_id(self) -> str:
        """Identifier used to group this extension's sources in reports."""
        return self.pkg or self.name
