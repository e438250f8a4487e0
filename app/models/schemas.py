"""
Shared data models for the raw conversion pipeline.

Provider configs are identity based dataclasses, everything that crosses the
API boundary or gets persisted is a pydantic model.
"""

import itertools
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

_identity_counter = itertools.count(1)


# =====================================================
# Provider Configuration
# =====================================================

@dataclass(frozen=True, eq=False)
class MetaDataProviderConfig:
    """
    Configuration of a single meta data provider (or one role of it).

    Instances compare and hash by identity. Two configs with the same field
    values are different providers as far as directory lookup is concerned.
    """

    hostname: str
    file_suffix: str
    directory_name: str = ""
    anime_link_template: str = "https://{hostname}/anime/{id}"
    data_download_link_template: str = ""
    identity: int = field(default_factory=lambda: next(_identity_counter), init=False, repr=False)

    def __post_init__(self):
        if not self.directory_name:
            object.__setattr__(self, "directory_name", self.hostname)

    def build_anime_link(self, anime_id: str) -> str:
        """Public link of an anime on the provider's website."""
        return self.anime_link_template.format(hostname=self.hostname, id=anime_id)

    def build_data_download_link(self, anime_id: str) -> str:
        """Link the crawler downloads the raw file from."""
        template = self.data_download_link_template or self.anime_link_template
        return template.format(hostname=self.hostname, id=anime_id)


def identity_token(config: MetaDataProviderConfig) -> int:
    """Opaque token distinguishing configs with identical values."""
    return config.identity


# =====================================================
# Canonical Records
# =====================================================

class AnimeSeason(BaseModel):
    """Season an anime premiered in."""
    season: str = "UNDEFINED"
    year: Optional[int] = None


class AnimeRaw(BaseModel):
    """Canonical anime record produced by a provider converter."""
    title: str
    sources: List[str] = Field(default_factory=list)
    type: str = "UNKNOWN"
    episodes: int = 0
    status: str = "UNKNOWN"
    anime_season: AnimeSeason = Field(default_factory=AnimeSeason)
    picture: Optional[str] = None
    thumbnail: Optional[str] = None
    synonyms: List[str] = Field(default_factory=list)
    related_anime: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)


# =====================================================
# Conversion Status Models
# =====================================================

class ProviderConversionStatus(BaseModel):
    """Conversion progress of a single provider working directory."""
    hostname: str
    working_dir: str
    raw_files: int
    converted_files: int
    pending_files: int


class ConversionStatusResponse(BaseModel):
    """Conversion status across all providers."""
    unconverted_files_exist: bool
    providers: List[ProviderConversionStatus]
    timestamp: datetime
