"""Converters turning raw files into conv files."""

from domains.raw_conversion.converters.base import (
    AnimeConverter,
    DefaultPathAnimeConverter,
    FileConverter,
    PathAnimeConverter,
)
from domains.raw_conversion.converters.dependent import DependentFileConverter
from domains.raw_conversion.converters.simple import SimpleFileConverter

__all__ = [
    "AnimeConverter",
    "DefaultPathAnimeConverter",
    "DependentFileConverter",
    "FileConverter",
    "PathAnimeConverter",
    "SimpleFileConverter",
]
