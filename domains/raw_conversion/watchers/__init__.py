"""Watch services converting raw files once their download finished."""

from domains.raw_conversion.watchers.base import ConversionWatchService, WatchServiceState
from domains.raw_conversion.watchers.dependent import DependentConversionWatchService
from domains.raw_conversion.watchers.polling import WatchQueue
from domains.raw_conversion.watchers.simple import SimpleConversionWatchService

__all__ = [
    "ConversionWatchService",
    "DependentConversionWatchService",
    "SimpleConversionWatchService",
    "WatchQueue",
    "WatchServiceState",
]
