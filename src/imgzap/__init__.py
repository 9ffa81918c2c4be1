"""imgzap - raster and vector image format converter."""

from imgzap.converter import (
    ConversionDispatcher,
    ConversionJob,
    ConversionResult,
    ConversionStatus,
    ConversionSummary,
    Pixmap,
)
from imgzap.formats import Format, SelectionEntry, all_targets, targets_of
from imgzap.logger import (
    ConversionLogger,
    LogConfig,
    ProgressDisplay,
    VerboseLevel,
)

__version__ = "0.1.0"

__all__ = [
    "ConversionDispatcher",
    "ConversionJob",
    "ConversionLogger",
    "ConversionResult",
    "ConversionStatus",
    "ConversionSummary",
    "Format",
    "LogConfig",
    "Pixmap",
    "ProgressDisplay",
    "SelectionEntry",
    "VerboseLevel",
    "all_targets",
    "targets_of",
]
