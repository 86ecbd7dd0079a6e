"""
ACF field handling: declaration registry, value transformer and the walker
that re-keys a record's flat meta map.
"""

from .registry import AcfExportRegistry, DeclarationCache, FieldRegistry
from .transformer import FieldValueTransformer
from .walker import FieldTreeWalker

__all__ = [
    "AcfExportRegistry",
    "DeclarationCache",
    "FieldRegistry",
    "FieldTreeWalker",
    "FieldValueTransformer",
]
