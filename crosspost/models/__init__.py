"""
Pydantic models shared by the transformer.

Field declarations mirror the ACF JSON export format, block nodes mirror
WordPress ``parse_blocks()`` output and the run models describe the
destination site and the object being transformed.
"""

from .blocks import BlockNode
from .fields import FieldDeclaration, FieldKind, FieldPointer
from .records import Destination, EntityReference, ObjectKind, ResolutionContext

# Explicit "no value" for the destination REST API (serialized as JSON null).
ABSENT = None

__all__ = [
    "ABSENT",
    "BlockNode",
    "Destination",
    "EntityReference",
    "FieldDeclaration",
    "FieldKind",
    "FieldPointer",
    "ObjectKind",
    "ResolutionContext",
]
