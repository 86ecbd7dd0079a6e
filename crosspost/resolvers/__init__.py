"""
Identifier resolution between sites.

Exposes :class:`IdentifierResolver` together with the mapping table and
source directory it reads from.
"""

from .identifiers import IdentifierResolver, ResolutionKind
from .mapping import MappingTable
from .source import RestSourceDirectory, SourceDirectory, taxonomy_rest_base

__all__ = [
    "IdentifierResolver",
    "MappingTable",
    "ResolutionKind",
    "RestSourceDirectory",
    "SourceDirectory",
    "taxonomy_rest_base",
]
