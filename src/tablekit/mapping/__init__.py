"""
Semantic types and column type resolution.

`tablekit.mapping.resolver.SemanticTypeResolver` turns raw column
definitions into the types declared here.
"""
from tablekit.mapping.types import ResolvedType, SemanticType, TypeFamily

__all__ = [
    'SemanticType',
    'TypeFamily',
    'ResolvedType',
]
