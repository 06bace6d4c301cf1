"""
Model subpackage containing core data structures and types.

This subpackage contains the value types shared by the type model and the
wiring engine, organized to avoid circular dependencies.
"""

from .graph import DependencyGraph, linearize
from .keys import SourceLocation, TypeIdentity, TypeKind
from .providers import (
    ArgumentProvider,
    ConstructorProvider,
    FunctionProvider,
    Provider,
    ProviderInput,
    ProviderKind,
)

__all__ = [
    "ArgumentProvider",
    "ConstructorProvider",
    "DependencyGraph",
    "FunctionProvider",
    "Provider",
    "ProviderInput",
    "ProviderKind",
    "SourceLocation",
    "TypeIdentity",
    "TypeKind",
    "linearize",
]
