"""
Abstract TypeModel interface consumed by the wiring engine.
"""

from __future__ import annotations

import ast
from abc import ABC, abstractmethod

from ..model.keys import SourceLocation, TypeIdentity
from .declarations import ClassDeclaration, Declaration, FunctionDeclaration, ParameterSpec
from .session import ModuleInfo


class TypeModel(ABC):
    """
    Abstract interface to the analysed source tree.

    The wiring engine never inspects source text itself: it asks the type
    model to resolve names to declarations and annotations to TypeIdentity
    keys. An implementation is bound to one analysis session and its caches
    live exactly as long as that session.
    """

    @abstractmethod
    def resolve_reference(self, node: ast.expr, module: ModuleInfo) -> Declaration:
        """
        Resolve a name or attribute expression to the declaration it names.

        Only the first hop is taken: an imported name resolves to its
        ImportedName binding. Use resolve_declaration to follow the chain.

        Raises:
            UnresolvableReferenceError: If the name is not defined.
        """

    @abstractmethod
    def resolve_declaration(self, declaration: Declaration) -> Declaration:
        """Follow import and re-export bindings to the original declaration."""

    @abstractmethod
    def resolve_type(self, node: ast.expr, module: ModuleInfo) -> TypeIdentity:
        """
        Get the identity of a type annotation.

        Named aliases resolve to one stable identity keyed by the alias
        declaration. Builtins, subscripted generics and literals resolve to
        OPAQUE identities.
        """

    @abstractmethod
    def canonicalize(self, identity: TypeIdentity) -> TypeIdentity:
        """Collapse import bindings and aliases of declared types."""

    @abstractmethod
    def declared_type(self, declaration: Declaration) -> TypeIdentity:
        """Get the identity of the type a declaration introduces."""

    @abstractmethod
    def declaration_of(self, identity: TypeIdentity) -> Declaration | None:
        """Get the declaration an identity was produced from, if known."""

    @abstractmethod
    def signature_of(self, function: FunctionDeclaration) -> list[ParameterSpec]:
        """
        Get the injectable parameters of a function; `self`/`cls` are skipped.

        Raises:
            InvalidProviderFormError: If the function takes *args or **kwargs.
        """

    @abstractmethod
    def constructor_parameters(self, declaration: ClassDeclaration) -> list[ParameterSpec]:
        """
        Get the constructor parameters of a class.

        Classes without their own `__init__` use the nearest ancestor's;
        dataclasses without one use their init fields.
        """

    @abstractmethod
    def source_location_of(self, node: ast.AST, module: ModuleInfo) -> SourceLocation:
        """Get the position of a node, for diagnostics."""

    @abstractmethod
    def is_exported(self, declaration: Declaration) -> bool:
        """Check whether a declaration can be imported by name from its module."""
