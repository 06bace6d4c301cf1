"""
Declaration variants found in a module's top-level namespace.

Declarations compare by identity: the session builds one object per symbol and
the type model keys its caches on them.
"""

from __future__ import annotations

import ast
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .session import ModuleInfo


@dataclass(frozen=True, eq=False)
class Declaration:
    """A named binding in a module."""

    name: str
    module: ModuleInfo | None
    node: ast.AST | None


@dataclass(frozen=True, eq=False)
class FunctionDeclaration(Declaration):
    """A `def` or `async def`; `owner` is set for methods."""

    node: ast.FunctionDef | ast.AsyncFunctionDef
    owner: ClassDeclaration | None = None

    @property
    def is_async(self) -> bool:
        return isinstance(self.node, ast.AsyncFunctionDef)

    @property
    def is_method(self) -> bool:
        return self.owner is not None


@dataclass(frozen=True, eq=False)
class ClassDeclaration(Declaration):
    node: ast.ClassDef


@dataclass(frozen=True, eq=False)
class VariableDeclaration(Declaration):
    """A module-level assignment; `value` is None for bare annotations."""

    value: ast.expr | None = None


@dataclass(frozen=True, eq=False)
class TypeAliasDeclaration(Declaration):
    """`type X = ...`, `X: TypeAlias = ...` or `X = NewType("X", ...)`."""

    value: ast.expr | None = None
    newtype: bool = False


@dataclass(frozen=True, eq=False)
class ImportedName(Declaration):
    """`from source import source_name as name`, with `source` made absolute."""

    source: str = ""
    source_name: str = ""


@dataclass(frozen=True, eq=False)
class ModuleReference(Declaration):
    """A name bound to a module object, e.g. by `import a.b as name`."""

    target: str = ""


@dataclass(frozen=True, eq=False)
class ExternalDeclaration(Declaration):
    """A name that comes from a module outside the analysed source tree."""

    module_name: str = ""


@dataclass(frozen=True)
class ParameterSpec:
    """A parameter of a provider's callable, with the module its annotation lives in."""

    name: str
    annotation: ast.expr | None
    node: ast.AST
    module: ModuleInfo
    keyword_only: bool = False
