"""
TypeIdentity and SourceLocation value types.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TypeKind(Enum):
    """How a TypeIdentity was derived."""

    CLASS = "class"
    ALIAS = "alias"
    NEWTYPE = "newtype"
    EXTERNAL = "external"
    IMPORT = "import"
    OPAQUE = "opaque"


@dataclass(frozen=True)
class SourceLocation:
    """A 1-based position in a source file."""

    file: str
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column}"


@dataclass(frozen=True)
class TypeIdentity:
    """
    A key that identifies a distinct type across import and alias boundaries.

    Identities produced by different analysis sessions never compare equal,
    since the generation is part of the key.
    """

    module: str
    name: str
    kind: TypeKind
    generation: int = 0

    @property
    def is_identifiable(self) -> bool:
        return self.kind is not TypeKind.OPAQUE

    @property
    def qualified_name(self) -> str:
        return f"{self.module}.{self.name}" if self.module else self.name

    def __str__(self) -> str:
        return self.name

    def __hash__(self) -> int:
        return hash((self.module, self.name, self.kind, self.generation))
