"""
Provider variants: factory functions, classes and injector arguments.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar

from .keys import SourceLocation, TypeIdentity


class ProviderKind(Enum):
    """Kinds of providers supported."""

    FUNCTION = "function"
    CONSTRUCTOR = "constructor"
    ARGUMENT = "argument"


@dataclass(frozen=True)
class ProviderInput:
    """One declared input of a provider."""

    name: str
    type: TypeIdentity
    keyword_only: bool = False
    location: SourceLocation | None = None


@dataclass(frozen=True)
class Provider:
    """
    Something that can produce a value of its output type.

    Output and input types are stored as resolved by the type model; the graph
    builder canonicalizes them.
    """

    kind: ClassVar[ProviderKind]

    output_type: TypeIdentity
    inputs: tuple[ProviderInput, ...]
    exported_name: str
    module: str
    location: SourceLocation
    is_async: bool = False

    @property
    def input_types(self) -> tuple[TypeIdentity, ...]:
        return tuple(provider_input.type for provider_input in self.inputs)

    @property
    def is_importable(self) -> bool:
        """Arguments are already in scope as parameters; everything else is imported."""
        return self.kind is not ProviderKind.ARGUMENT

    def __str__(self) -> str:
        return f"{self.exported_name} -> {self.output_type} ({self.kind.value})"


@dataclass(frozen=True)
class FunctionProvider(Provider):
    """A module-level factory function, possibly `async def`."""

    kind: ClassVar[ProviderKind] = ProviderKind.FUNCTION


@dataclass(frozen=True)
class ConstructorProvider(Provider):
    """A class whose constructor produces the output type."""

    kind: ClassVar[ProviderKind] = ProviderKind.CONSTRUCTOR

    def __post_init__(self) -> None:
        if self.is_async:
            raise ValueError("constructor providers cannot be asynchronous")


@dataclass(frozen=True)
class ArgumentProvider(Provider):
    """An injector parameter, bound directly to its own name."""

    kind: ClassVar[ProviderKind] = ProviderKind.ARGUMENT

    def __post_init__(self) -> None:
        if self.inputs or self.is_async:
            raise ValueError("argument providers have no inputs and are never asynchronous")
