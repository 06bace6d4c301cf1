"""
Error taxonomy for wiring resolution.

Every error raised while resolving an injector derives from WiringError and
carries the source location of the offending construct when one is known.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .model.keys import SourceLocation, TypeIdentity


class WiringError(Exception):
    """Base class for errors that abort the resolution of a module."""

    def __init__(self, message: str, location: SourceLocation | None = None):
        self.location = location
        self.detail = message
        super().__init__(f"{location}: {message}" if location else message)


class SourceError(WiringError):
    """Raised when a source file cannot be read or parsed."""


class MissingTypeAnnotationError(WiringError):
    """Raised when a provider or injector parameter has no type annotation."""

    def __init__(self, parameter: str, owner: str, location: SourceLocation | None = None):
        self.parameter = parameter
        self.owner = owner
        super().__init__(
            f'parameter "{parameter}" of "{owner}" must have an explicit type annotation',
            location,
        )


class MissingReturnTypeError(WiringError):
    """Raised when a provider function or injector has no return annotation."""

    def __init__(self, name: str, location: SourceLocation | None = None):
        self.name = name
        super().__init__(f'"{name}" must declare an explicit return-type annotation', location)


class UnexportedProviderError(WiringError):
    """Raised when a provider function is private to its module."""

    def __init__(self, name: str, location: SourceLocation | None = None):
        self.name = name
        super().__init__(
            f'provider "{name}" must be exported (public name, listed in __all__ if present)',
            location,
        )


class InvalidProviderFormError(WiringError):
    """Raised when a provider-set element is not a named function or class."""

    def __init__(self, excerpt: str, location: SourceLocation | None = None, reason: str | None = None):
        self.excerpt = excerpt
        self.reason = reason or (
            "must be a top-level function or class declaration, "
            "not a lambda, method, call or other value"
        )
        super().__init__(f'provider starting with "{excerpt}" {self.reason}', location)


class UnresolvableReferenceError(WiringError):
    """Raised when a name in a provider set or annotation cannot be resolved."""

    def __init__(self, name: str, location: SourceLocation | None = None, reason: str | None = None):
        self.name = name
        message = f'cannot resolve "{name}"'
        if reason:
            message += f": {reason}"
        super().__init__(message, location)


class UnidentifiableTypeError(WiringError):
    """Raised when a provider type has no declaration to identify it by."""

    def __init__(self, type_name: str, owner: str, location: SourceLocation | None = None):
        self.type_name = type_name
        self.owner = owner
        super().__init__(
            f'type "{type_name}" used by "{owner}" has no identity; '
            f"declare a named alias for it (e.g. `type Name = {type_name}`)",
            location,
        )


class CycleDetectedError(WiringError):
    """Raised when the dependency graph reachable from a target has a cycle."""

    def __init__(self, cycle: Sequence[TypeIdentity]):
        self.cycle = list(cycle)
        cycle_str = " -> ".join(str(key) for key in self.cycle)
        super().__init__(f"Cycle detected: {cycle_str}")


class MissingProviderError(WiringError):
    """Raised when a required type has no provider."""

    def __init__(
        self,
        key: TypeIdentity,
        dependent: TypeIdentity | None = None,
        location: SourceLocation | None = None,
    ):
        self.key = key
        self.dependent = dependent
        msg = f"No provider found for {key.qualified_name}"
        if dependent:
            msg += f" (required by {dependent.qualified_name})"
        super().__init__(msg, location)


class UnboundReturnTypeError(WiringError):
    """Raised when no provider binds the injector's declared return type."""

    def __init__(self, injector: str, key: TypeIdentity, location: SourceLocation | None = None):
        self.injector = injector
        self.key = key
        super().__init__(
            f'injector "{injector}" returns {key.qualified_name} but no provider binds it',
            location,
        )


class DuplicateProviderError(WiringError):
    """Raised in strict mode when two providers declare the same output type."""

    def __init__(self, key: TypeIdentity, first: str, second: str, location: SourceLocation | None = None):
        self.key = key
        self.first = first
        self.second = second
        super().__init__(
            f'providers "{first}" and "{second}" both provide {key.qualified_name}',
            location,
        )


class NotWiredError(RuntimeError):
    """Raised when an injector stub runs instead of its generated counterpart."""
