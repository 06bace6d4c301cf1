"""
pywire - compile-time dependency wiring for Python.

Injector functions list their providers with the `wire` marker:

    def init_service(config: Config) -> Service:
        wire([provide_repo, Service])

The generator resolves the providers into construction order and writes an
equivalent module (`<name>_gen.py`) that builds the result explicitly:
- Providers are top-level factory functions or classes
- Types are matched by declaration, through imports and named aliases
- Injector parameters are available to providers by type
- Async providers make the generated injector `async def`
"""

from typing import Any, NoReturn

from .analyzer import InjectionAnalyzer, wire_output_path
from .config import WireConfig
from .errors import (
    CycleDetectedError,
    DuplicateProviderError,
    InvalidProviderFormError,
    MissingProviderError,
    MissingReturnTypeError,
    MissingTypeAnnotationError,
    NotWiredError,
    SourceError,
    UnboundReturnTypeError,
    UnexportedProviderError,
    UnidentifiableTypeError,
    UnresolvableReferenceError,
    WiringError,
)
from .model import TypeIdentity, TypeKind
from .typemodel import AnalysisSession, SessionCache


def wire(providers: Any) -> NoReturn:
    """
    Declare the providers of an injector.

    Must be the first statement of the injector body. Calls are replaced by
    the generated module and never run; running one raises NotWiredError.
    """
    raise NotWiredError(
        "wire() must not be called at run time; "
        "run pywire on this module and use the generated injector instead"
    )


__all__ = [
    "AnalysisSession",
    "CycleDetectedError",
    "DuplicateProviderError",
    "InjectionAnalyzer",
    "InvalidProviderFormError",
    "MissingProviderError",
    "MissingReturnTypeError",
    "MissingTypeAnnotationError",
    "NotWiredError",
    "SessionCache",
    "SourceError",
    "TypeIdentity",
    "TypeKind",
    "UnboundReturnTypeError",
    "UnexportedProviderError",
    "UnidentifiableTypeError",
    "UnresolvableReferenceError",
    "WireConfig",
    "WiringError",
    "wire",
]
