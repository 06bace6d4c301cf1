"""
Injector discovery and per-injector resolution.
"""

from __future__ import annotations

import ast
import logging
from dataclasses import dataclass

from .errors import (
    MissingProviderError,
    MissingReturnTypeError,
    MissingTypeAnnotationError,
    UnboundReturnTypeError,
    UnidentifiableTypeError,
    UnresolvableReferenceError,
)
from .model.keys import SourceLocation, TypeIdentity
from .model.providers import ArgumentProvider, Provider
from .resolver import Resolver
from .typemodel.base import TypeModel
from .typemodel.declarations import FunctionDeclaration, ModuleReference
from .typemodel.session import ModuleInfo

logger = logging.getLogger(__name__)

# Return annotations that mark a function as not building anything.
NON_INJECTOR_RETURNS = frozenset({"None", "NoReturn", "Never", "Any"})

# Module the marker may be called through, as in `pywire.wire(...)`.
MARKER_MODULE = "pywire"


@dataclass(frozen=True)
class Initializer:
    """
    An injector function: its marker argument, parameters and return type.

    Parameters become ArgumentProviders that are appended after the collected
    providers, so an argument overrides a provider of the same type.
    """

    declaration: FunctionDeclaration
    providers_entry: ast.expr
    return_type: TypeIdentity
    parameters: tuple[ArgumentProvider, ...]

    @property
    def name(self) -> str:
        return self.declaration.name

    @property
    def module(self) -> ModuleInfo:
        assert self.declaration.module is not None
        return self.declaration.module

    @property
    def node(self) -> ast.FunctionDef | ast.AsyncFunctionDef:
        return self.declaration.node

    @property
    def location(self) -> SourceLocation:
        return self.module.location_of(self.node)

    def providers(self, resolver: Resolver) -> list[Provider]:
        """Collected providers followed by the injector's parameters."""
        return [*resolver.collect_providers(self.providers_entry, self.module), *self.parameters]

    def linearized_providers(self, resolver: Resolver) -> list[Provider]:
        """
        Providers to run, in order, to build the return type.

        Raises:
            UnboundReturnTypeError: If no provider produces the return type.
        """
        target = resolver.type_model.canonicalize(self.return_type)
        if not target.is_identifiable:
            raise UnidentifiableTypeError(target.name, self.name, self.location)

        try:
            return resolver.linearize_providers(self.providers(resolver), self.return_type)
        except MissingProviderError as e:
            if e.key == target and e.dependent is None:
                raise UnboundReturnTypeError(self.name, target, self.location) from e
            raise

    def __str__(self) -> str:
        return f"{self.module.name}.{self.name}"


def _is_marker_call(statement: ast.stmt, marker: str, module: ModuleInfo, type_model: TypeModel) -> bool:
    if not (isinstance(statement, ast.Expr) and isinstance(statement.value, ast.Call)):
        return False
    match statement.value.func:
        case ast.Name(id=name):
            return name == marker
        case ast.Attribute(value=owner, attr=name) if name == marker:
            # Only `pywire.wire(...)` through a module reference, not `self.wire(...)`
            try:
                declaration = type_model.resolve_declaration(type_model.resolve_reference(owner, module))
            except UnresolvableReferenceError:
                return False
            return isinstance(declaration, ModuleReference) and declaration.target == MARKER_MODULE
        case _:
            return False


def _first_statement(function: ast.FunctionDef | ast.AsyncFunctionDef) -> ast.stmt | None:
    body = function.body
    if (
        body
        and isinstance(body[0], ast.Expr)
        and isinstance(body[0].value, ast.Constant)
        and isinstance(body[0].value.value, str)
    ):
        body = body[1:]
    return body[0] if body else None


def _argument_providers(
    function: ast.FunctionDef | ast.AsyncFunctionDef, module: ModuleInfo, type_model: TypeModel
) -> tuple[ArgumentProvider, ...]:
    args = function.args
    parameters: list[ArgumentProvider] = []
    # *args and **kwargs are copied into the generated signature but never injected
    for arg in [*args.posonlyargs, *args.args, *args.kwonlyargs]:
        location = type_model.source_location_of(arg, module)
        if arg.annotation is None:
            raise MissingTypeAnnotationError(arg.arg, function.name, location)
        parameters.append(
            ArgumentProvider(
                output_type=type_model.resolve_type(arg.annotation, module),
                inputs=(),
                exported_name=arg.arg,
                module=module.name,
                location=location,
            )
        )
    return tuple(parameters)


def find_initializers(module: ModuleInfo, type_model: TypeModel, marker: str = "wire") -> list[Initializer]:
    """
    Find the injectors of a module, in source order.

    An injector is a top-level function whose first statement (after an
    optional docstring) calls the wiring marker with a single provider set.

    Functions that call the marker with anything but one positional argument
    are not injectors and are skipped.

    Raises:
        MissingReturnTypeError: If an injector has no return annotation.
    """
    initializers: list[Initializer] = []
    for node in module.tree.body:
        if not isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            continue

        statement = _first_statement(node)
        if statement is None or not _is_marker_call(statement, marker, module, type_model):
            continue

        assert isinstance(statement, ast.Expr) and isinstance(statement.value, ast.Call)
        call = statement.value
        if len(call.args) != 1 or call.keywords:
            logger.debug(
                "Skipping %s.%s: %s is not a single provider set", module.name, node.name, module.excerpt(call)
            )
            continue

        location = type_model.source_location_of(node, module)
        if node.returns is None:
            raise MissingReturnTypeError(node.name, location)

        returns = ast.unparse(node.returns).rpartition(".")[2]
        if returns in NON_INJECTOR_RETURNS:
            logger.debug("Skipping %s.%s: returns %s", module.name, node.name, returns)
            continue

        declaration = module.symbols.get(node.name)
        if not isinstance(declaration, FunctionDeclaration) or declaration.node is not node:
            # Redefined later in the module; the generated module follows the source order
            declaration = FunctionDeclaration(node.name, module, node)

        initializers.append(
            Initializer(
                declaration=declaration,
                providers_entry=call.args[0],
                return_type=type_model.resolve_type(node.returns, module),
                parameters=_argument_providers(node, module, type_model),
            )
        )
        logger.debug("Found injector %s.%s at %s", module.name, node.name, location)

    return initializers
