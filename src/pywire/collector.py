"""
Provider collection from the argument of the wiring marker.
"""

from __future__ import annotations

import ast
import logging

from .errors import (
    InvalidProviderFormError,
    MissingReturnTypeError,
    MissingTypeAnnotationError,
    UnexportedProviderError,
    UnresolvableReferenceError,
)
from .model.providers import ConstructorProvider, FunctionProvider, Provider, ProviderInput
from .typemodel.base import TypeModel
from .typemodel.declarations import (
    ClassDeclaration,
    Declaration,
    ExternalDeclaration,
    FunctionDeclaration,
    ModuleReference,
    ParameterSpec,
    TypeAliasDeclaration,
    VariableDeclaration,
)
from .typemodel.session import ModuleInfo

logger = logging.getLogger(__name__)


class ProviderCollector:
    """
    Turns a provider-set expression into an ordered list of providers.

    Elements are visited depth-first, left to right, so the resulting order is
    the textual order of the flattened set. Provider sets may be nested lists
    or tuples, unpacked with `*`, concatenated with `+`, or named module-level
    variables, possibly imported from other modules.
    """

    def __init__(self, type_model: TypeModel):
        super().__init__()
        self._type_model = type_model

    def collect(self, entry: ast.expr, module: ModuleInfo) -> list[Provider]:
        """
        Collect the providers named by `entry`.

        Args:
            entry: The expression passed to the wiring marker.
            module: The module the expression appears in.

        Returns:
            Providers in collection order, duplicates included.

        Raises:
            InvalidProviderFormError: If an element is not a function or class.
            UnresolvableReferenceError: If a name cannot be resolved.
            UnexportedProviderError: If a provider function is private.
            MissingReturnTypeError: If a provider function has no return annotation.
            MissingTypeAnnotationError: If a provider parameter has no annotation.
        """
        providers: list[Provider] = []
        self._collect(entry, module, providers, [])
        logger.debug(
            "Collected %d provider(s) in %s: %s",
            len(providers),
            module.name,
            ", ".join(p.exported_name for p in providers),
        )
        return providers

    def _collect(
        self,
        node: ast.expr,
        module: ModuleInfo,
        providers: list[Provider],
        expanding: list[VariableDeclaration],
    ) -> None:
        match node:
            case ast.List(elts=elements) | ast.Tuple(elts=elements):
                for element in elements:
                    self._collect(element, module, providers, expanding)
            case ast.Starred(value=value):
                self._collect(value, module, providers, expanding)
            case ast.BinOp(left=left, op=ast.Add(), right=right):
                self._collect(left, module, providers, expanding)
                self._collect(right, module, providers, expanding)
            case ast.Name() | ast.Attribute():
                declaration = self._type_model.resolve_declaration(
                    self._type_model.resolve_reference(node, module)
                )
                self._collect_declaration(declaration, node, module, providers, expanding)
            case _:
                raise InvalidProviderFormError(module.excerpt(node), module.location_of(node))

    def _collect_declaration(
        self,
        declaration: Declaration,
        node: ast.expr,
        module: ModuleInfo,
        providers: list[Provider],
        expanding: list[VariableDeclaration],
    ) -> None:
        location = module.location_of(node)

        match declaration:
            case VariableDeclaration(value=None):
                raise UnresolvableReferenceError(
                    declaration.name, location, "provider set variable has no value"
                )
            case VariableDeclaration(module=ModuleInfo() as owner, value=value) if value is not None:
                if declaration in expanding:
                    raise InvalidProviderFormError(
                        module.excerpt(node), location, reason="refers to itself"
                    )
                expanding.append(declaration)
                try:
                    self._collect(value, owner, providers, expanding)
                finally:
                    expanding.pop()
            case ClassDeclaration():
                if "." in declaration.name:
                    raise InvalidProviderFormError(
                        module.excerpt(node), location, reason="must be a top-level class, not a nested one"
                    )
                providers.append(self._constructor_provider(declaration))
            case FunctionDeclaration(owner=ClassDeclaration()):
                raise InvalidProviderFormError(
                    module.excerpt(node), location, reason="must be a top-level function, not a method"
                )
            case FunctionDeclaration():
                providers.append(self._function_provider(declaration))
            case TypeAliasDeclaration() | ModuleReference():
                raise InvalidProviderFormError(module.excerpt(node), location)
            case ExternalDeclaration():
                raise UnresolvableReferenceError(
                    f"{declaration.module_name}.{declaration.name}",
                    location,
                    "providers must be declared in the analysed source tree",
                )
            case _:
                raise InvalidProviderFormError(module.excerpt(node), location)

    def _function_provider(self, declaration: FunctionDeclaration) -> FunctionProvider:
        module = declaration.module
        assert module is not None
        function = declaration.node
        location = self._type_model.source_location_of(function, module)

        if not self._type_model.is_exported(declaration):
            raise UnexportedProviderError(declaration.name, location)
        if function.returns is None:
            raise MissingReturnTypeError(declaration.name, location)

        return FunctionProvider(
            output_type=self._type_model.resolve_type(function.returns, module),
            inputs=self._inputs(declaration.name, self._type_model.signature_of(declaration)),
            exported_name=declaration.name,
            module=module.name,
            location=location,
            is_async=declaration.is_async,
        )

    def _constructor_provider(self, declaration: ClassDeclaration) -> ConstructorProvider:
        module = declaration.module
        assert module is not None
        location = self._type_model.source_location_of(declaration.node, module)

        return ConstructorProvider(
            output_type=self._type_model.declared_type(declaration),
            inputs=self._inputs(declaration.name, self._type_model.constructor_parameters(declaration)),
            exported_name=declaration.name,
            module=module.name,
            location=location,
        )

    def _inputs(self, owner: str, parameters: list[ParameterSpec]) -> tuple[ProviderInput, ...]:
        inputs: list[ProviderInput] = []
        for parameter in parameters:
            location = self._type_model.source_location_of(parameter.node, parameter.module)
            if parameter.annotation is None:
                raise MissingTypeAnnotationError(parameter.name, owner, location)
            inputs.append(
                ProviderInput(
                    name=parameter.name,
                    type=self._type_model.resolve_type(parameter.annotation, parameter.module),
                    keyword_only=parameter.keyword_only,
                    location=location,
                )
            )
        return tuple(inputs)
