"""
Dependency graph construction and provider linearization.
"""

from __future__ import annotations

import ast
import logging

from .collector import ProviderCollector
from .errors import DuplicateProviderError, MissingProviderError, UnidentifiableTypeError
from .model.graph import DependencyGraph, linearize
from .model.keys import SourceLocation, TypeIdentity
from .model.providers import Provider, ProviderKind
from .typemodel.base import TypeModel
from .typemodel.session import ModuleInfo

logger = logging.getLogger(__name__)


class DependencyGraphBuilder:
    """Builds a DependencyGraph from providers, keyed by canonical type identity."""

    def __init__(self, type_model: TypeModel):
        super().__init__()
        self._type_model = type_model

    def canonical_output(self, provider: Provider) -> TypeIdentity:
        return self._canonical(provider.output_type, provider, provider.location)

    def canonical_inputs(self, provider: Provider) -> list[TypeIdentity]:
        return [
            self._canonical(provider_input.type, provider, provider_input.location or provider.location)
            for provider_input in provider.inputs
        ]

    def build(self, providers: list[Provider]) -> DependencyGraph:
        """
        Insert one `output -> inputs` edge set per provider.

        Raises:
            UnidentifiableTypeError: If an output or input type has no identity.
        """
        graph = DependencyGraph()
        for provider in providers:
            graph.add(self.canonical_output(provider), self.canonical_inputs(provider))
        return graph

    def _canonical(
        self, identity: TypeIdentity, provider: Provider, location: SourceLocation | None
    ) -> TypeIdentity:
        canonical = self._type_model.canonicalize(identity)
        if not canonical.is_identifiable:
            raise UnidentifiableTypeError(canonical.name, provider.exported_name, location)
        return canonical


class Resolver:
    """
    Resolves provider sets to the ordered list of providers an injector runs.

    Providers are keyed by canonical output type; when two providers produce
    the same type the later one wins. In strict mode such a duplicate raises
    DuplicateProviderError unless the later provider is an injector argument.
    """

    def __init__(self, type_model: TypeModel, strict: bool = False):
        super().__init__()
        self._type_model = type_model
        self._strict = strict
        self._collector = ProviderCollector(type_model)
        self._graph_builder = DependencyGraphBuilder(type_model)

    @property
    def type_model(self) -> TypeModel:
        return self._type_model

    def collect_providers(self, entry: ast.expr, module: ModuleInfo) -> list[Provider]:
        """Collect the providers named by a wiring-marker argument."""
        return self._collector.collect(entry, module)

    def provider_map(self, providers: list[Provider]) -> dict[TypeIdentity, Provider]:
        """
        Key providers by canonical output type, later providers replacing earlier ones.

        Raises:
            DuplicateProviderError: In strict mode, if two non-argument providers
                produce the same type.
        """
        by_type: dict[TypeIdentity, Provider] = {}
        for provider in providers:
            output = self._graph_builder.canonical_output(provider)
            previous = by_type.get(output)
            if previous is not None and previous is not provider:
                if provider.kind is ProviderKind.ARGUMENT:
                    logger.debug(
                        "Injector argument %s overrides provider %s for %s",
                        provider.exported_name,
                        previous.exported_name,
                        output.qualified_name,
                    )
                elif self._strict:
                    raise DuplicateProviderError(
                        output, previous.exported_name, provider.exported_name, provider.location
                    )
                else:
                    logger.warning(
                        "%s: %s replaces %s as provider of %s",
                        provider.location,
                        provider.exported_name,
                        previous.exported_name,
                        output.qualified_name,
                    )
            by_type[output] = provider
        return by_type

    def build_graph(self, providers: list[Provider]) -> DependencyGraph:
        return self._graph_builder.build(providers)

    def linearize_providers(self, providers: list[Provider], return_type: TypeIdentity) -> list[Provider]:
        """
        Order the providers needed to build `return_type`.

        Args:
            providers: Providers in collection order, injector arguments last.
            return_type: The type to build.

        Returns:
            One provider per reachable type, inputs before consumers.

        Raises:
            CycleDetectedError: If the reachable graph has a cycle.
            MissingProviderError: If a reachable type has no provider.
        """
        by_type = self.provider_map(providers)
        graph = self.build_graph(providers)
        target = self._type_model.canonicalize(return_type)

        ordered: list[Provider] = []
        for key in linearize(target, graph):
            provider = by_type.get(key)
            if provider is None:
                dependents = graph.dependents_of(key)
                dependent = dependents[0] if dependents else None
                location = by_type[dependent].location if dependent is not None else None
                raise MissingProviderError(key, dependent, location)
            ordered.append(provider)

        logger.debug(
            "Linearized %s: %s",
            target.qualified_name,
            " -> ".join(p.exported_name for p in ordered),
        )
        return ordered
