"""
Code synthesis for generated injector modules.
"""

from __future__ import annotations

import ast
import builtins
import io
import keyword
import logging
import tokenize
from collections.abc import Iterator

from .errors import MissingProviderError, UnboundReturnTypeError, UnresolvableReferenceError
from .initializer import Initializer
from .model.keys import TypeIdentity, TypeKind
from .model.providers import Provider, ProviderKind
from .typemodel.base import TypeModel

logger = logging.getLogger(__name__)

INDENT = "    "

# Expressions whose names are bound locally rather than looked up in the module
_SCOPES = (ast.Lambda, ast.ListComp, ast.SetComp, ast.DictComp, ast.GeneratorExp)


class ImportTable:
    """
    Imports of one generated module, grouped per module path.

    Paths and names keep first-use order. A name that is already bound to
    another path is imported under a numbered alias.
    """

    def __init__(self) -> None:
        super().__init__()
        self._values: dict[str, dict[str, str]] = {}
        self._types: dict[str, dict[str, str]] = {}
        self._bound: dict[str, tuple[str, str]] = {}

    def add_value(self, path: str, name: str) -> str:
        """Import `name` from `path` at run time; returns the local name to use."""
        names = self._values.setdefault(path, {})
        if name not in names:
            names[name] = self._bind(path, name)
        return names[name]

    def add_type(self, path: str, name: str) -> None:
        """Import `name` from `path` for type checking only."""
        if name in self._values.get(path, {}):
            return
        bound = self._bound.get(name)
        if bound is not None and bound != (path, name):
            logger.debug("Not importing %s.%s for type checking: %s is taken", path, name, name)
            return
        self._bound[name] = (path, name)
        self._types.setdefault(path, {})[name] = name

    @property
    def has_type_imports(self) -> bool:
        return bool(self._type_imports())

    def render_values(self, line_length: int) -> list[str]:
        return [_import_statement(path, names, "", line_length) for path, names in self._values.items()]

    def render_types(self, line_length: int) -> list[str]:
        return [_import_statement(path, names, INDENT, line_length) for path, names in self._type_imports().items()]

    def _type_imports(self) -> dict[str, dict[str, str]]:
        # A later value import of the same name supersedes the type-only one
        imports: dict[str, dict[str, str]] = {}
        for path, names in self._types.items():
            remaining = {name: local for name, local in names.items() if name not in self._values.get(path, {})}
            if remaining:
                imports[path] = remaining
        return imports

    def _bind(self, path: str, name: str) -> str:
        local = name
        suffix = 0
        while local in self._bound and self._bound[local] != (path, name):
            suffix += 1
            local = f"{name}{suffix}"
        self._bound[local] = (path, name)
        return local


def _import_statement(path: str, names: dict[str, str], indent: str, line_length: int) -> str:
    items = [name if local == name else f"{name} as {local}" for name, local in names.items()]
    line = f"{indent}from {path} import {', '.join(items)}"
    if len(line) <= line_length:
        return line
    body = "".join(f"{indent}{INDENT}{item},\n" for item in items)
    return f"{indent}from {path} import (\n{body}{indent})"


def variable_base_name(identity: TypeIdentity) -> str:
    """Lower-case the first character of a type name; keywords get a `_` prefix."""
    name = identity.name.rpartition(".")[2]
    base = name[:1].lower() + name[1:]
    if keyword.iskeyword(base):
        base = f"_{base}"
    return base


def default_names(node: ast.AST) -> Iterator[ast.Name]:
    """Yield the names a parameter default reads from its module, in source order."""
    if isinstance(node, ast.Name):
        yield node
    elif not isinstance(node, _SCOPES):
        for child in ast.iter_child_nodes(node):
            yield from default_names(child)


def parameter_source(source: str, function: ast.FunctionDef | ast.AsyncFunctionDef) -> str:
    """Get the text between the parentheses of a function's parameter list, verbatim."""
    segment = ast.get_source_segment(source, function)
    if segment is None:
        return ast.unparse(function.args)

    lines = segment.splitlines(keepends=True)
    offsets = [0]
    for line in lines:
        offsets.append(offsets[-1] + len(line))

    depth = 0
    start: int | None = None
    seen_name = False
    for token in tokenize.generate_tokens(io.StringIO(segment).readline):
        if not seen_name:
            seen_name = token.type == tokenize.NAME and token.string == function.name
            continue
        if token.type != tokenize.OP:
            continue
        if token.string == "(":
            if depth == 0 and start is None:
                start = offsets[token.end[0] - 1] + token.end[1]
            depth += 1
        elif token.string == ")":
            depth -= 1
            if depth == 0 and start is not None:
                return segment[start : offsets[token.start[0] - 1] + token.start[1]]
        elif token.string == "[" and start is None:
            # PEP 695 type parameters come before the parameter list
            depth += 1
        elif token.string == "]" and start is None:
            depth -= 1

    return ast.unparse(function.args)


class CodeSynthesizer:
    """
    Renders injector functions and the module that holds them.

    Output depends only on the linearized providers and the injector source,
    so identical input always produces identical text.
    """

    def __init__(self, type_model: TypeModel, line_length: int = 88, header: bool = True):
        super().__init__()
        self._type_model = type_model
        self._line_length = line_length
        self._header = header

    def synthesize(self, initializer: Initializer, providers: list[Provider], imports: ImportTable) -> str:
        """
        Render one injector function.

        Args:
            initializer: The injector being generated.
            providers: Linearized providers, inputs before consumers.
            imports: Import table of the generated module; updated in place.

        Returns:
            The function text, without a trailing newline.

        Raises:
            MissingProviderError: If an input has no bound variable.
            UnboundReturnTypeError: If nothing binds the return type.
            UnresolvableReferenceError: If a parameter default reads a name
                the generated module cannot import.
        """
        module = initializer.module
        variables: dict[TypeIdentity, str] = {}
        used: set[str] = set()

        # Injector parameters are bound to their own names
        for parameter in initializer.parameters:
            key = self._type_model.canonicalize(parameter.output_type)
            variables[key] = parameter.exported_name
            used.add(parameter.exported_name)
            self._add_type_import(parameter.output_type, module.name, imports)

        # Module-level names read by the copied defaults
        used.update(self._add_default_imports(initializer, imports))

        callees: dict[Provider, str] = {}
        for provider in providers:
            if provider.is_importable:
                callees[provider] = imports.add_value(provider.module, provider.exported_name)
        used.update(callees.values())
        used.add(initializer.name)

        statements: list[str] = []
        for provider in providers:
            if provider.kind is ProviderKind.ARGUMENT:
                continue

            arguments = []
            for provider_input in provider.inputs:
                key = self._type_model.canonicalize(provider_input.type)
                if key not in variables:
                    raise MissingProviderError(
                        key, self._type_model.canonicalize(provider.output_type), provider_input.location
                    )
                value = variables[key]
                arguments.append(f"{provider_input.name}={value}" if provider_input.keyword_only else value)

            output = self._type_model.canonicalize(provider.output_type)
            variable = self._fresh_name(variable_base_name(output), used)
            variables[output] = variable

            call = f"{callees[provider]}({', '.join(arguments)})"
            if provider.is_async:
                call = f"await {call}"
            statements.append(f"{variable} = {call}")

        return_key = self._type_model.canonicalize(initializer.return_type)
        if return_key not in variables:
            raise UnboundReturnTypeError(initializer.name, return_key, initializer.location)
        statements.append(f"return {variables[return_key]}")

        is_async = any(provider.is_async for provider in providers)
        signature = f"def {initializer.name}({parameter_source(module.source, initializer.node)}):"
        if is_async:
            signature = f"async {signature}"

        logger.debug("Synthesized %s (%d statement(s))", initializer, len(statements))
        return "\n".join([signature, *(f"{INDENT}{statement}" for statement in statements)])

    def render_module(self, module_name: str, functions: list[str], imports: ImportTable) -> str:
        """Assemble the generated module text."""
        head = []
        if self._header:
            head.append(f"# Code generated by pywire from {module_name}. DO NOT EDIT.")
        head.append("from __future__ import annotations")

        sections = ["\n".join(head)]
        if imports.has_type_imports:
            sections.append("from typing import TYPE_CHECKING")
        values = imports.render_values(self._line_length)
        if values:
            sections.append("\n".join(values))
        if imports.has_type_imports:
            sections.append("\n".join(["if TYPE_CHECKING:", *imports.render_types(self._line_length)]))

        return "\n\n".join(sections) + "\n\n\n" + "\n\n\n".join(functions) + "\n"

    def _add_type_import(self, annotated: TypeIdentity, module_name: str, imports: ImportTable) -> None:
        # The copied annotation names the declaration itself, not what it aliases
        if annotated.kind is TypeKind.IMPORT or annotated.module != module_name or "." in annotated.name:
            return
        declaration = self._type_model.declaration_of(annotated)
        if declaration is not None and self._type_model.is_exported(declaration):
            imports.add_type(module_name, annotated.name)

    def _add_default_imports(self, initializer: Initializer, imports: ImportTable) -> list[str]:
        module = initializer.module
        args = initializer.node.args
        defaults = [*args.defaults, *(default for default in args.kw_defaults if default is not None)]

        names: list[str] = []
        for default in defaults:
            for node in default_names(default):
                try:
                    self._type_model.resolve_reference(node, module)
                except UnresolvableReferenceError as e:
                    if hasattr(builtins, node.id):
                        continue
                    raise UnresolvableReferenceError(
                        node.id,
                        module.location_of(node),
                        f"parameter default of {initializer.name} is not defined in module {module.name}",
                    ) from e

                local = imports.add_value(module.name, node.id)
                if local != node.id:
                    raise UnresolvableReferenceError(
                        node.id,
                        module.location_of(node),
                        f"parameter default of {initializer.name} clashes with an import of the same name",
                    )
                names.append(local)
        return names

    @staticmethod
    def _fresh_name(base: str, used: set[str]) -> str:
        name = base
        suffix = 0
        while name in used:
            suffix += 1
            name = f"{base}{suffix}"
        used.add(name)
        return name
