"""
TypeModel implementation over Python's `ast`.
"""

from __future__ import annotations

import ast
import builtins
import logging
from typing import TYPE_CHECKING

from ..errors import InvalidProviderFormError, UnresolvableReferenceError
from ..model.keys import SourceLocation, TypeIdentity, TypeKind
from .base import TypeModel
from .declarations import (
    ClassDeclaration,
    Declaration,
    ExternalDeclaration,
    FunctionDeclaration,
    ImportedName,
    ModuleReference,
    ParameterSpec,
    TypeAliasDeclaration,
    VariableDeclaration,
)
from .session import ModuleInfo

if TYPE_CHECKING:
    from .session import AnalysisSession

logger = logging.getLogger(__name__)

_CLASSVAR_PREFIXES = ("ClassVar", "typing.ClassVar")
_KW_ONLY_MARKERS = frozenset({"KW_ONLY", "dataclasses.KW_ONLY"})
_STATIC_DECORATORS = frozenset({"staticmethod", "builtins.staticmethod"})


class AstTypeModel(TypeModel):
    """
    Resolves names and annotations against the modules of one AnalysisSession.

    Identities are cached per declaration, so resolving the same alias twice
    returns the same object; the cache is dropped together with the session.
    """

    def __init__(self, session: AnalysisSession):
        super().__init__()
        self._session = session
        self._identities: dict[Declaration, TypeIdentity] = {}
        self._opaque: dict[str, TypeIdentity] = {}
        self._imports: dict[TypeIdentity, ImportedName] = {}
        self._declarations: dict[TypeIdentity, Declaration] = {}
        self._externals: dict[tuple[str, str], ExternalDeclaration] = {}
        self._submodules: dict[str, ModuleReference | None] = {}
        self._members: dict[tuple[ClassDeclaration, str], Declaration] = {}

    @property
    def session(self) -> AnalysisSession:
        return self._session

    # Names

    def resolve_reference(self, node: ast.expr, module: ModuleInfo) -> Declaration:
        match node:
            case ast.Name(id=name):
                declaration = self._lookup(module, name)
                if declaration is None:
                    raise UnresolvableReferenceError(
                        name, module.location_of(node), f"not defined in module {module.name}"
                    )
                return declaration
            case ast.Attribute(value=value, attr=attr):
                owner = self.resolve_declaration(self.resolve_reference(value, module))
                return self._member(owner, attr, node, module)
            case _:
                raise UnresolvableReferenceError(
                    module.excerpt(node), module.location_of(node), "not a name or attribute reference"
                )

    def resolve_declaration(self, declaration: Declaration) -> Declaration:
        seen: set[Declaration] = set()
        while isinstance(declaration, ImportedName):
            if declaration in seen:
                raise UnresolvableReferenceError(
                    declaration.name, self._location(declaration), "circular import"
                )
            seen.add(declaration)

            source = self._session.module_named(declaration.source)
            if source is None:
                return self._external(declaration.source, declaration.source_name)

            target = self._lookup(source, declaration.source_name)
            if target is None:
                target = self._submodule(f"{declaration.source}.{declaration.source_name}")
            if target is None:
                raise UnresolvableReferenceError(
                    declaration.source_name,
                    self._location(declaration),
                    f"module {declaration.source} does not define it",
                )
            declaration = target
        return declaration

    def _lookup(self, module: ModuleInfo, name: str, seen: set[str] | None = None) -> Declaration | None:
        declaration = module.symbols.get(name)
        if declaration is not None:
            return declaration

        seen = seen if seen is not None else set()
        seen.add(module.name)
        for source in module.star_imports:
            if source in seen:
                continue
            target = self._session.module_named(source)
            if target is None:
                continue
            if target.exports is not None:
                if name not in target.exports:
                    continue
            elif name.startswith("_"):
                continue
            found = self._lookup(target, name, seen)
            if found is not None:
                return found
        return None

    def _member(self, owner: Declaration, attr: str, node: ast.expr, module: ModuleInfo) -> Declaration:
        match owner:
            case ModuleReference(target=target):
                target_module = self._session.module_named(target)
                if target_module is None:
                    return self._external(target, attr)
                member = self._lookup(target_module, attr)
                if member is None:
                    member = self._submodule(f"{target}.{attr}")
                if member is not None:
                    return member
            case ClassDeclaration():
                member = self._class_member(owner, attr)
                if member is not None:
                    return member
            case ExternalDeclaration(module_name=module_name):
                return self._external(module_name, f"{owner.name}.{attr}")

        raise UnresolvableReferenceError(
            f"{owner.name}.{attr}", module.location_of(node), f"{owner.name} has no attribute {attr}"
        )

    def _class_member(self, owner: ClassDeclaration, attr: str) -> Declaration | None:
        key = (owner, attr)
        if key in self._members:
            return self._members[key]

        member: Declaration | None = None
        for statement in owner.node.body:
            if isinstance(statement, (ast.FunctionDef, ast.AsyncFunctionDef)) and statement.name == attr:
                member = FunctionDeclaration(attr, owner.module, statement, owner)
            elif isinstance(statement, ast.ClassDef) and statement.name == attr:
                member = ClassDeclaration(f"{owner.name}.{attr}", owner.module, statement)

        if member is not None:
            self._members[key] = member
        return member

    def _external(self, module_name: str, name: str) -> ExternalDeclaration:
        key = (module_name, name)
        if key not in self._externals:
            self._externals[key] = ExternalDeclaration(name, None, None, module_name)
        return self._externals[key]

    def _submodule(self, name: str) -> ModuleReference | None:
        if name not in self._submodules:
            module = self._session.module_named(name)
            self._submodules[name] = (
                ModuleReference(name.rpartition(".")[2], None, None, name) if module is not None else None
            )
        return self._submodules[name]

    # Types

    def resolve_type(self, node: ast.expr, module: ModuleInfo) -> TypeIdentity:
        match node:
            case ast.Constant(value=str() as text):
                try:
                    parsed = ast.parse(text.strip(), mode="eval").body
                except SyntaxError as e:
                    raise UnresolvableReferenceError(
                        text, module.location_of(node), "invalid string annotation"
                    ) from e
                for child in ast.walk(parsed):
                    ast.copy_location(child, node)
                return self.resolve_type(parsed, module)
            case ast.Name(id=name) if self._lookup(module, name) is None and hasattr(builtins, name):
                return self._opaque_identity(name)
            case ast.Name() | ast.Attribute():
                return self.declared_type(self.resolve_reference(node, module))
            case _:
                return self._opaque_identity(ast.unparse(node))

    def declared_type(self, declaration: Declaration) -> TypeIdentity:
        if declaration in self._identities:
            return self._identities[declaration]

        generation = self._session.generation
        module_name = declaration.module.name if declaration.module is not None else ""

        match declaration:
            case ImportedName():
                identity = TypeIdentity(module_name, declaration.name, TypeKind.IMPORT, generation)
                self._imports[identity] = declaration
            case ClassDeclaration():
                identity = TypeIdentity(module_name, declaration.name, TypeKind.CLASS, generation)
            case TypeAliasDeclaration(newtype=True):
                identity = TypeIdentity(module_name, declaration.name, TypeKind.NEWTYPE, generation)
            case TypeAliasDeclaration():
                identity = TypeIdentity(module_name, declaration.name, TypeKind.ALIAS, generation)
            case VariableDeclaration(value=ast.Name() | ast.Attribute() | ast.Subscript()):
                # Implicit alias: `Name = SomeType`
                identity = TypeIdentity(module_name, declaration.name, TypeKind.ALIAS, generation)
            case VariableDeclaration(value=ast.BinOp(op=ast.BitOr())):
                identity = TypeIdentity(module_name, declaration.name, TypeKind.ALIAS, generation)
            case ExternalDeclaration(module_name=external_module):
                identity = TypeIdentity(external_module, declaration.name, TypeKind.EXTERNAL, generation)
            case _:
                return self._opaque_identity(declaration.name)

        self._identities[declaration] = identity
        self._declarations[identity] = declaration
        return identity

    def canonicalize(self, identity: TypeIdentity) -> TypeIdentity:
        if identity.generation != self._session.generation:
            raise ValueError(
                f"{identity.qualified_name} belongs to session generation {identity.generation}, "
                f"not {self._session.generation}"
            )

        seen: set[TypeIdentity] = set()
        current = identity
        while current.kind in (TypeKind.IMPORT, TypeKind.ALIAS):
            if current in seen:
                raise UnresolvableReferenceError(
                    identity.name, self._location(self._declarations.get(identity)), "circular type alias"
                )
            seen.add(current)

            declaration = self._declarations[current]
            if current.kind is TypeKind.IMPORT:
                current = self.declared_type(self.resolve_declaration(declaration))
                continue

            target = self._alias_target(declaration)
            if target is None or not target.is_identifiable:
                return current
            current = target
        return current

    def _alias_target(self, declaration: Declaration) -> TypeIdentity | None:
        value = getattr(declaration, "value", None)
        if declaration.module is None or not isinstance(value, (ast.Name, ast.Attribute, ast.Constant)):
            return None
        if isinstance(value, ast.Constant) and not isinstance(value.value, str):
            return None
        return self.resolve_type(value, declaration.module)

    def declaration_of(self, identity: TypeIdentity) -> Declaration | None:
        return self._declarations.get(identity)

    def _opaque_identity(self, name: str) -> TypeIdentity:
        if name not in self._opaque:
            self._opaque[name] = TypeIdentity("", name, TypeKind.OPAQUE, self._session.generation)
        return self._opaque[name]

    # Signatures

    def signature_of(self, function: FunctionDeclaration) -> list[ParameterSpec]:
        assert function.module is not None
        args = function.node.args
        if args.vararg is not None or args.kwarg is not None:
            raise InvalidProviderFormError(
                function.module.excerpt(function.node),
                self.source_location_of(function.node, function.module),
                reason="must not take *args or **kwargs",
            )

        positional = [*args.posonlyargs, *args.args]
        if function.is_method and not self._is_static(function.node):
            positional = positional[1:]

        specs = [ParameterSpec(arg.arg, arg.annotation, arg, function.module) for arg in positional]
        specs.extend(
            ParameterSpec(arg.arg, arg.annotation, arg, function.module, keyword_only=True)
            for arg in args.kwonlyargs
        )
        return specs

    def constructor_parameters(self, declaration: ClassDeclaration) -> list[ParameterSpec]:
        seen: set[ClassDeclaration] = set()
        current: ClassDeclaration | None = declaration
        while current is not None and current not in seen:
            seen.add(current)

            init = self._class_member(current, "__init__")
            if isinstance(init, FunctionDeclaration):
                return self.signature_of(init)

            if self._dataclass_options(current) is not None:
                return self._dataclass_fields(current, set())

            current = self._first_base(current)

        logger.debug("%s has no analysable constructor; assuming no inputs", declaration.name)
        return []

    def _first_base(self, declaration: ClassDeclaration) -> ClassDeclaration | None:
        for base in declaration.node.bases:
            resolved = self._resolve_class(base, declaration)
            if resolved is not None:
                return resolved
        return None

    def _resolve_class(self, base: ast.expr, declaration: ClassDeclaration) -> ClassDeclaration | None:
        assert declaration.module is not None
        if isinstance(base, ast.Subscript):
            base = base.value
        if isinstance(base, ast.Name) and self._lookup(declaration.module, base.id) is None:
            return None  # builtin base such as `object` or `Exception`
        try:
            resolved = self.resolve_declaration(self.resolve_reference(base, declaration.module))
        except UnresolvableReferenceError:
            return None
        return resolved if isinstance(resolved, ClassDeclaration) else None

    def _dataclass_options(self, declaration: ClassDeclaration) -> dict[str, bool] | None:
        for decorator in declaration.node.decorator_list:
            target = decorator.func if isinstance(decorator, ast.Call) else decorator
            if ast.unparse(target).rpartition(".")[2] != "dataclass":
                continue
            options: dict[str, bool] = {"init": True, "kw_only": False}
            if isinstance(decorator, ast.Call):
                for keyword in decorator.keywords:
                    if keyword.arg in options and isinstance(keyword.value, ast.Constant):
                        options[keyword.arg] = bool(keyword.value.value)
            return options if options["init"] else None
        return None

    def _dataclass_fields(self, declaration: ClassDeclaration, seen: set[ClassDeclaration]) -> list[ParameterSpec]:
        assert declaration.module is not None
        seen.add(declaration)

        fields: dict[str, ParameterSpec] = {}
        for base in reversed(declaration.node.bases):
            resolved = self._resolve_class(base, declaration)
            if resolved is not None and resolved not in seen and self._dataclass_options(resolved) is not None:
                fields.update((spec.name, spec) for spec in self._dataclass_fields(resolved, seen))

        options = self._dataclass_options(declaration) or {}
        kw_only = options.get("kw_only", False)
        for statement in declaration.node.body:
            if not (isinstance(statement, ast.AnnAssign) and isinstance(statement.target, ast.Name)):
                continue
            annotation = ast.unparse(statement.annotation)
            if annotation.startswith(_CLASSVAR_PREFIXES):
                continue
            if annotation in _KW_ONLY_MARKERS:
                kw_only = True
                continue

            field_kw_only = kw_only
            if isinstance(statement.value, ast.Call) and ast.unparse(statement.value.func).rpartition(".")[2] == "field":
                settings = {
                    keyword.arg: keyword.value.value
                    for keyword in statement.value.keywords
                    if isinstance(keyword.value, ast.Constant)
                }
                if settings.get("init") is False:
                    continue
                if "kw_only" in settings:
                    field_kw_only = bool(settings["kw_only"])

            name = statement.target.id
            fields[name] = ParameterSpec(
                name, statement.annotation, statement, declaration.module, keyword_only=field_kw_only
            )
        return list(fields.values())

    @staticmethod
    def _is_static(node: ast.FunctionDef | ast.AsyncFunctionDef) -> bool:
        return any(ast.unparse(decorator) in _STATIC_DECORATORS for decorator in node.decorator_list)

    # Diagnostics

    def source_location_of(self, node: ast.AST, module: ModuleInfo) -> SourceLocation:
        return module.location_of(node)

    def is_exported(self, declaration: Declaration) -> bool:
        if declaration.name.startswith("_"):
            return False
        module = declaration.module
        if module is not None and module.exports is not None:
            return declaration.name in module.exports
        return True

    def _location(self, declaration: Declaration | None) -> SourceLocation | None:
        if declaration is None or declaration.module is None or declaration.node is None:
            return None
        return declaration.module.location_of(declaration.node)
