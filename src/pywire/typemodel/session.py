"""
Analysis sessions: parsed modules, their namespaces, and the session cache.
"""

from __future__ import annotations

import ast
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from ..errors import SourceError
from ..model.keys import SourceLocation
from .declarations import (
    ClassDeclaration,
    Declaration,
    FunctionDeclaration,
    ImportedName,
    ModuleReference,
    TypeAliasDeclaration,
    VariableDeclaration,
)

if TYPE_CHECKING:
    from .ast_model import AstTypeModel

logger = logging.getLogger(__name__)

_TYPE_ALIAS_ANNOTATIONS = frozenset({"TypeAlias", "typing.TypeAlias", "typing_extensions.TypeAlias"})
_NEWTYPE_CALLS = frozenset({"NewType", "typing.NewType", "typing_extensions.NewType"})


@dataclass(eq=False)
class ModuleInfo:
    """A parsed module and its top-level namespace."""

    name: str
    path: Path
    source: str
    tree: ast.Module
    is_package: bool
    symbols: dict[str, Declaration] = field(default_factory=dict)
    star_imports: list[str] = field(default_factory=list)
    exports: tuple[str, ...] | None = None

    @property
    def package(self) -> str:
        """The package relative imports in this module are resolved against."""
        if self.is_package:
            return self.name
        return self.name.rpartition(".")[0]

    def location_of(self, node: ast.AST) -> SourceLocation:
        line = getattr(node, "lineno", 1)
        column = getattr(node, "col_offset", 0) + 1
        return SourceLocation(str(self.path), line, column)

    def excerpt(self, node: ast.AST, limit: int = 40) -> str:
        """Get the start of a node's source text, whitespace collapsed."""
        text = ast.get_source_segment(self.source, node) or ast.unparse(node)
        return " ".join(text.split())[:limit]

    def __str__(self) -> str:
        return self.name


def module_name_for_path(path: Path) -> str:
    """
    Derive the dotted module name of a source file.

    Parent directories are treated as packages for as long as they contain an
    `__init__.py`.
    """
    path = path.resolve()
    parts = [] if path.stem == "__init__" else [path.stem]
    directory = path.parent
    while (directory / "__init__.py").is_file():
        parts.insert(0, directory.name)
        directory = directory.parent
    return ".".join(parts)


def package_root_for_path(path: Path) -> Path:
    """Get the directory the top-level package of `path` lives in."""
    directory = path.resolve().parent
    while (directory / "__init__.py").is_file():
        directory = directory.parent
    return directory


def resolve_relative_import(package: str, module: str | None, level: int) -> str:
    """Turn a `from ..module import x` target into an absolute module name."""
    if level == 0:
        return module or ""
    parts = package.split(".") if package else []
    if level - 1 > len(parts):
        raise ValueError(f"relative import beyond top-level package: {'.' * level}{module or ''}")
    base = parts[: len(parts) - (level - 1)]
    if module:
        base.append(module)
    return ".".join(base)


class _NamespaceBuilder:
    """Builds the top-level symbol table of a module."""

    def __init__(self, module: ModuleInfo):
        self._module = module

    def build(self) -> None:
        for statement in self._module.tree.body:
            self._visit(statement)

    def _visit(self, statement: ast.stmt) -> None:
        module = self._module
        symbols = module.symbols

        if isinstance(statement, (ast.FunctionDef, ast.AsyncFunctionDef)):
            symbols[statement.name] = FunctionDeclaration(statement.name, module, statement)
        elif isinstance(statement, ast.ClassDef):
            symbols[statement.name] = ClassDeclaration(statement.name, module, statement)
        elif isinstance(statement, ast.TypeAlias):
            name = statement.name.id
            symbols[name] = TypeAliasDeclaration(name, module, statement, statement.value)
        elif isinstance(statement, ast.AnnAssign) and isinstance(statement.target, ast.Name):
            name = statement.target.id
            if ast.unparse(statement.annotation) in _TYPE_ALIAS_ANNOTATIONS and statement.value is not None:
                symbols[name] = TypeAliasDeclaration(name, module, statement, statement.value)
            elif statement.value is not None or name not in symbols:
                symbols[name] = self._variable(name, statement, statement.value)
        elif isinstance(statement, ast.Assign):
            for target in statement.targets:
                if isinstance(target, ast.Name):
                    symbols[target.id] = self._variable(target.id, statement, statement.value)
            if any(isinstance(t, ast.Name) and t.id == "__all__" for t in statement.targets):
                module.exports = self._literal_names(statement.value)
        elif isinstance(statement, ast.Import):
            for alias in statement.names:
                if alias.asname:
                    symbols[alias.asname] = ModuleReference(alias.asname, module, statement, alias.name)
                else:
                    top = alias.name.partition(".")[0]
                    symbols[top] = ModuleReference(top, module, statement, top)
        elif isinstance(statement, ast.ImportFrom):
            self._visit_import_from(statement)
        elif isinstance(statement, ast.If):
            for child in statement.body + statement.orelse:
                self._visit(child)
        elif isinstance(statement, ast.Try):
            for child in statement.body:
                self._visit(child)

    def _visit_import_from(self, statement: ast.ImportFrom) -> None:
        module = self._module
        try:
            source = resolve_relative_import(module.package, statement.module, statement.level)
        except ValueError as e:
            raise SourceError(str(e), module.location_of(statement)) from e

        for alias in statement.names:
            if alias.name == "*":
                module.star_imports.append(source)
                continue
            local = alias.asname or alias.name
            module.symbols[local] = ImportedName(local, module, statement, source, alias.name)

    def _variable(self, name: str, statement: ast.stmt, value: ast.expr | None) -> Declaration:
        if isinstance(value, ast.Call) and ast.unparse(value.func) in _NEWTYPE_CALLS:
            return TypeAliasDeclaration(name, self._module, statement, value, newtype=True)
        return VariableDeclaration(name, self._module, statement, value)

    @staticmethod
    def _literal_names(value: ast.expr) -> tuple[str, ...] | None:
        if not isinstance(value, (ast.List, ast.Tuple)):
            return None
        names: list[str] = []
        for element in value.elts:
            if not (isinstance(element, ast.Constant) and isinstance(element.value, str)):
                return None
            names.append(element.value)
        return tuple(names)


class AnalysisSession:
    """
    One parse of a set of root files and every module they import.

    Root files are parsed eagerly; other modules are loaded on first lookup
    and then kept for the lifetime of the session. A session is never extended
    with new roots: SessionCache builds a new one instead.
    """

    def __init__(
        self,
        roots: Iterable[Path | str],
        search_paths: Sequence[Path | str] = (),
        generation: int = 0,
    ):
        super().__init__()
        self.generation = generation
        self.roots: tuple[Path, ...] = tuple(dict.fromkeys(Path(root).resolve() for root in roots))
        self._modules_by_name: dict[str, ModuleInfo | None] = {}
        self._modules_by_path: dict[Path, ModuleInfo] = {}
        self._type_model: AstTypeModel | None = None

        search: list[Path] = []
        for root in self.roots:
            search.append(package_root_for_path(root))
        search.extend(Path(p).resolve() for p in search_paths)
        self.search_paths: tuple[Path, ...] = tuple(dict.fromkeys(search))

        for root in self.roots:
            self.module_for_path(root)

        logger.debug(
            "Session %d: %d root(s), search paths %s",
            generation,
            len(self.roots),
            [str(p) for p in self.search_paths],
        )

    @property
    def type_model(self) -> AstTypeModel:
        """The type model bound to this session; discarded together with it."""
        if self._type_model is None:
            from .ast_model import AstTypeModel

            self._type_model = AstTypeModel(self)
        return self._type_model

    def covers(self, paths: Iterable[Path | str]) -> bool:
        return all(Path(p).resolve() in self.roots for p in paths)

    def module_for_path(self, path: Path | str) -> ModuleInfo:
        """Get the module parsed from `path`, loading it if needed."""
        resolved = Path(path).resolve()
        if resolved in self._modules_by_path:
            return self._modules_by_path[resolved]
        return self._load(resolved, module_name_for_path(resolved))

    def module_named(self, name: str) -> ModuleInfo | None:
        """Find a module by dotted name; None if it is not part of the source tree."""
        if name in self._modules_by_name:
            return self._modules_by_name[name]

        module: ModuleInfo | None = None
        relative = Path(*name.split(".")) if name else None
        if relative is not None:
            for directory in self.search_paths:
                for candidate in (
                    directory / relative.with_suffix(".py"),
                    directory / relative / "__init__.py",
                ):
                    if candidate.is_file():
                        module = self._modules_by_path.get(candidate.resolve()) or self._load(
                            candidate.resolve(), name
                        )
                        break
                if module is not None:
                    break

        self._modules_by_name[name] = module
        return module

    def _load(self, path: Path, name: str) -> ModuleInfo:
        try:
            source = path.read_text(encoding="utf-8")
        except OSError as e:
            raise SourceError(f"cannot read {path}: {e.strerror or e}") from e

        try:
            tree = ast.parse(source, filename=str(path))
        except SyntaxError as e:
            location = SourceLocation(str(path), e.lineno or 1, e.offset or 1)
            raise SourceError(f"invalid syntax: {e.msg}", location) from e

        module = ModuleInfo(
            name=name,
            path=path,
            source=source,
            tree=tree,
            is_package=path.name == "__init__.py",
        )
        _NamespaceBuilder(module).build()

        self._modules_by_path[path] = module
        self._modules_by_name.setdefault(name, module)
        logger.debug("Loaded module %s from %s (%d symbols)", name, path, len(module.symbols))
        return module


class SessionCache:
    """
    Shares one AnalysisSession across the files of a batch.

    The session is rebuilt, never mutated, when a requested root is not part
    of it; callers must not compare identities across sessions.
    """

    def __init__(self, search_paths: Sequence[Path | str] = ()):
        super().__init__()
        self._search_paths = tuple(search_paths)
        self._session: AnalysisSession | None = None
        self._generation = 0

    def session_for(self, roots: Iterable[Path | str]) -> AnalysisSession:
        roots = [Path(root).resolve() for root in roots]
        if self._session is not None and self._session.covers(roots):
            return self._session

        previous = self._session.roots if self._session is not None else ()
        self._generation += 1
        logger.debug("Rebuilding analysis session (generation %d)", self._generation)
        self._session = AnalysisSession(
            [*previous, *roots],
            search_paths=self._search_paths,
            generation=self._generation,
        )
        return self._session

    @property
    def session(self) -> AnalysisSession | None:
        return self._session
