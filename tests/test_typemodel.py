"""
Tests for the ast type model and analysis sessions.
"""

import ast
import unittest
from pathlib import Path

from helpers import SourceTreeTestCase

from pywire.errors import SourceError, UnresolvableReferenceError
from pywire.model import TypeKind
from pywire.typemodel import (
    AnalysisSession,
    ClassDeclaration,
    FunctionDeclaration,
    SessionCache,
    module_name_for_path,
)


class TypeModelTestCase(SourceTreeTestCase):
    """Base class: analyse a root module and resolve annotations in it."""

    def analyse(self, relative: str, source: str):
        path = self.write(relative, source)
        self.session = AnalysisSession([path])
        self.model = self.session.type_model
        self.module = self.session.module_for_path(path)
        return self.module

    def type_of(self, annotation: str, module=None):
        node = ast.parse(annotation, mode="eval").body
        return self.model.resolve_type(node, module or self.module)

    def canonical(self, annotation: str, module=None):
        return self.model.canonicalize(self.type_of(annotation, module))


class TestTypeIdentity(TypeModelTestCase):
    """Test identity rules for classes, aliases and builtins."""

    def test_alias_identity_is_stable(self):
        """Every reference to a named alias resolves to the same identity."""
        self.analyse(
            "app.py",
            """
            type Foo = int
            """,
        )

        first = self.type_of("Foo")
        second = self.type_of("Foo")

        self.assertIs(first, second)
        self.assertEqual(first.kind, TypeKind.ALIAS)
        self.assertEqual(self.model.canonicalize(first), first)

    def test_aliases_of_same_builtin_are_distinct(self):
        """`type Foo = int` and `type Bar = int` are different types."""
        self.analyse(
            "app.py",
            """
            from typing import TypeAlias

            type Foo = int
            Bar: TypeAlias = int
            """,
        )

        self.assertNotEqual(self.canonical("Foo"), self.canonical("Bar"))
        self.assertEqual(self.canonical("Bar").kind, TypeKind.ALIAS)

    def test_alias_of_class_collapses(self):
        """Aliases of a declared class canonicalize to the class."""
        self.analyse(
            "app.py",
            """
            class Impl:
                pass

            type Service = Impl
            Other = Impl
            """,
        )

        impl = self.canonical("Impl")

        self.assertEqual(impl.kind, TypeKind.CLASS)
        self.assertEqual(self.canonical("Service"), impl)
        self.assertEqual(self.canonical("Other"), impl)

    def test_alias_of_generic_stays_alias(self):
        """An alias of a subscripted generic is its own identity."""
        self.analyse(
            "app.py",
            """
            type Names = list[str]
            """,
        )

        names = self.canonical("Names")

        self.assertEqual(names.kind, TypeKind.ALIAS)
        self.assertEqual(names.qualified_name, "app.Names")

    def test_builtins_and_generics_are_opaque(self):
        """Types without a declaration have no identity."""
        self.analyse("app.py", "")

        self.assertFalse(self.type_of("int").is_identifiable)
        self.assertFalse(self.type_of("list[int]").is_identifiable)
        self.assertFalse(self.type_of("int | None").is_identifiable)

    def test_newtype(self):
        """NewType declarations are distinct named types."""
        self.analyse(
            "app.py",
            """
            from typing import NewType

            UserId = NewType("UserId", int)
            type Count = int
            """,
        )

        user_id = self.canonical("UserId")

        self.assertEqual(user_id.kind, TypeKind.NEWTYPE)
        self.assertNotEqual(user_id, self.canonical("Count"))

    def test_string_annotation(self):
        """Forward references in strings resolve like plain names."""
        self.analyse(
            "app.py",
            """
            class Foo:
                pass
            """,
        )

        self.assertEqual(self.canonical('"Foo"'), self.canonical("Foo"))

    def test_external_type(self):
        """Names imported from outside the source tree are keyed by import path."""
        self.analyse(
            "app.py",
            """
            import collections
            from collections import OrderedDict
            """,
        )

        ordered = self.canonical("OrderedDict")

        self.assertEqual(ordered.kind, TypeKind.EXTERNAL)
        self.assertEqual(ordered.qualified_name, "collections.OrderedDict")
        self.assertEqual(self.canonical("collections.OrderedDict"), ordered)

    def test_undefined_name(self):
        """An undefined name cannot be resolved."""
        self.analyse("app.py", "")

        with self.assertRaises(UnresolvableReferenceError) as cm:
            self.type_of("Missing")

        self.assertEqual(cm.exception.name, "Missing")
        self.assertIsNotNone(cm.exception.location)

    def test_identities_from_other_sessions_are_rejected(self):
        """A type model only canonicalizes identities of its own session."""
        path = self.write("app.py", "class Foo: pass\n")
        first = AnalysisSession([path], generation=1)
        second = AnalysisSession([path], generation=2)

        foo = first.type_model.resolve_type(ast.Name("Foo"), first.module_for_path(path))

        with self.assertRaises(ValueError):
            second.type_model.canonicalize(foo)


class TestImports(TypeModelTestCase):
    """Test resolution across modules."""

    def setUp(self):
        super().setUp()
        self.package("pkg")
        self.write(
            "pkg/models.py",
            """
            class Foo:
                pass

            class _Hidden:
                pass

            __all__ = ["Foo"]
            """,
        )
        self.write(
            "pkg/__init__.py",
            """
            from .models import Foo as Foo
            """,
        )

    def test_reexport_collapses_to_declaration(self):
        """A re-exported class has the identity of its declaration."""
        self.analyse(
            "app.py",
            """
            import pkg.models as models
            from pkg import Foo
            from pkg.models import Foo as Renamed
            """,
        )

        foo = self.canonical("Foo")

        self.assertEqual(foo.kind, TypeKind.CLASS)
        self.assertEqual(foo.qualified_name, "pkg.models.Foo")
        self.assertEqual(self.canonical("Renamed"), foo)
        self.assertEqual(self.canonical("models.Foo"), foo)
        self.assertEqual(self.type_of("Foo").kind, TypeKind.IMPORT)

    def test_relative_imports(self):
        """Relative imports resolve against the importing package."""
        self.package("pkg/sub")
        module = self.analyse(
            "pkg/sub/service.py",
            """
            from ..models import Foo
            from .. import models
            """,
        )

        self.assertEqual(module.name, "pkg.sub.service")
        self.assertEqual(self.canonical("Foo"), self.canonical("models.Foo"))

    def test_star_import_respects_all(self):
        """Star imports only bring in names listed in `__all__`."""
        self.analyse(
            "app.py",
            """
            from pkg.models import *
            """,
        )

        self.assertEqual(self.canonical("Foo").qualified_name, "pkg.models.Foo")
        with self.assertRaises(UnresolvableReferenceError):
            self.type_of("_Hidden")

    def test_is_exported(self):
        """Exported means public and listed in `__all__` when present."""
        module = self.analyse("app.py", "import pkg.models\n")
        models = self.session.module_named("pkg.models")

        self.assertIsNotNone(models)
        self.assertTrue(self.model.is_exported(models.symbols["Foo"]))
        self.assertFalse(self.model.is_exported(models.symbols["_Hidden"]))
        self.assertEqual(module.name, "app")

    def test_missing_module_is_external(self):
        """Modules not found on the search paths are outside the tree."""
        self.analyse("app.py", "")

        self.assertIsNone(self.session.module_named("not_a_module_here"))


class TestConstructorParameters(TypeModelTestCase):
    """Test how constructor inputs are derived."""

    def parameters(self, name):
        declaration = self.module.symbols[name]
        self.assertIsInstance(declaration, ClassDeclaration)
        return [(p.name, p.keyword_only) for p in self.model.constructor_parameters(declaration)]

    def test_own_init(self):
        """Explicit `__init__` parameters, without self."""
        self.analyse(
            "app.py",
            """
            class Service:
                def __init__(self, repo: "Repo", /, cache: "Cache", *, debug: "Flag"):
                    pass
            """,
        )

        self.assertEqual(
            self.parameters("Service"),
            [("repo", False), ("cache", False), ("debug", True)],
        )

    def test_inherited_init(self):
        """A class without `__init__` uses its nearest ancestor's."""
        self.analyse(
            "app.py",
            """
            class Base:
                def __init__(self, clock: "Clock"):
                    pass

            class Middle(Base):
                pass

            class Leaf(Middle, object):
                pass
            """,
        )

        self.assertEqual(self.parameters("Leaf"), [("clock", False)])

    def test_dataclass_fields(self):
        """Dataclass init fields, bases first, honouring KW_ONLY and init=False."""
        self.analyse(
            "app.py",
            """
            from dataclasses import KW_ONLY, dataclass, field
            from typing import ClassVar

            @dataclass
            class Base:
                clock: "Clock"

            @dataclass
            class Service(Base):
                count: ClassVar[int] = 0
                repo: "Repo"
                cache: list = field(default_factory=list, init=False)
                _: KW_ONLY
                debug: "Flag"
                label: "Label" = field(kw_only=False, default="x")
            """,
        )

        self.assertEqual(
            self.parameters("Service"),
            [("clock", False), ("repo", False), ("debug", True), ("label", False)],
        )

    def test_no_constructor(self):
        """A plain class or one with an external base takes no inputs."""
        self.analyse(
            "app.py",
            """
            from collections import OrderedDict

            class Plain:
                pass

            class Mapping(OrderedDict):
                pass
            """,
        )

        self.assertEqual(self.parameters("Plain"), [])
        self.assertEqual(self.parameters("Mapping"), [])

    def test_static_method_signature(self):
        """Static methods keep their first parameter."""
        self.analyse(
            "app.py",
            """
            class Factory:
                @staticmethod
                def build(repo: "Repo") -> "Factory":
                    pass

                def method(self, repo: "Repo") -> "Factory":
                    pass
            """,
        )
        owner = self.module.symbols["Factory"]
        build, method = (
            FunctionDeclaration(node.name, self.module, node, owner)
            for node in owner.node.body
            if isinstance(node, ast.FunctionDef)
        )

        self.assertEqual([p.name for p in self.model.signature_of(build)], ["repo"])
        self.assertEqual([p.name for p in self.model.signature_of(method)], ["repo"])


class TestSessions(SourceTreeTestCase):
    """Test module naming and session reuse."""

    def test_module_name_for_path(self):
        """Module names follow `__init__.py` up to the package root."""
        self.package("pkg")
        self.package("pkg/sub")
        module = self.write("pkg/sub/mod.py")
        script = self.write("script.py")

        self.assertEqual(module_name_for_path(module), "pkg.sub.mod")
        self.assertEqual(module_name_for_path(self.root / "pkg/__init__.py"), "pkg")
        self.assertEqual(module_name_for_path(script), "script")

    def test_session_reused_for_known_roots(self):
        """The cache returns the same session while it covers the roots."""
        a = self.write("a.py", "class A: pass\n")
        cache = SessionCache()

        first = cache.session_for([a])

        self.assertIs(cache.session_for([a]), first)
        self.assertIs(cache.session, first)

    def test_session_rebuilt_for_new_root(self):
        """A new root builds a new session over all roots, with a new generation."""
        a = self.write("a.py", "class A: pass\n")
        b = self.write("b.py", "class B: pass\n")
        cache = SessionCache()

        first = cache.session_for([a])
        second = cache.session_for([b])

        self.assertIsNot(first, second)
        self.assertGreater(second.generation, first.generation)
        self.assertTrue(second.covers([a, b]))
        self.assertIsNot(first.type_model, second.type_model)

        old = first.type_model.resolve_type(ast.Name("A"), first.module_for_path(a))
        new = second.type_model.resolve_type(ast.Name("A"), second.module_for_path(a))
        self.assertNotEqual(old, new)

    def test_syntax_error(self):
        """Unparseable files raise SourceError with a location."""
        path = self.write("broken.py", "def oops(:\n")

        with self.assertRaises(SourceError) as cm:
            AnalysisSession([path])

        self.assertIsNotNone(cm.exception.location)
        self.assertEqual(cm.exception.location.file, str(path.resolve()))

    def test_missing_file(self):
        """Unreadable files raise SourceError."""
        with self.assertRaises(SourceError):
            AnalysisSession([Path(self.root) / "missing.py"])


if __name__ == "__main__":
    unittest.main()
