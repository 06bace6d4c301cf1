"""A named alias of a builtin is one type wherever it is used."""

from pywire import wire

type Foo = int


class Bar:
    def __init__(self, foo: Foo):
        self.foo = foo


def provide_foo() -> Foo:
    return 42


def provide_bar(foo: Foo) -> Bar:
    return Bar(foo)


class Class:
    def __init__(self, foo: Foo, bar: Bar):
        self.foo = foo
        self.bar = bar


def init() -> Class:
    wire([Class, provide_bar, provide_foo])
