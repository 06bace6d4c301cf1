# Code generated by pywire from samples.mixed. DO NOT EDIT.
from __future__ import annotations

from samples.mixed import provide_foo, provide_bar, FooClass, provide_baz


def init_baz():
    foo = provide_foo()
    bar = provide_bar(foo)
    fooClass = FooClass(bar)
    baz = provide_baz(foo, bar, fooClass)
    return baz


def init_foo():
    foo = provide_foo()
    return foo
