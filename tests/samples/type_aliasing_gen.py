# Code generated by pywire from samples.type_aliasing. DO NOT EDIT.
from __future__ import annotations

from samples.type_aliasing import provide_foo, provide_bar, Class


def init():
    foo = provide_foo()
    bar = provide_bar(foo)
    _class = Class(foo, bar)
    return _class
