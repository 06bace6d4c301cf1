# Code generated by pywire from samples.async_providers. DO NOT EDIT.
from __future__ import annotations

from samples.async_providers import provide_foo, provide_bar


async def init():
    foo = await provide_foo()
    bar = provide_bar(foo)
    return bar
