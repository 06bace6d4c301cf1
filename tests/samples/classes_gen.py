# Code generated by pywire from samples.classes. DO NOT EDIT.
from __future__ import annotations

from samples.classes import provide_clock, provide_name, Registry, Derived, Report


def init_report():
    clock = provide_clock()
    name = provide_name()
    registry = Registry(clock, name)
    derived = Derived(clock)
    report = Report(registry=registry, derived=derived)
    return report
