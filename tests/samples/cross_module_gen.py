# Code generated by pywire from samples.cross_module. DO NOT EDIT.
from __future__ import annotations

from samples.providers.bar_provider import provide_label, provide_bar
from samples.providers.qux import provide_qux
from samples.cross_module import Service


def init_service():
    label = provide_label()
    bar = provide_bar(label)
    qux = provide_qux()
    service = Service(bar, qux)
    return service
