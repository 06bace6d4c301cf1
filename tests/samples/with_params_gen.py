# Code generated by pywire from samples.with_params. DO NOT EDIT.
from __future__ import annotations

from typing import TYPE_CHECKING

from samples.with_params import provide_repo, Controller

if TYPE_CHECKING:
    from samples.with_params import AppConfig


def init_controller(cfg: AppConfig):
    repo = provide_repo(cfg)
    controller = Controller(repo)
    return controller
