"""Providers shared by several samples, re-exported from their modules."""

from .bar_provider import Bar, provide_bar, provide_label
from .qux import Qux, provide_qux

base_providers = [provide_label, provide_bar]

__all__ = ["Bar", "Qux", "base_providers", "provide_bar", "provide_label", "provide_qux"]
