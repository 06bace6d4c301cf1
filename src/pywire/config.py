"""
Configuration for wiring generation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class WireConfig:
    """
    Settings shared by every module of a generation run.

    Attributes:
        marker: Name of the wiring marker function injectors call.
        output_suffix: Inserted before the extension of generated files.
        strict: Reject duplicate providers of the same type instead of
            letting the later one win.
        search_paths: Extra directories to look up imported modules in.
        line_length: Import statements longer than this are wrapped.
        header: Emit the "generated code" comment at the top of each file.
    """

    marker: str = "wire"
    output_suffix: str = "_gen"
    strict: bool = False
    search_paths: tuple[Path, ...] = field(default_factory=tuple)
    line_length: int = 88
    header: bool = True

    def __post_init__(self) -> None:
        if not self.marker.isidentifier():
            raise ValueError(f"marker must be an identifier, got {self.marker!r}")
        if not self.output_suffix:
            raise ValueError("output_suffix must not be empty")
        if self.line_length <= 0:
            raise ValueError(f"line_length must be positive, got {self.line_length}")
