"""Constructor providers: inherited __init__ and dataclass fields."""

from dataclasses import dataclass, field
from typing import ClassVar

from pywire import wire


class Clock:
    def now(self) -> float:
        return 0.0


def provide_clock() -> Clock:
    return Clock()


type Name = str


def provide_name() -> Name:
    return "registry"


class Base:
    def __init__(self, clock: Clock):
        self.clock = clock


class Derived(Base):
    """Inherits its constructor from Base."""


@dataclass
class Registry:
    instances: ClassVar[int] = 0

    clock: Clock
    name: Name
    entries: list[str] = field(default_factory=list, init=False)


@dataclass(kw_only=True)
class Report:
    registry: Registry
    derived: Derived


def init_report() -> Report:
    wire([provide_clock, provide_name, Derived, Registry, Report])
