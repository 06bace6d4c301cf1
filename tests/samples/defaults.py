"""Injector parameters with defaults and same-module alias annotations."""

from pywire import wire


class Settings:
    def __init__(self, name: str):
        self.name = name


DEFAULT_SETTINGS = Settings("default")

CurrentSettings = Settings


class Greeter:
    def __init__(self, settings: Settings):
        self.settings = settings

    def greet(self) -> str:
        return f"hello from {self.settings.name}"


def init_greeter(settings: CurrentSettings = DEFAULT_SETTINGS) -> Greeter:
    wire([Greeter])
