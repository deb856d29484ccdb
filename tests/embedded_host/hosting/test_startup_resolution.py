from __future__ import annotations

import pytest

from embedded_host.errors import StartupResolutionError
from embedded_host.hosting.startup import resolve_startup, startup_identifier
from embedded_host.pipeline.builder import AppBuilder


class Startup:
    def configure(self, app: AppBuilder) -> None:
        app.properties["configured_by"] = "class"


class Outer:
    class Inner:
        def configure(self, app: AppBuilder) -> None:
            app.properties["configured_by"] = "nested"


class NoConfigure:
    pass


class NeedsArgs:
    def __init__(self, value: int) -> None:
        self.value = value

    def configure(self, app: AppBuilder) -> None:
        return None


def startup_function(app: AppBuilder) -> None:
    app.properties["configured_by"] = "function"


NOT_CALLABLE = 42


def test_identifier_uses_module_and_qualname() -> None:
    assert startup_identifier(Startup) == f"{__name__}:Startup"
    assert startup_identifier(Outer.Inner) == f"{__name__}:Outer.Inner"
    assert startup_identifier("pkg.mod:Thing") == "pkg.mod:Thing"


@pytest.mark.parametrize(
    ("identifier", "expected"),
    [
        (f"{__name__}:Startup", "class"),
        (f"{__name__}.Startup", "class"),
        (f"{__name__}:Outer.Inner", "nested"),
        (f"{__name__}:startup_function", "function"),
    ],
)
def test_resolve_startup_forms(identifier: str, expected: str) -> None:
    app = AppBuilder()
    resolve_startup(identifier)(app)
    assert app.properties["configured_by"] == expected


@pytest.mark.parametrize(
    "identifier",
    [
        "",
        "no_module_here_xyz:Startup",
        f"{__name__}:Missing",
        f"{__name__}:NoConfigure",
        f"{__name__}:NeedsArgs",
        f"{__name__}:NOT_CALLABLE",
        "justaname",
    ],
)
def test_resolve_startup_failures(identifier: str) -> None:
    with pytest.raises(StartupResolutionError):
        resolve_startup(identifier)
