from __future__ import annotations

from typing import Any, Callable

from fastapi import FastAPI

from tests.helpers.providers import ProvideValue

Dependency = Callable[..., Any]


class DependencyOverrides:
    """Swaps app dependencies for fakes and restores the previous wiring."""

    def __init__(self, app: FastAPI) -> None:
        self._app = app
        self._saved: dict[Dependency, Dependency | None] = {}

    def set(self, dependency: Dependency, override: Dependency) -> None:
        self._saved.setdefault(dependency, self._app.dependency_overrides.get(dependency))
        self._app.dependency_overrides[dependency] = override

    def provide(self, dependency: Dependency, value: Any) -> None:
        self.set(dependency, ProvideValue(value))

    def reset(self) -> None:
        for dependency, previous in self._saved.items():
            if previous is None:
                self._app.dependency_overrides.pop(dependency, None)
            else:
                self._app.dependency_overrides[dependency] = previous
        self._saved.clear()
