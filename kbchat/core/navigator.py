"""In-process navigation history."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Location:
    path: str
    state: dict[str, Any] = field(default_factory=dict)


class Navigator:
    """Tracks the current location and its history, like a browser router."""

    def __init__(self, initial_path: str = "/"):
        self._history: list[Location] = [Location(initial_path)]
        self._listeners: list[Callable[[Location], None]] = []

    @property
    def location(self) -> Location:
        return self._history[-1]

    @property
    def current_path(self) -> str:
        return self.location.path

    @property
    def state(self) -> dict[str, Any]:
        return self.location.state

    @property
    def history(self) -> list[Location]:
        return list(self._history)

    def navigate(
        self, path: str, *, replace: bool = False, state: dict[str, Any] | None = None
    ) -> Location:
        """Move to ``path``; ``replace`` overwrites the current entry instead of pushing."""
        location = Location(path, dict(state or {}))
        if replace:
            self._history[-1] = location
        else:
            self._history.append(location)
        logger.debug(f"Navigated to {path} (replace={replace})")
        for listener in list(self._listeners):
            listener(location)
        return location

    def back(self) -> Location:
        if len(self._history) > 1:
            self._history.pop()
        return self.location

    def subscribe(self, listener: Callable[[Location], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
