"""Single owner of a page's current lifecycle snapshot.

Every signal source mutates state only through ``LifecycleStore.apply``,
which swaps in the new frozen snapshot before any listener runs. Listeners
therefore never observe a half-applied change.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from .state_machine import LifecycleState

logger = logging.getLogger(__name__)

Listener = Callable[[LifecycleState, LifecycleState], None]


class LifecycleStore:
    def __init__(self, initial: LifecycleState) -> None:
        self._state = initial
        self._listeners: list[Listener] = []

    @property
    def state(self) -> LifecycleState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener(before, after)``; returns an unsubscribe hook."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def apply(
        self,
        transition: Callable[..., LifecycleState],
        *args: Any,
        **kwargs: Any,
    ) -> LifecycleState:
        before = self._state
        after = transition(before, *args, **kwargs)
        if after == before:
            return after

        self._state = after
        for listener in list(self._listeners):
            try:
                listener(before, after)
            except Exception:
                logger.exception(
                    "Lifecycle listener failed",
                    extra={"transition": getattr(transition, "__name__", "?")},
                )
        return after
