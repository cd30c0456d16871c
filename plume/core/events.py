"""
Event Emitter - per-instance event subscription.

Each Bot owns its own emitter, so several bots can run in one process
without sharing handler registries.

Handlers:
- Execute in priority order (higher priority = earlier execution)
- Tie-break on registration order
- May be plain callables or coroutine functions
- Never stop the remaining handlers when they fail (failure is warned)
"""

import inspect
import warnings
from collections.abc import Callable
from dataclasses import dataclass


class EventError(Exception):
    """Base exception for event errors."""

    pass


@dataclass
class Handler:
    """
    A registered event handler.

    Attributes:
        callback: The handler function
        priority: Higher priority executes first
        registration_order: Tie-breaker for same priority (lower = earlier)
        once: Remove the handler after its first run
    """

    callback: Callable
    priority: int
    registration_order: int
    once: bool = False

    async def __call__(self, *args) -> None:
        result = self.callback(*args)
        if inspect.isawaitable(result):
            await result


class EventEmitter:
    """Registry and dispatcher for named events."""

    def __init__(self):
        self._routes: dict[str, list[Handler]] = {}
        self._registration_counter = 0

    def _next_registration_order(self) -> int:
        order = self._registration_counter
        self._registration_counter += 1
        return order

    def on(self, event: str, callback: Callable, priority: int = 0) -> Callable:
        """
        Register *callback* for *event*.

        Returns the callback so the method can be used as a decorator body.

        Raises:
            EventError: If callback is not callable
        """
        return self._register(event, callback, priority, once=False)

    def once(self, event: str, callback: Callable, priority: int = 0) -> Callable:
        """Register *callback* for the next emission of *event* only."""
        return self._register(event, callback, priority, once=True)

    def _register(
        self, event: str, callback: Callable, priority: int, once: bool
    ) -> Callable:
        if not callable(callback):
            raise EventError(f"Handler for '{event}' is not callable: {callback!r}")

        handler = Handler(
            callback=callback,
            priority=priority,
            registration_order=self._next_registration_order(),
            once=once,
        )
        self._routes.setdefault(event, []).append(handler)
        return callback

    def off(self, event: str, callback: Callable) -> None:
        """Remove every registration of *callback* for *event*."""
        handlers = self._routes.get(event)
        if not handlers:
            return
        self._routes[event] = [h for h in handlers if h.callback != callback]

    def listeners(self, event: str) -> list[Callable]:
        """Callbacks registered for *event*, in execution order."""
        return [h.callback for h in self._sorted(event)]

    def _sorted(self, event: str) -> list[Handler]:
        return sorted(
            self._routes.get(event, []),
            key=lambda h: (-h.priority, h.registration_order),
        )

    async def emit(self, event: str, *args) -> int:
        """
        Emit *event* to every registered handler.

        Args:
            event: Event name
            *args: Positional arguments passed to each handler

        Returns:
            Number of handlers that ran
        """
        handlers = self._sorted(event)

        for handler in handlers:
            if handler.once:
                self._routes[event].remove(handler)

        for handler in handlers:
            try:
                await handler(*args)
            except Exception as e:
                warnings.warn(
                    f"Event handler failed for '{event}': {e}",
                    RuntimeWarning,
                    stacklevel=2,
                )

        return len(handlers)
