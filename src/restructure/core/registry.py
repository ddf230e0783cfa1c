import collections
import dataclasses
import functools
from typing import Callable, Generic, Hashable, TypeVar

E = TypeVar("E", bound=Hashable)


@dataclasses.dataclass
class EventEmitter(Generic[E]):
    """Publish/subscribe hub keyed by event.

    Handlers run synchronously in registration order; a handler registered
    twice for the same event runs once.
    """

    _listeners: collections.defaultdict[E, dict[Callable, None]] = dataclasses.field(
        default_factory=lambda: collections.defaultdict(dict), init=False
    )

    def on(self, event: E, handler: Callable | None = None):
        """Register an event handler for the given event."""
        if handler:
            self._listeners[event][handler] = None
            return handler

        @functools.wraps(self.on)
        def decorator(func):
            self.on(event, func)
            return func

        return decorator

    def once(self, event: E, handler: Callable):
        @functools.wraps(handler)
        def once_handler(*args, **kwargs):
            self.remove(event, once_handler)
            return handler(*args, **kwargs)

        self.on(event, once_handler)

    def remove(self, event: E, handler: Callable):
        self._listeners[event].pop(handler, None)

    def clear(self):
        self._listeners.clear()

    def emit(self, event: E, *args, **kwargs):
        for handler in list(self._listeners[event]):
            handler(*args, **kwargs)
