"""Minimal publish/subscribe primitives used by the build registry."""

from __future__ import annotations

from collections.abc import Callable
import logging
from types import TracebackType
from typing import Generic, TypeVar


logger = logging.getLogger(__name__)

T = TypeVar("T")


class Subscription:
    """Handle returned by :meth:`EventChannel.subscribe`."""

    __slots__ = ("_dispose",)

    def __init__(self, dispose: Callable[[], None] | None = None) -> None:
        self._dispose = dispose

    @property
    def disposed(self) -> bool:
        return self._dispose is None

    def dispose(self) -> None:
        """Detach the subscriber; calling it again is a no-op."""
        dispose, self._dispose = self._dispose, None
        if dispose is not None:
            dispose()

    def __enter__(self) -> Subscription:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.dispose()


class CompositeSubscription(Subscription):
    """Group of subscriptions disposed together."""

    __slots__ = ("_children",)

    def __init__(self, *subscriptions: Subscription) -> None:
        super().__init__(self._dispose_children)
        self._children: list[Subscription] = list(subscriptions)

    def add(self, *subscriptions: Subscription) -> None:
        if self.disposed:
            for subscription in subscriptions:
                subscription.dispose()
            return
        self._children.extend(subscriptions)

    def _dispose_children(self) -> None:
        children, self._children = self._children, []
        for child in children:
            child.dispose()


class EventChannel(Generic[T]):
    """Ordered list of callbacks invoked with a single payload."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._callbacks: list[Callable[[T], object]] = []

    def __len__(self) -> int:
        return len(self._callbacks)

    def subscribe(self, callback: Callable[[T], object]) -> Subscription:
        """Register ``callback`` and return a handle that removes it."""
        self._callbacks.append(callback)

        def _remove() -> None:
            try:
                self._callbacks.remove(callback)
            except ValueError:
                pass

        return Subscription(_remove)

    def emit(self, payload: T) -> None:
        """Deliver ``payload`` to the callbacks registered before the call."""
        for callback in tuple(self._callbacks):
            try:
                callback(payload)
            except Exception:
                logger.exception("Subscriber of %s raised while handling an event", self.name)

    def clear(self) -> None:
        self._callbacks.clear()


__all__ = [
    "CompositeSubscription",
    "EventChannel",
    "Subscription",
]
