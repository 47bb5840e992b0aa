import logging
from typing import Callable, Generic, List, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StateHolder(Generic[T]):
    """Holds the latest immutable snapshot and notifies listeners on change.

    Listeners run synchronously in subscription order. A failing listener is
    logged and does not stop delivery to the others.
    """

    def __init__(self, initial: T) -> None:
        self._value = initial
        self._listeners: List[Callable[[T], None]] = []

    def get(self) -> T:
        return self._value

    def set(self, value: T) -> None:
        if value is self._value:
            return
        self._value = value
        logger.debug("Publishing new snapshot to %d listeners", len(self._listeners))
        for listener in list(self._listeners):
            try:
                listener(value)
            except Exception as exc:
                logger.exception("Error in state listener %s: %s", listener, exc)

    def subscribe(self, listener: Callable[[T], None]) -> Callable[[], None]:
        """Register ``listener`` and return a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
