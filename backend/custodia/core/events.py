import logging
from typing import Callable

from custodia.models.event import Notification

logger = logging.getLogger(__name__)

Listener = Callable[[Notification], None]


class EventBus:
    """
    Delivers committed ledger notifications to observers.

    Observers are outside the ledger: a failing listener is logged and
    never affects the operation that produced the notification.
    """

    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener. Returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self, notification: Notification) -> None:
        """Deliver a notification to every listener."""
        logger.info(
            f"Event {notification.type.value}: {notification.actor} "
            f"amount={notification.amount} amount_out={notification.amount_out}"
        )
        for listener in list(self._listeners):
            try:
                listener(notification)
            except Exception as e:
                logger.exception(f"Event listener failed: {e}")
