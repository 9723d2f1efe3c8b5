"""FastAPI dependencies for accessing shared state."""

from typing import Optional

from custodia.core.bank import Bank
from custodia.queues.message_queue import MessageQueue
from custodia.storage.message_store import MessageStore


class AppState:
    """
    Application state container.

    Holds references to all shared components accessed by API routes.
    """

    def __init__(self) -> None:
        self.bank: Optional[Bank] = None
        self.message_store: Optional[MessageStore] = None
        self.message_queue: Optional[MessageQueue] = None


# Global app state instance
_app_state = AppState()


def get_app_state() -> AppState:
    """Get the global application state."""
    return _app_state


def get_bank() -> Bank:
    """FastAPI dependency for the Bank."""
    if _app_state.bank is None:
        raise RuntimeError("Bank not initialized")
    return _app_state.bank


def get_message_store() -> MessageStore:
    """FastAPI dependency for MessageStore."""
    if _app_state.message_store is None:
        raise RuntimeError("MessageStore not initialized")
    return _app_state.message_store


def get_message_queue() -> MessageQueue:
    """FastAPI dependency for MessageQueue."""
    if _app_state.message_queue is None:
        raise RuntimeError("MessageQueue not initialized")
    return _app_state.message_queue
