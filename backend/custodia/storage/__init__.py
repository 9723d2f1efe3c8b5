from custodia.storage.message_store import MessageStore

__all__ = [
    "MessageStore",
]
