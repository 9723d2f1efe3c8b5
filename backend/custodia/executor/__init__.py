from custodia.executor.message_handler import MessageHandler, parse_amount

__all__ = [
    "MessageHandler",
    "parse_amount",
]
