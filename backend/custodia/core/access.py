import logging
from contextlib import contextmanager
from typing import Iterator

from custodia.errors import PausedError, ReentrancyError, UnauthorizedError

logger = logging.getLogger(__name__)


class AccessGate:
    """
    Pause flag, owner check and the single-operation lock.

    Every state-mutating entry point runs inside ``guarded()``. The lock is
    a plain flag: the ledger runs on one logical thread, so the only way to
    find it held is a nested call from inside an in-flight transfer.
    """

    def __init__(self, owner: str) -> None:
        self._owner = owner
        self._paused = False
        self._locked = False

    @property
    def owner(self) -> str:
        return self._owner

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def locked(self) -> bool:
        """Whether a guarded operation is currently executing."""
        return self._locked

    def is_owner(self, caller: str) -> bool:
        return caller == self._owner

    def require_owner(self, caller: str) -> None:
        """Raise UnauthorizedError unless caller is the owner."""
        if not self.is_owner(caller):
            logger.warning(f"Unauthorized owner call from {caller}")
            raise UnauthorizedError(caller)

    def pause(self, caller: str) -> None:
        """Block all guarded operations."""
        self.require_owner(caller)
        self._paused = True
        logger.info("Ledger paused")

    def unpause(self, caller: str) -> None:
        """Resume guarded operations."""
        self.require_owner(caller)
        self._paused = False
        logger.info("Ledger unpaused")

    @contextmanager
    def guarded(self) -> Iterator[None]:
        """
        Run the enclosed block as the single in-flight operation.

        Raises PausedError if paused and ReentrancyError if another guarded
        operation is executing. The lock is released even if the block fails.
        """
        if self._paused:
            raise PausedError()
        if self._locked:
            logger.warning("Reentrant call rejected")
            raise ReentrancyError()

        self._locked = True
        try:
            yield
        finally:
            self._locked = False
