import logging
import threading

from farm.errors import InvalidAmount

logger = logging.getLogger(__name__)


class Chain:
    """
    Simulated block clock.

    Transactions never advance the height on their own: everything executed
    between two calls to mine() lands in the same block.
    """

    def __init__(self, block_number: int = 1):
        self._block_number = int(block_number)
        # Serializes every transaction against the shared state.
        self.lock = threading.RLock()

    @property
    def block_number(self) -> int:
        return self._block_number

    def mine(self, blocks: int = 1) -> int:
        if blocks < 1:
            raise InvalidAmount(f"blocks must be >= 1, got {blocks}")
        with self.lock:
            self._block_number += blocks
            logger.debug("mined %d block(s), height=%d", blocks, self._block_number)
            return self._block_number

    def set_block_number(self, block_number: int) -> None:
        """Restore a persisted height. Height never moves backwards."""
        with self.lock:
            if block_number < self._block_number:
                raise ValueError(
                    f"cannot rewind chain from {self._block_number} to {block_number}"
                )
            self._block_number = int(block_number)

    def rollback_to(self, block_number: int) -> None:
        """Undo mining from a failed transaction."""
        with self.lock:
            self._block_number = int(block_number)
