"""
Block-height time source.
The chain height is the only notion of time the goal lifecycle knows about:
an integer that never moves backwards.
"""
import logging
from sqlalchemy.orm import Session

from goal_tracker.models import ChainState
from goal_tracker.exceptions import InvalidParametersException

logger = logging.getLogger("goal_tracker.clock")


class BlockHeightClock:
    """Persisted, monotonically non-decreasing block height"""

    def __init__(self, db: Session):
        self.db = db

    def _state(self) -> ChainState:
        state = self.db.query(ChainState).filter(ChainState.id == 1).first()
        if not state:
            state = ChainState(id=1, block_height=0)
            self.db.add(state)
            self.db.flush()
        return state

    def now(self) -> int:
        """Current block height"""
        return self._state().block_height

    def advance(self, blocks: int = 1) -> int:
        """
        Produce new blocks.

        Args:
            blocks: Number of blocks to add, must be positive

        Returns:
            New block height
        """
        if blocks <= 0:
            raise InvalidParametersException("blocks", "must be a positive number of blocks")

        state = self._state()
        state.block_height += blocks
        self.db.commit()
        logger.debug(f"Chain advanced by {blocks} to height {state.block_height}")
        return state.block_height
