"""
Block height providers

The host chain is the only clock. Every height-dependent engine call takes
an explicit height; when the caller leaves it out, the engine asks its
HeightProvider instead.
"""

from typing import Protocol

from dao_governance.kernel.errors import HeightRegression


class HeightProvider(Protocol):
    """Protocol for block height sources"""

    def current_height(self) -> int:
        """Return the current block height"""
        ...


class ManualBlockClock:
    """
    Controllable, monotonic block clock

    Used by tests and by hosts that feed heights in from outside. Height
    never decreases.
    """

    def __init__(self, initial_height: int = 0) -> None:
        if initial_height < 0:
            raise ValueError(f"Block height cannot be negative: {initial_height}")
        self._height = initial_height

    def current_height(self) -> int:
        return self._height

    def set_height(self, height: int) -> None:
        """Jump to an absolute height (must not be lower than the current one)"""
        if height < self._height:
            raise HeightRegression(self._height, height)
        self._height = height

    def advance_blocks(self, blocks: int = 1) -> int:
        """Advance by a number of blocks and return the new height"""
        if blocks < 0:
            raise HeightRegression(self._height, self._height + blocks)
        self._height += blocks
        return self._height
