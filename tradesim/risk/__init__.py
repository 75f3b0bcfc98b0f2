"""Risk: position manager decision logic."""

from tradesim.risk.manager import PositionManager, Decision

__all__ = ["PositionManager", "Decision"]
