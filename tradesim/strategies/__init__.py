"""Strategies: indicator composite and consensus policies."""

from tradesim.strategies.consensus import Consensus, Unison, Majority, WeightedVote, consensus_from_name
from tradesim.strategies.strategy import Strategy

__all__ = ["Consensus", "Unison", "Majority", "WeightedVote", "consensus_from_name", "Strategy"]
