"""
Storage, orchestration and HTTP surface for the allocation engine.

This package reads league snapshots from a document store, runs the pure
engine transitions, commits their patches with optimistic concurrency and
exposes the operations over FastAPI.
"""

from .league_store import LeagueStore, JsonFileLeagueStore, InMemoryLeagueStore
from .transaction_log import TransactionLog
from .allocation_service import AllocationService
from .league_summary import get_team_summary, calculate_competition_metrics

__all__ = [
    'LeagueStore',
    'JsonFileLeagueStore',
    'InMemoryLeagueStore',
    'TransactionLog',
    'AllocationService',
    'get_team_summary',
    'calculate_competition_metrics',
]
