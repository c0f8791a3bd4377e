"""
Per-team spendable currency tracking.

A BudgetLedger is seeded with each team's budget at the start of a resolution
event and records spend committed during that event. It never lets a team's
committed spend exceed its starting budget, which is what keeps a batch of
waiver claims (or a sequence of auction wins) inside each team's means.
"""

import logging
from collections import defaultdict
from typing import Dict, Mapping

from .exceptions import ValidationError
from .league_state import LeagueSnapshot

logger = logging.getLogger(__name__)


class BudgetLedger:
    """Running view of remaining budgets within one resolution event."""

    def __init__(self, budgets: Mapping[str, int]):
        """
        Initialize the ledger.

        Args:
            budgets: Starting budget per team_id
        """
        self._budgets: Dict[str, int] = dict(budgets)
        self._committed: Dict[str, int] = defaultdict(int)

    @classmethod
    def for_waivers(cls, snapshot: LeagueSnapshot) -> 'BudgetLedger':
        """Ledger over every team's waiver budget."""
        return cls({tid: team.faab_budget for tid, team in snapshot.teams.items()})

    @classmethod
    def for_playoffs(cls, snapshot: LeagueSnapshot) -> 'BudgetLedger':
        """Ledger over every team's playoff currency."""
        return cls({tid: team.playoff_dollars for tid, team in snapshot.teams.items()})

    def _starting(self, team_id: str) -> int:
        try:
            return self._budgets[team_id]
        except KeyError:
            raise ValidationError(f"Unknown team_id: {team_id}") from None

    def remaining(self, team_id: str) -> int:
        """Starting budget minus everything committed so far."""
        return self._starting(team_id) - self._committed[team_id]

    def spent(self, team_id: str) -> int:
        return self._committed[team_id]

    def can_afford(self, team_id: str, amount: int) -> bool:
        return amount <= self.remaining(team_id)

    def commit(self, team_id: str, amount: int) -> int:
        """
        Deduct spend from a team's remaining budget.

        Args:
            team_id: Team spending
            amount: Non-negative amount to deduct

        Returns:
            Remaining budget after the deduction

        Raises:
            ValidationError: If amount is negative or exceeds the remaining budget
        """
        if amount < 0:
            raise ValidationError(f"Spend must be non-negative, got {amount}")

        remaining = self.remaining(team_id)
        if amount > remaining:
            raise ValidationError(
                f"Team {team_id} cannot spend ${amount} (${remaining} remaining)"
            )

        self._committed[team_id] += amount
        logger.debug(f"Committed ${amount} for {team_id} (${remaining - amount} left)")
        return remaining - amount

    def balances(self) -> Dict[str, int]:
        """Remaining budget for every team in the ledger."""
        return {team_id: self.remaining(team_id) for team_id in self._budgets}
