"""
Roster capacity checks.

Capacity is the sum of a league's slot counts. The checker answers one
question: does adding a player (optionally paired with a drop) keep a roster
within that capacity?
"""

from typing import Mapping, Optional, Sequence

from . import config
from .exceptions import ConstraintViolation


def total_roster_limit(slots: Mapping[str, int]) -> int:
    """Sum of every configured roster slot."""
    return sum(int(count) for count in slots.values())


class RosterConstraintChecker:
    """Validates adds against a roster capacity. A limit of None means unbounded."""

    def __init__(self, limit: Optional[int]):
        self.limit = limit

    @classmethod
    def from_slots(cls, slots: Optional[Mapping[str, int]]) -> 'RosterConstraintChecker':
        return cls(total_roster_limit(slots) if slots is not None else None)

    def check_add(
        self,
        roster: Sequence[str],
        drop_player_id: Optional[str] = None
    ) -> Optional[str]:
        """
        Check whether an add keeps the roster within capacity.

        Args:
            roster: Current roster (player ids)
            drop_player_id: Player released alongside the add, if any

        Returns:
            None if the add is allowed, otherwise the failure reason
        """
        if drop_player_id is not None:
            if drop_player_id not in roster:
                return config.REASON_DROP_NOT_ON_ROSTER
            return None

        if self.limit is not None and len(roster) + 1 > self.limit:
            return config.REASON_ROSTER_LIMIT
        return None

    def validate_add(self, roster: Sequence[str], drop_player_id: Optional[str] = None) -> None:
        """
        Raises:
            ConstraintViolation: If the add is not allowed
        """
        reason = self.check_add(roster, drop_player_id)
        if reason is not None:
            raise ConstraintViolation(reason)

    def spots_available(self, roster: Sequence[str]) -> Optional[int]:
        if self.limit is None:
            return None
        return max(self.limit - len(roster), 0)

    def is_at_capacity(self, roster: Sequence[str]) -> bool:
        return self.limit is not None and len(roster) >= self.limit
