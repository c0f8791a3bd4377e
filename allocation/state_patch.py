"""
Explicit state patches.

Engine transitions never write anywhere. They return a StatePatch describing
the replaced team records, the replaced auction state and the audit entries to
append; the store applies it atomically.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, Optional, Tuple

from .league_state import AuctionState, AuditTransaction, LeagueSnapshot, Team


@dataclass(frozen=True)
class StatePatch:
    """Changes produced by one engine transition."""

    teams: Dict[str, Team] = field(default_factory=dict)
    auction: Optional[AuctionState] = None
    transactions: Tuple[AuditTransaction, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.teams and self.auction is None and not self.transactions

    def to_dict(self) -> dict:
        return {
            'teams': {tid: team.to_dict() for tid, team in self.teams.items()},
            'auction': self.auction.to_dict() if self.auction is not None else None,
            'transactions': [txn.to_dict() for txn in self.transactions],
        }


def apply_patch(snapshot: LeagueSnapshot, patch: StatePatch) -> LeagueSnapshot:
    """
    Apply a patch to the snapshot it was computed from.

    The version is left unchanged; only the store advances it on commit.
    """
    if patch.is_empty:
        return snapshot

    teams = dict(snapshot.teams)
    teams.update(patch.teams)
    return replace(
        snapshot,
        teams=teams,
        auction=patch.auction if patch.auction is not None else snapshot.auction,
        transactions=snapshot.transactions + tuple(patch.transactions),
    )


def diff_snapshots(
    before: LeagueSnapshot,
    after: LeagueSnapshot,
    transactions: Iterable[AuditTransaction] = ()
) -> StatePatch:
    """Patch containing every team and auction record that differs between two snapshots."""
    teams = {
        tid: team for tid, team in after.teams.items()
        if before.teams.get(tid) != team
    }
    auction = after.auction if after.auction != before.auction else None
    return StatePatch(teams=teams, auction=auction, transactions=tuple(transactions))


@dataclass(frozen=True)
class Transition:
    """New snapshot plus the patch that produces it from the input snapshot."""

    snapshot: LeagueSnapshot
    patch: StatePatch

    @classmethod
    def between(
        cls,
        before: LeagueSnapshot,
        after: LeagueSnapshot,
        transactions: Iterable[AuditTransaction] = ()
    ) -> 'Transition':
        patch = diff_snapshots(before, after, transactions)
        return cls(snapshot=apply_patch(before, patch), patch=patch)

    @classmethod
    def unchanged(cls, snapshot: LeagueSnapshot) -> 'Transition':
        return cls(snapshot=snapshot, patch=StatePatch())
