"""
Playoff auction seeding.

The top N teams by standing score qualify. Each gets $1 of playoff currency
per `points_per_playoff_dollar` standing points (floored), keeps its
playoff-qualified players as a retained playoff roster, and nominates in seed
order (highest standing first). Qualified players nobody retained form the
auction pool.
"""

import logging
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple

from .exceptions import StructuralError
from .league_state import AuctionState, LeagueSnapshot, Team
from .roster_constraints import RosterConstraintChecker

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlayoffSeed:
    """One qualifying team's starting position."""

    team_id: str
    seed: int
    standing_score: float
    playoff_dollars: int
    retained: Tuple[str, ...]

    def to_dict(self) -> dict:
        return {
            'team_id': self.team_id,
            'seed': self.seed,
            'standing_score': self.standing_score,
            'playoff_dollars': self.playoff_dollars,
            'retained': list(self.retained),
        }


def playoff_dollars(standing_score: float, points_per_dollar: int) -> int:
    """Playoff currency earned from regular-season standing."""
    if points_per_dollar <= 0:
        raise StructuralError(f"points_per_playoff_dollar must be positive, got {points_per_dollar}")
    return int(max(standing_score, 0) // points_per_dollar)


def retained_players(snapshot: LeagueSnapshot, team: Team) -> Tuple[str, ...]:
    """
    Players on the team's regular roster who are playoff-qualified.

    Capped at the playoff roster limit in roster order; qualified players past
    the cap go back into the auction pool.
    """
    retained = tuple(
        player_id for player_id in team.roster
        if player_id in snapshot.players and snapshot.players[player_id].qualified
    )
    limit = snapshot.settings.playoff_roster_limit
    if limit is not None and len(retained) > limit:
        logger.warning(
            f"{team.team_id} has {len(retained)} qualified players; "
            f"retaining the first {limit}"
        )
        return retained[:limit]
    return retained


def first_open_seat(snapshot: LeagueSnapshot, start: int = 0) -> Optional[int]:
    """
    First position in the nomination order, from `start` and wrapping, whose
    team has playoff roster room. None when every participant is full.
    """
    order = snapshot.auction.nomination_order
    checker = RosterConstraintChecker(snapshot.settings.playoff_roster_limit)
    for step in range(len(order)):
        candidate = (start + step) % len(order)
        if not checker.is_at_capacity(snapshot.teams[order[candidate]].playoff_roster):
            return candidate
    return None


def qualifying_teams(snapshot: LeagueSnapshot) -> List[Team]:
    """Top `playoff_teams` teams by standing score (ties broken by team_id)."""
    ranked = sorted(snapshot.teams.values(), key=lambda t: (-t.standing_score, t.team_id))
    return ranked[:snapshot.settings.playoff_teams]


def compute_seeding(
    snapshot: LeagueSnapshot,
    seed_order: Optional[Sequence[str]] = None
) -> List[PlayoffSeed]:
    """
    Compute each participant's seed, currency and retained roster.

    Args:
        snapshot: League snapshot
        seed_order: Fixed participant order; derived from standings when None

    Returns:
        List of PlayoffSeed, first seed first

    Raises:
        StructuralError: If no team qualifies or seed_order names an unknown team
    """
    if seed_order is None:
        teams = qualifying_teams(snapshot)
    else:
        missing = [tid for tid in seed_order if tid not in snapshot.teams]
        if missing:
            raise StructuralError(f"Seed order references unknown teams: {missing}")
        teams = [snapshot.teams[tid] for tid in seed_order]

    if not teams:
        raise StructuralError(f"League {snapshot.league_id} has no playoff teams")

    ratio = snapshot.settings.points_per_playoff_dollar
    return [
        PlayoffSeed(
            team_id=team.team_id,
            seed=i + 1,
            standing_score=team.standing_score,
            playoff_dollars=playoff_dollars(team.standing_score, ratio),
            retained=retained_players(snapshot, team),
        )
        for i, team in enumerate(teams)
    ]


def eligible_pool(snapshot: LeagueSnapshot, seeds: Sequence[PlayoffSeed]) -> Tuple[str, ...]:
    """Qualified players not retained by any participant, sorted by player_id."""
    retained = {player_id for seed in seeds for player_id in seed.retained}
    return tuple(sorted(
        player_id for player_id, player in snapshot.players.items()
        if player.qualified and player_id not in retained
    ))


def seed_auction(
    snapshot: LeagueSnapshot,
    seed_order: Optional[Sequence[str]] = None
) -> LeagueSnapshot:
    """
    Reset every participant to its seeded state and open a fresh auction.

    Participants get recomputed playoff currency and their retained roster;
    the nomination order is the seed order with the pointer on the first
    seed that has playoff roster room; the nomination and auction log are
    cleared.

    Args:
        snapshot: League snapshot
        seed_order: Original seeding to reuse; derived from standings when None

    Returns:
        New LeagueSnapshot (same version)
    """
    seeds = compute_seeding(snapshot, seed_order)
    order = tuple(seed.team_id for seed in seeds)

    teams = {
        seed.team_id: replace(
            snapshot.teams[seed.team_id],
            playoff_dollars=seed.playoff_dollars,
            playoff_roster=seed.retained,
        )
        for seed in seeds
    }
    auction = AuctionState(
        started=True,
        nomination_order=order,
        seed_order=order,
        current_nominator_index=0,
        nomination=None,
        auction_log=(),
        eligible_player_ids=eligible_pool(snapshot, seeds),
    )
    seeded = replace(snapshot.with_teams(teams), auction=auction)

    first = first_open_seat(seeded)
    if first is not None:
        seeded = replace(seeded, auction=replace(auction, current_nominator_index=first))

    logger.info(
        f"Seeded playoff auction for league {snapshot.league_id}: "
        f"{len(seeds)} teams, {len(auction.eligible_player_ids)} players in the pool, "
        f"first nominator {seeded.auction.current_nominator}"
    )
    return seeded
