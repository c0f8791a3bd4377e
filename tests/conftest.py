import pytest
from datetime import datetime
from typing import Dict, Iterable, Optional

from allocation.league_state import (
    AuctionState, Claim, LeagueSettings, LeagueSnapshot, Player, Team
)

RESOLVED_AT = datetime(2026, 3, 1, 12, 0, 0)


def _team(team_id: str, **kwargs) -> Team:
    kwargs.setdefault('team_name', f"Team {team_id}")
    kwargs.setdefault('owner_id', f"owner_{team_id}")
    kwargs['roster'] = tuple(kwargs.get('roster', ()))
    kwargs['playoff_roster'] = tuple(kwargs.get('playoff_roster', ()))
    kwargs['pending_claims'] = tuple(kwargs.get('pending_claims', ()))
    return Team(team_id=team_id, **kwargs)


def _claim(player_id: str, amount: int, order: int = 0, drop: Optional[str] = None) -> Claim:
    return Claim(player_id=player_id, amount=amount, submission_order=order, drop_player_id=drop)


def _league(
    teams: Iterable[Team],
    players: Optional[Dict[str, Player]] = None,
    settings: Optional[LeagueSettings] = None,
    auction: Optional[AuctionState] = None,
    commissioner_id: str = 'commish',
    version: int = 0
) -> LeagueSnapshot:
    return LeagueSnapshot(
        league_id='L1',
        teams={team.team_id: team for team in teams},
        version=version,
        commissioner_id=commissioner_id,
        settings=settings or LeagueSettings(),
        players=players or {},
        auction=auction or AuctionState(),
    )


@pytest.fixture
def resolved_at() -> datetime:
    """Fixed resolution timestamp"""
    return RESOLVED_AT


@pytest.fixture
def make_team():
    """Factory for Team records with owner_<team_id> owners"""
    return _team


@pytest.fixture
def make_claim():
    """Factory for pending claims"""
    return _claim


@pytest.fixture
def make_league():
    """Factory for league snapshots with id L1 and commissioner 'commish'"""
    return _league


@pytest.fixture
def player_pool() -> Dict[str, Player]:
    """Named players; q* players are playoff-qualified"""
    pool = {
        'A': Player('A', name='Alpha', region='NA'),
        'B': Player('B', name='Bravo', region='NA'),
        'C': Player('C', name='Charlie', region='EU'),
        'r1': Player('r1', name='Rostered One', region='NA'),
        'r2': Player('r2', name='Rostered Two', region='EU'),
    }
    for pid in ('q1', 'q2', 'q3', 'q4'):
        pool[pid] = Player(pid, name=f"Qualified {pid}", region='NA', qualified=True)
    return pool


@pytest.fixture
def auction_league(make_team, make_league):
    """
    Started auction: order [A, B, C], pointer on A, pool [X, Y, Z].

    Playoff budgets: A $50, B $8, C $20. Playoff rosters unbounded.
    """
    players = {pid: Player(pid, name=f"Player {pid}", qualified=True) for pid in ('X', 'Y', 'Z')}
    teams = [
        make_team('A', playoff_dollars=50, standing_score=500),
        make_team('B', playoff_dollars=8, standing_score=400),
        make_team('C', playoff_dollars=20, standing_score=300),
    ]
    auction = AuctionState(
        started=True,
        nomination_order=('A', 'B', 'C'),
        seed_order=('A', 'B', 'C'),
        current_nominator_index=0,
        eligible_player_ids=('X', 'Y', 'Z'),
    )
    settings = LeagueSettings(playoff_roster_slots=None)
    return make_league(teams, players=players, settings=settings, auction=auction)
