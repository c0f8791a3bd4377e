import pytest
from datetime import datetime

from allocation import config
from allocation.exceptions import StructuralError, ValidationError
from allocation.league_state import (
    AuctionState, Claim, ClaimStatus, LeagueSettings, LeagueSnapshot, Nomination,
    CurrentBid, Player, create_league_snapshot
)


@pytest.mark.parametrize('document', [
    {'player_id': 'p1', 'amount': 5, 'submission_order': 0},
    {'player_id': 'p1', 'amount': 5, 'submission_order': 0, 'drop_player_id': None},
    {'player_id': 'p1', 'amount': 5, 'submission_order': 0, 'drop_player_id': ''},
])
def test_claim_drop_absent_null_and_empty_all_mean_no_drop(document):
    """Test that every spelling of 'no drop' normalizes to None"""
    assert Claim.from_dict(document).drop_player_id is None


def test_claim_from_legacy_field_names():
    claim = Claim.from_dict({
        'playerId': 'p1',
        'amount': 12,
        'dropPlayerId': 'p9',
        'processingOrder': 3,
        'timestamp': '2026-02-01T10:00:00',
        'status': 'pending',
    })

    assert claim.player_id == 'p1'
    assert claim.drop_player_id == 'p9'
    assert claim.submission_order == 3
    assert claim.submitted_at == datetime(2026, 2, 1, 10, 0, 0)
    assert claim.status == ClaimStatus.PENDING


@pytest.mark.parametrize('document', [
    {'playerId': 'A'},
    {'playerId': 'A', 'amount': 0},
    {'playerId': 'A', 'amount': -5},
    {'playerId': 'A', 'amount': 'ten'},
    {'playerId': 'A', 'amount': True},
    {'playerId': 'A', 'amount': 2.5},
])
def test_claim_with_invalid_amount_is_structural(document):
    with pytest.raises(StructuralError):
        Claim.from_dict(document)


def test_claim_accepts_integral_float_amount():
    claim = Claim.from_dict({'playerId': 'A', 'amount': 10.0})
    assert claim.amount == 10
    assert isinstance(claim.amount, int)


def test_team_budget_defaults_to_league_setting():
    """Test that a team without a budget field gets the league's default budget"""
    snapshot = LeagueSnapshot.from_dict({
        'league_id': 'L1',
        'settings': {'faab_budget': 500},
        'teams': {'t1': {'teamName': 'One', 'roster': ['p1']}},
    })

    assert snapshot.teams['t1'].faab_budget == 500
    assert snapshot.teams['t1'].team_name == 'One'
    assert snapshot.teams['t1'].pending_claims == ()


def test_settings_from_legacy_slot_counts():
    settings = LeagueSettings.from_dict({
        'captainSlots': 1, 'naSlots': 2, 'brLatamSlots': 1, 'flexSlots': 1, 'benchSlots': 1,
        'faabBudget': 200, 'playoffTeams': 4,
    })

    assert settings.roster_limit == 6
    assert settings.faab_budget == 200
    assert settings.playoff_teams == 4
    assert settings.playoff_roster_limit == 6


def test_null_playoff_slots_disable_capacity():
    settings = LeagueSettings.from_dict({'playoff_roster_slots': None})

    assert settings.playoff_roster_limit is None
    assert LeagueSettings.from_dict(settings.to_dict()) == settings


def test_settings_defaults():
    settings = LeagueSettings.from_dict(None)

    assert settings.roster_limit == config.ROSTER_SIZE
    assert settings.faab_budget == config.DEFAULT_FAAB_BUDGET
    assert settings.points_per_playoff_dollar == config.POINTS_PER_PLAYOFF_DOLLAR


def test_auction_state_from_legacy_nominator_id():
    """Test that a stored nominator team id becomes a pointer index"""
    auction = AuctionState.from_dict({
        'playoffAuctionStarted': True,
        'nominationOrder': ['A', 'B', 'C'],
        'currentNominator': 'B',
    })

    assert auction.started
    assert auction.current_nominator_index == 1
    assert auction.current_nominator == 'B'
    assert auction.seed_order == ('A', 'B', 'C')


def test_current_nominator_requires_order():
    with pytest.raises(StructuralError):
        AuctionState().current_nominator


def test_snapshot_survives_serialization(make_team, make_claim, make_league):
    """Test that a populated snapshot serializes and parses back to an equal snapshot"""
    nomination = Nomination(
        player_id='X',
        nominating_team_id='t1',
        current_bid=CurrentBid('t2', 7, datetime(2026, 3, 1, 9, 0)),
        passed_teams=frozenset({'t3'}),
    )
    league = make_league(
        [
            make_team('t1', roster=['p1'], pending_claims=[make_claim('p5', 10, 0, drop='p1')]),
            make_team('t2', co_owners=('friend',), playoff_dollars=30),
        ],
        players={'p1': Player('p1', name='One', tags=('captain',))},
        auction=AuctionState(started=True, nomination_order=('t1', 't2'), nomination=nomination),
    )

    assert LeagueSnapshot.from_json(league.to_json()) == league


def test_validate_rejects_player_on_two_rosters(make_team, make_league):
    league = make_league([make_team('t1', roster=['p1']), make_team('t2', roster=['p1'])])
    with pytest.raises(StructuralError):
        league.validate()


def test_validate_rejects_unknown_team_in_nomination_order(make_team, make_league):
    league = make_league([make_team('t1')], auction=AuctionState(started=True, nomination_order=('t1', 'ghost')))
    with pytest.raises(StructuralError):
        league.validate()


def test_get_team_unknown(make_team, make_league):
    league = make_league([make_team('t1')])
    with pytest.raises(ValidationError):
        league.get_team('t9')


def test_player_name_defaults():
    league = create_league_snapshot('L1', num_teams=2)

    assert league.player_name('missing') == {
        'name': config.UNKNOWN_PLAYER_NAME,
        'region': config.UNKNOWN_PLAYER_REGION,
    }
    assert sorted(league.teams) == ['team_01', 'team_02']
    assert league.teams['team_01'].faab_budget == config.DEFAULT_FAAB_BUDGET


def test_team_management_rights(make_team):
    team = make_team('t1', owner_id='alice', co_owners=('bob',))

    assert team.can_be_managed_by('alice')
    assert team.can_be_managed_by('bob')
    assert not team.can_be_managed_by('carol')
    assert not team.can_be_managed_by(None)
