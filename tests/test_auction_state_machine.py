import pytest
from dataclasses import replace
from datetime import datetime, timedelta

from allocation.auction_state_machine import (
    auction_phase, available_players, bid, describe_auction, nominate,
    pass_team, reset_bid, restart, settle, start_auction
)
from allocation.exceptions import StructuralError, ValidationError
from allocation.league_state import AuctionPhase, AuctionState, LeagueSettings

T0 = datetime(2026, 4, 1, 20, 0, 0)


def _at(seconds):
    return T0 + timedelta(seconds=seconds)


def test_scenario_bidding_with_auto_pass(auction_league):
    """Test a full nomination: B is auto-passed once the bid passes its budget and A wins at $10"""
    league = nominate(auction_league, 'A', 'Z', _at(0)).snapshot
    assert auction_phase(league) == AuctionPhase.BIDDING

    league = bid(league, 'B', 5, _at(1)).snapshot
    league = pass_team(league, 'C', _at(2)).snapshot
    league = bid(league, 'A', 10, _at(3)).snapshot

    nomination = league.auction.nomination
    assert nomination.current_bid.team_id == 'A'
    assert nomination.passed_teams == frozenset({'B'})

    transition = pass_team(league, 'C', _at(4))
    league = transition.snapshot

    assert league.auction.nomination is None
    assert league.teams['A'].playoff_dollars == 40
    assert league.teams['A'].playoff_roster == ('Z',)
    assert league.auction.current_nominator == 'B'

    entry, = league.auction.auction_log
    assert (entry.team_id, entry.player_id, entry.amount) == ('A', 'Z', 10)

    txn, = transition.patch.transactions
    assert txn.type == 'auction'
    assert txn.adds == {'A': ['Z']}
    assert txn.metadata['bid_amount'] == 10
    assert txn.metadata['player_names']['Z'] == {'name': 'Player Z', 'region': 'Unknown Region'}
    assert available_players(league) == ('X', 'Y')


def test_nominator_wins_at_zero_when_everyone_passes(auction_league):
    league = nominate(auction_league, 'A', 'X', _at(0)).snapshot
    league = pass_team(league, 'B', _at(1)).snapshot
    league = pass_team(league, 'C', _at(2)).snapshot

    assert league.teams['A'].playoff_roster == ('X',)
    assert league.teams['A'].playoff_dollars == 50
    assert league.auction.auction_log[0].amount == 0


def test_new_bid_clears_passes(auction_league):
    """Test that a higher bid re-opens bidding for teams that passed"""
    league = nominate(auction_league, 'A', 'X', _at(0)).snapshot
    league = pass_team(league, 'C', _at(1)).snapshot
    assert league.auction.nomination.passed_teams == frozenset({'C'})

    league = bid(league, 'B', 5, _at(2)).snapshot

    assert league.auction.nomination.passed_teams == frozenset()
    assert league.auction.nomination.current_bid.amount == 5


def test_bid_must_be_strictly_higher(auction_league):
    league = bid(nominate(auction_league, 'A', 'X', _at(0)).snapshot, 'C', 5, _at(1)).snapshot
    with pytest.raises(ValidationError):
        bid(league, 'B', 5, _at(2))


def test_bid_cannot_exceed_playoff_dollars(auction_league):
    league = nominate(auction_league, 'A', 'X', _at(0)).snapshot
    with pytest.raises(ValidationError):
        bid(league, 'B', 9, _at(1))


def test_passed_team_cannot_bid(auction_league):
    league = nominate(auction_league, 'A', 'X', _at(0)).snapshot
    league = pass_team(league, 'C', _at(1)).snapshot
    with pytest.raises(ValidationError):
        bid(league, 'C', 5, _at(2))


def test_pass_rejections(auction_league):
    """Test that the high bidder and teams that already passed cannot pass"""
    league = nominate(auction_league, 'A', 'X', _at(0)).snapshot
    with pytest.raises(ValidationError):
        pass_team(league, 'A', _at(1))

    league = pass_team(league, 'C', _at(1)).snapshot
    with pytest.raises(ValidationError):
        pass_team(league, 'C', _at(2))


def test_non_participant_rejected(auction_league):
    league = nominate(auction_league, 'A', 'X', _at(0)).snapshot
    with pytest.raises(ValidationError):
        pass_team(league, 'D', _at(1))
    with pytest.raises(ValidationError):
        bid(league, 'D', 1, _at(1))


def test_actions_require_nomination(auction_league):
    with pytest.raises(ValidationError):
        bid(auction_league, 'B', 5, _at(0))
    with pytest.raises(ValidationError):
        pass_team(auction_league, 'B', _at(0))


def test_nominate_out_of_turn(auction_league):
    with pytest.raises(ValidationError):
        nominate(auction_league, 'B', 'X', _at(0))


def test_nominate_while_bidding(auction_league):
    league = nominate(auction_league, 'A', 'X', _at(0)).snapshot
    with pytest.raises(ValidationError):
        nominate(league, 'A', 'Y', _at(1))


def test_nominate_unavailable_player(auction_league):
    with pytest.raises(ValidationError):
        nominate(auction_league, 'A', 'not-eligible', _at(0))


def test_nominate_without_order_is_structural(make_team, make_league):
    league = make_league([make_team('A')], auction=AuctionState(started=True))
    with pytest.raises(StructuralError):
        nominate(league, 'A', 'X', _at(0))


def test_settle_and_reset_without_nomination_are_noops(auction_league):
    assert settle(auction_league, _at(0)).patch.is_empty
    transition = reset_bid(auction_league, _at(0))
    assert transition.patch.is_empty
    assert transition.snapshot is auction_league


def test_reset_bid_returns_to_nominator(auction_league):
    """Test that a reset goes back to {nominator, $0} without moving the pointer"""
    league = nominate(auction_league, 'A', 'X', _at(0)).snapshot
    league = bid(league, 'B', 5, _at(1)).snapshot
    league = pass_team(league, 'C', _at(2)).snapshot

    league = reset_bid(league, _at(3)).snapshot

    nomination = league.auction.nomination
    assert nomination.current_bid.team_id == 'A'
    assert nomination.current_bid.amount == 0
    assert nomination.passed_teams == frozenset()
    assert league.auction.current_nominator == 'A'


def test_settle_applies_auto_passes(auction_league):
    """Test that settle finishes a nomination nobody else can afford"""
    league = nominate(auction_league, 'A', 'X', _at(0)).snapshot
    league = bid(league, 'A', 30, _at(1)).snapshot

    assert league.teams['A'].playoff_roster == ('X',)
    assert settle(league, _at(2)).patch.is_empty


def test_restart_reseeds_from_standings(auction_league):
    """Test that restart recomputes currency, clears the log and keeps the original seeding"""
    league = nominate(auction_league, 'A', 'X', _at(0)).snapshot
    league = pass_team(league, 'B', _at(1)).snapshot
    league = pass_team(league, 'C', _at(2)).snapshot

    league = restart(league).snapshot

    assert league.auction.nomination_order == ('A', 'B', 'C')
    assert league.auction.current_nominator == 'A'
    assert league.auction.auction_log == ()
    assert league.teams['A'].playoff_roster == ()
    assert [league.teams[t].playoff_dollars for t in 'ABC'] == [50, 40, 30]
    assert available_players(league) == ('X', 'Y', 'Z')


def test_restart_requires_seeded_auction(make_team, make_league):
    with pytest.raises(StructuralError):
        restart(make_league([make_team('A')]))


def test_start_auction_twice(auction_league):
    with pytest.raises(ValidationError):
        start_auction(auction_league)


def test_auction_completes_when_pool_is_empty(auction_league):
    league = replace(auction_league, auction=replace(auction_league.auction, eligible_player_ids=('X',)))
    league = nominate(league, 'A', 'X', _at(0)).snapshot
    league = pass_team(league, 'B', _at(1)).snapshot
    league = pass_team(league, 'C', _at(2)).snapshot

    assert auction_phase(league) == AuctionPhase.COMPLETE
    assert describe_auction(league)['current_nominator'] is None
    with pytest.raises(ValidationError):
        nominate(league, 'B', 'Y', _at(3))


def test_full_playoff_rosters_pass_and_are_skipped(auction_league):
    """Test that a team with no playoff roster room is auto-passed and skipped as nominator"""
    settings = LeagueSettings(playoff_roster_slots={'flex': 1})
    teams = dict(auction_league.teams)
    teams['B'] = replace(teams['B'], playoff_roster=('Y',))
    league = replace(auction_league, settings=settings, teams=teams)

    league = nominate(league, 'A', 'X', _at(0)).snapshot
    assert 'B' in league.auction.nomination.passed_teams

    league = pass_team(league, 'C', _at(1)).snapshot

    assert league.teams['A'].playoff_roster == ('X',)
    assert league.auction.current_nominator == 'C'


def test_pointer_stays_put_once_every_roster_is_full(auction_league):
    """Test that the last possible win completes the auction instead of moving to a full team"""
    settings = LeagueSettings(playoff_roster_slots={'flex': 1})
    teams = dict(auction_league.teams)
    teams['B'] = replace(teams['B'], playoff_roster=('Y',))
    teams['C'] = replace(teams['C'], playoff_roster=('Z',))
    league = replace(auction_league, settings=settings, teams=teams,
                     auction=replace(auction_league.auction, eligible_player_ids=('W', 'X', 'Y', 'Z')))

    league = nominate(league, 'A', 'X', _at(0)).snapshot

    assert league.teams['A'].playoff_roster == ('X',)
    assert league.auction.current_nominator_index == 0
    assert auction_phase(league) == AuctionPhase.COMPLETE
    assert available_players(league) == ('W',)


def test_describe_auction(auction_league):
    status = describe_auction(auction_league)

    assert status['phase'] == 'idle'
    assert status['current_nominator'] == 'A'
    assert status['budgets'] == {'A': 50, 'B': 8, 'C': 20}
    assert status['available_players'] == ['X', 'Y', 'Z']
    assert status['nomination'] is None
