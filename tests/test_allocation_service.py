import pytest
from dataclasses import replace

from allocation.exceptions import ConcurrencyConflict, PermissionDeniedError, ValidationError
from allocation.league import AllocationService, InMemoryLeagueStore, TransactionLog
from allocation.league_state import Player


class InterferingStore(InMemoryLeagueStore):
    """Store whose league is changed by another writer just before the next `conflicts` commits"""

    def __init__(self, conflicts):
        super().__init__()
        self.conflicts = conflicts
        self.commit_calls = 0

    def commit(self, league_id, patch, expected_version, on_commit=None):
        self.commit_calls += 1
        if self.conflicts > 0:
            self.conflicts -= 1
            snapshot = self.read(league_id)
            self.save(replace(snapshot, version=snapshot.version + 1))
        return super().commit(league_id, patch, expected_version, on_commit)


@pytest.fixture
def league(make_team, make_league, player_pool):
    return make_league([
        make_team('X', faab_budget=50, co_owners=('helper',)),
        make_team('Y', faab_budget=20),
    ], players=player_pool)


@pytest.fixture
def service(league, tmp_path, resolved_at):
    store = InMemoryLeagueStore()
    store.save(league)
    return AllocationService(store, log_dir=tmp_path, clock=lambda: resolved_at)


def test_owner_submits_claim(service, resolved_at):
    result = service.submit_claim('L1', 'owner_X', 'X', 'A', 30)

    assert result.snapshot.version == 1
    claim, = service.get_snapshot('L1').teams['X'].pending_claims
    assert (claim.player_id, claim.amount, claim.submitted_at) == ('A', 30, resolved_at)


def test_co_owner_and_commissioner_may_act(service):
    service.submit_claim('L1', 'helper', 'X', 'A', 30)
    service.submit_claim('L1', 'commish', 'Y', 'A', 5)

    assert service.get_snapshot('L1').version == 2


def test_stranger_is_denied(service):
    with pytest.raises(PermissionDeniedError):
        service.submit_claim('L1', 'owner_Y', 'X', 'A', 30)
    assert service.get_snapshot('L1').version == 0


def test_only_commissioner_resolves(service):
    with pytest.raises(PermissionDeniedError):
        service.resolve_waivers('L1', actor_id='owner_X')


def test_rejected_transition_writes_nothing(service):
    with pytest.raises(ValidationError):
        service.submit_claim('L1', 'owner_X', 'X', 'A', 500)
    assert service.get_snapshot('L1').version == 0


def test_resolve_waivers_commits_and_logs(service, tmp_path):
    """Test the full submit then resolve flow, including the transaction log"""
    service.submit_claim('L1', 'owner_X', 'X', 'A', 30)
    service.submit_claim('L1', 'owner_Y', 'Y', 'A', 15)

    resolution = service.resolve_waivers('L1', actor_id='commish')

    assert [r.team_id for r in resolution.winners] == ['X']
    stored = service.get_snapshot('L1')
    assert stored == resolution.snapshot
    assert stored.version == 3
    assert stored.teams['X'].roster == ('A',)
    assert stored.teams['X'].faab_budget == 20
    assert len(stored.transactions) == 2
    assert TransactionLog.for_league(tmp_path, 'L1').load_all() == list(stored.transactions)


def test_empty_resolution_does_not_bump_version(service):
    resolution = service.resolve_waivers('L1')
    assert resolution.results == ()
    assert service.get_snapshot('L1').version == 0


def test_conflict_is_retried_on_fresh_snapshot(league, resolved_at):
    """Test that a conflicted commit is recomputed and committed on retry"""
    store = InterferingStore(conflicts=2)
    store.save(league)
    service = AllocationService(store, clock=lambda: resolved_at)

    result = service.submit_claim('L1', None, 'X', 'A', 10)

    assert store.commit_calls == 3
    assert result.snapshot.version == 3
    assert len(store.read('L1').teams['X'].pending_claims) == 1


def test_conflict_raised_after_retries(league, resolved_at):
    store = InterferingStore(conflicts=10)
    store.save(league)
    service = AllocationService(store, clock=lambda: resolved_at, max_retries=3)

    with pytest.raises(ConcurrencyConflict):
        service.submit_claim('L1', None, 'X', 'A', 10)
    assert store.commit_calls == 4
    assert store.read('L1').teams['X'].pending_claims == ()



def test_conflicted_attempt_leaves_no_log_entries(league, tmp_path, resolved_at):
    """Test that only the attempt that commits appends to the transaction log"""
    store = InterferingStore(conflicts=0)
    store.save(league)
    service = AllocationService(store, log_dir=tmp_path, clock=lambda: resolved_at)
    service.submit_claim('L1', 'owner_X', 'X', 'A', 30)
    service.submit_claim('L1', 'owner_Y', 'Y', 'B', 5)

    store.conflicts = 1
    service.resolve_waivers('L1', actor_id='commish')

    stored = store.read('L1')
    assert len(stored.transactions) == 2
    assert TransactionLog.for_league(tmp_path, 'L1').load_all() == list(stored.transactions)


def test_auction_flow_through_service(make_team, make_league, tmp_path, resolved_at):
    players = {pid: Player(pid, name=f"Player {pid}", qualified=True) for pid in ('X', 'Y')}
    league = make_league([
        make_team('A', standing_score=300),
        make_team('B', standing_score=200),
    ], players=players)
    store = InMemoryLeagueStore()
    store.save(league)
    service = AllocationService(store, log_dir=tmp_path, clock=lambda: resolved_at)

    service.start_auction('L1', actor_id='commish')
    service.nominate('L1', 'owner_A', 'A', 'X')
    service.bid('L1', 'owner_B', 'B', 12)
    result = service.pass_team('L1', 'owner_A', 'A')

    snapshot = result.snapshot
    assert snapshot.teams['B'].playoff_roster == ('X',)
    assert snapshot.teams['B'].playoff_dollars == 8
    assert service.auction_status('L1')['current_nominator'] == 'B'
    assert TransactionLog.for_league(tmp_path, 'L1').count() == 1


def test_start_auction_requires_commissioner(service):
    with pytest.raises(PermissionDeniedError):
        service.start_auction('L1', actor_id='owner_X')
