import pytest

from allocation import config
from allocation.exceptions import ConstraintViolation
from allocation.roster_constraints import RosterConstraintChecker, total_roster_limit


def test_total_roster_limit_sums_slots():
    assert total_roster_limit(config.ROSTER_SLOTS) == 12
    assert total_roster_limit({'captain': 1, 'flex': 2}) == 3


def test_add_within_capacity():
    checker = RosterConstraintChecker(3)
    assert checker.check_add(['p1', 'p2']) is None


def test_add_to_full_roster_without_drop():
    checker = RosterConstraintChecker(2)
    assert checker.check_add(['p1', 'p2']) == config.REASON_ROSTER_LIMIT


def test_add_with_drop_on_full_roster():
    """Test that a drop frees the spot the add needs"""
    checker = RosterConstraintChecker(2)
    assert checker.check_add(['p1', 'p2'], drop_player_id='p1') is None


def test_drop_not_on_roster():
    checker = RosterConstraintChecker(5)
    assert checker.check_add(['p1'], drop_player_id='p9') == config.REASON_DROP_NOT_ON_ROSTER


def test_validate_add_raises_constraint_violation():
    checker = RosterConstraintChecker(1)
    with pytest.raises(ConstraintViolation, match=config.REASON_ROSTER_LIMIT):
        checker.validate_add(['p1'])


def test_unbounded_checker():
    checker = RosterConstraintChecker.from_slots(None)

    assert checker.check_add(['p'] * 100) is None
    assert checker.spots_available(['p1']) is None
    assert not checker.is_at_capacity(['p'] * 100)


def test_spots_available_and_capacity():
    checker = RosterConstraintChecker.from_slots({'captain': 1, 'flex': 2})

    assert checker.spots_available(['p1']) == 2
    assert not checker.is_at_capacity(['p1', 'p2'])
    assert checker.is_at_capacity(['p1', 'p2', 'p3'])
