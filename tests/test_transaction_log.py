import csv

from allocation.league import TransactionLog
from allocation.waiver_engine import resolve_waivers


def _resolved_transactions(make_team, make_claim, make_league, player_pool, resolved_at):
    league = make_league([
        make_team('X', roster=['r1'], pending_claims=[make_claim('A', 30, drop='r1')]),
        make_team('Y', pending_claims=[make_claim('A', 25)]),
    ], players=player_pool)
    return list(resolve_waivers(league, resolved_at).transactions)


def test_append_and_load(tmp_path, make_team, make_claim, make_league, player_pool, resolved_at):
    """Test that appended transactions load back in order"""
    transactions = _resolved_transactions(make_team, make_claim, make_league, player_pool, resolved_at)
    log = TransactionLog.for_league(tmp_path, 'L1')

    log.append(transactions[:1])
    log.append(transactions[1:])

    assert log.filepath.name == 'transactions_L1.jsonl'
    assert log.load_all() == transactions
    assert log.count() == 2
    assert log.last() == transactions[-1]


def test_missing_log_is_empty(tmp_path):
    log = TransactionLog(tmp_path / 'none.jsonl')

    assert log.load_all() == []
    assert log.count() == 0
    assert log.last() is None


def test_append_nothing_creates_no_file(tmp_path):
    log = TransactionLog(tmp_path / 'log.jsonl')
    log.append([])
    assert not log.filepath.exists()


def test_corrupt_lines_are_skipped(tmp_path, make_team, make_claim, make_league, player_pool, resolved_at):
    transactions = _resolved_transactions(make_team, make_claim, make_league, player_pool, resolved_at)
    log = TransactionLog(tmp_path / 'log.jsonl')
    log.append(transactions[:1])
    with open(log.filepath, 'a', encoding='utf-8') as f:
        f.write('{broken\n')

    assert log.load_all() == transactions[:1]


def test_export_to_csv(tmp_path, make_team, make_claim, make_league, player_pool, resolved_at):
    """Test that each transaction becomes one CSV row with names and outcome"""
    transactions = _resolved_transactions(make_team, make_claim, make_league, player_pool, resolved_at)
    log = TransactionLog(tmp_path / 'log.jsonl')
    log.append(transactions)

    output = tmp_path / 'exports' / 'transactions.csv'
    assert log.export_to_csv(output) == 2

    with open(output, newline='', encoding='utf-8') as f:
        won, lost = list(csv.DictReader(f))

    assert won['team_id'] == 'X'
    assert won['player_id'] == 'A'
    assert won['player_name'] == 'Alpha'
    assert won['success'] == 'True'
    assert won['drop_player_id'] == 'r1'
    assert lost['team_id'] == 'Y'
    assert lost['player_id'] == 'A'
    assert lost['failure_reason'] == 'already claimed'


def test_export_empty_log(tmp_path):
    log = TransactionLog(tmp_path / 'log.jsonl')
    assert log.export_to_csv(tmp_path / 'out.csv') == 0
    assert not (tmp_path / 'out.csv').exists()
