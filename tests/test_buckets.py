import pytest

from fx_journal.metrics.buckets import AccountProfit, PairBucket, compute_account_profit, compute_pair_breakdown
from fx_journal.models import Account

from conftest import make_trade


def test_pairs_sorted_by_descending_profit():
    trades = [
        make_trade(50.0, pair="EUR/USD"),
        make_trade(80.0, pair="GBP/USD"),
        make_trade(-10.0, pair="EUR/USD"),
    ]
    assert compute_pair_breakdown(trades) == [
        PairBucket(pair="GBP/USD", profit=80.0, trades=1),
        PairBucket(pair="EUR/USD", profit=40.0, trades=2),
    ]


def test_pair_ties_keep_first_seen_order():
    trades = [
        make_trade(10.0, pair="USD/JPY"),
        make_trade(30.0, pair="XAU/USD"),
        make_trade(10.0, pair="AUD/USD"),
        make_trade(10.0, pair="EUR/GBP"),
    ]
    assert [row.pair for row in compute_pair_breakdown(trades)] == ["XAU/USD", "USD/JPY", "AUD/USD", "EUR/GBP"]


def test_pairs_match_exact_strings():
    trades = [make_trade(1.0, pair="EUR/USD"), make_trade(1.0, pair="EURUSD")]
    assert len(compute_pair_breakdown(trades)) == 2


def test_pair_breakdown_empty():
    assert compute_pair_breakdown([]) == []


def test_account_profit_skips_unknown_accounts():
    accounts = [
        Account(account_id="a", name="Alpha", category="Demo", initial_balance=0.0),
        Account(account_id="b", name="Beta", category="Real", initial_balance=500.0),
    ]
    trades = [
        make_trade(15.0, account_id="b"),
        make_trade(-5.0, account_id="b"),
        make_trade(99.0, account_id="gone"),
    ]
    rows = compute_account_profit(accounts, trades)

    assert rows == [
        AccountProfit(account_id="a", name="Alpha", profit=0.0),
        AccountProfit(account_id="b", name="Beta", profit=pytest.approx(10.0)),
    ]
