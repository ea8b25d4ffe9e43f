import sqlite3
from dataclasses import replace
from datetime import datetime, timezone

import pytest

from fx_journal.metrics.buckets import compute_pair_breakdown
from fx_journal.records import RecordNotFound
from fx_journal.storage import sqlite_store
from fx_journal.storage.sqlite_reader import SqliteRecordSource
from fx_journal.validation import build_account, build_trade, build_transaction


def _seed(conn):
    account = sqlite_store.insert_account(
        conn, build_account({"name": "Main", "category": "Real", "initial_balance": 1000})
    )
    other = sqlite_store.insert_account(
        conn, build_account({"name": "Side", "category": "Demo", "initial_balance": 0})
    )
    for account_id, profit in ((account.account_id, 100), (account.account_id, -40), (other.account_id, 5)):
        sqlite_store.insert_trade(
            conn,
            build_trade(
                {
                    "account_id": account_id,
                    "pair": "EUR/USD",
                    "direction": "Long",
                    "profit": profit,
                    "open_time": "2024-03-05T10:00:00+00:00",
                }
            ),
        )
    sqlite_store.insert_transaction(
        conn, build_transaction({"account_id": account.account_id, "kind": "Deposit", "amount": 300})
    )
    return account, other


def test_round_trip(conn):
    account, _ = _seed(conn)
    source = SqliteRecordSource(conn)

    assert [item.name for item in source.list_accounts()] == ["Main", "Side"]
    trades = source.list_trades(account.account_id)
    assert len(trades) == 2
    assert {trade.status for trade in trades} == {"Win", "Loss"}
    assert trades[0].open_time == datetime(2024, 3, 5, 10, 0, tzinfo=timezone.utc)
    assert len(source.list_trades()) == 3
    assert source.list_transactions(account.account_id)[0].amount == 300.0


def test_update_trade_recomputes_status(conn):
    account, _ = _seed(conn)
    source = SqliteRecordSource(conn)
    trade = next(item for item in source.list_trades(account.account_id) if item.status == "Win")

    sqlite_store.update_trade(conn, replace(trade, commission=100.0))
    reloaded = source.get_trade(trade.trade_id)

    assert reloaded.net_profit == 0
    assert reloaded.status == "Loss"
    row = conn.execute("SELECT status, net_profit FROM trades WHERE trade_id = ?", (trade.trade_id,)).fetchone()
    assert (row["status"], row["net_profit"]) == ("Loss", 0)


def test_cascade_delete_removes_only_that_account(conn):
    account, other = _seed(conn)
    result = sqlite_store.delete_account(conn, account.account_id)

    assert result.trades_deleted == 2
    assert result.transactions_deleted == 1
    source = SqliteRecordSource(conn)
    assert [item.account_id for item in source.list_accounts()] == [other.account_id]
    assert [trade.account_id for trade in source.list_trades()] == [other.account_id]
    assert source.list_transactions() == []


def test_cascade_delete_rolls_back_on_failure(conn):
    account, _ = _seed(conn)
    conn.execute(
        """
        CREATE TRIGGER block_account_delete BEFORE DELETE ON accounts
        BEGIN SELECT RAISE(ABORT, 'blocked'); END
        """
    )
    conn.commit()

    with pytest.raises(sqlite3.Error):
        sqlite_store.delete_account(conn, account.account_id)

    source = SqliteRecordSource(conn)
    assert len(source.list_trades(account.account_id)) == 2
    assert len(source.list_transactions(account.account_id)) == 1


def test_unknown_ids_raise_record_not_found(conn):
    with pytest.raises(RecordNotFound):
        sqlite_store.delete_account(conn, "missing")
    with pytest.raises(RecordNotFound):
        sqlite_store.delete_trade(conn, "missing")
    with pytest.raises(RecordNotFound):
        SqliteRecordSource(conn).get_account("missing")


def test_children_require_existing_account(conn):
    trade = build_trade({"account_id": "missing", "pair": "X", "direction": "Long", "profit": 1})
    with pytest.raises(RecordNotFound):
        sqlite_store.insert_trade(conn, trade)
    transaction = build_transaction({"account_id": "missing", "kind": "Deposit", "amount": 1})
    with pytest.raises(RecordNotFound):
        sqlite_store.insert_transaction(conn, transaction)


def test_update_account(conn):
    account, _ = _seed(conn)
    renamed = build_account(
        {"name": "Renamed", "category": "Challenge", "initial_balance": 2000},
        account_id=account.account_id,
    )
    sqlite_store.update_account(conn, renamed)

    assert SqliteRecordSource(conn).get_account(account.account_id) == renamed
    with pytest.raises(RecordNotFound):
        sqlite_store.update_account(conn, build_account({"name": "X", "category": "Demo", "initial_balance": 0}))


def test_trades_come_back_in_time_order_across_offsets(conn):
    account = sqlite_store.insert_account(
        conn, build_account({"name": "Main", "category": "Real", "initial_balance": 0})
    )
    for pair, open_time in (("GBP/USD", "2024-03-05T06:00:00+00:00"), ("EUR/USD", "2024-03-05T10:00:00+05:00")):
        sqlite_store.insert_trade(
            conn,
            build_trade(
                {
                    "account_id": account.account_id,
                    "pair": pair,
                    "direction": "Long",
                    "profit": 10,
                    "open_time": open_time,
                }
            ),
        )

    trades = SqliteRecordSource(conn).list_trades()

    assert [trade.pair for trade in trades] == ["EUR/USD", "GBP/USD"]
    assert [row.pair for row in compute_pair_breakdown(trades)] == ["EUR/USD", "GBP/USD"]
    stored = [row["open_time"] for row in conn.execute("SELECT open_time FROM trades ORDER BY rowid")]
    assert stored == ["2024-03-05T06:00:00+00:00", "2024-03-05T05:00:00+00:00"]
