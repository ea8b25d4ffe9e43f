from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Any

from fx_journal.models import Account, Trade, Transaction, EMOTION_NEUTRAL
from fx_journal.records import RecordNotFound


class SqliteRecordSource:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def list_accounts(self) -> list[Account]:
        rows = self._conn.execute("SELECT * FROM accounts ORDER BY created_at, rowid").fetchall()
        return [_account_from_row(row) for row in rows]

    def list_trades(self, account_id: str | None = None) -> list[Trade]:
        trades = [_trade_from_row(row) for row in _fetch(self._conn, "trades", account_id)]
        return sorted(trades, key=lambda trade: trade.open_time)

    def list_transactions(self, account_id: str | None = None) -> list[Transaction]:
        transactions = [_transaction_from_row(row) for row in _fetch(self._conn, "transactions", account_id)]
        return sorted(transactions, key=lambda item: item.timestamp)

    def get_account(self, account_id: str) -> Account:
        row = self._conn.execute("SELECT * FROM accounts WHERE account_id = ?", (account_id,)).fetchone()
        if row is None:
            raise RecordNotFound("account", account_id)
        return _account_from_row(row)

    def get_trade(self, trade_id: str) -> Trade:
        row = self._conn.execute("SELECT * FROM trades WHERE trade_id = ?", (trade_id,)).fetchone()
        if row is None:
            raise RecordNotFound("trade", trade_id)
        return _trade_from_row(row)


def _fetch(
    conn: sqlite3.Connection,
    table: str,
    account_id: str | None,
) -> list[sqlite3.Row]:
    params: list[Any] = []
    where = ""
    if account_id is not None:
        where = " WHERE account_id = ?"
        params.append(account_id)
    # Chronological order is applied on the decoded datetimes; rowid breaks ties.
    query = f"SELECT * FROM {table}{where} ORDER BY rowid"
    return conn.execute(query, params).fetchall()


def _account_from_row(row: sqlite3.Row) -> Account:
    return Account(
        account_id=row["account_id"],
        name=row["name"],
        category=row["category"],
        initial_balance=row["initial_balance"],
    )


def _trade_from_row(row: sqlite3.Row) -> Trade:
    # net_profit and status are recomputed by Trade itself; stored copies are ignored.
    return Trade(
        trade_id=row["trade_id"],
        account_id=row["account_id"],
        pair=row["pair"],
        open_time=_parse_iso(row["open_time"]),
        direction=row["direction"],
        profit=row["profit"],
        commission=row["commission"],
        reward_ratio=row["reward_ratio"],
        conclusion=row["conclusion"],
        emotion=row["emotion"] or EMOTION_NEUTRAL,
        remark=row["remark"],
    )


def _transaction_from_row(row: sqlite3.Row) -> Transaction:
    return Transaction(
        transaction_id=row["transaction_id"],
        account_id=row["account_id"],
        kind=row["kind"],
        amount=row["amount"],
        timestamp=_parse_iso(row["timestamp"]),
    )


def _parse_iso(value: str | None) -> datetime:
    if value is None:
        raise ValueError("Missing timestamp")
    parsed = datetime.fromisoformat(value)
    return parsed if parsed.tzinfo is not None else parsed.astimezone()
