from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from fx_journal.models import Account, Trade, Transaction
from fx_journal.records import RecordNotFound

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CascadeResult:
    account_id: str
    trades_deleted: int
    transactions_deleted: int


def connect(db_path: Path) -> sqlite3.Connection:
    if str(db_path) != ":memory:":
        db_path.parent.mkdir(parents=True, exist_ok=True)
    # FastAPI runs sync endpoints on a worker thread.
    conn = sqlite3.connect(str(db_path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS accounts (
            account_id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            category TEXT NOT NULL,
            initial_balance REAL NOT NULL,
            created_at TEXT NOT NULL
        )
        """
    )
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS trades (
            trade_id TEXT PRIMARY KEY,
            account_id TEXT NOT NULL REFERENCES accounts(account_id),
            pair TEXT NOT NULL,
            open_time TEXT NOT NULL,
            direction TEXT NOT NULL,
            profit REAL NOT NULL,
            commission REAL NOT NULL,
            net_profit REAL NOT NULL,
            status TEXT NOT NULL,
            reward_ratio TEXT,
            conclusion TEXT,
            emotion TEXT NOT NULL,
            remark TEXT,
            created_at TEXT NOT NULL
        )
        """
    )
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS transactions (
            transaction_id TEXT PRIMARY KEY,
            account_id TEXT NOT NULL REFERENCES accounts(account_id),
            kind TEXT NOT NULL,
            amount REAL NOT NULL,
            timestamp TEXT NOT NULL,
            created_at TEXT NOT NULL
        )
        """
    )
    conn.execute("CREATE INDEX IF NOT EXISTS idx_trades_account ON trades(account_id)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_transactions_account ON transactions(account_id)")
    conn.commit()


def insert_account(conn: sqlite3.Connection, account: Account) -> Account:
    conn.execute(
        """
        INSERT INTO accounts (account_id, name, category, initial_balance, created_at)
        VALUES (:account_id, :name, :category, :initial_balance, CURRENT_TIMESTAMP)
        """,
        _account_row(account),
    )
    conn.commit()
    logger.info("Created %s account %s (%s).", account.category, account.account_id, account.name)
    return account


def update_account(conn: sqlite3.Connection, account: Account) -> Account:
    cursor = conn.execute(
        """
        UPDATE accounts
        SET name = :name, category = :category, initial_balance = :initial_balance
        WHERE account_id = :account_id
        """,
        _account_row(account),
    )
    if cursor.rowcount == 0:
        conn.rollback()
        raise RecordNotFound("account", account.account_id)
    conn.commit()
    logger.info("Updated account %s.", account.account_id)
    return account


def delete_account(conn: sqlite3.Connection, account_id: str) -> CascadeResult:
    """Remove an account with all of its trades and transactions, or nothing."""
    _require_account(conn, account_id)
    with conn:
        trades = conn.execute("DELETE FROM trades WHERE account_id = ?", (account_id,)).rowcount
        transactions = conn.execute(
            "DELETE FROM transactions WHERE account_id = ?", (account_id,)
        ).rowcount
        conn.execute("DELETE FROM accounts WHERE account_id = ?", (account_id,))
    logger.info(
        "Deleted account %s with %d trades and %d transactions.",
        account_id,
        trades,
        transactions,
    )
    return CascadeResult(account_id=account_id, trades_deleted=trades, transactions_deleted=transactions)


def insert_trade(conn: sqlite3.Connection, trade: Trade) -> Trade:
    _require_account(conn, trade.account_id)
    conn.execute(
        """
        INSERT INTO trades (
            trade_id, account_id, pair, open_time, direction, profit, commission, net_profit, status,
            reward_ratio, conclusion, emotion, remark, created_at
        )
        VALUES (
            :trade_id, :account_id, :pair, :open_time, :direction, :profit, :commission, :net_profit, :status,
            :reward_ratio, :conclusion, :emotion, :remark, CURRENT_TIMESTAMP
        )
        """,
        _trade_row(trade),
    )
    conn.commit()
    logger.info("Logged %s trade %s on %s (net %.2f).", trade.status, trade.trade_id, trade.pair, trade.net_profit)
    return trade


def update_trade(conn: sqlite3.Connection, trade: Trade) -> Trade:
    _require_account(conn, trade.account_id)
    cursor = conn.execute(
        """
        UPDATE trades SET
            account_id = :account_id,
            pair = :pair,
            open_time = :open_time,
            direction = :direction,
            profit = :profit,
            commission = :commission,
            net_profit = :net_profit,
            status = :status,
            reward_ratio = :reward_ratio,
            conclusion = :conclusion,
            emotion = :emotion,
            remark = :remark
        WHERE trade_id = :trade_id
        """,
        _trade_row(trade),
    )
    if cursor.rowcount == 0:
        conn.rollback()
        raise RecordNotFound("trade", trade.trade_id)
    conn.commit()
    logger.info("Updated trade %s.", trade.trade_id)
    return trade


def delete_trade(conn: sqlite3.Connection, trade_id: str) -> None:
    cursor = conn.execute("DELETE FROM trades WHERE trade_id = ?", (trade_id,))
    if cursor.rowcount == 0:
        conn.rollback()
        raise RecordNotFound("trade", trade_id)
    conn.commit()
    logger.info("Deleted trade %s.", trade_id)


def insert_transaction(conn: sqlite3.Connection, transaction: Transaction) -> Transaction:
    _require_account(conn, transaction.account_id)
    conn.execute(
        """
        INSERT INTO transactions (transaction_id, account_id, kind, amount, timestamp, created_at)
        VALUES (:transaction_id, :account_id, :kind, :amount, :timestamp, CURRENT_TIMESTAMP)
        """,
        {
            "transaction_id": transaction.transaction_id,
            "account_id": transaction.account_id,
            "kind": transaction.kind,
            "amount": transaction.amount,
            "timestamp": _utc_iso(transaction.timestamp),
        },
    )
    conn.commit()
    logger.info(
        "Recorded %s of %.2f on account %s.",
        transaction.kind.lower(),
        transaction.amount,
        transaction.account_id,
    )
    return transaction


def _require_account(conn: sqlite3.Connection, account_id: str) -> None:
    row = conn.execute("SELECT 1 FROM accounts WHERE account_id = ?", (account_id,)).fetchone()
    if row is None:
        raise RecordNotFound("account", account_id)


def _account_row(account: Account) -> dict[str, object]:
    return {
        "account_id": account.account_id,
        "name": account.name,
        "category": account.category,
        "initial_balance": account.initial_balance,
    }


def _trade_row(trade: Trade) -> dict[str, object]:
    return {
        "trade_id": trade.trade_id,
        "account_id": trade.account_id,
        "pair": trade.pair,
        "open_time": _utc_iso(trade.open_time),
        "direction": trade.direction,
        "profit": trade.profit,
        "commission": trade.commission,
        "net_profit": trade.net_profit,
        "status": trade.status,
        "reward_ratio": trade.reward_ratio,
        "conclusion": trade.conclusion,
        "emotion": trade.emotion,
        "remark": trade.remark,
    }


def _utc_iso(value: datetime) -> str:
    # Stored timestamps share one offset so the text columns sort chronologically.
    return value.astimezone(timezone.utc).isoformat()
