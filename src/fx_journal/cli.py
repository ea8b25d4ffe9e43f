from __future__ import annotations

import argparse
import json
import logging
import sqlite3
import sys
from pathlib import Path
from typing import Callable

from fx_journal.config.app_config import AppConfig, configure_logging, load_app_config
from fx_journal.metrics.calendar import parse_month
from fx_journal.models import ACCOUNT_CATEGORIES, DIRECTIONS, EMOTIONS, KIND_DEPOSIT, KIND_WITHDRAWAL
from fx_journal.records import RecordNotFound, RecordSource, load_export
from fx_journal.storage import sqlite_store
from fx_journal.storage.sqlite_reader import SqliteRecordSource
from fx_journal.validation import ValidationError, build_account, build_trade, build_transaction
from fx_journal.views import (
    account_cards,
    analytics_payload,
    analytics_view,
    export_payload,
    format_money,
    format_percent,
)

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Trading journal: log trades and review account statistics.")
    parser.add_argument("--config", type=Path, default=None, help="Path to app.toml.")
    parser.add_argument("--db", type=Path, default=None, help="Override the sqlite database path.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    accounts = subparsers.add_parser("accounts", help="Print the ledger of every account.")
    accounts.add_argument(
        "--from-json", type=Path, default=None, help="Read records from a JSON export instead of the database."
    )

    analytics = subparsers.add_parser("analytics", help="Print portfolio analytics.")
    analytics.add_argument(
        "--from-json", type=Path, default=None, help="Read records from a JSON export instead of the database."
    )
    analytics.add_argument("--month", type=str, default=None, help="Calendar month as YYYY-MM.")
    analytics.add_argument("--json", action="store_true", help="Print JSON output.")

    add_account = subparsers.add_parser("add-account", help="Create an account.")
    add_account.add_argument("name", type=str)
    add_account.add_argument("--category", choices=ACCOUNT_CATEGORIES, default=ACCOUNT_CATEGORIES[0])
    add_account.add_argument("--initial-balance", type=str, default="0")

    log_trade = subparsers.add_parser("log-trade", help="Log a trade against an account.")
    log_trade.add_argument("account_id", type=str)
    log_trade.add_argument("pair", type=str)
    log_trade.add_argument("direction", choices=DIRECTIONS)
    log_trade.add_argument("profit", type=str, help="Gross profit (negative for a loss).")
    log_trade.add_argument("--commission", type=str, default="0")
    log_trade.add_argument("--open-time", type=str, default=None, help="ISO timestamp, defaults to now.")
    log_trade.add_argument("--reward-ratio", type=str, default=None)
    log_trade.add_argument("--emotion", choices=EMOTIONS, default=None)
    log_trade.add_argument("--conclusion", type=str, default=None)
    log_trade.add_argument("--remark", type=str, default=None)

    for kind, name in ((KIND_DEPOSIT, "deposit"), (KIND_WITHDRAWAL, "withdraw")):
        sub = subparsers.add_parser(name, help=f"Record a {kind.lower()}.")
        sub.add_argument("account_id", type=str)
        sub.add_argument("amount", type=str)
        sub.add_argument("--timestamp", type=str, default=None, help="ISO timestamp, defaults to now.")
        sub.set_defaults(kind=kind)

    delete_account = subparsers.add_parser("delete-account", help="Delete an account with its trades and transactions.")
    delete_account.add_argument("account_id", type=str)

    delete_trade = subparsers.add_parser("delete-trade", help="Delete one trade.")
    delete_trade.add_argument("trade_id", type=str)

    export = subparsers.add_parser("export", help="Write every record as JSON.")
    export.add_argument("--output", type=Path, default=None, help="Write to a file instead of stdout.")

    args = parser.parse_args(argv)

    app_config = load_app_config(args.config)
    configure_logging(app_config.logging.level)
    db_path = args.db or app_config.app.db_path
    logger.debug("Using database %s.", db_path)

    try:
        if args.command in _REPORTS and args.from_json is not None:
            return _REPORTS[args.command](load_export(args.from_json), args, app_config)
        conn = sqlite_store.connect(db_path)
        try:
            sqlite_store.init_db(conn)
            if args.command in _REPORTS:
                return _REPORTS[args.command](SqliteRecordSource(conn), args, app_config)
            return _COMMANDS[args.command](conn, args, app_config)
        finally:
            conn.close()
    except (ValidationError, RecordNotFound, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


def _accounts(source: RecordSource, args: argparse.Namespace, app_config: AppConfig) -> int:
    cards = account_cards(source)
    if not cards:
        print("No accounts.")
        return 0
    for card in cards:
        stats = card.stats
        print(f"{card.account.name} [{card.account.category}] id={card.account.account_id}")
        print(f"  initial_balance {card.formatted['initial_balance']}")
        print(f"  current_balance {card.formatted['current_balance']}")
        print(f"  total_profit {card.formatted['total_profit']}")
        print(f"  win_rate {card.formatted['win_rate']}")
        if stats is not None:
            print(f"  trades {stats.total_trades} wins {stats.win_trades} losses {stats.loss_trades}")
            print(f"  pairs_traded {stats.pairs_traded}")
    return 0


def _analytics(source: RecordSource, args: argparse.Namespace, app_config: AppConfig) -> int:
    view = analytics_view(
        source,
        parse_month(args.month),
        week_start=app_config.calendar.week_start,
    )
    if args.json:
        print(json.dumps(analytics_payload(view), indent=2, sort_keys=True))
        return 0

    performance = view.performance
    if performance is None:
        print("No trade data.")
        return 0
    print(f"total_trades {performance.total_trades}")
    print(f"winning_trades {performance.winning_trades}")
    print(f"losing_trades {performance.losing_trades}")
    print(f"win_rate {format_percent(performance.win_rate)}")
    print(f"total_profit {format_money(performance.total_profit)}")
    print(f"average_profit {format_money(performance.average_profit)}")
    print("")
    print("pair profit trades")
    for row in view.pairs:
        print(f"{row.pair} {format_money(row.profit)} {row.trades}")
    print("")
    print(f"{view.month_label}")
    for bucket in view.days:
        if bucket.profit is None:
            continue
        print(
            f"{bucket.day.isoformat()} {format_money(bucket.profit)} "
            f"trades {bucket.trade_count} long {bucket.long_trades} short {bucket.short_trades}"
        )
    return 0


def _add_account(conn: sqlite3.Connection, args: argparse.Namespace, app_config: AppConfig) -> int:
    account = build_account(
        {"name": args.name, "category": args.category, "initial_balance": args.initial_balance}
    )
    sqlite_store.insert_account(conn, account)
    print(account.account_id)
    return 0


def _log_trade(conn: sqlite3.Connection, args: argparse.Namespace, app_config: AppConfig) -> int:
    trade = build_trade(
        {
            "account_id": args.account_id,
            "pair": args.pair,
            "direction": args.direction,
            "profit": args.profit,
            "commission": args.commission,
            "open_time": args.open_time,
            "reward_ratio": args.reward_ratio,
            "emotion": args.emotion,
            "conclusion": args.conclusion,
            "remark": args.remark,
        }
    )
    sqlite_store.insert_trade(conn, trade)
    print(f"{trade.trade_id} {trade.status} {format_money(trade.net_profit)}")
    return 0


def _transaction(conn: sqlite3.Connection, args: argparse.Namespace, app_config: AppConfig) -> int:
    transaction = build_transaction(
        {
            "account_id": args.account_id,
            "kind": args.kind,
            "amount": args.amount,
            "timestamp": args.timestamp,
        }
    )
    sqlite_store.insert_transaction(conn, transaction)
    print(transaction.transaction_id)
    return 0


def _delete_account(conn: sqlite3.Connection, args: argparse.Namespace, app_config: AppConfig) -> int:
    result = sqlite_store.delete_account(conn, args.account_id)
    print(
        f"Deleted account {result.account_id} "
        f"({result.trades_deleted} trades, {result.transactions_deleted} transactions)."
    )
    return 0


def _delete_trade(conn: sqlite3.Connection, args: argparse.Namespace, app_config: AppConfig) -> int:
    sqlite_store.delete_trade(conn, args.trade_id)
    print(f"Deleted trade {args.trade_id}.")
    return 0


def _export(conn: sqlite3.Connection, args: argparse.Namespace, app_config: AppConfig) -> int:
    text = json.dumps(export_payload(SqliteRecordSource(conn)), indent=2)
    if args.output is None:
        print(text)
        return 0
    args.output.parent.mkdir(parents=True, exist_ok=True)
    args.output.write_text(text + "\n", encoding="utf-8")
    print(f"Wrote {args.output}.")
    return 0


_REPORTS: dict[str, Callable[[RecordSource, argparse.Namespace, AppConfig], int]] = {
    "accounts": _accounts,
    "analytics": _analytics,
}

_COMMANDS: dict[str, Callable[[sqlite3.Connection, argparse.Namespace, AppConfig], int]] = {
    "add-account": _add_account,
    "log-trade": _log_trade,
    "deposit": _transaction,
    "withdraw": _transaction,
    "delete-account": _delete_account,
    "delete-trade": _delete_trade,
    "export": _export,
}


if __name__ == "__main__":
    raise SystemExit(main())
