from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any

from fx_journal.metrics.buckets import AccountProfit, PairBucket, compute_account_profit, compute_pair_breakdown
from fx_journal.metrics.calendar import (
    WEEK_START_SUNDAY,
    DayBucket,
    calendar_grid,
    compute_daily_calendar,
    current_month,
    month_window,
    shift_month,
    weekday_labels,
)
from fx_journal.metrics.summary import LedgerStats, PerformanceStats, compute_ledger, compute_performance
from fx_journal.models import CATEGORY_CHALLENGE, CATEGORY_REAL, Account, Trade, Transaction
from fx_journal.records import RecordSource

_BADGE_VARIANTS = {
    CATEGORY_REAL: "default",
    CATEGORY_CHALLENGE: "destructive",
}


@dataclass(frozen=True)
class AccountCard:
    account: Account
    stats: LedgerStats | None
    formatted: dict[str, str]
    badge_variant: str


@dataclass(frozen=True)
class AnalyticsView:
    performance: PerformanceStats | None
    pairs: list[PairBucket]
    account_profit: list[AccountProfit]
    days: list[DayBucket]
    grid: list[DayBucket | None]
    weekdays: list[str]
    month_key: str
    month_label: str
    prev_month: str
    next_month: str


def account_cards(source: RecordSource) -> list[AccountCard]:
    trades = source.list_trades()
    transactions = source.list_transactions()
    cards = []
    for account in source.list_accounts():
        stats = None
        if not account.is_pending:
            stats = compute_ledger(
                account,
                [trade for trade in trades if trade.account_id == account.account_id],
                [item for item in transactions if item.account_id == account.account_id],
            )
        cards.append(
            AccountCard(
                account=account,
                stats=stats,
                formatted=_format_ledger(account, stats),
                badge_variant=_BADGE_VARIANTS.get(account.category, "secondary"),
            )
        )
    return cards


def analytics_view(
    source: RecordSource,
    month: date | None = None,
    week_start: str = WEEK_START_SUNDAY,
) -> AnalyticsView:
    trades = source.list_trades()
    month_start, month_end = month_window(month or current_month())
    days = compute_daily_calendar(trades, month_start, month_end)
    return AnalyticsView(
        performance=compute_performance(trades),
        pairs=compute_pair_breakdown(trades),
        account_profit=compute_account_profit(source.list_accounts(), trades),
        days=days,
        grid=calendar_grid(days, week_start),
        weekdays=weekday_labels(week_start),
        month_key=month_start.strftime("%Y-%m"),
        month_label=month_start.strftime("%B %Y"),
        prev_month=shift_month(month_start, -1).strftime("%Y-%m"),
        next_month=shift_month(month_start, 1).strftime("%Y-%m"),
    )


def trade_rows(source: RecordSource) -> list[dict[str, Any]]:
    names = {account.account_id: account.name for account in source.list_accounts()}
    ordered = sorted(source.list_trades(), key=lambda trade: trade.open_time.astimezone(), reverse=True)
    return [_trade_row(trade, names.get(trade.account_id)) for trade in ordered]


def analytics_payload(view: AnalyticsView) -> dict[str, Any]:
    performance = None
    if view.performance is not None:
        performance = {
            "total_trades": view.performance.total_trades,
            "winning_trades": view.performance.winning_trades,
            "losing_trades": view.performance.losing_trades,
            "win_rate": view.performance.win_rate,
            "total_profit": view.performance.total_profit,
            "average_profit": view.performance.average_profit,
        }
    return {
        "performance": performance,
        "pairs": [{"pair": row.pair, "profit": row.profit, "trades": row.trades} for row in view.pairs],
        "account_profit": [
            {"account_id": row.account_id, "name": row.name, "profit": row.profit}
            for row in view.account_profit
        ],
        "calendar": {
            "month": view.month_key,
            "label": view.month_label,
            "prev_month": view.prev_month,
            "next_month": view.next_month,
            "weekdays": view.weekdays,
            "days": [_day_payload(bucket) for bucket in view.days],
            "grid": [None if bucket is None else _day_payload(bucket) for bucket in view.grid],
        },
    }


def card_payload(card: AccountCard) -> dict[str, Any]:
    stats = None
    if card.stats is not None:
        stats = {
            "total_profit": card.stats.total_profit,
            "total_deposits": card.stats.total_deposits,
            "total_withdrawals": card.stats.total_withdrawals,
            "current_balance": card.stats.current_balance,
            "total_trades": card.stats.total_trades,
            "win_trades": card.stats.win_trades,
            "loss_trades": card.stats.loss_trades,
            "win_rate": card.stats.win_rate,
            "pairs_traded": card.stats.pairs_traded,
        }
    return {
        "account": account_payload(card.account),
        "stats": stats,
        "formatted": card.formatted,
        "badge_variant": card.badge_variant,
    }


def account_payload(account: Account) -> dict[str, Any]:
    return {
        "account_id": account.account_id,
        "name": account.name,
        "category": account.category,
        "initial_balance": account.initial_balance,
        "state": account.state,
    }


def trade_payload(trade: Trade) -> dict[str, Any]:
    row = _trade_row(trade, None)
    del row["account_name"]
    return row


def transaction_payload(transaction: Transaction) -> dict[str, Any]:
    return {
        "transaction_id": transaction.transaction_id,
        "account_id": transaction.account_id,
        "kind": transaction.kind,
        "amount": transaction.amount,
        "timestamp": transaction.timestamp.isoformat(),
        "state": transaction.state,
    }


def export_payload(source: RecordSource) -> dict[str, Any]:
    """Every record in ``source``, in the shape ``load_export`` reads back."""
    return {
        "accounts": [account_payload(account) for account in source.list_accounts()],
        "trades": [trade_payload(trade) for trade in source.list_trades()],
        "transactions": [transaction_payload(item) for item in source.list_transactions()],
    }


def format_money(value: float | None) -> str:
    if value is None:
        return "n/a"
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def format_percent(value: float | None) -> str:
    if value is None:
        return "n/a"
    return f"{value:.2f}%"


def _format_ledger(account: Account, stats: LedgerStats | None) -> dict[str, str]:
    initial = format_money(account.initial_balance)
    if stats is None:
        return {
            "initial_balance": initial,
            "total_profit": format_money(0.0),
            "current_balance": initial,
            "win_rate": format_percent(0.0),
        }
    return {
        "initial_balance": initial,
        "total_profit": format_money(stats.total_profit),
        "current_balance": format_money(stats.current_balance),
        "win_rate": format_percent(stats.win_rate),
    }


def _trade_row(trade: Trade, account_name: str | None) -> dict[str, Any]:
    return {
        "trade_id": trade.trade_id,
        "account_id": trade.account_id,
        "account_name": account_name or "n/a",
        "pair": trade.pair,
        "open_time": trade.open_time.isoformat(),
        "direction": trade.direction,
        "profit": trade.profit,
        "commission": trade.commission,
        "net_profit": trade.net_profit,
        "status": trade.status,
        "reward_ratio": trade.reward_ratio,
        "conclusion": trade.conclusion,
        "emotion": trade.emotion,
        "remark": trade.remark,
        "state": trade.state,
    }


def _day_payload(bucket: DayBucket) -> dict[str, Any]:
    return {
        "date": bucket.day.isoformat(),
        "profit": bucket.profit,
        "trade_count": bucket.trade_count,
        "long_trades": bucket.long_trades,
        "short_trades": bucket.short_trades,
    }
