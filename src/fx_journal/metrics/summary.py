from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from fx_journal.models import KIND_DEPOSIT, KIND_WITHDRAWAL, Account, Trade, Transaction, is_win


@dataclass(frozen=True)
class LedgerStats:
    total_profit: float
    total_deposits: float
    total_withdrawals: float
    current_balance: float
    total_trades: int
    win_trades: int
    loss_trades: int
    win_rate: float
    pairs_traded: int


@dataclass(frozen=True)
class PerformanceStats:
    total_trades: int
    winning_trades: int
    losing_trades: int
    win_rate: float
    total_profit: float
    average_profit: float


def compute_ledger(
    account: Account,
    trades: Iterable[Trade],
    transactions: Iterable[Transaction],
) -> LedgerStats:
    """Derive the balance sheet of one account.

    Trades and transactions are taken as given: filtering them down to the
    account is the caller's job. Empty inputs give zeroed stats and a balance
    equal to the initial balance.
    """
    trade_list = list(trades)
    transaction_list = list(transactions)

    total_profit = sum((trade.net_profit for trade in trade_list), 0.0)
    total_deposits = sum((item.amount for item in transaction_list if item.kind == KIND_DEPOSIT), 0.0)
    total_withdrawals = sum((item.amount for item in transaction_list if item.kind == KIND_WITHDRAWAL), 0.0)

    total_trades = len(trade_list)
    win_trades = sum(1 for trade in trade_list if is_win(trade.net_profit))
    win_rate = 0.0
    if total_trades:
        win_rate = win_trades / total_trades * 100

    return LedgerStats(
        total_profit=total_profit,
        total_deposits=total_deposits,
        total_withdrawals=total_withdrawals,
        current_balance=account.initial_balance + total_profit + total_deposits - total_withdrawals,
        total_trades=total_trades,
        win_trades=win_trades,
        loss_trades=total_trades - win_trades,
        win_rate=win_rate,
        pairs_traded=len({trade.pair for trade in trade_list}),
    )


def compute_performance(trades: Iterable[Trade]) -> PerformanceStats | None:
    """Portfolio-level stats, or None when there is nothing to summarise."""
    trade_list = list(trades)
    if not trade_list:
        return None

    total_trades = len(trade_list)
    winning_trades = sum(1 for trade in trade_list if is_win(trade.net_profit))
    total_profit = sum((trade.net_profit for trade in trade_list), 0.0)

    return PerformanceStats(
        total_trades=total_trades,
        winning_trades=winning_trades,
        losing_trades=total_trades - winning_trades,
        win_rate=winning_trades / total_trades * 100,
        total_profit=total_profit,
        average_profit=total_profit / total_trades,
    )
