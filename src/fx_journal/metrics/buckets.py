from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from fx_journal.models import Account, Trade


@dataclass(frozen=True)
class PairBucket:
    pair: str
    profit: float
    trades: int


@dataclass(frozen=True)
class AccountProfit:
    account_id: str
    name: str
    profit: float


def compute_pair_breakdown(trades: Iterable[Trade]) -> list[PairBucket]:
    """Net profit and trade count per pair, most profitable first.

    Pairs with equal profit keep the order in which they were first seen.
    """
    profits: dict[str, float] = {}
    counts: dict[str, int] = {}
    for trade in trades:
        profits[trade.pair] = profits.get(trade.pair, 0.0) + trade.net_profit
        counts[trade.pair] = counts.get(trade.pair, 0) + 1

    rows = [PairBucket(pair=pair, profit=profit, trades=counts[pair]) for pair, profit in profits.items()]
    return sorted(rows, key=lambda row: -row.profit)


def compute_account_profit(accounts: Iterable[Account], trades: Iterable[Trade]) -> list[AccountProfit]:
    account_list = list(accounts)
    totals = {account.account_id: 0.0 for account in account_list}
    for trade in trades:
        if trade.account_id not in totals:
            continue
        totals[trade.account_id] += trade.net_profit
    return [
        AccountProfit(account_id=account.account_id, name=account.name, profit=totals[account.account_id])
        for account in account_list
    ]
