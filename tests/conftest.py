from __future__ import annotations

from datetime import datetime
from itertools import count

import pytest

from fx_journal.models import DIRECTION_LONG, Account, Trade, Transaction
from fx_journal.storage import sqlite_store

_ids = count(1)


def make_trade(
    net_profit: float = 0.0,
    *,
    pair: str = "EUR/USD",
    account_id: str = "acc-1",
    open_time: datetime | None = None,
    direction: str = DIRECTION_LONG,
    commission: float = 0.0,
) -> Trade:
    return Trade(
        trade_id=f"trade-{next(_ids)}",
        account_id=account_id,
        pair=pair,
        open_time=open_time or datetime(2024, 3, 5, 10, 30),
        direction=direction,
        profit=net_profit + commission,
        commission=commission,
    )


def make_transaction(kind: str, amount: float, *, account_id: str = "acc-1") -> Transaction:
    return Transaction(
        transaction_id=f"txn-{next(_ids)}",
        account_id=account_id,
        kind=kind,
        amount=amount,
        timestamp=datetime(2024, 3, 1, 9, 0),
    )


@pytest.fixture
def account() -> Account:
    return Account(account_id="acc-1", name="Main", category="Real", initial_balance=1000.0)


@pytest.fixture
def conn(tmp_path):
    connection = sqlite_store.connect(tmp_path / "journal.sqlite")
    sqlite_store.init_db(connection)
    yield connection
    connection.close()
