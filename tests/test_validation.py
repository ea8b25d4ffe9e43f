from datetime import datetime, timezone

import pytest

from fx_journal.models import STATE_PENDING, STATUS_LOSS
from fx_journal.validation import ValidationError, build_account, build_trade, build_transaction


def _trade_input(**overrides):
    raw = {
        "account_id": "acc-1",
        "pair": "eur/usd",
        "open_time": "2024-03-05T10:00:00Z",
        "direction": "Short",
        "profit": "12.5",
        "commission": "2.5",
    }
    raw.update(overrides)
    return raw


def test_build_trade_normalises_pair_and_derives_fields():
    trade = build_trade(_trade_input(status="Win", net_profit=999))

    assert trade.pair == "EUR/USD"
    assert trade.net_profit == pytest.approx(10.0)
    assert trade.status == "Win"
    assert trade.emotion == "Neutral"
    assert trade.open_time == datetime(2024, 3, 5, 10, 0, tzinfo=timezone.utc)
    assert trade.trade_id


def test_build_trade_ignores_caller_status():
    trade = build_trade(_trade_input(profit=2.5, status="Win"))
    assert trade.net_profit == 0
    assert trade.status == STATUS_LOSS


def test_build_trade_blank_optional_text_becomes_none():
    trade = build_trade(_trade_input(reward_ratio="  ", conclusion="", remark="held too long"))
    assert trade.reward_ratio is None
    assert trade.conclusion is None
    assert trade.remark == "held too long"


def test_build_trade_defaults_commission_and_time():
    trade = build_trade(_trade_input(commission=None, open_time=None))
    assert trade.commission == 0.0
    assert trade.open_time.tzinfo is not None


def test_naive_timestamps_become_local_aware():
    trade = build_trade(_trade_input(open_time="2024-03-05T10:00:00"))
    assert trade.open_time.tzinfo is not None
    assert trade.open_time.astimezone().date().isoformat() == "2024-03-05"


def test_build_trade_keeps_trade_id_and_state():
    trade = build_trade(_trade_input(), trade_id="t-42", state=STATE_PENDING)
    assert trade.trade_id == "t-42"
    assert trade.is_pending


@pytest.mark.parametrize(
    "overrides,field",
    [
        ({"pair": ""}, "pair"),
        ({"account_id": " "}, "account_id"),
        ({"direction": "Up"}, "direction"),
        ({"profit": "abc"}, "profit"),
        ({"profit": None}, "profit"),
        ({"commission": -1}, "commission"),
        ({"emotion": "Joy"}, "emotion"),
        ({"open_time": "yesterday"}, "open_time"),
        ({"profit": float("nan")}, "profit"),
    ],
)
def test_build_trade_rejects_bad_input(overrides, field):
    with pytest.raises(ValidationError) as excinfo:
        build_trade(_trade_input(**overrides))
    assert excinfo.value.field == field


def test_build_account():
    account = build_account({"name": " Prop firm ", "category": "Challenge", "initial_balance": 50000})
    assert account.name == "Prop firm"
    assert account.initial_balance == 50000.0
    assert not account.is_pending


@pytest.mark.parametrize(
    "raw,field",
    [
        ({"name": "", "category": "Demo", "initial_balance": 0}, "name"),
        ({"name": "A", "category": "Paper", "initial_balance": 0}, "category"),
        ({"name": "A", "category": "Demo", "initial_balance": -1}, "initial_balance"),
    ],
)
def test_build_account_rejects_bad_input(raw, field):
    with pytest.raises(ValidationError) as excinfo:
        build_account(raw)
    assert excinfo.value.field == field


def test_build_transaction():
    transaction = build_transaction({"account_id": "acc-1", "kind": "Deposit", "amount": "250"})
    assert transaction.amount == 250.0
    assert transaction.kind == "Deposit"


@pytest.mark.parametrize("amount", [0, 0.001, -5])
def test_build_transaction_requires_positive_amount(amount):
    with pytest.raises(ValidationError):
        build_transaction({"account_id": "acc-1", "kind": "Withdrawal", "amount": amount})


def test_validation_error_is_value_error():
    with pytest.raises(ValueError):
        build_transaction({"account_id": "acc-1", "kind": "Refund", "amount": 10})
