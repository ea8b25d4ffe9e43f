from __future__ import annotations

import math
import uuid
from datetime import datetime
from typing import Any, Mapping

from fx_journal.models import (
    ACCOUNT_CATEGORIES,
    DIRECTIONS,
    EMOTION_NEUTRAL,
    EMOTIONS,
    STATE_CONFIRMED,
    TRANSACTION_KINDS,
    Account,
    RecordState,
    Trade,
    Transaction,
)

MIN_TRANSACTION_AMOUNT = 0.01


class ValidationError(ValueError):
    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


def new_record_id() -> str:
    return uuid.uuid4().hex


def build_account(
    raw: Mapping[str, Any],
    *,
    account_id: str | None = None,
    state: RecordState = STATE_CONFIRMED,
) -> Account:
    name = _required_text(raw, "name")
    category = _choice(raw, "category", ACCOUNT_CATEGORIES)
    initial_balance = _number(raw, "initial_balance")
    if initial_balance < 0:
        raise ValidationError("initial_balance", "must not be negative")
    return Account(
        account_id=account_id or new_record_id(),
        name=name,
        category=category,
        initial_balance=initial_balance,
        state=state,
    )


def build_trade(
    raw: Mapping[str, Any],
    *,
    trade_id: str | None = None,
    state: RecordState = STATE_CONFIRMED,
) -> Trade:
    """Validate a trade submission and return the record to write.

    Net profit and status are always derived from profit and commission;
    any ``net_profit`` or ``status`` keys in ``raw`` are ignored.
    """
    commission = _number(raw, "commission", default=0.0)
    if commission < 0:
        raise ValidationError("commission", "must not be negative")
    emotion = raw.get("emotion") or EMOTION_NEUTRAL
    if emotion not in EMOTIONS:
        raise ValidationError("emotion", f"must be one of {', '.join(EMOTIONS)}")
    return Trade(
        trade_id=trade_id or new_record_id(),
        account_id=_required_text(raw, "account_id"),
        pair=_required_text(raw, "pair").upper(),
        open_time=_timestamp(raw, "open_time"),
        direction=_choice(raw, "direction", DIRECTIONS),
        profit=_number(raw, "profit"),
        commission=commission,
        reward_ratio=_optional_text(raw.get("reward_ratio")),
        conclusion=_optional_text(raw.get("conclusion")),
        emotion=emotion,
        remark=_optional_text(raw.get("remark")),
        state=state,
    )


def build_transaction(
    raw: Mapping[str, Any],
    *,
    transaction_id: str | None = None,
    state: RecordState = STATE_CONFIRMED,
) -> Transaction:
    amount = _number(raw, "amount")
    if amount < MIN_TRANSACTION_AMOUNT:
        raise ValidationError("amount", "must be positive")
    return Transaction(
        transaction_id=transaction_id or new_record_id(),
        account_id=_required_text(raw, "account_id"),
        kind=_choice(raw, "kind", TRANSACTION_KINDS),
        amount=amount,
        timestamp=_timestamp(raw, "timestamp"),
        state=state,
    )


def parse_timestamp(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = f"{text[:-1]}+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _required_text(raw: Mapping[str, Any], key: str) -> str:
    value = raw.get(key)
    text = str(value).strip() if value is not None else ""
    if not text:
        raise ValidationError(key, "is required")
    return text


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _choice(raw: Mapping[str, Any], key: str, choices: tuple[str, ...]) -> str:
    value = raw.get(key)
    if value not in choices:
        raise ValidationError(key, f"must be one of {', '.join(choices)}")
    return value


def _number(raw: Mapping[str, Any], key: str, default: float | None = None) -> float:
    value = raw.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        if default is not None:
            return default
        raise ValidationError(key, "is required")
    if isinstance(value, bool):
        raise ValidationError(key, "must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(key, "must be a number") from None
    if not math.isfinite(number):
        raise ValidationError(key, "must be a finite number")
    return number


def _timestamp(raw: Mapping[str, Any], key: str) -> datetime:
    value = raw.get(key)
    if value is None:
        return datetime.now().astimezone()
    parsed = parse_timestamp(value)
    if parsed is None:
        raise ValidationError(key, "must be an ISO timestamp")
    # Naive input is local wall-clock time.
    return parsed if parsed.tzinfo is not None else parsed.astimezone()
