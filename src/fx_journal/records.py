from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Protocol

from fx_journal.models import RECORD_STATES, STATE_CONFIRMED, Account, RecordState, Trade, Transaction
from fx_journal.validation import ValidationError, build_account, build_trade, build_transaction


class RecordNotFound(KeyError):
    def __init__(self, kind: str, record_id: str) -> None:
        super().__init__(f"{kind} '{record_id}' not found")
        self.kind = kind
        self.record_id = record_id

    def __str__(self) -> str:
        return f"{self.kind} '{self.record_id}' not found"


class RecordSource(Protocol):
    """Read access to the journal records, injected into the view layer."""

    def list_accounts(self) -> list[Account]: ...

    def list_trades(self, account_id: str | None = None) -> list[Trade]: ...

    def list_transactions(self, account_id: str | None = None) -> list[Transaction]: ...


@dataclass
class MemoryRecordSource:
    accounts: list[Account] = field(default_factory=list)
    trades: list[Trade] = field(default_factory=list)
    transactions: list[Transaction] = field(default_factory=list)

    def list_accounts(self) -> list[Account]:
        return list(self.accounts)

    def list_trades(self, account_id: str | None = None) -> list[Trade]:
        return [trade for trade in self.trades if account_id is None or trade.account_id == account_id]

    def list_transactions(self, account_id: str | None = None) -> list[Transaction]:
        return [
            item for item in self.transactions if account_id is None or item.account_id == account_id
        ]


def load_export(path: Path) -> MemoryRecordSource:
    """Read a JSON export (``fx-journal export``) into an in-memory source.

    Every record passes through the write-path builders, so derived trade
    fields are recomputed and malformed entries raise ``ValidationError``.
    """
    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValidationError("export", f"is not valid JSON ({exc.msg})") from exc
    if not isinstance(payload, dict):
        raise ValidationError("export", "must be a JSON object")

    return MemoryRecordSource(
        accounts=[
            build_account(raw, account_id=raw.get("account_id"), state=_state(raw))
            for raw in _records(payload, "accounts")
        ],
        trades=[
            build_trade(raw, trade_id=raw.get("trade_id"), state=_state(raw))
            for raw in _records(payload, "trades")
        ],
        transactions=[
            build_transaction(raw, transaction_id=raw.get("transaction_id"), state=_state(raw))
            for raw in _records(payload, "transactions")
        ],
    )


def _records(payload: Mapping[str, Any], key: str) -> list[Mapping[str, Any]]:
    items = payload.get(key, [])
    if not isinstance(items, list) or not all(isinstance(item, dict) for item in items):
        raise ValidationError(key, "must be a list of objects")
    return items


def _state(raw: Mapping[str, Any]) -> RecordState:
    state = raw.get("state") or STATE_CONFIRMED
    if state not in RECORD_STATES:
        raise ValidationError("state", f"must be one of {', '.join(RECORD_STATES)}")
    return state
