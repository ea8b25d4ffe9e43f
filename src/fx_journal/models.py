from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

AccountCategory = str
Direction = str
Status = str
Emotion = str
TransactionKind = str
RecordState = str

CATEGORY_DEMO: AccountCategory = "Demo"
CATEGORY_REAL: AccountCategory = "Real"
CATEGORY_CHALLENGE: AccountCategory = "Challenge"
ACCOUNT_CATEGORIES = (CATEGORY_DEMO, CATEGORY_REAL, CATEGORY_CHALLENGE)

DIRECTION_LONG: Direction = "Long"
DIRECTION_SHORT: Direction = "Short"
DIRECTIONS = (DIRECTION_LONG, DIRECTION_SHORT)

STATUS_WIN: Status = "Win"
STATUS_LOSS: Status = "Loss"

EMOTION_CALM: Emotion = "Calm"
EMOTION_FEAR: Emotion = "Fear"
EMOTION_GREED: Emotion = "Greed"
EMOTION_NEUTRAL: Emotion = "Neutral"
EMOTIONS = (EMOTION_CALM, EMOTION_FEAR, EMOTION_GREED, EMOTION_NEUTRAL)

KIND_DEPOSIT: TransactionKind = "Deposit"
KIND_WITHDRAWAL: TransactionKind = "Withdrawal"
TRANSACTION_KINDS = (KIND_DEPOSIT, KIND_WITHDRAWAL)

STATE_CONFIRMED: RecordState = "Confirmed"
STATE_PENDING: RecordState = "Pending"
RECORD_STATES = (STATE_CONFIRMED, STATE_PENDING)


def is_win(net_profit: float) -> bool:
    """Single definition of a winning trade: strictly positive net profit.

    A break-even trade (net profit exactly zero) is a loss everywhere: the
    trade status, the account ledger and the portfolio performance counts.
    """
    return net_profit > 0


def classify_status(net_profit: float) -> Status:
    return STATUS_WIN if is_win(net_profit) else STATUS_LOSS


@dataclass(frozen=True)
class Account:
    account_id: str
    name: str
    category: AccountCategory
    initial_balance: float
    state: RecordState = STATE_CONFIRMED

    @property
    def is_pending(self) -> bool:
        return self.state == STATE_PENDING


@dataclass(frozen=True)
class Trade:
    trade_id: str
    account_id: str
    pair: str
    open_time: datetime
    direction: Direction
    profit: float
    commission: float
    net_profit: float = field(init=False)
    status: Status = field(init=False)
    reward_ratio: str | None = None
    conclusion: str | None = None
    emotion: Emotion = EMOTION_NEUTRAL
    remark: str | None = None
    state: RecordState = STATE_CONFIRMED

    def __post_init__(self) -> None:
        # Derived fields are never accepted from callers.
        net_profit = self.profit - self.commission
        object.__setattr__(self, "net_profit", net_profit)
        object.__setattr__(self, "status", classify_status(net_profit))

    @property
    def is_pending(self) -> bool:
        return self.state == STATE_PENDING


@dataclass(frozen=True)
class Transaction:
    transaction_id: str
    account_id: str
    kind: TransactionKind
    amount: float
    timestamp: datetime
    state: RecordState = STATE_CONFIRMED
