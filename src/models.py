import threading
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import ClassVar, NewType, Optional, Union

from errors import ProcessingError

ClientId = NewType("ClientId", int)
TransactionId = NewType("TransactionId", int)

CLIENT_ID_MAX = 2**16 - 1
TRANSACTION_ID_MAX = 2**32 - 1


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"


class ProcessingResult(Enum):
    APPLIED = "applied"
    IGNORED = "ignored"
    REJECTED = "rejected"
    SKIPPED = "skipped"


class AccountStatus(Enum):
    ACTIVE = "active"
    LOCKED = "locked"
    ERRORED = "errored"


@dataclass(frozen=True)
class _Event:
    client_id: ClientId
    transaction_id: TransactionId

    transaction_type: ClassVar[TransactionType]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(client={self.client_id}, tx={self.transaction_id})"


@dataclass(frozen=True, repr=False)
class Deposit(_Event):
    amount: Decimal

    transaction_type: ClassVar[TransactionType] = TransactionType.DEPOSIT

    def __repr__(self) -> str:
        return f"Deposit(client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass(frozen=True, repr=False)
class Withdrawal(_Event):
    amount: Decimal

    transaction_type: ClassVar[TransactionType] = TransactionType.WITHDRAWAL

    def __repr__(self) -> str:
        return f"Withdrawal(client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass(frozen=True, repr=False)
class Dispute(_Event):
    transaction_type: ClassVar[TransactionType] = TransactionType.DISPUTE


@dataclass(frozen=True, repr=False)
class Resolve(_Event):
    transaction_type: ClassVar[TransactionType] = TransactionType.RESOLVE


@dataclass(frozen=True, repr=False)
class Chargeback(_Event):
    transaction_type: ClassVar[TransactionType] = TransactionType.CHARGEBACK


Event = Union[Deposit, Withdrawal, Dispute, Resolve, Chargeback]


@dataclass
class TransactionRecord:
    """History entry kept for deposits and withdrawals so later disputes can find the amount."""

    amount: Decimal
    is_deposit: bool
    under_dispute: bool = False


@dataclass(frozen=True)
class AccountSummary:
    client_id: ClientId
    available: Decimal
    held: Decimal
    total: Decimal
    locked: bool


@dataclass
class ClientAccount:
    client_id: ClientId
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    status: AccountStatus = AccountStatus.ACTIVE
    error: Optional[ProcessingError] = None

    @property
    def total(self) -> Decimal:
        return self.available + self.held

    @property
    def locked(self) -> bool:
        return self.status is AccountStatus.LOCKED

    @property
    def is_frozen(self) -> bool:
        return self.status is not AccountStatus.ACTIVE

    def credit(self, amount: Decimal) -> None:
        self.available += amount

    def debit(self, amount: Decimal) -> None:
        self.available -= amount

    def hold(self, amount: Decimal) -> None:
        self.available -= amount
        self.held += amount

    def claim(self, amount: Decimal) -> None:
        # Withdrawn funds already left available; only the claim is held.
        self.held += amount

    def release_hold(self, amount: Decimal) -> None:
        self.held -= amount
        self.available += amount

    def remove_held(self, amount: Decimal) -> None:
        self.held -= amount

    def lock(self) -> None:
        self.status = AccountStatus.LOCKED

    def quarantine(self, error: ProcessingError) -> None:
        self.status = AccountStatus.ERRORED
        self.error = error

    def summarize(self) -> AccountSummary:
        return AccountSummary(
            client_id=self.client_id,
            available=self.available,
            held=self.held,
            total=self.total,
            locked=self.locked,
        )


class ProcessingStats:
    """Thread-safe counters for tracking processing statistics."""

    def __init__(self):
        self._lock = threading.Lock()
        self.applied = 0
        self.ignored = 0
        self.rejected = 0
        self.skipped = 0

    def record(self, result: ProcessingResult) -> None:
        with self._lock:
            match result:
                case ProcessingResult.APPLIED:
                    self.applied += 1
                case ProcessingResult.IGNORED:
                    self.ignored += 1
                case ProcessingResult.REJECTED:
                    self.rejected += 1
                case ProcessingResult.SKIPPED:
                    self.skipped += 1

    @property
    def handled(self) -> int:
        return self.applied + self.ignored + self.rejected + self.skipped

    def __str__(self) -> str:
        return (
            f"Handled: {self.handled}, Applied: {self.applied}, Ignored: {self.ignored}, "
            f"Rejected: {self.rejected}, Skipped: {self.skipped}"
        )
