from enum import Enum


class ProcessingErrorKind(Enum):
    NEGATIVE_AMOUNT = "cannot execute transactions with negative amount"
    INSUFFICIENT_FUNDS = "not sufficient funds for executing transaction"
    INSUFFICIENT_FUNDS_FOR_DISPUTE = "disputed funds are no longer available to hold"
    ALREADY_DISPUTED = "dispute references a transaction that is already disputed"
    NOT_UNDER_DISPUTE = "referenced transaction is not under dispute"

    @property
    def description(self) -> str:
        return self.value


class PaymentsError(Exception):
    """Base class for every error raised by the payments engine."""


class ProcessingError(PaymentsError):
    """
    A rejected event.
    Carries the offending client and transaction so the account can be quarantined
    and the reason reported.
    """

    def __init__(self, client_id: int, transaction_id: int, kind: ProcessingErrorKind):
        self.client_id = client_id
        self.transaction_id = transaction_id
        self.kind = kind
        super().__init__(f"client={client_id} tx={transaction_id}: {kind.description}")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ProcessingError):
            return NotImplemented
        return (
            self.client_id == other.client_id
            and self.transaction_id == other.transaction_id
            and self.kind == other.kind
        )

    def __hash__(self) -> int:
        return hash((self.client_id, self.transaction_id, self.kind))


class DecodeError(PaymentsError):
    """Input record could not be turned into an event."""


class ProcessorFinalizedError(PaymentsError):
    """Raised when events are handled after the summary has been taken."""
