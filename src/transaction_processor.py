import logging
from typing import List, Optional, Union

from errors import ProcessingError, ProcessingErrorKind, ProcessorFinalizedError
from models import (
    AccountSummary,
    Chargeback,
    ClientAccount,
    Deposit,
    Dispute,
    Event,
    ProcessingResult,
    Resolve,
    TransactionRecord,
    Withdrawal,
)
from state_manager import Ledger, TransactionHistory

logger = logging.getLogger(__name__)


class TransactionProcessor:
    """
    Applies events to the ledger one at a time.

    A rejected event quarantines its account: the error is kept on the account,
    every later event for that client is skipped, and the client is left out
    of the summary. Other clients are unaffected.

    When events are spread over several threads, each client's events must
    all go through the same thread.
    """

    def __init__(self, ledger: Optional[Ledger] = None, history: Optional[TransactionHistory] = None):
        self._ledger = ledger if ledger is not None else Ledger()
        self._history = history if history is not None else TransactionHistory()
        self._finalized = False

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    @property
    def history(self) -> TransactionHistory:
        return self._history

    def handle(self, event: Event) -> ProcessingResult:
        """
        Process a single event.

        Returns:
            APPLIED: Balances or dispute state changed
            IGNORED: Event references a transaction unknown to this client
            REJECTED: Event broke a rule, account is now quarantined
            SKIPPED: Account was already locked or quarantined
        """
        if self._finalized:
            raise ProcessorFinalizedError(f"Cannot handle {event!r}: summary already taken")

        account = self._ledger.get_or_create_account(event.client_id)

        if account.is_frozen:
            logger.debug(f"Skipping {event!r}: account is {account.status.value}")
            return ProcessingResult.SKIPPED

        try:
            match event:
                case Deposit():
                    return self._handle_deposit(account, event)
                case Withdrawal():
                    return self._handle_withdrawal(account, event)
                case Dispute():
                    return self._handle_dispute(account, event)
                case Resolve():
                    return self._handle_resolve(account, event)
                case Chargeback():
                    return self._handle_chargeback(account, event)
                case _:
                    raise TypeError(f"Unsupported event: {event!r}")
        except ProcessingError as error:
            account.quarantine(error)
            logger.warning(f"Quarantined client {event.client_id}: {error}")
            return ProcessingResult.REJECTED

    def summary(self) -> List[AccountSummary]:
        """
        Finalize the run and return one row per client that was not quarantined.
        Safe to call more than once; no events can be handled afterwards.
        """
        self._finalized = True
        return [account.summarize() for account in self._ledger.accounts() if account.error is None]

    def _handle_deposit(self, account: ClientAccount, event: Deposit) -> ProcessingResult:
        if event.amount < 0:
            raise self._error(event, ProcessingErrorKind.NEGATIVE_AMOUNT)

        account.credit(event.amount)
        self._history.insert(
            event.client_id,
            event.transaction_id,
            TransactionRecord(amount=event.amount, is_deposit=True),
        )
        return ProcessingResult.APPLIED

    def _handle_withdrawal(self, account: ClientAccount, event: Withdrawal) -> ProcessingResult:
        if event.amount < 0:
            raise self._error(event, ProcessingErrorKind.NEGATIVE_AMOUNT)

        if event.amount > account.available:
            raise self._error(event, ProcessingErrorKind.INSUFFICIENT_FUNDS)

        account.debit(event.amount)
        self._history.insert(
            event.client_id,
            event.transaction_id,
            TransactionRecord(amount=event.amount, is_deposit=False),
        )
        return ProcessingResult.APPLIED

    def _handle_dispute(self, account: ClientAccount, event: Dispute) -> ProcessingResult:
        record = self._find_record(event)
        if record is None:
            return ProcessingResult.IGNORED

        if record.under_dispute:
            raise self._error(event, ProcessingErrorKind.ALREADY_DISPUTED)

        if record.is_deposit:
            if record.amount > account.available:
                raise self._error(event, ProcessingErrorKind.INSUFFICIENT_FUNDS_FOR_DISPUTE)
            account.hold(record.amount)
        else:
            account.claim(record.amount)

        record.under_dispute = True
        return ProcessingResult.APPLIED

    def _handle_resolve(self, account: ClientAccount, event: Resolve) -> ProcessingResult:
        record = self._find_record(event)
        if record is None:
            return ProcessingResult.IGNORED

        if not record.under_dispute:
            raise self._error(event, ProcessingErrorKind.NOT_UNDER_DISPUTE)

        account.release_hold(record.amount)
        record.under_dispute = False
        return ProcessingResult.APPLIED

    def _handle_chargeback(self, account: ClientAccount, event: Chargeback) -> ProcessingResult:
        record = self._find_record(event)
        if record is None:
            return ProcessingResult.IGNORED

        if not record.under_dispute:
            raise self._error(event, ProcessingErrorKind.NOT_UNDER_DISPUTE)

        if record.is_deposit:
            account.remove_held(record.amount)
        else:
            # Reversed withdrawal: the held claim goes back to available.
            account.release_hold(record.amount)

        account.lock()
        record.under_dispute = False
        return ProcessingResult.APPLIED

    def _find_record(self, event: Union[Dispute, Resolve, Chargeback]) -> Optional[TransactionRecord]:
        record = self._history.get(event.client_id, event.transaction_id)
        if record is None:
            logger.debug(f"Ignoring {event!r}: no such transaction for this client")
        return record

    @staticmethod
    def _error(event: Event, kind: ProcessingErrorKind) -> ProcessingError:
        return ProcessingError(event.client_id, event.transaction_id, kind)
