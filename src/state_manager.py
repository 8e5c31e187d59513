import logging
import threading
from typing import Dict, List, Optional, Tuple

from models import ClientAccount, ClientId, TransactionId, TransactionRecord

logger = logging.getLogger(__name__)


class Ledger:
    """
    Account store keyed by client id.
    Accounts are created on first reference and live for the rest of the run.
    """

    def __init__(self):
        self._accounts: Dict[ClientId, ClientAccount] = {}

        # Guards creation only. Mutating an account is the job of whichever worker owns its client.
        self._lock = threading.Lock()

    def get_or_create_account(self, client_id: ClientId) -> ClientAccount:
        """Get existing account or create new one."""
        with self._lock:
            if client_id not in self._accounts:
                self._accounts[client_id] = ClientAccount(client_id=client_id)
            return self._accounts[client_id]

    def accounts(self) -> List[ClientAccount]:
        """Return all accounts in creation order."""
        with self._lock:
            return list(self._accounts.values())


class TransactionHistory:
    """
    Deposits and withdrawals keyed by (client id, transaction id), kept for dispute lookups.
    A client can only ever see its own records, so clients never share history state.
    Dispute, resolve and chargeback events never get an entry.
    """

    def __init__(self):
        self._records: Dict[Tuple[ClientId, TransactionId], TransactionRecord] = {}
        self._lock = threading.Lock()

    def get(self, client_id: ClientId, transaction_id: TransactionId) -> Optional[TransactionRecord]:
        """Retrieve a client's stored record by ID."""
        with self._lock:
            return self._records.get((client_id, transaction_id))

    def insert(self, client_id: ClientId, transaction_id: TransactionId, record: TransactionRecord) -> None:
        """Store record, replacing any earlier record the client made with the same ID."""
        with self._lock:
            previous = self._records.get((client_id, transaction_id))
            self._records[(client_id, transaction_id)] = record

        if previous is not None:
            logger.warning(f"Transaction {transaction_id} reused by client {client_id}, overwriting earlier record")
