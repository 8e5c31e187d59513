import sys
import os
from decimal import Decimal

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from errors import DecodeError
from payments_engine import PaymentsEngine


def run(tmp_path, rows, num_workers=1):
    csv_file = tmp_path / "test.csv"
    csv_file.write_text('\n'.join(["type, client, tx, amount", *rows]))

    engine = PaymentsEngine(num_workers=num_workers)
    return {summary.client_id: summary for summary in engine.process_file(str(csv_file))}


@pytest.fixture(params=[1, 3], ids=["inline", "sharded"])
def num_workers(request):
    return request.param


class TestPaymentsEngine:
    def test_basic_transactions(self, tmp_path, num_workers):
        accounts = run(tmp_path, [
            "deposit, 1, 1, 1.0",
            "deposit, 2, 2, 2.0",
            "deposit, 1, 3, 2.0",
            "withdrawal, 1, 4, 1.5",
            "withdrawal, 2, 5, 3.0",
        ], num_workers)

        # Client 2 overdraws and is quarantined.
        assert set(accounts) == {1}

        assert accounts[1].available == Decimal("1.5")
        assert accounts[1].held == Decimal("0")
        assert accounts[1].total == Decimal("1.5")
        assert accounts[1].locked is False

    def test_dispute_resolve(self, tmp_path, num_workers):
        accounts = run(tmp_path, [
            "deposit, 1, 1, 100.0",
            "dispute, 1, 1,",
            "resolve, 1, 1,",
        ], num_workers)

        assert accounts[1].available == Decimal("100")
        assert accounts[1].held == Decimal("0")
        assert accounts[1].locked is False

    def test_chargeback(self, tmp_path, num_workers):
        accounts = run(tmp_path, [
            "deposit, 1, 1, 100.0",
            "dispute, 1, 1,",
            "chargeback, 1, 1,",
        ], num_workers)

        assert accounts[1].available == Decimal("0")
        assert accounts[1].held == Decimal("0")
        assert accounts[1].total == Decimal("0")
        assert accounts[1].locked is True

    def test_dispute_before_deposit_is_ignored(self, tmp_path, num_workers):
        accounts = run(tmp_path, [
            "dispute, 1, 1,",
            "deposit, 1, 1, 100.0",
        ], num_workers)

        assert accounts[1].available == Decimal("100")
        assert accounts[1].held == Decimal("0")

    def test_decimal_precision(self, tmp_path, num_workers):
        accounts = run(tmp_path, [
            "deposit, 1, 1, 1.2345",
            "deposit, 1, 2, 0.0001",
            "withdrawal, 1, 3, 0.2346",
        ], num_workers)

        # 1.2345 + 0.0001 - 0.2346 = 1.0000
        assert accounts[1].available == Decimal("1.0000")

    def test_dispute_withdrawal(self, tmp_path, num_workers):
        accounts = run(tmp_path, [
            "deposit, 1, 2, 15.5",
            "withdrawal, 1, 3, 5.0",
            "dispute, 1, 3,",
        ], num_workers)

        assert accounts[1].available == Decimal("10.5")
        assert accounts[1].held == Decimal("5.0")
        assert accounts[1].total == Decimal("15.5")
        assert accounts[1].locked is False

    def test_duplicate_dispute_quarantines(self, tmp_path, num_workers):
        accounts = run(tmp_path, [
            "deposit, 1, 1, 100.0",
            "dispute, 1, 1,",
            "dispute, 1, 1,",
            "deposit, 2, 2, 1.0",
        ], num_workers)

        assert set(accounts) == {2}

    def test_locked_account_ignores_later_events(self, tmp_path, num_workers):
        accounts = run(tmp_path, [
            "deposit, 1, 1, 100.0",
            "dispute, 1, 1,",
            "chargeback, 1, 1,",
            "deposit, 1, 2, 50.0",
            "withdrawal, 1, 3, 10.0",
        ], num_workers)

        assert accounts[1].available == Decimal("0")
        assert accounts[1].total == Decimal("0")
        assert accounts[1].locked is True

    def test_wrong_client_dispute_ignored(self, tmp_path, num_workers):
        accounts = run(tmp_path, [
            "deposit, 1, 1, 100.0",
            "dispute, 2, 1,",
        ], num_workers)

        assert accounts[1].available == Decimal("100")
        assert accounts[1].held == Decimal("0")
        assert accounts[2].total == Decimal("0")

    def test_chargeback_after_resolve_quarantines(self, tmp_path, num_workers):
        accounts = run(tmp_path, [
            "deposit, 1, 1, 100.0",
            "dispute, 1, 1,",
            "resolve, 1, 1,",
            "chargeback, 1, 1,",
        ], num_workers)

        assert accounts == {}

    def test_partial_withdrawal_then_dispute_quarantines(self, tmp_path, num_workers):
        accounts = run(tmp_path, [
            "deposit, 1, 1, 100.0",
            "withdrawal, 1, 2, 30.0",
            "dispute, 1, 1,",
        ], num_workers)

        assert 1 not in accounts

    def test_multiple_disputes_same_client(self, tmp_path, num_workers):
        accounts = run(tmp_path, [
            "deposit, 1, 1, 100.0",
            "deposit, 1, 2, 50.0",
            "dispute, 1, 1,",
            "dispute, 1, 2,",
            "resolve, 1, 1,",
            "chargeback, 1, 2,",
        ], num_workers)

        # After resolve tx1: available=100, held=50
        # After chargeback tx2: available=100, held=0, locked
        assert accounts[1].available == Decimal("100")
        assert accounts[1].held == Decimal("0")
        assert accounts[1].total == Decimal("100")
        assert accounts[1].locked is True

    def test_redispute_after_resolve(self, tmp_path, num_workers):
        accounts = run(tmp_path, [
            "deposit, 1, 1, 100.0",
            "dispute, 1, 1,",
            "resolve, 1, 1,",
            "dispute, 1, 1,",
            "chargeback, 1, 1,",
        ], num_workers)

        assert accounts[1].available == Decimal("0")
        assert accounts[1].held == Decimal("0")
        assert accounts[1].total == Decimal("0")
        assert accounts[1].locked is True

    def test_negative_amounts_quarantine(self, tmp_path, num_workers):
        accounts = run(tmp_path, [
            "deposit, 1, 1, -100.0",
            "deposit, 1, 2, 50.0",
            "deposit, 2, 3, 100.0",
            "withdrawal, 2, 4, -50.0",
            "deposit, 3, 5, 0",
        ], num_workers)

        assert set(accounts) == {3}
        assert accounts[3].available == Decimal("0")

    def test_stats(self, tmp_path):
        csv_file = tmp_path / "test.csv"
        csv_file.write_text('\n'.join([
            "type, client, tx, amount",
            "deposit, 1, 1, 10",
            "dispute, 1, 9,",
            "withdrawal, 1, 2, 20",
            "deposit, 1, 3, 5",
        ]))

        engine = PaymentsEngine()
        engine.process_file(str(csv_file))

        assert engine.stats.applied == 1
        assert engine.stats.ignored == 1
        assert engine.stats.rejected == 1
        assert engine.stats.skipped == 1

    def test_malformed_row_aborts_run(self, tmp_path, num_workers):
        csv_file = tmp_path / "test.csv"
        csv_file.write_text('\n'.join([
            "type, client, tx, amount",
            "deposit, 1, 1, 10",
            "refund, 1, 2, 5",
        ]))

        engine = PaymentsEngine(num_workers=num_workers)
        with pytest.raises(DecodeError, match="line 3"):
            engine.process_file(str(csv_file))

    def test_missing_file(self, tmp_path):
        engine = PaymentsEngine()
        with pytest.raises(FileNotFoundError):
            engine.process_file(str(tmp_path / "missing.csv"))

    def test_invalid_worker_count(self):
        with pytest.raises(ValueError):
            PaymentsEngine(num_workers=0)
