import sys
import os
from decimal import Decimal

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from main import process_file
from ledger_engine import LedgerEngine
from generate_transactions import generate_transactions
from models import DisputeStatus, ProcessingResult


def write_csv(tmp_path, name, rows):
    csv_file = tmp_path / name
    csv_file.write_text('\n'.join(["type, client, tx, amount"] + rows))
    return str(csv_file)


class TestLedgerLargeScale:
    def test_overdrafts_and_duplicates_across_500_clients(self, tmp_path):
        num_clients = 500
        rows = []
        for client_id in range(1, num_clients + 1):
            base = client_id * 10
            rows.append(f"deposit, {client_id}, {base + 1}, 100")
            rows.append(f"deposit, {client_id}, {base + 2}, 50")
            rows.append(f"withdrawal, {client_id}, {base + 3}, 30")
            # more than what is left
            rows.append(f"withdrawal, {client_id}, {base + 4}, 500")
            # replays the first deposit id with a different amount
            rows.append(f"deposit, {client_id}, {base + 1}, 999")

        engine = LedgerEngine()
        accounts = process_file(write_csv(tmp_path, "overdrafts.csv", rows), engine)

        assert len(accounts) == num_clients
        for client_id, account in accounts.items():
            assert account.available == Decimal("120"), f"Client {client_id}"
            assert account.held == Decimal("0")
            assert account.total == Decimal("120")
            assert account.locked is False

        assert engine.stats.total == 5 * num_clients
        assert engine.stats.applied == 3 * num_clients
        assert engine.stats.count(ProcessingResult.IGNORED_INSUFFICIENT_FUNDS) == num_clients
        assert engine.stats.count(ProcessingResult.IGNORED_DUPLICATE_TRANSACTION) == num_clients

    def test_withdrawal_disputes_push_available_negative(self, tmp_path):
        num_clients = 100
        rows = []
        for client_id in range(1, num_clients + 1):
            rows.append(f"deposit, {client_id}, {client_id * 10 + 1}, 100")
            rows.append(f"withdrawal, {client_id}, {client_id * 10 + 2}, 80")
        for client_id in range(1, num_clients + 1):
            rows.append(f"dispute, {client_id}, {client_id * 10 + 2},")
        # even clients resolve, odd clients charge back
        for client_id in range(1, num_clients + 1):
            settle = "resolve" if client_id % 2 == 0 else "chargeback"
            rows.append(f"{settle}, {client_id}, {client_id * 10 + 2},")

        engine = LedgerEngine()
        csv_path = write_csv(tmp_path, "withdrawal_disputes.csv", rows)
        accounts = process_file(csv_path, engine)

        for client_id in range(1, num_clients + 1):
            account = accounts[client_id]
            if client_id % 2 == 0:
                assert account.available == Decimal("20"), f"Client {client_id}"
                assert account.total == Decimal("20")
                assert account.locked is False
                assert engine.dispute_status(client_id * 10 + 2) == DisputeStatus.RESOLVED
            else:
                assert account.available == Decimal("-60"), f"Client {client_id}"
                assert account.total == Decimal("-60")
                assert account.locked is True
                assert engine.dispute_status(client_id * 10 + 2) == DisputeStatus.CHARGED_BACK
            assert account.held == Decimal("0")

        assert engine.stats.applied == 4 * num_clients
        assert engine.stats.ignored == 0

    def test_open_withdrawal_disputes_hold_more_than_available(self, tmp_path):
        rows = []
        for client_id in range(1, 51):
            rows.append(f"deposit, {client_id}, {client_id * 10 + 1}, 100")
            rows.append(f"withdrawal, {client_id}, {client_id * 10 + 2}, 80")
            rows.append(f"dispute, {client_id}, {client_id * 10 + 2},")

        accounts = process_file(write_csv(tmp_path, "open_disputes.csv", rows))

        for client_id, account in accounts.items():
            assert account.available == Decimal("-60"), f"Client {client_id}"
            assert account.held == Decimal("80")
            assert account.total == Decimal("20")
            assert account.locked is False

    def test_resolved_disputes_are_final(self, tmp_path):
        num_clients = 200
        rows = []
        for client_id in range(1, num_clients + 1):
            tx_id = client_id * 10 + 1
            rows.append(f"deposit, {client_id}, {tx_id}, 100")
            rows.append(f"dispute, {client_id}, {tx_id},")
            rows.append(f"resolve, {client_id}, {tx_id},")
            rows.append(f"dispute, {client_id}, {tx_id},")
            rows.append(f"chargeback, {client_id}, {tx_id},")

        engine = LedgerEngine()
        accounts = process_file(write_csv(tmp_path, "redisputes.csv", rows), engine)

        for client_id, account in accounts.items():
            assert account.available == Decimal("100"), f"Client {client_id}"
            assert account.held == Decimal("0")
            assert account.locked is False
            assert engine.dispute_status(client_id * 10 + 1) == DisputeStatus.RESOLVED

        assert engine.stats.applied == 3 * num_clients
        assert engine.stats.count(ProcessingResult.IGNORED_INVALID_DISPUTE_TRANSITION) == 2 * num_clients

    def test_chargebacks_freeze_later_activity(self, tmp_path):
        num_clients = 100
        rows = []
        for client_id in range(1, num_clients + 1):
            base = client_id * 10
            rows.append(f"deposit, {client_id}, {base + 1}, 100")
            rows.append(f"deposit, {client_id}, {base + 2}, 40")
            rows.append(f"dispute, {client_id}, {base + 1},")
            rows.append(f"chargeback, {client_id}, {base + 1},")
        for client_id in range(1, num_clients + 1):
            base = client_id * 10
            rows.append(f"deposit, {client_id}, {base + 3}, 500")
            rows.append(f"withdrawal, {client_id}, {base + 4}, 10")
            rows.append(f"dispute, {client_id}, {base + 2},")

        engine = LedgerEngine()
        accounts = process_file(write_csv(tmp_path, "chargebacks.csv", rows), engine)

        for client_id, account in accounts.items():
            assert account.available == Decimal("40"), f"Client {client_id}"
            assert account.held == Decimal("0")
            assert account.total == Decimal("40")
            assert account.locked is True
            # nothing sent after the lock was recorded
            assert engine.dispute_status(client_id * 10 + 3) is None
            assert engine.dispute_status(client_id * 10 + 2) == DisputeStatus.NONE

        assert engine.stats.applied == 4 * num_clients
        assert engine.stats.count(ProcessingResult.IGNORED_LOCKED_ACCOUNT) == 3 * num_clients

    def test_generated_stream_keeps_every_balance_consistent(self):
        """Random but well-formed streams never break total == available + held."""
        engine = LedgerEngine()

        for transaction in generate_transactions(count=5000, max_client_id=50, seed=1234):
            engine.apply(transaction)
            account = engine.accounts()[transaction.client_id]
            assert account.total == account.available + account.held

        assert engine.stats.total == 5000
        assert engine.stats.applied > 0
        for account in engine.accounts().values():
            assert account.held >= 0
