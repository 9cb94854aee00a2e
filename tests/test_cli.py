"""Tests for the command-line interface."""

from decimal import Decimal
from pathlib import Path

import pytest

from finance_tracker.cli import create_parser, get_log_level, main
from finance_tracker.models.transaction import TransactionType
from finance_tracker.processing.ledger import Ledger
from finance_tracker.storage.json_file import JsonFileStorage


@pytest.fixture
def data_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run each CLI test from an empty directory with its own data file."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("FINANCE_TRACKER_DATA", raising=False)
    return tmp_path / "data" / "ledger.json"


def run(data_path: Path, *args: str) -> int:
    return main(["--data", str(data_path), *args])


def load_ledger(data_path: Path) -> Ledger:
    return Ledger(JsonFileStorage(data_path))


class TestArgumentParsing:
    """Tests for parser setup."""

    def test_get_log_level(self) -> None:
        assert get_log_level(0) == "WARNING"
        assert get_log_level(1) == "INFO"
        assert get_log_level(2) == "DEBUG"
        assert get_log_level(5) == "DEBUG"

    def test_add_arguments(self) -> None:
        args = create_parser().parse_args(
            ["add", "expense", "25000", "Lunch, with friend", "--category", "food"]
        )
        assert args.command == "add"
        assert args.type == "expense"
        assert args.description == "Lunch, with friend"
        assert args.category == "food"

    def test_rejects_unknown_type(self) -> None:
        with pytest.raises(SystemExit):
            create_parser().parse_args(["add", "transfer", "1", "x"])

    def test_no_command_returns_error(self, data_path: Path) -> None:
        assert main([]) == 1


class TestCommands:
    """End-to-end tests running main() against a temporary data file."""

    def test_add_persists(self, data_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """Test that add writes a transaction to the storage file."""
        assert run(data_path, "add", "income", "1000000", "Salary", "--at", "2024-03-01T09:00:00") == 0

        transactions = load_ledger(data_path).get_all()
        assert len(transactions) == 1
        assert transactions[0].type is TransactionType.INCOME
        assert transactions[0].amount == Decimal("1000000")
        assert "Transaction added" in capsys.readouterr().out

    def test_invalid_amount_fails(self, data_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """Test that a bad amount is reported, not stored."""
        assert run(data_path, "add", "expense", "abc", "Broken") == 1
        assert "Invalid input" in capsys.readouterr().out
        assert not data_path.exists()

    def test_balance(self, data_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """Test the balance summary with localized amounts."""
        run(data_path, "add", "income", "1000000", "Salary")
        run(data_path, "add", "expense", "200000", "Rent")
        capsys.readouterr()

        assert run(data_path, "balance") == 0

        out = capsys.readouterr().out
        assert "Rp 800.000" in out
        assert "Rp 1.000.000" in out
        assert "Rp 200.000" in out

    def test_list(self, data_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        run(data_path, "add", "expense", "25000", "Coffee", "--category", "food")
        capsys.readouterr()

        assert run(data_path, "list", "--page", "3") == 0

        out = capsys.readouterr().out
        assert "Coffee" in out
        assert "Page 1 of 1" in out

    def test_list_empty_period(self, data_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert run(data_path, "list", "--period", "week") == 0
        assert "no transactions found" in capsys.readouterr().out

    def test_update_and_delete(self, data_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """Test update and delete by id, including unknown ids."""
        run(data_path, "add", "expense", "100", "Old")
        txn_id = load_ledger(data_path).get_all()[0].id

        assert run(data_path, "update", str(txn_id), "--description", "New", "--amount", "150") == 0
        updated = load_ledger(data_path).get(txn_id)
        assert updated is not None
        assert updated.description == "New"
        assert updated.amount == Decimal("150")

        assert run(data_path, "update", "12345", "--description", "x") == 0
        assert run(data_path, "delete", "12345") == 0
        assert "No transaction #12345" in capsys.readouterr().out

        assert run(data_path, "delete", str(txn_id)) == 0
        assert load_ledger(data_path).get_all() == []

    def test_clear(self, data_path: Path) -> None:
        run(data_path, "add", "expense", "100", "One")
        run(data_path, "add", "expense", "200", "Two")

        assert run(data_path, "clear", "--yes") == 0

        assert load_ledger(data_path).get_all() == []

    def test_export_empty_fails(self, data_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert run(data_path, "export") == 1
        assert "No transactions to export" in capsys.readouterr().out

    def test_export_to_stdout(self, data_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        run(data_path, "add", "expense", "25000", "Lunch, with friend", "--at", "2024-03-01T12:30:00")
        capsys.readouterr()

        assert run(data_path, "export") == 0

        out = capsys.readouterr().out
        assert out.splitlines() == [
            "Date,Type,Amount,Description",
            '01/03/2024 12:30:00,OUT,25000,"Lunch, with friend"',
        ]

    def test_export_then_import(self, data_path: Path, tmp_path: Path) -> None:
        """Test moving transactions between two data files through CSV."""
        run(data_path, "add", "income", "50000", "Freelance", "--at", "2024-03-01T10:00:00")
        run(data_path, "add", "expense", "12.5", "Snack", "--at", "2024-03-02T10:00:00")
        export_file = tmp_path / "out" / "transactions.csv"
        assert run(data_path, "export", "-o", str(export_file)) == 0

        other = tmp_path / "other.json"
        assert run(other, "import", str(export_file)) == 0

        imported = load_ledger(other).get_all()
        assert [(t.type, t.amount, t.description) for t in imported] == [
            (TransactionType.INCOME, Decimal("50000"), "Freelance"),
            (TransactionType.EXPENSE, Decimal("12.5"), "Snack"),
        ]

    def test_import_missing_file_fails(self, data_path: Path, tmp_path: Path) -> None:
        assert run(data_path, "import", str(tmp_path / "missing.csv")) == 1

    def test_insights(self, data_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """Test insight cards and the detailed report."""
        run(data_path, "add", "income", "1000000", "Salary")
        run(data_path, "add", "expense", "200000", "Rent", "--category", "bills")
        capsys.readouterr()

        assert run(data_path, "insights", "--no-delay", "--details") == 0

        out = capsys.readouterr().out
        assert "Great job saving 80% of income" in out
        assert "Status: excellent" in out
        assert "Key Recommendations" in out

    def test_insights_without_data(self, data_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """Test that an empty ledger still shows the health card."""
        assert run(data_path, "insights", "--no-delay") == 0
        out = capsys.readouterr().out
        assert "Financial Health" in out
        assert "Status: poor" in out
        assert "0/100" in out
        assert "Add transactions to get insights" in out

    def test_corrupt_storage_fails(self, data_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        data_path.parent.mkdir(parents=True)
        data_path.write_text("{not json", encoding="utf-8")

        assert run(data_path, "balance") == 1
        assert "Error" in capsys.readouterr().out
