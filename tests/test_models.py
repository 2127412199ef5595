"""
Tests for the Finance Ledger models

Test strategy:
1. Unit tests for record invariants (models, row schemas)
2. Integration tests for flows live in the other modules (in-memory backends)
3. No real API calls in tests
"""

import datetime as dt
from decimal import Decimal

import pytest

from finance_ledger.models.finance import (
    Budget,
    BudgetPeriod,
    ExpenseCategory,
    NewBudget,
    NewTransaction,
    Transaction,
    TransactionType,
)
from finance_ledger.models.rows import RowDecodeError, TransactionRow
from finance_ledger.models.audit import (
    AuditSeverity,
    LedgerEvent,
    LedgerEventBuilder,
    LedgerEventType,
)
from finance_ledger.services.storage import BUDGETS, TRANSACTIONS

from tests.conftest import make_transaction


class TestTransactionModels:
    """Tests for transaction Pydantic models."""

    def test_new_transaction_creation(self):
        """Test NewTransaction model creation."""
        tx = NewTransaction(
            type="expense",
            amount=Decimal("4.50"),
            description="Coffee",
            category="food",
            date="2024-03-05",
        )
        assert tx.type == TransactionType.EXPENSE
        assert tx.category == ExpenseCategory.FOOD
        assert tx.date == dt.date(2024, 3, 5)
        assert tx.tags == []

    def test_description_strips_whitespace(self):
        """Test that whitespace is stripped from descriptions."""
        tx = NewTransaction(type="income", amount=1, description="  Salary  ", date="2024-01-01")
        assert tx.description == "Salary"

    def test_blank_description_rejected(self):
        with pytest.raises(ValueError):
            NewTransaction(type="income", amount=1, description="   ", date="2024-01-01")

    def test_negative_income_rejected(self):
        """Test that negative amounts are rejected for income."""
        with pytest.raises(ValueError, match="cannot be negative"):
            NewTransaction(type="income", amount=-5, description="Refund", date="2024-01-01")

    def test_negative_transfer_allowed(self):
        """Transfers are signed: negative means outgoing."""
        tx = NewTransaction(type="transfer", amount=-250, description="To savings", date="2024-01-01")
        assert tx.amount == Decimal("-250")

    def test_category_only_on_expenses(self):
        with pytest.raises(ValueError, match="only allowed on expenses"):
            NewTransaction(
                type="income",
                amount=10,
                description="Salary",
                category="food",
                date="2024-01-01",
            )

    def test_non_finite_amount_rejected(self):
        with pytest.raises(ValueError):
            NewTransaction(type="expense", amount="NaN", description="x", date="2024-01-01")

    def test_invalid_calendar_date_rejected(self):
        with pytest.raises(ValueError):
            NewTransaction(type="expense", amount=1, description="x", date="2024-02-30")

    def test_iso_timestamp_date_truncated(self):
        """Older clients stored full timestamps in the date field."""
        tx = NewTransaction(
            type="expense", amount=1, description="x", date="2024-03-05T00:00:00.000Z"
        )
        assert tx.date == dt.date(2024, 3, 5)

    def test_transaction_is_frozen(self):
        tx = make_transaction("t1")
        with pytest.raises(ValueError):
            tx.amount = Decimal("99")

    def test_original_category_from_tags(self):
        tx = make_transaction("t1", category=ExpenseCategory.OTHER, tags=["_originalCategory:Xyzzy"])
        assert tx.original_category == "Xyzzy"

    def test_local_json_uses_camel_case(self):
        """Local blobs keep the field names older clients wrote."""
        tx = make_transaction("t1")
        data = tx.model_dump(mode="json", by_alias=True)
        assert "createdAt" in data
        assert "updatedAt" in data
        assert data["amount"] == "10.00"

    def test_legacy_local_record_parses(self):
        """A record written by the web client, with a float amount."""
        tx = Transaction.model_validate({
            "id": "1709251200000",
            "type": "expense",
            "amount": 12.5,
            "description": "Lunch",
            "category": "food",
            "date": "2024-03-01",
            "createdAt": "2024-03-01T12:00:00.000Z",
            "updatedAt": "2024-03-01T12:00:00.000Z",
        })
        assert tx.amount == Decimal("12.5")
        assert tx.created_at.tzinfo is not None


class TestBudgetModels:
    """Tests for budget models."""

    def test_budget_creation(self):
        budget = NewBudget(
            category="food",
            limit=Decimal("400"),
            period="monthly",
            start_date="2024-01-01",
        )
        assert budget.period == BudgetPeriod.MONTHLY
        assert budget.end_date is None

    def test_budget_limit_must_be_positive(self):
        with pytest.raises(ValueError):
            NewBudget(category="food", limit=0, period="monthly", start_date="2024-01-01")

    def test_budget_date_validation(self):
        """Test that end date cannot precede start date."""
        with pytest.raises(ValueError, match="end date"):
            NewBudget(
                category="food",
                limit=100,
                period="weekly",
                start_date="2024-02-01",
                end_date="2024-01-01",
            )


class TestRowSchemas:
    """Tests for the remote row wire shapes."""

    def test_transaction_row_mapping(self):
        tx = make_transaction("t1", tags=["work"])
        row = TRANSACTIONS.encode(tx)
        assert set(row) == {
            "id", "type", "amount", "description", "category",
            "date", "tags", "created_at", "updated_at",
        }
        assert row["date"] == "2024-01-15"
        assert row["tags"] == ["work"]

    def test_empty_tags_sent_as_null(self):
        row = TRANSACTIONS.encode(make_transaction("t1"))
        assert row["tags"] is None

    def test_transaction_row_decodes(self):
        tx = make_transaction("t1", category=ExpenseCategory.BILLS)
        decoded = TRANSACTIONS.decode("finance_transactions", TRANSACTIONS.encode(tx))
        assert decoded == tx

    def test_budget_limit_column_renamed(self):
        budget = Budget(
            id="b1",
            category="food",
            limit=Decimal("300"),
            period="monthly",
            start_date="2024-01-01",
        )
        row = BUDGETS.encode(budget)
        assert row["limit_amount"] == "300"
        assert "limit" not in row
        assert BUDGETS.decode("finance_budgets", row) == budget

    def test_missing_column_fails_closed(self):
        row = TRANSACTIONS.encode(make_transaction("t1"))
        del row["category"]
        with pytest.raises(RowDecodeError, match="category"):
            TRANSACTIONS.decode("finance_transactions", row)

    def test_mistyped_column_fails_closed(self):
        row = BUDGETS.encode(Budget(
            id="b1", category="food", limit=1, period="monthly", start_date="2024-01-01"
        ))
        row["limit_amount"] = "a lot"
        with pytest.raises(RowDecodeError) as exc_info:
            BUDGETS.decode("finance_budgets", row)
        assert exc_info.value.row_id == "b1"

    def test_extra_columns_ignored(self):
        row = TRANSACTIONS.encode(make_transaction("t1"))
        row["user_id"] = "someone"
        assert TransactionRow.model_validate(row).id == "t1"

    def test_long_description_decodes(self):
        tx = make_transaction("t1", description="x" * 2000)
        decoded = TRANSACTIONS.decode("finance_transactions", TRANSACTIONS.encode(tx))
        assert decoded.description == "x" * 2000


class TestLedgerEvents:
    """Tests for ledger event models."""

    def test_event_creation(self):
        """Test LedgerEvent model creation."""
        event = LedgerEvent(
            event_type=LedgerEventType.TRANSACTION_ADDED,
            description="Transaction added",
        )
        assert event.event_type == LedgerEventType.TRANSACTION_ADDED
        assert event.severity == AuditSeverity.INFO

    def test_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = LedgerEventBuilder.budget_added("b1", "food", "400")
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "budget_added"
        assert log_dict["details"]["category"] == "food"

    def test_persist_failed_is_warning(self):
        event = LedgerEventBuilder.persist_failed("transactions", "remote")
        assert event.severity == AuditSeverity.WARNING
        assert event.record_kind == "transactions"

    def test_csv_import_severity_depends_on_rejections(self):
        assert LedgerEventBuilder.csv_imported(3, 0).severity == AuditSeverity.INFO
        assert LedgerEventBuilder.csv_imported(3, 1).severity == AuditSeverity.WARNING


class TestExpenseCategories:
    """Tests for the expense category enum."""

    def test_all_categories_exist(self):
        """Test that expected categories exist."""
        expected = [
            "food", "transportation", "entertainment", "shopping", "bills",
            "healthcare", "education", "travel", "other",
        ]
        for cat in expected:
            assert ExpenseCategory(cat) is not None

    def test_category_values(self):
        assert ExpenseCategory.FOOD.value == "food"
        assert ExpenseCategory.OTHER.value == "other"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
