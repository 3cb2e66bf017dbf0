"""Shared pytest fixtures for schoolbooks tests."""

import os
import tempfile
from datetime import date

import pytest

from schoolbooks.database.factories import create_sqlite_database
from schoolbooks.domain.assets import AssetService
from schoolbooks.domain.auto_posting import AutoPostingService
from schoolbooks.domain.banking import BankingService
from schoolbooks.domain.entities import FeeAllocation
from schoolbooks.domain.expenses import ExpenseService
from schoolbooks.domain.payments import FeeService, PaymentService
from schoolbooks.domain.payroll import PayrollService
from schoolbooks.domain.reconciliation import PostingReconciliationService
from schoolbooks.domain.reports import ReportsService


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for CLI tests
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def engine(temp_db):
    """Auto-posting engine shared by the services of one test."""
    return AutoPostingService(temp_db)


@pytest.fixture
def ledger(temp_db, engine):
    """Database with the default chart of accounts and mappings."""
    engine.chart.initialize_defaults()
    engine.mappings.initialize_defaults()
    return temp_db


@pytest.fixture
def chart_service(temp_db, engine):
    return engine.chart


@pytest.fixture
def mapping_service(temp_db, engine):
    return engine.mappings


@pytest.fixture
def journal_service(temp_db, engine):
    return engine.journal


@pytest.fixture
def fee_service(ledger, engine):
    return FeeService(ledger, engine=engine)


@pytest.fixture
def payment_service(ledger, engine):
    return PaymentService(ledger, engine=engine)


@pytest.fixture
def expense_service(ledger, engine):
    return ExpenseService(ledger, engine=engine)


@pytest.fixture
def payroll_service(ledger, engine):
    return PayrollService(ledger, engine=engine)


@pytest.fixture
def asset_service(ledger, engine):
    return AssetService(ledger, engine=engine)


@pytest.fixture
def banking_service(ledger, engine):
    return BankingService(ledger, engine=engine)


@pytest.fixture
def reports_service(ledger):
    return ReportsService(ledger)


@pytest.fixture
def reconciliation_service(temp_db, engine):
    return PostingReconciliationService(temp_db, engine=engine)


@pytest.fixture
def sample_payment(payment_service):
    """A confirmed ₦150,000 tuition payment by bank transfer."""
    return payment_service.record_payment(
        student_id="STU001",
        student_name="Ada Obi",
        amount="150000",
        method="bank_transfer",
        payment_date=date(2024, 1, 15),
        allocations=[FeeAllocation(fee_type="tuition", amount="150000")],
        recorded_by="bursar",
    )


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
