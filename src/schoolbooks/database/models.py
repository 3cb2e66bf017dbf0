"""SQLAlchemy models for the schoolbooks database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    UniqueConstraint,
    Index,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()

MONEY = Numeric(14, 2)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Account(Base):
    """Chart of accounts model."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    code = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    account_type = Column(String, nullable=False)
    category = Column(String, nullable=False)
    parent_code = Column(String, nullable=True)
    description = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}


class AccountMapping(Base):
    """Business concept to ledger account mapping model.

    Uniqueness of active mappings per (mapping_type, source_type) is kept by
    the mapping service, so duplicates created outside it stay repairable.
    """

    __tablename__ = "account_mappings"

    id = Column(Integer, primary_key=True)
    mapping_type = Column(String, nullable=False)
    source_type = Column(String, nullable=False)
    source_name = Column(String, nullable=False)
    account_code = Column(String, nullable=False)
    is_default = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)
    version = Column(Integer, nullable=False)

    __table_args__ = (Index("ix_mapping_key", "mapping_type", "source_type"),)
    __mapper_args__ = {"version_id_col": version}


class JournalEntry(Base):
    """Journal entry header model."""

    __tablename__ = "journal_entries"

    id = Column(Integer, primary_key=True)
    entry_number = Column(String, unique=True, nullable=False)
    entry_date = Column(Date, nullable=False)
    description = Column(String, nullable=False)
    reference_type = Column(String, nullable=False)
    reference_id = Column(String, nullable=True)
    status = Column(String, nullable=False)
    created_by = Column(String, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    posted_at = Column(DateTime, nullable=True)
    posted_by = Column(String, nullable=True)
    reversal_of_id = Column(Integer, ForeignKey("journal_entries.id"), nullable=True)
    reversed_by_id = Column(Integer, nullable=True)
    version = Column(Integer, nullable=False)

    __table_args__ = (Index("ix_journal_reference", "reference_type", "reference_id"),)
    __mapper_args__ = {"version_id_col": version}

    lines = relationship(
        "JournalLine",
        back_populates="entry",
        cascade="all, delete-orphan",
        order_by="JournalLine.line_number",
    )


class JournalLine(Base):
    """Journal entry line model."""

    __tablename__ = "journal_lines"

    id = Column(Integer, primary_key=True)
    entry_id = Column(Integer, ForeignKey("journal_entries.id"), nullable=False)
    line_number = Column(Integer, nullable=False)
    account_code = Column(String, nullable=False)
    account_name = Column(String, nullable=False)
    debit = Column(MONEY, default=0, nullable=False)
    credit = Column(MONEY, default=0, nullable=False)
    description = Column(String, nullable=True)

    entry = relationship("JournalEntry", back_populates="lines")


class FeeAssignment(Base):
    """Fees billed to a student."""

    __tablename__ = "fee_assignments"

    id = Column(Integer, primary_key=True)
    student_id = Column(String, nullable=False)
    student_name = Column(String, nullable=False)
    term = Column(String, nullable=True)
    total_amount = Column(MONEY, nullable=False)
    assignment_date = Column(Date, nullable=False)
    assigned_by = Column(String, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    journal_entry_id = Column(Integer, nullable=True)
    posting_status = Column(String, nullable=False, default="pending")
    posting_error = Column(String, nullable=True)

    allocations = relationship(
        "FeeAssignmentAllocation",
        back_populates="assignment",
        cascade="all, delete-orphan",
        order_by="FeeAssignmentAllocation.id",
    )


class FeeAssignmentAllocation(Base):
    __tablename__ = "fee_assignment_allocations"

    id = Column(Integer, primary_key=True)
    assignment_id = Column(Integer, ForeignKey("fee_assignments.id"), nullable=False)
    fee_type = Column(String, nullable=False)
    amount = Column(MONEY, nullable=False)
    description = Column(String, nullable=True)

    assignment = relationship("FeeAssignment", back_populates="allocations")


class Payment(Base):
    """Student payment model."""

    __tablename__ = "payments"

    id = Column(Integer, primary_key=True)
    reference = Column(String, unique=True, nullable=False)
    student_id = Column(String, nullable=False)
    student_name = Column(String, nullable=False)
    amount = Column(MONEY, nullable=False)
    payment_method = Column(String, nullable=False)
    payment_date = Column(Date, nullable=False)
    status = Column(String, nullable=False)
    recorded_by = Column(String, nullable=False)
    paid_by = Column(String, nullable=True)
    notes = Column(String, nullable=True)
    receipt_number = Column(String, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    journal_entry_id = Column(Integer, nullable=True)
    posting_status = Column(String, nullable=False, default="pending")
    posting_error = Column(String, nullable=True)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    allocations = relationship(
        "PaymentAllocation",
        back_populates="payment",
        cascade="all, delete-orphan",
        order_by="PaymentAllocation.id",
    )


class PaymentAllocation(Base):
    __tablename__ = "payment_allocations"

    id = Column(Integer, primary_key=True)
    payment_id = Column(Integer, ForeignKey("payments.id"), nullable=False)
    fee_type = Column(String, nullable=False)
    amount = Column(MONEY, nullable=False)
    description = Column(String, nullable=True)

    payment = relationship("Payment", back_populates="allocations")


class Expense(Base):
    """School expense model."""

    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True)
    reference = Column(String, unique=True, nullable=False)
    category = Column(String, nullable=False)
    description = Column(String, nullable=False)
    amount = Column(MONEY, nullable=False)
    vendor = Column(String, nullable=True)
    expense_date = Column(Date, nullable=False)
    payment_method = Column(String, nullable=False)
    status = Column(String, nullable=False)
    recorded_by = Column(String, nullable=False)
    approved_by = Column(String, nullable=True)
    approved_at = Column(DateTime, nullable=True)
    rejection_reason = Column(String, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    journal_entry_id = Column(Integer, nullable=True)
    posting_status = Column(String, nullable=False, default="pending")
    posting_error = Column(String, nullable=True)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}


class SalaryPayment(Base):
    """Salary payment model.

    One payment per staff member per month, enforced by a unique constraint.
    """

    __tablename__ = "salary_payments"

    id = Column(Integer, primary_key=True)
    reference = Column(String, unique=True, nullable=False)
    staff_id = Column(String, nullable=False)
    staff_name = Column(String, nullable=False)
    staff_number = Column(String, nullable=True)
    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    basic_salary = Column(MONEY, nullable=False)
    gross_salary = Column(MONEY, nullable=False)
    total_deductions = Column(MONEY, nullable=False)
    net_pay = Column(MONEY, nullable=False)
    has_statutory = Column(Boolean, default=False, nullable=False)
    nhf = Column(MONEY, default=0, nullable=False)
    pension_employee = Column(MONEY, default=0, nullable=False)
    pension_employer = Column(MONEY, default=0, nullable=False)
    nhis = Column(MONEY, default=0, nullable=False)
    paye = Column(MONEY, default=0, nullable=False)
    payment_date = Column(Date, nullable=False)
    payment_method = Column(String, nullable=False)
    recorded_by = Column(String, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    journal_entry_id = Column(Integer, nullable=True)
    posting_status = Column(String, nullable=False, default="pending")
    posting_error = Column(String, nullable=True)

    __table_args__ = (
        UniqueConstraint("staff_id", "year", "month", name="uq_salary_staff_period"),
    )

    components = relationship(
        "SalaryComponent", back_populates="salary_payment", cascade="all, delete-orphan"
    )


class SalaryComponent(Base):
    """Allowance or deduction line of a salary payment."""

    __tablename__ = "salary_components"

    id = Column(Integer, primary_key=True)
    salary_payment_id = Column(Integer, ForeignKey("salary_payments.id"), nullable=False)
    kind = Column(String, nullable=False)
    name = Column(String, nullable=False)
    amount = Column(MONEY, nullable=False)

    salary_payment = relationship("SalaryPayment", back_populates="components")


class FixedAsset(Base):
    """Fixed asset register model."""

    __tablename__ = "fixed_assets"

    id = Column(Integer, primary_key=True)
    asset_code = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    asset_type = Column(String, nullable=False)
    purchase_date = Column(Date, nullable=False)
    purchase_price = Column(MONEY, nullable=False)
    residual_value = Column(MONEY, default=0, nullable=False)
    useful_life_years = Column(Integer, nullable=True)
    depreciation_rate = Column(Numeric(7, 4), nullable=True)
    depreciation_method = Column(String, nullable=False)
    accumulated_depreciation = Column(MONEY, default=0, nullable=False)
    current_value = Column(MONEY, nullable=False)
    status = Column(String, nullable=False)
    payment_method = Column(String, nullable=False)
    vendor = Column(String, nullable=True)
    location = Column(String, nullable=True)
    disposal_date = Column(Date, nullable=True)
    disposal_value = Column(MONEY, nullable=True)
    created_by = Column(String, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    journal_entry_id = Column(Integer, nullable=True)
    posting_status = Column(String, nullable=False, default="pending")
    posting_error = Column(String, nullable=True)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}


class DepreciationRecord(Base):
    """Monthly depreciation charge model."""

    __tablename__ = "depreciation_records"

    id = Column(Integer, primary_key=True)
    asset_id = Column(Integer, ForeignKey("fixed_assets.id"), nullable=False)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)
    amount = Column(MONEY, nullable=False)
    accumulated_after = Column(MONEY, nullable=False)
    book_value_after = Column(MONEY, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    journal_entry_id = Column(Integer, nullable=True)
    posting_status = Column(String, nullable=False, default="pending")
    posting_error = Column(String, nullable=True)

    __table_args__ = (
        UniqueConstraint("asset_id", "year", "month", name="uq_depreciation_asset_period"),
    )


class BankAccount(Base):
    """School bank account model."""

    __tablename__ = "bank_accounts"

    id = Column(Integer, primary_key=True)
    account_name = Column(String, nullable=False)
    bank_name = Column(String, nullable=False)
    account_number = Column(String, unique=True, nullable=False)
    account_type = Column(String, nullable=False, default="current")
    currency = Column(String, nullable=False, default="NGN")
    balance = Column(MONEY, default=0, nullable=False)
    gl_account_code = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    transactions = relationship("BankTransaction", back_populates="bank_account")


class BankTransaction(Base):
    """Bank account transaction model."""

    __tablename__ = "bank_transactions"

    id = Column(Integer, primary_key=True)
    bank_account_id = Column(Integer, ForeignKey("bank_accounts.id"), nullable=False)
    transaction_date = Column(Date, nullable=False)
    transaction_type = Column(String, nullable=False)
    description = Column(String, nullable=False)
    debit_amount = Column(MONEY, default=0, nullable=False)
    credit_amount = Column(MONEY, default=0, nullable=False)
    balance_after = Column(MONEY, nullable=False)
    reference = Column(String, nullable=True)
    is_reconciled = Column(Boolean, default=False, nullable=False)
    reconciled_at = Column(DateTime, nullable=True)
    created_by = Column(String, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    journal_entry_id = Column(Integer, nullable=True)
    posting_status = Column(String, nullable=False, default="pending")
    posting_error = Column(String, nullable=True)

    bank_account = relationship("BankAccount", back_populates="transactions")


class Transfer(Base):
    """Inter-account transfer model."""

    __tablename__ = "transfers"

    id = Column(Integer, primary_key=True)
    reference = Column(String, unique=True, nullable=False)
    from_account_id = Column(Integer, ForeignKey("bank_accounts.id"), nullable=False)
    to_account_id = Column(Integer, ForeignKey("bank_accounts.id"), nullable=False)
    amount = Column(MONEY, nullable=False)
    transfer_date = Column(Date, nullable=False)
    description = Column(String, nullable=False)
    status = Column(String, nullable=False)
    created_by = Column(String, nullable=False)
    approved_by = Column(String, nullable=True)
    approved_at = Column(DateTime, nullable=True)
    executed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    journal_entry_id = Column(Integer, nullable=True)
    posting_status = Column(String, nullable=False, default="pending")
    posting_error = Column(String, nullable=True)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
