"""Mapper functions to convert SQLAlchemy models into domain entities.

This layer isolates the conversion logic: enum columns are stored as plain
strings and turned back into enums here, and child rows become tuples.
"""

from decimal import Decimal
from typing import Optional

from schoolbooks.domain import entities as domain
from schoolbooks.utils.money import to_money
from schoolbooks.database.models import (
    Account as ORMAccount,
    AccountMapping as ORMAccountMapping,
    JournalEntry as ORMJournalEntry,
    JournalLine as ORMJournalLine,
    FeeAssignment as ORMFeeAssignment,
    Payment as ORMPayment,
    Expense as ORMExpense,
    SalaryPayment as ORMSalaryPayment,
    FixedAsset as ORMFixedAsset,
    DepreciationRecord as ORMDepreciationRecord,
    BankAccount as ORMBankAccount,
    BankTransaction as ORMBankTransaction,
    Transfer as ORMTransfer,
)


_money = to_money


def _optional_money(value) -> Optional[Decimal]:
    return None if value is None else to_money(value)


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        code=orm_account.code,
        name=orm_account.name,
        account_type=domain.AccountType(orm_account.account_type),
        category=domain.AccountCategory(orm_account.category),
        parent_code=orm_account.parent_code,
        description=orm_account.description,
        is_active=orm_account.is_active,
        created_at=orm_account.created_at,
        version=orm_account.version,
    )


def account_mapping_to_domain(orm_mapping: ORMAccountMapping) -> domain.AccountMapping:
    """Convert SQLAlchemy AccountMapping model to domain AccountMapping entity."""
    return domain.AccountMapping(
        id=orm_mapping.id,
        mapping_type=domain.MappingType(orm_mapping.mapping_type),
        source_type=orm_mapping.source_type,
        source_name=orm_mapping.source_name,
        account_code=orm_mapping.account_code,
        is_default=orm_mapping.is_default,
        is_active=orm_mapping.is_active,
        created_at=orm_mapping.created_at,
        updated_at=orm_mapping.updated_at,
        version=orm_mapping.version,
    )


def journal_line_to_domain(orm_line: ORMJournalLine) -> domain.JournalLine:
    return domain.JournalLine(
        account_code=orm_line.account_code,
        account_name=orm_line.account_name,
        debit=_money(orm_line.debit),
        credit=_money(orm_line.credit),
        description=orm_line.description,
    )


def journal_entry_to_domain(orm_entry: ORMJournalEntry) -> domain.JournalEntry:
    """Convert SQLAlchemy JournalEntry model (with lines) to domain JournalEntry."""
    return domain.JournalEntry(
        id=orm_entry.id,
        entry_number=orm_entry.entry_number,
        entry_date=orm_entry.entry_date,
        description=orm_entry.description,
        lines=tuple(journal_line_to_domain(line) for line in orm_entry.lines),
        reference_type=domain.ReferenceType(orm_entry.reference_type),
        reference_id=orm_entry.reference_id,
        status=domain.EntryStatus(orm_entry.status),
        created_by=orm_entry.created_by,
        created_at=orm_entry.created_at,
        posted_at=orm_entry.posted_at,
        posted_by=orm_entry.posted_by,
        reversal_of_id=orm_entry.reversal_of_id,
        reversed_by_id=orm_entry.reversed_by_id,
        version=orm_entry.version,
    )


def fee_assignment_to_domain(orm_assignment: ORMFeeAssignment) -> domain.FeeAssignment:
    return domain.FeeAssignment(
        id=orm_assignment.id,
        student_id=orm_assignment.student_id,
        student_name=orm_assignment.student_name,
        term=orm_assignment.term,
        allocations=tuple(
            domain.FeeAllocation(
                fee_type=a.fee_type, amount=_money(a.amount), description=a.description
            )
            for a in orm_assignment.allocations
        ),
        total_amount=_money(orm_assignment.total_amount),
        assignment_date=orm_assignment.assignment_date,
        assigned_by=orm_assignment.assigned_by,
        created_at=orm_assignment.created_at,
        journal_entry_id=orm_assignment.journal_entry_id,
        posting_status=domain.PostingStatus(orm_assignment.posting_status),
        posting_error=orm_assignment.posting_error,
    )


def payment_to_domain(orm_payment: ORMPayment) -> domain.Payment:
    """Convert SQLAlchemy Payment model to domain Payment entity."""
    return domain.Payment(
        id=orm_payment.id,
        reference=orm_payment.reference,
        student_id=orm_payment.student_id,
        student_name=orm_payment.student_name,
        amount=_money(orm_payment.amount),
        payment_method=domain.PaymentMethod(orm_payment.payment_method),
        payment_date=orm_payment.payment_date,
        status=domain.PaymentStatus(orm_payment.status),
        allocations=tuple(
            domain.FeeAllocation(
                fee_type=a.fee_type, amount=_money(a.amount), description=a.description
            )
            for a in orm_payment.allocations
        ),
        recorded_by=orm_payment.recorded_by,
        created_at=orm_payment.created_at,
        paid_by=orm_payment.paid_by,
        notes=orm_payment.notes,
        receipt_number=orm_payment.receipt_number,
        journal_entry_id=orm_payment.journal_entry_id,
        posting_status=domain.PostingStatus(orm_payment.posting_status),
        posting_error=orm_payment.posting_error,
        version=orm_payment.version,
    )


def expense_to_domain(orm_expense: ORMExpense) -> domain.Expense:
    return domain.Expense(
        id=orm_expense.id,
        reference=orm_expense.reference,
        category=orm_expense.category,
        description=orm_expense.description,
        amount=_money(orm_expense.amount),
        vendor=orm_expense.vendor,
        expense_date=orm_expense.expense_date,
        payment_method=domain.PaymentMethod(orm_expense.payment_method),
        status=domain.ExpenseStatus(orm_expense.status),
        recorded_by=orm_expense.recorded_by,
        created_at=orm_expense.created_at,
        approved_by=orm_expense.approved_by,
        approved_at=orm_expense.approved_at,
        rejection_reason=orm_expense.rejection_reason,
        journal_entry_id=orm_expense.journal_entry_id,
        posting_status=domain.PostingStatus(orm_expense.posting_status),
        posting_error=orm_expense.posting_error,
        version=orm_expense.version,
    )


def salary_payment_to_domain(orm_salary: ORMSalaryPayment) -> domain.SalaryPayment:
    """Convert SQLAlchemy SalaryPayment model to domain SalaryPayment entity."""
    allowances = tuple(
        domain.SalaryComponent(name=c.name, amount=_money(c.amount))
        for c in orm_salary.components
        if c.kind == "allowance"
    )
    deductions = tuple(
        domain.SalaryComponent(name=c.name, amount=_money(c.amount))
        for c in orm_salary.components
        if c.kind == "deduction"
    )
    statutory = None
    if orm_salary.has_statutory:
        pension_employer = _money(orm_salary.pension_employer)
        employee_total = (
            _money(orm_salary.nhf)
            + _money(orm_salary.pension_employee)
            + _money(orm_salary.nhis)
            + _money(orm_salary.paye)
        )
        statutory = domain.StatutoryDeductions(
            nhf=_money(orm_salary.nhf),
            pension_employee=_money(orm_salary.pension_employee),
            pension_employer=pension_employer,
            nhis=_money(orm_salary.nhis),
            paye=_money(orm_salary.paye),
            total_employee_deductions=employee_total,
            total_employer_contributions=pension_employer,
        )
    return domain.SalaryPayment(
        id=orm_salary.id,
        reference=orm_salary.reference,
        staff_id=orm_salary.staff_id,
        staff_name=orm_salary.staff_name,
        staff_number=orm_salary.staff_number,
        month=orm_salary.month,
        year=orm_salary.year,
        basic_salary=_money(orm_salary.basic_salary),
        allowances=allowances,
        deductions=deductions,
        gross_salary=_money(orm_salary.gross_salary),
        total_deductions=_money(orm_salary.total_deductions),
        net_pay=_money(orm_salary.net_pay),
        payment_date=orm_salary.payment_date,
        payment_method=domain.PaymentMethod(orm_salary.payment_method),
        recorded_by=orm_salary.recorded_by,
        created_at=orm_salary.created_at,
        statutory=statutory,
        journal_entry_id=orm_salary.journal_entry_id,
        posting_status=domain.PostingStatus(orm_salary.posting_status),
        posting_error=orm_salary.posting_error,
    )


def fixed_asset_to_domain(orm_asset: ORMFixedAsset) -> domain.FixedAsset:
    return domain.FixedAsset(
        id=orm_asset.id,
        asset_code=orm_asset.asset_code,
        name=orm_asset.name,
        asset_type=orm_asset.asset_type,
        purchase_date=orm_asset.purchase_date,
        purchase_price=_money(orm_asset.purchase_price),
        residual_value=_money(orm_asset.residual_value),
        useful_life_years=orm_asset.useful_life_years,
        depreciation_rate=(
            None if orm_asset.depreciation_rate is None else Decimal(orm_asset.depreciation_rate)
        ),
        depreciation_method=domain.DepreciationMethod(orm_asset.depreciation_method),
        accumulated_depreciation=_money(orm_asset.accumulated_depreciation),
        current_value=_money(orm_asset.current_value),
        status=domain.AssetStatus(orm_asset.status),
        payment_method=domain.PaymentMethod(orm_asset.payment_method),
        created_by=orm_asset.created_by,
        created_at=orm_asset.created_at,
        vendor=orm_asset.vendor,
        location=orm_asset.location,
        disposal_date=orm_asset.disposal_date,
        disposal_value=_optional_money(orm_asset.disposal_value),
        journal_entry_id=orm_asset.journal_entry_id,
        posting_status=domain.PostingStatus(orm_asset.posting_status),
        posting_error=orm_asset.posting_error,
        version=orm_asset.version,
    )


def depreciation_record_to_domain(orm_record: ORMDepreciationRecord) -> domain.DepreciationRecord:
    return domain.DepreciationRecord(
        id=orm_record.id,
        asset_id=orm_record.asset_id,
        year=orm_record.year,
        month=orm_record.month,
        amount=_money(orm_record.amount),
        accumulated_after=_money(orm_record.accumulated_after),
        book_value_after=_money(orm_record.book_value_after),
        created_at=orm_record.created_at,
        journal_entry_id=orm_record.journal_entry_id,
        posting_status=domain.PostingStatus(orm_record.posting_status),
        posting_error=orm_record.posting_error,
    )


def bank_account_to_domain(orm_bank: ORMBankAccount) -> domain.BankAccount:
    """Convert SQLAlchemy BankAccount model to domain BankAccount entity."""
    return domain.BankAccount(
        id=orm_bank.id,
        account_name=orm_bank.account_name,
        bank_name=orm_bank.bank_name,
        account_number=orm_bank.account_number,
        balance=_money(orm_bank.balance),
        is_active=orm_bank.is_active,
        created_at=orm_bank.created_at,
        gl_account_code=orm_bank.gl_account_code,
        account_type=orm_bank.account_type,
        currency=orm_bank.currency,
        version=orm_bank.version,
    )


def bank_transaction_to_domain(orm_txn: ORMBankTransaction) -> domain.BankTransaction:
    return domain.BankTransaction(
        id=orm_txn.id,
        bank_account_id=orm_txn.bank_account_id,
        transaction_date=orm_txn.transaction_date,
        transaction_type=domain.BankTransactionType(orm_txn.transaction_type),
        description=orm_txn.description,
        debit_amount=_money(orm_txn.debit_amount),
        credit_amount=_money(orm_txn.credit_amount),
        balance_after=_money(orm_txn.balance_after),
        created_by=orm_txn.created_by,
        created_at=orm_txn.created_at,
        reference=orm_txn.reference,
        is_reconciled=orm_txn.is_reconciled,
        reconciled_at=orm_txn.reconciled_at,
        journal_entry_id=orm_txn.journal_entry_id,
        posting_status=domain.PostingStatus(orm_txn.posting_status),
        posting_error=orm_txn.posting_error,
    )


def transfer_to_domain(orm_transfer: ORMTransfer) -> domain.Transfer:
    return domain.Transfer(
        id=orm_transfer.id,
        reference=orm_transfer.reference,
        from_account_id=orm_transfer.from_account_id,
        to_account_id=orm_transfer.to_account_id,
        amount=_money(orm_transfer.amount),
        transfer_date=orm_transfer.transfer_date,
        description=orm_transfer.description,
        status=domain.TransferStatus(orm_transfer.status),
        created_by=orm_transfer.created_by,
        created_at=orm_transfer.created_at,
        approved_by=orm_transfer.approved_by,
        approved_at=orm_transfer.approved_at,
        executed_at=orm_transfer.executed_at,
        journal_entry_id=orm_transfer.journal_entry_id,
        posting_status=domain.PostingStatus(orm_transfer.posting_status),
        posting_error=orm_transfer.posting_error,
        version=orm_transfer.version,
    )
