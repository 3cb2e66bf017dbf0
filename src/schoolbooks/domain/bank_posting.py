"""Auto-posting for bank transactions and inter-account transfers.

Bank accounts post only when they are linked to a general ledger account.
A missing link skips posting (logged) rather than blocking the bank record.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from schoolbooks.database.base import Database
from schoolbooks.domain.auto_posting import AutoPostingService, PostingContext
from schoolbooks.domain.chart_of_accounts import (
    OTHER_EXPENSE_CODE,
    OTHER_INCOME_CODE,
    SUSPENSE_CODE,
    ChartOfAccountsService,
)
from schoolbooks.domain.entities import (
    Account,
    AccountType,
    BankAccount,
    BankTransaction,
    BankTransactionType,
    JournalEntry,
    ReferenceType,
)
from schoolbooks.domain.errors import ValidationError
from schoolbooks.utils.clock import Clock
from schoolbooks.utils.money import to_money
from schoolbooks.utils.references import ReferenceGenerator

logger = logging.getLogger(__name__)


def bank_transaction_reference(transaction_id: int) -> str:
    return f"BTX-{transaction_id}"


class BankingAutoPostService:
    """Posts bank activity against the general ledger."""

    def __init__(
        self,
        db: Database,
        clock: Optional[Clock] = None,
        references: Optional[ReferenceGenerator] = None,
        engine: Optional[AutoPostingService] = None,
    ):
        self.db = db
        self.engine = engine or AutoPostingService(db, clock=clock, references=references)
        self.chart: ChartOfAccountsService = self.engine.chart

    def _postable(self, account_type: AccountType) -> list[Account]:
        """Active accounts of a type that are not headers of other accounts."""
        accounts = self.chart.get_by_type(account_type)
        parents = {a.parent_code for a in self.chart.get_active_accounts() if a.parent_code}
        return [a for a in accounts if a.code not in parents]

    def _preferred_or_first(self, code: str, account_type: AccountType) -> Optional[Account]:
        account = self.chart.get_by_code(code)
        if account is not None and account.is_active:
            return account
        postable = self._postable(account_type)
        return postable[0] if postable else None

    def suspense_account(self) -> Account:
        """Suspense/clearing account, created when the chart has none."""
        account = self.chart.find_by_name("suspense", "clearing")
        if account is not None:
            return account
        existing = self.chart.get_by_code(SUSPENSE_CODE)
        if existing is not None:
            return existing
        logger.warning("No suspense account found; creating %s", SUSPENSE_CODE)
        return self.chart.create_account(
            SUSPENSE_CODE, "Suspense Clearing Account", AccountType.ASSET, parent_code=None
        )

    def determine_contra_account(self, transaction_type: BankTransactionType) -> Account:
        """Pick the other side of a bank transaction from its type.

        Deposits go to income, withdrawals to expenses, fees and charges to a
        bank charges account and interest to an interest income account.
        Anything else, or a type whose account is missing, lands in suspense.
        """
        account: Optional[Account] = None
        if transaction_type == BankTransactionType.DEPOSIT:
            account = self._preferred_or_first(OTHER_INCOME_CODE, AccountType.REVENUE)
        elif transaction_type == BankTransactionType.WITHDRAWAL:
            account = self._preferred_or_first(OTHER_EXPENSE_CODE, AccountType.EXPENSE)
        elif transaction_type in (BankTransactionType.FEE, BankTransactionType.CHARGE):
            account = self.chart.find_by_name("bank charges", "bank fees")
        elif transaction_type == BankTransactionType.INTEREST:
            account = self.chart.find_by_name("interest income", "interest earned")

        if account is None:
            account = self.suspense_account()
        return account

    def post_bank_transaction(
        self,
        transaction: BankTransaction,
        bank_account: BankAccount,
        created_by: str = "system",
    ) -> Optional[JournalEntry]:
        """Post a bank transaction.

        Deposits debit the linked ledger account and credit the contra
        account; withdrawals do the opposite.

        Returns:
            The posted entry, or None when the bank account has no ledger link

        Raises:
            ValidationError: If the transaction carries no amount
        """
        if not bank_account.gl_account_code:
            logger.warning(
                "Bank account %s has no GL account link; skipping posting of transaction %d",
                bank_account.account_name,
                transaction.id,
            )
            return None

        contra = self.determine_contra_account(transaction.transaction_type)
        gl_code = bank_account.gl_account_code
        description = f"Bank {transaction.transaction_type.value}: {transaction.description}"

        if transaction.credit_amount > 0:
            amount = to_money(transaction.credit_amount)
            lines = [
                self.engine.line(gl_code, debit=amount, description=description),
                self.engine.line(contra.code, credit=amount, description=description),
            ]
        elif transaction.debit_amount > 0:
            amount = to_money(transaction.debit_amount)
            lines = [
                self.engine.line(contra.code, debit=amount, description=description),
                self.engine.line(gl_code, credit=amount, description=description),
            ]
        else:
            raise ValidationError(f"Bank transaction {transaction.id} has no amount")

        ctx = PostingContext(
            description=description,
            entry_date=transaction.transaction_date,
            reference_type=ReferenceType.BANK_TRANSACTION,
            reference_id=bank_transaction_reference(transaction.id),
            created_by=created_by,
        )
        return self.engine.post_lines(lines, ctx)

    def post_transfer(
        self,
        from_account: BankAccount,
        to_account: BankAccount,
        amount: Decimal,
        description: str,
        transfer_date: date,
        reference: str,
        created_by: str = "system",
    ) -> Optional[JournalEntry]:
        """Post an inter-account transfer as one two-line entry.

        Returns:
            The posted entry, or None when either account has no ledger link
        """
        if not from_account.gl_account_code or not to_account.gl_account_code:
            logger.warning(
                "Transfer %s skipped: both bank accounts need a GL account link (%s -> %s)",
                reference,
                from_account.account_name,
                to_account.account_name,
            )
            return None

        value = to_money(amount)
        text = f"Transfer {reference}: {description}"
        lines = [
            self.engine.line(
                to_account.gl_account_code,
                debit=value,
                description=f"Transfer in from {from_account.account_name}",
            ),
            self.engine.line(
                from_account.gl_account_code,
                credit=value,
                description=f"Transfer out to {to_account.account_name}",
            ),
        ]
        ctx = PostingContext(
            description=text,
            entry_date=transfer_date,
            reference_type=ReferenceType.TRANSFER,
            reference_id=reference,
            created_by=created_by,
        )
        return self.engine.post_lines(lines, ctx)
