"""Chart of accounts domain service."""

import logging
from typing import Optional

from schoolbooks.database.base import Database
from schoolbooks.domain.entities import Account, AccountCategory, AccountType
from schoolbooks.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    account_not_found,
)
from schoolbooks.utils.cache import TTLCache

logger = logging.getLogger(__name__)

CASH_CODE = "1110"
BANK_CODE = "1120"
ACCOUNTS_RECEIVABLE_CODE = "1130"
SUSPENSE_CODE = "1190"
FIXED_ASSETS_CODE = "1200"
ACCUMULATED_DEPRECIATION_CODE = "1250"
ACCOUNTS_PAYABLE_CODE = "2110"
SALARIES_PAYABLE_CODE = "2120"
PAYE_PAYABLE_CODE = "2130"
NHF_PAYABLE_CODE = "2140"
PENSION_PAYABLE_CODE = "2150"
NHIS_PAYABLE_CODE = "2160"
RETAINED_EARNINGS_CODE = "3100"
OTHER_INCOME_CODE = "4300"
SALARY_EXPENSE_CODE = "5100"
PENSION_EXPENSE_CODE = "5110"
DEPRECIATION_EXPENSE_CODE = "5500"
OTHER_EXPENSE_CODE = "5900"

# (code, name, type, parent code)
DEFAULT_ACCOUNTS = [
    ("1000", "Assets", AccountType.ASSET, None),
    ("1100", "Current Assets", AccountType.ASSET, "1000"),
    ("1110", "Cash", AccountType.ASSET, "1100"),
    ("1120", "Bank Accounts", AccountType.ASSET, "1100"),
    ("1130", "Accounts Receivable", AccountType.ASSET, "1100"),
    ("1190", "Suspense Clearing Account", AccountType.ASSET, "1100"),
    ("1200", "Fixed Assets", AccountType.ASSET, "1000"),
    ("1210", "Buildings", AccountType.ASSET, "1200"),
    ("1220", "Equipment", AccountType.ASSET, "1200"),
    ("1230", "Furniture", AccountType.ASSET, "1200"),
    ("1240", "Vehicles", AccountType.ASSET, "1200"),
    ("1250", "Accumulated Depreciation", AccountType.ASSET, "1200"),
    ("2000", "Liabilities", AccountType.LIABILITY, None),
    ("2100", "Current Liabilities", AccountType.LIABILITY, "2000"),
    ("2110", "Accounts Payable", AccountType.LIABILITY, "2100"),
    ("2120", "Salaries Payable", AccountType.LIABILITY, "2100"),
    ("2130", "PAYE Tax Payable", AccountType.LIABILITY, "2100"),
    ("2140", "NHF Payable", AccountType.LIABILITY, "2100"),
    ("2150", "Pension Payable", AccountType.LIABILITY, "2100"),
    ("2160", "NHIS Payable", AccountType.LIABILITY, "2100"),
    ("2200", "Long-term Liabilities", AccountType.LIABILITY, "2000"),
    ("2210", "Long-term Loans", AccountType.LIABILITY, "2200"),
    ("3000", "Equity", AccountType.EQUITY, None),
    ("3100", "Retained Earnings", AccountType.EQUITY, "3000"),
    ("3200", "Capital Contributions", AccountType.EQUITY, "3000"),
    ("4000", "Revenue", AccountType.REVENUE, None),
    ("4100", "Tuition Fees", AccountType.REVENUE, "4000"),
    ("4200", "Other Fees", AccountType.REVENUE, "4000"),
    ("4300", "Other Income", AccountType.REVENUE, "4000"),
    ("4400", "Interest Income", AccountType.REVENUE, "4000"),
    ("5000", "Expenses", AccountType.EXPENSE, None),
    ("5100", "Salaries & Wages", AccountType.EXPENSE, "5000"),
    ("5110", "Pension Expense", AccountType.EXPENSE, "5100"),
    ("5200", "Utilities", AccountType.EXPENSE, "5000"),
    ("5300", "Maintenance", AccountType.EXPENSE, "5000"),
    ("5400", "Supplies", AccountType.EXPENSE, "5000"),
    ("5500", "Depreciation Expense", AccountType.EXPENSE, "5000"),
    ("5600", "Administrative Expenses", AccountType.EXPENSE, "5000"),
    ("5700", "Bank Charges", AccountType.EXPENSE, "5000"),
    ("5900", "Other Expenses", AccountType.EXPENSE, "5000"),
]


class ChartOfAccountsService:
    """Service for managing the chart of accounts.

    Reads are served from a per-instance TTL cache that is cleared on every
    write made through this service.
    """

    def __init__(self, db: Database, cache: Optional[TTLCache] = None):
        """Initialize chart of accounts service.

        Args:
            db: Database instance
            cache: Optional cache (a fresh 3-minute cache by default)
        """
        self.db = db
        self.cache = cache if cache is not None else TTLCache()

    def _all_accounts(self) -> list[Account]:
        return self.cache.get_or_load("accounts", self.db.list_accounts)

    def get_by_code(self, code: str) -> Optional[Account]:
        """Get account by code.

        Args:
            code: Account code (e.g. "1110")

        Returns:
            Account entity or None if not found
        """
        for account in self._all_accounts():
            if account.code == code:
                return account
        return None

    def require(self, code: str) -> Account:
        """Get an account by code, raising NotFoundError when it is missing."""
        account = self.get_by_code(code)
        if account is None:
            raise NotFoundError(account_not_found(code))
        return account

    def get_active_accounts(self) -> list[Account]:
        return [a for a in self._all_accounts() if a.is_active]

    def get_by_type(self, account_type: AccountType) -> list[Account]:
        """Active accounts of one type, ordered by code."""
        return [a for a in self.get_active_accounts() if a.account_type == account_type]

    def get_children(self, parent_code: str) -> list[Account]:
        return [a for a in self._all_accounts() if a.parent_code == parent_code]

    def get_hierarchy(self) -> list[tuple[Account, int]]:
        """Accounts in tree order with their depth (roots at depth 0)."""
        accounts = self._all_accounts()
        codes = {a.code for a in accounts}
        by_parent: dict[Optional[str], list[Account]] = {}
        for account in accounts:
            parent = account.parent_code if account.parent_code in codes else None
            by_parent.setdefault(parent, []).append(account)

        ordered: list[tuple[Account, int]] = []

        def walk(parent: Optional[str], depth: int) -> None:
            for child in by_parent.get(parent, []):
                ordered.append((child, depth))
                walk(child.code, depth + 1)

        walk(None, 0)
        return ordered

    def create_account(
        self,
        code: str,
        name: str,
        account_type: AccountType,
        parent_code: Optional[str] = None,
        category: Optional[AccountCategory] = None,
        description: Optional[str] = None,
    ) -> Account:
        """Create a ledger account.

        Args:
            code: Unique numeric account code
            name: Account name
            account_type: Account type (immutable once created)
            parent_code: Optional parent account code
            category: Report category; derived from the code when omitted
            description: Optional description

        Returns:
            Created account

        Raises:
            ValidationError: If the code is not numeric
            ConflictError: If the code already exists
            NotFoundError: If the parent account does not exist
        """
        code = code.strip()
        if not code.isdigit():
            raise ValidationError(f"Account code '{code}' must be numeric")
        if not name.strip():
            raise ValidationError("Account name is required")
        if self.db.get_account_by_code(code) is not None:
            raise ConflictError(f"Account with code '{code}' already exists")
        if parent_code is not None and self.db.get_account_by_code(parent_code) is None:
            raise NotFoundError(account_not_found(parent_code))

        account_id = self.db.create_account(
            code=code,
            name=name.strip(),
            account_type=account_type,
            category=category or AccountCategory.from_code(code, account_type),
            parent_code=parent_code,
            description=description,
        )
        self.cache.clear()
        return self.db.get_account(account_id)

    def rename_account(self, code: str, name: str, description: Optional[str] = None) -> Account:
        account = self.require(code)
        changes = {"name": name}
        if description is not None:
            changes["description"] = description
        self.db.update_account(account.id, changes, expected_version=account.version)
        self.cache.clear()
        return self.db.get_account(account.id)

    def deactivate_account(self, code: str) -> Account:
        """Deactivate an account. Accounts are never deleted."""
        return self._set_active(code, False)

    def activate_account(self, code: str) -> Account:
        return self._set_active(code, True)

    def _set_active(self, code: str, is_active: bool) -> Account:
        account = self.require(code)
        self.db.update_account(account.id, {"is_active": is_active}, expected_version=account.version)
        self.cache.clear()
        return self.db.get_account(account.id)

    def initialize_defaults(self) -> list[Account]:
        """Create the default school chart of accounts.

        Idempotent: codes that already exist are skipped.

        Returns:
            Newly created accounts
        """
        existing = {a.code for a in self.db.list_accounts()}
        created = []
        for code, name, account_type, parent_code in DEFAULT_ACCOUNTS:
            if code in existing:
                continue
            account_id = self.db.create_account(
                code=code,
                name=name,
                account_type=account_type,
                category=AccountCategory.from_code(code, account_type),
                parent_code=parent_code,
            )
            created.append(self.db.get_account(account_id))
        self.cache.clear()
        logger.info("Initialized chart of accounts: %d created, %d existing", len(created), len(existing))
        return created

    def find_by_name(self, *fragments: str, account_type: Optional[AccountType] = None) -> Optional[Account]:
        """First active account whose name contains any of the fragments (case-insensitive)."""
        candidates = self.get_by_type(account_type) if account_type else self.get_active_accounts()
        for account in candidates:
            name = account.name.lower()
            if any(fragment in name for fragment in fragments):
                return account
        return None
