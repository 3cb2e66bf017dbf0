"""Domain layer for schoolbooks: entities, errors and accounting services."""

from importlib import import_module

_SERVICE_MODULES = {
    "AccountMappingService": "schoolbooks.domain.account_mapping",
    "AssetService": "schoolbooks.domain.assets",
    "AutoPostingService": "schoolbooks.domain.auto_posting",
    "BankingAutoPostService": "schoolbooks.domain.bank_posting",
    "BankingService": "schoolbooks.domain.banking",
    "ChartOfAccountsService": "schoolbooks.domain.chart_of_accounts",
    "ExpenseService": "schoolbooks.domain.expenses",
    "FeeService": "schoolbooks.domain.payments",
    "JournalService": "schoolbooks.domain.journal",
    "PaymentService": "schoolbooks.domain.payments",
    "PayrollService": "schoolbooks.domain.payroll",
    "PostingReconciliationService": "schoolbooks.domain.reconciliation",
    "ReportsService": "schoolbooks.domain.reports",
}

__all__ = sorted(_SERVICE_MODULES)


# Services import the database layer, which imports domain.entities, so they
# are resolved on first access rather than when this package loads.
def __getattr__(name):
    module_name = _SERVICE_MODULES.get(name)
    if module_name is None:
        raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
    return getattr(import_module(module_name), name)
