"""Shared domain error messages and error types."""

from decimal import Decimal


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class UnbalancedEntryError(ValidationError):
    """Journal entry debits and credits do not agree."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations or stale versions."""


class InvalidStateError(DomainError):
    """Operation not allowed in the entity's current lifecycle state."""


class DependencyError(DomainError):
    """Operation blocked due to missing or dependent domain data."""


def account_not_found(code: str) -> str:
    """Return message for missing ledger account."""
    return f"Account {code} not found. Please initialize the chart of accounts."


def entry_not_found(entry_id: int) -> str:
    return f"Journal entry {entry_id} not found"


def unbalanced_entry(total_debit: Decimal, total_credit: Decimal) -> str:
    """Return message for a journal entry whose sides disagree."""
    return (
        "Journal entry is not balanced. Debits must equal credits. "
        f"(debits {total_debit:,.2f}, credits {total_credit:,.2f})"
    )


def duplicate_mapping(mapping_type: str, source_type: str) -> str:
    """Return message for a second active mapping on one key."""
    return (
        f"A {mapping_type} mapping for '{source_type}' already exists. "
        "Each source type can only map to one account."
    )


def duplicate_salary(staff_name: str, year: int, month: int) -> str:
    return f"Staff {staff_name} already has a salary payment for {year}-{month:02d}"


def stale_version(kind: str, record_id: int, expected: int, actual: int) -> str:
    """Return message for an optimistic-concurrency mismatch."""
    return (
        f"{kind} {record_id} was modified by another operation "
        f"(expected version {expected}, found {actual})"
    )


def record_not_found(kind: str, record_id: int) -> str:
    return f"{kind} {record_id} not found"
