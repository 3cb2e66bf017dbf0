"""Account mapping domain service.

Maps business concepts (fee types, expense categories, asset types and
liability sources) onto ledger accounts. At most one active mapping exists
per (mapping type, source type); anomalies are tolerated on read and can be
repaired with ``remove_duplicates``.
"""

import logging
from typing import Optional

from schoolbooks.database.base import Database
from schoolbooks.domain.entities import AccountMapping, MappingType
from schoolbooks.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    account_not_found,
    duplicate_mapping,
    record_not_found,
)
from schoolbooks.utils.cache import TTLCache

logger = logging.getLogger(__name__)

FALLBACK_ACCOUNTS = {
    MappingType.REVENUE: "4300",
    MappingType.EXPENSE: "5900",
    MappingType.ASSET: "1200",
    MappingType.LIABILITY: "2120",
}

# (source type, display name, account code)
DEFAULT_MAPPINGS = {
    MappingType.REVENUE: [
        ("tuition", "Tuition Fees", "4100"),
        ("uniform", "Uniform", "4200"),
        ("books", "Books", "4200"),
        ("sports", "Sports", "4200"),
        ("development", "Development Levy", "4200"),
        ("examination", "Examination Fees", "4200"),
        ("pta", "PTA Levy", "4200"),
        ("computer", "Computer Fees", "4200"),
        ("library", "Library Fees", "4200"),
        ("laboratory", "Laboratory Fees", "4200"),
        ("lesson", "Extra Lessons", "4200"),
        ("feeding", "Feeding", "4300"),
        ("transport", "Transport", "4300"),
        ("other", "Other Fees", "4300"),
    ],
    MappingType.EXPENSE: [
        ("salaries", "Salaries", "5100"),
        ("utilities", "Utilities", "5200"),
        ("maintenance", "Maintenance", "5300"),
        ("stationery", "Stationery & Supplies", "5400"),
        ("administrative", "Administrative", "5600"),
        ("bank_charges", "Bank Charges", "5700"),
        ("miscellaneous", "Miscellaneous", "5900"),
    ],
    MappingType.ASSET: [
        ("building", "Buildings", "1210"),
        ("equipment", "Equipment", "1220"),
        ("furniture", "Furniture", "1230"),
        ("vehicle", "Vehicles", "1240"),
        ("computer", "Computers", "1220"),
    ],
    MappingType.LIABILITY: [
        ("vendor_payable", "Vendor Payables", "2110"),
        ("salary_payable", "Salaries Payable", "2120"),
        ("tax_payable", "PAYE Tax Payable", "2130"),
        ("loan_payable", "Loans Payable", "2210"),
        ("nhf_payable", "NHF Payable", "2140"),
        ("pension_payable", "Pension Payable", "2150"),
        ("nhis_payable", "NHIS Payable", "2160"),
    ],
}


def normalize_source_type(source_type: str) -> str:
    """Canonical key form: lower case, spaces and dashes as underscores."""
    return source_type.strip().lower().replace(" ", "_").replace("-", "_")


class AccountMappingService:
    """Service for resolving and maintaining account mappings."""

    def __init__(self, db: Database, cache: Optional[TTLCache] = None):
        """Initialize account mapping service.

        Args:
            db: Database instance
            cache: Optional cache (a fresh 3-minute cache by default)
        """
        self.db = db
        self.cache = cache if cache is not None else TTLCache()

    def _require_active_account(self, account_code: str) -> None:
        account = self.db.get_account_by_code(account_code)
        if account is None:
            raise NotFoundError(account_not_found(account_code))
        if not account.is_active:
            raise ValidationError(f"Account {account_code} is inactive")

    def _active_mappings(self, mapping_type: MappingType) -> list[AccountMapping]:
        return self.cache.get_or_load(
            ("mappings", mapping_type),
            lambda: self.db.list_account_mappings(mapping_type=mapping_type),
        )

    def get_mapping(self, mapping_type: MappingType, source_type: str) -> Optional[AccountMapping]:
        """Get the active mapping for a key.

        When several active mappings exist for the key, the most recently
        updated one wins and a warning is logged.

        Args:
            mapping_type: Mapping type
            source_type: Business source type (e.g. "tuition")

        Returns:
            AccountMapping or None if the key is not mapped
        """
        key = normalize_source_type(source_type)
        matches = [m for m in self._active_mappings(mapping_type) if m.source_type == key]
        if not matches:
            return None
        if len(matches) > 1:
            logger.warning(
                "Found %d active %s mappings for '%s'; using mapping %d. "
                "Run remove_duplicates to repair.",
                len(matches),
                mapping_type.value,
                key,
                matches[0].id,
            )
        return matches[0]

    def resolve(self, mapping_type: MappingType, source_type: str) -> str:
        """Resolve a source type to an account code.

        Never raises for an unmapped source type: the fallback account for
        the mapping type is returned instead.

        Args:
            mapping_type: Mapping type
            source_type: Business source type

        Returns:
            Account code
        """
        mapping = self.get_mapping(mapping_type, source_type)
        if mapping is not None:
            return mapping.account_code
        fallback = FALLBACK_ACCOUNTS[mapping_type]
        logger.info(
            "No %s mapping for '%s'; falling back to account %s",
            mapping_type.value,
            source_type,
            fallback,
        )
        return fallback

    def list_mappings(self, mapping_type: Optional[MappingType] = None) -> list[AccountMapping]:
        """Active mappings with one entry per key (newest wins), ordered by key."""
        types = [mapping_type] if mapping_type is not None else list(MappingType)
        result = []
        for current_type in types:
            seen = set()
            for mapping in self._active_mappings(current_type):
                if mapping.source_type in seen:
                    continue
                seen.add(mapping.source_type)
                result.append(mapping)
        return sorted(result, key=lambda m: (m.mapping_type.value, m.source_type))

    def get_by_type(self, mapping_type: MappingType) -> list[AccountMapping]:
        return self.list_mappings(mapping_type)

    def validate_no_duplicate(
        self, mapping_type: MappingType, source_type: str, exclude_id: Optional[int] = None
    ) -> None:
        """Raise ConflictError when another active mapping exists for the key."""
        key = normalize_source_type(source_type)
        for mapping in self.db.list_account_mappings(mapping_type=mapping_type, source_type=key):
            if mapping.id != exclude_id:
                raise ConflictError(duplicate_mapping(mapping_type.value, key))

    def set_mapping(
        self,
        mapping_type: MappingType,
        source_type: str,
        account_code: str,
        source_name: Optional[str] = None,
        existing_id: Optional[int] = None,
    ) -> AccountMapping:
        """Create or update the mapping for a key.

        Args:
            mapping_type: Mapping type
            source_type: Business source type
            account_code: Target account code (must exist and be active)
            source_name: Display name (defaults to the source type)
            existing_id: ID of the active mapping to update in place. When the
                key is already mapped and this is not given, the call is rejected.

        Returns:
            The created or updated mapping

        Raises:
            NotFoundError: If the account or the mapping named by existing_id is missing
            ValidationError: If the account is inactive
            ConflictError: If the key is already mapped and existing_id does not name it
        """
        key = normalize_source_type(source_type)
        if not key:
            raise ValidationError("Source type is required")
        self._require_active_account(account_code)

        current = self.db.list_account_mappings(mapping_type=mapping_type, source_type=key)

        if existing_id is not None:
            existing = self.db.get_account_mapping(existing_id)
            if existing is None or not existing.is_active:
                raise NotFoundError(record_not_found("Account mapping", existing_id))
            if existing.mapping_type != mapping_type or existing.source_type != key:
                raise ConflictError(
                    f"Mapping {existing_id} belongs to {existing.mapping_type.value} "
                    f"'{existing.source_type}', not '{key}'"
                )
            self.validate_no_duplicate(mapping_type, key, exclude_id=existing_id)
            changes = {"account_code": account_code}
            if source_name is not None:
                changes["source_name"] = source_name
            self.db.update_account_mapping(existing_id, changes, expected_version=existing.version)
            self.cache.clear()
            logger.info("Updated %s mapping '%s' -> %s", mapping_type.value, key, account_code)
            return self.db.get_account_mapping(existing_id)

        if current:
            raise ConflictError(duplicate_mapping(mapping_type.value, key))

        mapping_id = self.db.create_account_mapping(
            mapping_type=mapping_type,
            source_type=key,
            source_name=source_name or source_type,
            account_code=account_code,
            is_default=False,
        )
        self.cache.clear()
        logger.info("Created %s mapping '%s' -> %s", mapping_type.value, key, account_code)
        return self.db.get_account_mapping(mapping_id)

    def upsert_mapping(
        self,
        mapping_type: MappingType,
        source_type: str,
        account_code: str,
        source_name: Optional[str] = None,
    ) -> AccountMapping:
        """Set a mapping, updating the current active mapping for the key if there is one.

        Older active duplicates for the key are deactivated first, so the
        newest mapping is the one updated and the key ends with one mapping.
        """
        key = normalize_source_type(source_type)
        current = self.db.list_account_mappings(mapping_type=mapping_type, source_type=key)
        if len(current) > 1:
            self._require_active_account(account_code)
            for stale in current[1:]:
                self.db.update_account_mapping(
                    stale.id, {"is_active": False}, expected_version=stale.version
                )
            self.cache.clear()
            logger.warning(
                "Deactivated %d duplicate %s mappings for '%s'",
                len(current) - 1,
                mapping_type.value,
                key,
            )
        return self.set_mapping(
            mapping_type,
            source_type,
            account_code,
            source_name=source_name,
            existing_id=current[0].id if current else None,
        )

    def deactivate_mapping(self, mapping_id: int) -> None:
        """Deactivate a mapping. Mappings are never deleted."""
        mapping = self.db.get_account_mapping(mapping_id)
        if mapping is None:
            raise NotFoundError(record_not_found("Account mapping", mapping_id))
        self.db.update_account_mapping(mapping_id, {"is_active": False}, expected_version=mapping.version)
        self.cache.clear()

    def remove_duplicates(self) -> int:
        """Deactivate all but the newest active mapping for every key.

        Returns:
            Number of mappings deactivated
        """
        removed = 0
        seen: set[tuple[MappingType, str]] = set()
        # Newest first, so the first mapping seen for a key is the survivor
        for mapping in self.db.list_account_mappings():
            key = (mapping.mapping_type, mapping.source_type)
            if key not in seen:
                seen.add(key)
                continue
            self.db.update_account_mapping(
                mapping.id, {"is_active": False}, expected_version=mapping.version
            )
            removed += 1
        self.cache.clear()
        if removed:
            logger.warning("Deactivated %d duplicate account mappings", removed)
        return removed

    def initialize_defaults(self) -> dict[MappingType, list[AccountMapping]]:
        """Create the default mappings for every mapping type.

        Keys that are already mapped are left alone. A mapping type whose
        target accounts are missing is skipped with a warning.

        Returns:
            Newly created mappings per mapping type
        """
        created: dict[MappingType, list[AccountMapping]] = {}
        for mapping_type, defaults in DEFAULT_MAPPINGS.items():
            created[mapping_type] = self._initialize_type(mapping_type, defaults)
        self.remove_duplicates()
        return created

    def _initialize_type(
        self, mapping_type: MappingType, defaults: list[tuple[str, str, str]]
    ) -> list[AccountMapping]:
        missing = sorted(
            {code for _, _, code in defaults if self.db.get_account_by_code(code) is None}
        )
        if missing:
            logger.warning(
                "Skipping default %s mappings: accounts %s not found. "
                "Initialize the chart of accounts first.",
                mapping_type.value,
                ", ".join(missing),
            )
            return []

        existing = {m.source_type for m in self.db.list_account_mappings(mapping_type=mapping_type)}
        created = []
        for source_type, source_name, account_code in defaults:
            if source_type in existing:
                continue
            mapping_id = self.db.create_account_mapping(
                mapping_type=mapping_type,
                source_type=source_type,
                source_name=source_name,
                account_code=account_code,
                is_default=True,
            )
            created.append(self.db.get_account_mapping(mapping_id))
        self.cache.clear()
        logger.info("Initialized %d default %s mappings", len(created), mapping_type.value)
        return created
