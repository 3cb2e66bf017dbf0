"""Tests for the auto-posting engine."""

from datetime import date
from decimal import Decimal

import pytest

from schoolbooks.domain.auto_posting import PostingContext, attempt_posting
from schoolbooks.domain.entities import (
    EntryStatus,
    FeeAllocation,
    PaymentMethod,
    PostingStatus,
    ReferenceType,
    StatutoryDeductions,
)
from schoolbooks.domain.errors import NotFoundError, ValidationError
from schoolbooks.domain.statutory import StatutoryDeductionsCalculator


def _ctx(reference_type=ReferenceType.PAYMENT, reference_id="REF-1", auto_post=True):
    return PostingContext(
        description="Test posting",
        entry_date=date(2024, 1, 15),
        reference_type=reference_type,
        reference_id=reference_id,
        created_by="tester",
        auto_post=auto_post,
    )


def _amounts(entry):
    """{account code: debit minus credit} for an entry."""
    totals = {}
    for line in entry.lines:
        totals[line.account_code] = totals.get(line.account_code, Decimal("0")) + line.debit - line.credit
    return totals


class TestAutoPosting:
    """Tests for AutoPostingService."""

    def test_student_payment_by_bank(self, ledger, engine):
        entry = engine.post_student_payment("50000", PaymentMethod.BANK_TRANSFER, "Ada Obi", _ctx())

        assert entry.status == EntryStatus.POSTED
        assert _amounts(entry) == {"1120": Decimal("50000.00"), "1130": Decimal("-50000.00")}

    def test_student_payment_in_cash(self, ledger, engine):
        entry = engine.post_student_payment("20000", "cash", "Ada Obi", _ctx())
        assert "1110" in _amounts(entry)

    def test_fee_assignment_credits_mapped_revenue(self, ledger, engine):
        allocations = [
            FeeAllocation("tuition", Decimal("150000")),
            FeeAllocation("uniform", Decimal("20000")),
            FeeAllocation("excursion", Decimal("5000")),
        ]
        entry = engine.post_fee_assignment(allocations, "Ada Obi", _ctx(ReferenceType.FEE_ASSIGNMENT))

        assert _amounts(entry) == {
            "1130": Decimal("175000.00"),
            "4100": Decimal("-150000.00"),
            "4200": Decimal("-20000.00"),
            "4300": Decimal("-5000.00"),
        }

    def test_fee_assignment_needs_allocations(self, ledger, engine):
        with pytest.raises(ValidationError):
            engine.post_fee_assignment([], "Ada Obi", _ctx(ReferenceType.FEE_ASSIGNMENT))

    def test_expense_uses_mapping_and_fallback(self, ledger, engine):
        mapped = engine.post_expense(
            "30000", "utilities", "cash", "PHCN", _ctx(ReferenceType.EXPENSE, "E-1")
        )
        unmapped = engine.post_expense(
            "5000", "gardening", "bank_transfer", None, _ctx(ReferenceType.EXPENSE, "E-2")
        )

        assert _amounts(mapped) == {"5200": Decimal("30000.00"), "1110": Decimal("-30000.00")}
        assert _amounts(unmapped) == {"5900": Decimal("5000.00"), "1120": Decimal("-5000.00")}

    def test_non_positive_amount_rejected(self, ledger, engine):
        with pytest.raises(ValidationError, match="greater than zero"):
            engine.post_student_payment("0", "cash", "Ada Obi", _ctx())

    def test_missing_account_raises(self, temp_db, engine):
        with pytest.raises(NotFoundError, match="initialize the chart of accounts"):
            engine.post_student_payment("100", "cash", "Ada Obi", _ctx())

    def test_inactive_account_rejected(self, ledger, engine):
        engine.chart.deactivate_account("1130")
        with pytest.raises(ValidationError, match="inactive"):
            engine.post_student_payment("100", "cash", "Ada Obi", _ctx())

    def test_idempotent_per_reference(self, ledger, engine):
        first = engine.post_student_payment("100", "cash", "Ada Obi", _ctx())
        second = engine.post_student_payment("100", "cash", "Ada Obi", _ctx())

        assert first.id == second.id
        assert len(engine.journal.get_by_reference(ReferenceType.PAYMENT, "REF-1")) == 1

    def test_existing_draft_is_posted(self, ledger, engine):
        draft = engine.post_student_payment("100", "cash", "Ada Obi", _ctx(auto_post=False))
        assert draft.status == EntryStatus.DRAFT

        posted = engine.post_student_payment("100", "cash", "Ada Obi", _ctx())
        assert posted.id == draft.id
        assert posted.status == EntryStatus.POSTED

    def test_reversed_entry_is_not_reused(self, ledger, engine):
        first = engine.post_student_payment("100", "cash", "Ada Obi", _ctx())
        engine.journal.reverse_journal_entry(first.id, "tester")

        again = engine.post_student_payment("100", "cash", "Ada Obi", _ctx())
        assert again.id != first.id

    def test_asset_purchase(self, ledger, engine):
        entry = engine.post_asset_purchase(
            "1200000",
            "bank_transfer",
            "Dell",
            "Laptops",
            "computer",
            _ctx(ReferenceType.ASSET_PURCHASE),
        )
        assert _amounts(entry) == {"1220": Decimal("1200000.00"), "1120": Decimal("-1200000.00")}

    def test_depreciation(self, ledger, engine):
        entry = engine.post_depreciation("20000", "Laptops", "AST-1", _ctx(ReferenceType.DEPRECIATION))
        assert _amounts(entry) == {"5500": Decimal("20000.00"), "1250": Decimal("-20000.00")}


class TestSalaryPosting:
    """Tests for salary entries, which carry the most lines."""

    def test_salary_with_statutory(self, ledger, engine):
        statutory = StatutoryDeductionsCalculator().calculate_all(100000, 50000)
        entry = engine.post_salary_payment(
            staff_name="Musa Bello",
            gross_salary=Decimal("150000"),
            total_deductions=statutory.total_employee_deductions,
            net_pay=Decimal("150000") - statutory.total_employee_deductions,
            tax=0,
            method=PaymentMethod.BANK_TRANSFER,
            ctx=_ctx(ReferenceType.SALARY),
            statutory=statutory,
        )

        assert entry.is_balanced
        assert _amounts(entry) == {
            "5100": Decimal("150000.00"),
            "5110": Decimal("15000.00"),
            "1120": Decimal("-114652.00"),
            "2140": Decimal("-2500.00"),
            "2150": Decimal("-27000.00"),
            "2160": Decimal("-5000.00"),
            "2130": Decimal("-15848.00"),
        }

    @pytest.mark.parametrize("gross", ["45000", "150000", "399999.99", "2500000"])
    @pytest.mark.parametrize("other_deductions", ["0", "1000", "7500.50"])
    @pytest.mark.parametrize("tax", ["0", "3000"])
    def test_salary_without_statutory_balances(self, ledger, engine, gross, other_deductions, tax):
        total = Decimal(other_deductions) + Decimal(tax)
        entry = engine.post_salary_payment(
            staff_name="Musa Bello",
            gross_salary=gross,
            total_deductions=total,
            net_pay=Decimal(gross) - total,
            tax=tax,
            method="cash",
            ctx=_ctx(ReferenceType.SALARY, f"SAL-{gross}-{other_deductions}-{tax}"),
        )

        assert entry.is_balanced
        assert entry.total_debit == Decimal(gross)
        amounts = _amounts(entry)
        if Decimal(tax) > 0:
            assert amounts["2130"] == -Decimal(tax)
        if Decimal(other_deductions) > 0:
            assert amounts["2120"] == -Decimal(other_deductions)

    @pytest.mark.parametrize("basic", [25000, 30000, 100000, 450000, 1000000])
    def test_salary_with_statutory_balances(self, ledger, engine, basic):
        statutory = StatutoryDeductionsCalculator().calculate_all(basic, basic // 2)
        gross = Decimal(basic) + Decimal(basic // 2)
        entry = engine.post_salary_payment(
            staff_name="Musa Bello",
            gross_salary=gross,
            total_deductions=statutory.total_employee_deductions,
            net_pay=gross - statutory.total_employee_deductions,
            tax=0,
            method="bank_transfer",
            ctx=_ctx(ReferenceType.SALARY, f"SAL-{basic}"),
            statutory=statutory,
        )
        assert entry.is_balanced
        assert entry.total_debit == gross + statutory.pension_employer

    def test_net_pay_must_match(self, ledger, engine):
        with pytest.raises(ValidationError, match="does not equal"):
            engine.post_salary_payment(
                staff_name="Musa Bello",
                gross_salary="100000",
                total_deductions="10000",
                net_pay="95000",
                tax="0",
                method="cash",
                ctx=_ctx(ReferenceType.SALARY),
            )

    def test_zero_gross_salary_rejected(self, ledger, engine, journal_service):
        with pytest.raises(ValidationError, match="Gross salary must be greater than zero"):
            engine.post_salary_payment(
                staff_name="Musa Bello",
                gross_salary="0",
                total_deductions="0",
                net_pay="0",
                tax="0",
                method="cash",
                ctx=_ctx(ReferenceType.SALARY),
            )
        assert journal_service.list_entries() == []

    def test_statutory_cannot_exceed_deductions(self, ledger, engine):
        statutory = StatutoryDeductions(
            nhf=Decimal("0"),
            pension_employee=Decimal("0"),
            pension_employer=Decimal("0"),
            nhis=Decimal("0"),
            paye=Decimal("5000"),
            total_employee_deductions=Decimal("5000"),
            total_employer_contributions=Decimal("0"),
        )
        with pytest.raises(ValidationError, match="exceed total deductions"):
            engine.post_salary_payment(
                staff_name="Musa Bello",
                gross_salary="100000",
                total_deductions="1000",
                net_pay="99000",
                tax="0",
                method="cash",
                ctx=_ctx(ReferenceType.SALARY),
                statutory=statutory,
            )


class TestAttemptPosting:
    """Tests for recording posting outcomes on business records."""

    def test_success_records_entry(self, ledger, engine):
        recorded = []
        entry = attempt_posting(
            lambda: engine.post_student_payment("100", "cash", "Ada", _ctx()),
            recorded.append,
            "payment",
        )
        assert recorded == [
            {"journal_entry_id": entry.id, "posting_status": PostingStatus.POSTED, "posting_error": None}
        ]

    def test_failure_is_recorded_not_raised(self, temp_db, engine, caplog):
        recorded = []
        result = attempt_posting(
            lambda: engine.post_student_payment("100", "cash", "Ada", _ctx()),
            recorded.append,
            "payment REF-1",
        )
        assert result is None
        assert recorded[0]["posting_status"] == PostingStatus.FAILED
        assert "not found" in recorded[0]["posting_error"]
        assert "Auto-posting failed for payment REF-1" in caplog.text

    def test_none_is_recorded_as_skipped(self):
        recorded = []
        assert attempt_posting(lambda: None, recorded.append, "bank transaction 1") is None
        assert recorded[0]["posting_status"] == PostingStatus.SKIPPED


class TestDomainPackage:
    """Tests for the services exported by the domain package."""

    def test_services_exported(self):
        import schoolbooks.domain as domain_package
        from schoolbooks.domain import AutoPostingService
        from schoolbooks.domain.auto_posting import AutoPostingService as defined

        assert AutoPostingService is defined
        assert "JournalService" in domain_package.__all__
        for name in domain_package.__all__:
            assert getattr(domain_package, name).__name__ == name

    def test_unknown_name_raises(self):
        import schoolbooks.domain as domain_package

        with pytest.raises(AttributeError):
            domain_package.LedgerService
