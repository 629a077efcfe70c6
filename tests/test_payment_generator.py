"""
Bill Payment Generator Tests

Tests for the transactions generated when a card bill is paid partially
or financed.
"""

import pytest
from datetime import datetime
from decimal import Decimal
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "python"))

from billing import (
    BillPaymentGenerator,
    BillPaymentNotFoundError,
    BillPaymentRequest,
    BillPaymentService,
    BillPaymentValidationError,
    DuplicateBillPaymentError,
    PaymentType,
    RecordNotFoundError,
    calculate_installment_with_interest,
    create_date_for_month,
    validate_payment_request,
)
from billing.payment_generator import format_bill_label, next_month
from ledger.models import Transaction


def make_request(user_id="user-1", **overrides) -> BillPaymentRequest:
    fields = dict(
        bill_month=1,
        bill_year=2026,
        origin="Cartao C6",
        total_bill_amount=Decimal("12000.00"),
        amount_paid=Decimal("10000.00"),
        payment_type=PaymentType.PARTIAL,
        user_id=user_id,
        interest_rate=Decimal("10"),
    )
    fields.update(overrides)
    return BillPaymentRequest(**fields)


@pytest.fixture
def generator(store, config_dir):
    return BillPaymentGenerator(store, config_dir)


class TestHelpers:
    """Tests for date and amount helpers."""

    def test_generated_date_is_mid_month_noon(self):
        assert create_date_for_month(2, 2026) == datetime(2026, 2, 15, 12, 0, 0)

    def test_next_month_rolls_year(self):
        assert next_month(12, 2025) == (1, 2026)
        assert next_month(6, 2026) == (7, 2026)

    def test_bill_label(self):
        assert format_bill_label(3, 2026) == "Marco/2026"
        assert make_request().bill_label == "Janeiro/2026"

    def test_installment_with_interest(self):
        calculation = calculate_installment_with_interest(Decimal("8000"), 4, Decimal("10"))

        assert calculation.installment_amount == Decimal("2200.00")
        assert calculation.total_with_interest == Decimal("8800.00")
        assert calculation.interest_amount == Decimal("800.00")

    def test_installment_without_interest(self):
        calculation = calculate_installment_with_interest(Decimal("1000"), 3, None)

        assert calculation.installment_amount == Decimal("333.33")
        assert calculation.interest_amount == Decimal("0.00")

    def test_zero_rate_means_no_interest(self):
        calculation = calculate_installment_with_interest(Decimal("1000"), 2, Decimal("0"))

        assert calculation.total_with_interest == Decimal("1000.00")


class TestValidation:
    """Tests for bill payment request validation."""

    def test_valid_request(self):
        validate_payment_request(make_request())

    @pytest.mark.parametrize("overrides", [
        {"bill_month": 0},
        {"bill_month": 13},
        {"payment_type": "MINIMUM"},
        {"amount_paid": Decimal("12000.00")},
        {"amount_paid": Decimal("13000.00")},
        {"payment_type": PaymentType.FINANCED, "installments": None},
        {"payment_type": PaymentType.FINANCED, "installments": 1},
    ])
    def test_invalid_requests(self, overrides):
        with pytest.raises(BillPaymentValidationError):
            validate_payment_request(make_request(**overrides))

    def test_string_payment_type_accepted(self):
        validate_payment_request(make_request(payment_type="FINANCED", installments=2))


class TestPartialPayment:
    """Tests for partial payments with a carried balance."""

    def test_entry_and_carryover(self, generator, store):
        result = generator.generate_partial_payment_transactions(make_request())

        assert result.amount_carried == Decimal("2000.00")
        assert result.interest_amount == Decimal("200.00")

        entry = store.get_transaction(result.entry_transaction_id)
        assert entry.amount == Decimal("-10000.00")
        assert entry.date == datetime(2026, 1, 15, 12, 0)
        assert entry.description == "Pagamento Fatura Janeiro/2026 - Cartao C6"
        assert entry.type == "EXPENSE"

        carryover = store.get_transaction(result.carryover_transaction_id)
        assert carryover.amount == Decimal("-2200.00")
        assert carryover.date == datetime(2026, 2, 15, 12, 0)
        assert carryover.description == "Saldo Anterior Fatura Janeiro/2026 - Cartao C6"

    def test_december_bill_carries_into_january(self, generator, store):
        result = generator.generate_partial_payment_transactions(
            make_request(bill_month=12, bill_year=2025)
        )

        carryover = store.get_transaction(result.carryover_transaction_id)
        assert carryover.date == datetime(2026, 1, 15, 12, 0)

    def test_without_interest(self, generator, store):
        result = generator.generate_partial_payment_transactions(make_request(interest_rate=None))

        assert result.interest_amount == Decimal("0.00")
        assert store.get_transaction(result.carryover_transaction_id).amount == Decimal("-2000.00")

    def test_category_applied(self, generator, store, categories):
        category_id = categories["Servicos"].id
        result = generator.generate_partial_payment_transactions(make_request(category_id=category_id))

        assert store.get_transaction(result.entry_transaction_id).category_id == category_id


class TestFinancedPayment:
    """Tests for financed bills."""

    def test_installments(self, generator, store):
        request = make_request(
            amount_paid=Decimal("4000.00"),
            payment_type=PaymentType.FINANCED,
            installments=4,
        )
        result = generator.generate_financed_payment_transactions(request)

        assert result.amount_carried == Decimal("8000.00")
        assert result.installment_amount == Decimal("2200.00")
        assert len(result.installment_transaction_ids) == 4

        entry = store.get_transaction(result.entry_transaction_id)
        assert entry.amount == Decimal("-4000.00")
        assert entry.description == "Entrada Financiamento Fatura Janeiro/2026 - Cartao C6"

        installment = store.get_installment(result.installment_id)
        assert installment.total_installments == 4
        assert installment.total_amount == Decimal("8800.00")
        assert installment.start_date == datetime(2026, 2, 1, 12, 0)

        transactions = [store.get_transaction(i) for i in result.installment_transaction_ids]
        assert [t.date.month for t in transactions] == [2, 3, 4, 5]
        assert all(t.amount == Decimal("-2200.00") for t in transactions)
        assert all(t.is_installment for t in transactions)
        assert [t.current_installment for t in transactions] == [1, 2, 3, 4]
        assert transactions[0].description == "Financiamento Fatura Janeiro/2026 - Cartao C6 (1/4)"

    def test_installments_cross_year(self, generator, store):
        request = make_request(
            bill_month=11,
            bill_year=2025,
            payment_type=PaymentType.FINANCED,
            installments=3,
        )
        result = generator.generate_financed_payment_transactions(request)

        dates = [store.get_transaction(i).date for i in result.installment_transaction_ids]
        assert [(d.month, d.year) for d in dates] == [(12, 2025), (1, 2026), (2, 2026)]


class TestDispatchAndDelete:
    """Tests for type dispatch and deletion of generated rows."""

    def test_dispatch_partial(self, generator):
        generated = generator.generate_bill_payment_transactions(make_request())

        assert generated.carryover_transaction_id is not None
        assert generated.installment_id is None

    def test_dispatch_financed(self, generator):
        generated = generator.generate_bill_payment_transactions(
            make_request(payment_type="FINANCED", installments=2)
        )

        assert generated.installment_id is not None
        assert generated.carryover_transaction_id is None

    def test_dispatch_unknown_type(self, generator):
        with pytest.raises(BillPaymentValidationError):
            generator.generate_bill_payment_transactions(make_request(payment_type="OTHER"))

    def test_dispatch_financed_without_installments(self, generator):
        with pytest.raises(BillPaymentValidationError):
            generator.generate_bill_payment_transactions(
                make_request(payment_type=PaymentType.FINANCED, installments=None)
            )

    def test_delete_is_repeatable(self, generator, store, db, user_id):
        service = BillPaymentService(store, generator)
        bill_payment = service.create(make_request(
            payment_type=PaymentType.FINANCED,
            installments=3,
        ))

        generator.delete_bill_payment_transactions(bill_payment.id, user_id)
        generator.delete_bill_payment_transactions(bill_payment.id, user_id)

        assert db.query(Transaction).count() == 0
        assert store.get_installment(bill_payment.installment_id) is None

    def test_delete_unknown_bill_payment(self, generator, user_id):
        with pytest.raises(BillPaymentNotFoundError):
            generator.delete_bill_payment_transactions("missing", user_id)

    def test_soft_delete_carryover(self, generator, store, user_id):
        result = generator.generate_partial_payment_transactions(make_request())

        generator.soft_delete_carryover_transaction(result.carryover_transaction_id, user_id)

        assert store.get_transaction(result.carryover_transaction_id).deleted_at is not None

    def test_soft_delete_missing(self, generator, user_id):
        with pytest.raises(RecordNotFoundError):
            generator.soft_delete_carryover_transaction("missing", user_id)


class TestBillPaymentService:
    """Tests for the bill payment lifecycle."""

    def test_create_stores_generated_ids(self, store, user_id):
        service = BillPaymentService(store)
        bill_payment = service.create(make_request())

        assert bill_payment.payment_type == "PARTIAL"
        assert bill_payment.amount_carried == Decimal("2000.00")
        assert bill_payment.interest_amount == Decimal("200.00")
        assert bill_payment.entry_transaction_id is not None
        assert bill_payment.carryover_transaction_id is not None
        assert bill_payment.linked_transaction_id is None

    def test_duplicate_rejected(self, store):
        service = BillPaymentService(store)
        service.create(make_request())

        with pytest.raises(DuplicateBillPaymentError):
            service.create(make_request(amount_paid=Decimal("5000.00")))

    def test_same_month_other_origin_allowed(self, store, user_id):
        service = BillPaymentService(store)
        service.create(make_request())
        service.create(make_request(origin="Cartao Itau"))

        assert len(service.list_payments(user_id)) == 2

    def test_list_filters_and_order(self, store, user_id):
        service = BillPaymentService(store)
        service.create(make_request(bill_month=1))
        service.create(make_request(bill_month=3))
        service.create(make_request(bill_month=12, bill_year=2025))

        months = [(p.bill_month, p.bill_year) for p in service.list_payments(user_id)]
        assert months == [(3, 2026), (1, 2026), (12, 2025)]
        assert len(service.list_payments(user_id, bill_year=2026)) == 2
        assert service.list_payments("someone-else") == []

    def test_update_amount_paid_recomputes(self, store, user_id):
        service = BillPaymentService(store)
        bill_payment = service.create(make_request())

        updated = service.update(bill_payment.id, user_id, {"amount_paid": Decimal("11000")})

        assert updated.amount_carried == Decimal("1000.00")
        assert updated.interest_amount == Decimal("100.00")

    def test_update_interest_rate(self, store, user_id):
        service = BillPaymentService(store)
        bill_payment = service.create(make_request())

        updated = service.update(bill_payment.id, user_id, {"interest_rate": Decimal("5")})

        assert updated.interest_amount == Decimal("100.00")

    @pytest.mark.parametrize("changes", [
        {},
        {"amount_paid": Decimal("12000")},
        {"payment_type": "OTHER"},
        {"payment_type": "FINANCED", "installments": 1},
    ])
    def test_update_rejected(self, store, user_id, changes):
        service = BillPaymentService(store)
        bill_payment = service.create(make_request())

        with pytest.raises(BillPaymentValidationError):
            service.update(bill_payment.id, user_id, changes)

    def test_get_other_users_payment(self, store):
        service = BillPaymentService(store)
        bill_payment = service.create(make_request())

        with pytest.raises(BillPaymentNotFoundError):
            service.get(bill_payment.id, "someone-else")

    def test_delete(self, store, db, user_id):
        service = BillPaymentService(store)
        bill_payment = service.create(make_request())

        service.delete(bill_payment.id, user_id)

        assert service.list_payments(user_id) == []
        assert db.query(Transaction).count() == 0

        with pytest.raises(BillPaymentNotFoundError):
            service.delete(bill_payment.id, user_id)
