"""
Bill Payment Errors
"""


class BillingError(Exception):
    """Base error for bill payment operations."""


class BillPaymentValidationError(BillingError):
    """Request violates a bill payment rule (bad type, amounts, installments)."""


class BillPaymentNotFoundError(BillingError):
    """No bill payment with that id exists for the user."""

    def __init__(self, bill_payment_id: str):
        self.bill_payment_id = bill_payment_id
        super().__init__("Pagamento de fatura nao encontrado")


class DuplicateBillPaymentError(BillingError):
    """A payment is already registered for the origin and bill month."""

    def __init__(self, bill_month: int, bill_year: int, origin: str):
        self.bill_month = bill_month
        self.bill_year = bill_year
        self.origin = origin
        super().__init__(
            f"Ja existe um pagamento registrado para a fatura de "
            f"{bill_month}/{bill_year} - {origin}"
        )


class RecordNotFoundError(BillingError):
    """Store operation targeted a row that does not exist."""

    def __init__(self, entity: str, record_id: str):
        self.entity = entity
        self.record_id = record_id
        super().__init__(f"{entity} {record_id} not found")
