"""
Bill Payments API Routes

Registers partial and financed credit card bill payments and the
transactions generated for them.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from billing import (
    BillPaymentNotFoundError,
    BillPaymentRequest,
    BillPaymentService,
    BillPaymentValidationError,
    DuplicateBillPaymentError,
)

from ..auth import get_current_user_id
from ..dependencies import get_bill_payment_service
from ..schemas import BillPaymentCreate, BillPaymentOut, BillPaymentUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bill-payments", tags=["bill-payments"])


def _not_found(e: BillPaymentNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get("", response_model=list[BillPaymentOut])
async def list_bill_payments(
    month: int | None = Query(None, ge=1, le=12),
    year: int | None = Query(None),
    origin: str | None = Query(None),
    user_id: str = Depends(get_current_user_id),
    service: BillPaymentService = Depends(get_bill_payment_service),
) -> list[BillPaymentOut]:
    """List bill payments, newest bill first."""
    payments = service.list_payments(user_id, month, year, origin)
    return [BillPaymentOut.model_validate(p) for p in payments]


@router.post("", response_model=BillPaymentOut, status_code=status.HTTP_201_CREATED)
async def create_bill_payment(
    payload: BillPaymentCreate,
    user_id: str = Depends(get_current_user_id),
    service: BillPaymentService = Depends(get_bill_payment_service),
) -> BillPaymentOut:
    """Register a bill payment and generate its transactions.

    Args:
        payload: Bill, amounts and payment type
        user_id: Authenticated user
        service: Bill payment service

    Returns:
        Created bill payment
    """
    request = BillPaymentRequest(
        bill_month=payload.bill_month,
        bill_year=payload.bill_year,
        origin=payload.origin,
        total_bill_amount=payload.total_bill_amount,
        amount_paid=payload.amount_paid,
        payment_type=payload.payment_type,
        user_id=user_id,
        installments=payload.installments,
        interest_rate=payload.interest_rate,
        category_id=payload.category_id,
    )

    try:
        bill_payment = service.create(request)
    except BillPaymentValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except DuplicateBillPaymentError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    return BillPaymentOut.model_validate(bill_payment)


@router.get("/{bill_payment_id}", response_model=BillPaymentOut)
async def get_bill_payment(
    bill_payment_id: str,
    user_id: str = Depends(get_current_user_id),
    service: BillPaymentService = Depends(get_bill_payment_service),
) -> BillPaymentOut:
    try:
        return BillPaymentOut.model_validate(service.get(bill_payment_id, user_id))
    except BillPaymentNotFoundError as e:
        raise _not_found(e)


@router.put("/{bill_payment_id}", response_model=BillPaymentOut)
async def update_bill_payment(
    bill_payment_id: str,
    payload: BillPaymentUpdate,
    user_id: str = Depends(get_current_user_id),
    service: BillPaymentService = Depends(get_bill_payment_service),
) -> BillPaymentOut:
    """Edit interest rate, amount paid or payment type.

    The carried amount and interest are recomputed from the edited values.
    """
    try:
        bill_payment = service.update(
            bill_payment_id, user_id, payload.model_dump(exclude_unset=True)
        )
    except BillPaymentNotFoundError as e:
        raise _not_found(e)
    except BillPaymentValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return BillPaymentOut.model_validate(bill_payment)


@router.delete("/{bill_payment_id}")
async def delete_bill_payment(
    bill_payment_id: str,
    user_id: str = Depends(get_current_user_id),
    service: BillPaymentService = Depends(get_bill_payment_service),
) -> dict:
    """Delete a bill payment with its generated transactions and installment."""
    try:
        service.delete(bill_payment_id, user_id)
    except BillPaymentNotFoundError as e:
        raise _not_found(e)

    return {"success": True}
