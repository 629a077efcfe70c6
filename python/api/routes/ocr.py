"""
OCR Statement API Routes

Turns text recognized from a statement image or PDF into candidate
transactions for review.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from statement_import import (
    CategoryRuleLookup,
    detect_installment,
    detect_recurring_transaction,
    detect_special_transaction,
    parse_statement_text,
)

from ..auth import get_current_user_id
from ..dependencies import get_category_lookup
from ..schemas import CandidateTransaction, OCRParseRequest, OCRParseResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ocr", tags=["ocr"])


@router.post("/parse", response_model=OCRParseResponse)
async def parse_ocr_text(
    request: OCRParseRequest,
    user_id: str = Depends(get_current_user_id),
    lookup: CategoryRuleLookup = Depends(get_category_lookup),
) -> OCRParseResponse:
    """Parse OCR text into candidate transactions.

    Args:
        request: Recognized text and its confidence
        user_id: Authenticated user
        lookup: Category rule lookup

    Returns:
        Candidates with installment, recurring and category hints
    """
    if not request.text.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Nao foi possivel extrair texto do arquivo. Verifique se a imagem esta legivel.",
        )

    result = parse_statement_text(request.text, request.confidence)

    if not result.transactions:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Nenhuma transacao encontrada no arquivo. Certifique-se de que o extrato esta claro e legivel.",
        )

    candidates = []
    for txn in result.transactions:
        category = lookup.suggest_for_statement_line(txn.description, txn.transaction_kind, user_id)
        category_id = category.id if category is not None else None

        installment = detect_installment(txn.description)
        recurring = detect_recurring_transaction(txn.description)
        special = detect_special_transaction(txn.description)

        candidates.append(CandidateTransaction(
            description=txn.description,
            amount=float(txn.amount),
            txn_date=txn.date,
            type=txn.type.value,
            category_id=category_id,
            suggested_category_id=category_id,
            is_installment=installment.is_installment,
            current_installment=installment.current_installment,
            total_installments=installment.total_installments,
            is_recurring=recurring.is_recurring,
            recurring_name=recurring.recurring_name,
            transaction_kind=txn.transaction_kind,
            special_type=special.type if special else None,
            special_type_warning=special.warning if special else None,
            confidence=txn.confidence,
        ))

    logger.info(f"OCR parse for {user_id}: {len(candidates)} candidates from {result.bank}")

    return OCRParseResponse(
        transactions=candidates,
        origin=result.bank,
        confidence=result.average_confidence,
        is_credit_card=result.is_credit_card,
        invoice_due_date=result.invoice_due_date,
    )
