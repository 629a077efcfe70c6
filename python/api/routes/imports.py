"""
Statement Import API Routes

Parses uploaded CSV statements for review and persists reviewed
transactions, linking carried bill balances along the way.
"""

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status

from billing import StatementImportService
from statement_import import (
    CategoryRuleLookup,
    Money,
    NormalizedTransaction,
    TransactionType,
    UnrecognizedFormatError,
    detect_bank_from_content,
    detect_recurring_transaction,
    detect_transfer,
    parse_csv,
)

from ..auth import get_current_user_id
from ..dependencies import get_category_lookup, get_import_service
from ..schemas import (
    CandidateTransaction,
    CSVParseResponse,
    ImportRequest,
    ImportResponse,
    ImportTransactionIn,
    LinkedCarryover,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/import", tags=["import"])


def _to_normalized(item: ImportTransactionIn) -> NormalizedTransaction:
    """Coerce the amount sign to match the declared type."""
    txn_type = TransactionType(item.type)
    if txn_type == TransactionType.EXPENSE:
        money = Money.expense(item.amount)
    elif txn_type == TransactionType.INCOME:
        money = Money.income(item.amount)
    else:
        money = Money.from_signed(item.amount)

    return NormalizedTransaction(
        description=item.description,
        money=money,
        date=item.txn_date,
        type=txn_type,
        is_installment=item.is_installment,
        current_installment=item.current_installment,
        total_installments=item.total_installments,
        suggested_category_id=item.category_id or item.suggested_category_id,
        transaction_kind=item.transaction_kind,
    )


def _decode(raw: bytes) -> str:
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        # Older bank exports are Latin-1
        return raw.decode("latin-1")


@router.post("", response_model=ImportResponse, status_code=status.HTTP_201_CREATED)
async def import_transactions(
    request: ImportRequest,
    user_id: str = Depends(get_current_user_id),
    service: StatementImportService = Depends(get_import_service),
) -> ImportResponse:
    """Persist reviewed transactions.

    Args:
        request: Transactions and their origin
        user_id: Authenticated user
        service: Import service

    Returns:
        Import counts and the carryovers that were linked
    """
    transactions = [_to_normalized(item) for item in request.transactions]
    result = service.import_transactions(transactions, user_id, request.origin)

    return ImportResponse(
        message=result.message,
        count=result.count,
        carryover_linked_count=result.linked_count,
        linked_carryovers=[LinkedCarryover(**link.to_dict()) for link in result.links],
    )


@router.post("/csv", response_model=CSVParseResponse)
async def parse_csv_upload(
    file: UploadFile = File(...),
    origin: str | None = Form(None),
    user_id: str = Depends(get_current_user_id),
    lookup: CategoryRuleLookup = Depends(get_category_lookup),
) -> CSVParseResponse:
    """Parse an uploaded card statement CSV for review.

    Args:
        file: CSV export from C6, Itau or BTG
        origin: Origin label; detected from the content when omitted
        user_id: Authenticated user
        lookup: Category rule lookup

    Returns:
        Candidate transactions
    """
    content = _decode(await file.read())
    origin = origin or detect_bank_from_content(content)

    try:
        transactions = parse_csv(content, origin, category_lookup=lookup, user_id=user_id)
    except UnrecognizedFormatError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    candidates = []
    for txn in transactions:
        if detect_transfer(txn.description):
            txn.type = TransactionType.TRANSFER

        recurring = detect_recurring_transaction(txn.description)
        txn.is_recurring = recurring.is_recurring
        txn.recurring_name = recurring.recurring_name

        candidates.append(CandidateTransaction(
            **txn.to_dict(),
            category_id=txn.suggested_category_id,
        ))

    logger.info(f"CSV upload {file.filename}: {len(candidates)} candidates for {origin}")

    return CSVParseResponse(
        transactions=candidates,
        origin=origin,
        count=len(candidates),
    )
