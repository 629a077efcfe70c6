"""
Statement Import Service

Persists reviewed statement lines one row at a time and links carryover
lines to the bill payments that predicted them.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, time

from statement_import.csv_parsers.base import NormalizedTransaction

from .carryover import CarryoverLink, CarryoverReconciler
from .store import BillingStore


logger = logging.getLogger(__name__)


DEFAULT_ORIGIN = "Importacao CSV"

# Imported dates carry no time; noon keeps them on the same calendar day
# in every timezone
IMPORT_TIME = time(12, 0)


@dataclass
class ImportResult:
    count: int = 0
    transaction_ids: list[str] = field(default_factory=list)
    links: list[CarryoverLink] = field(default_factory=list)

    @property
    def linked_count(self) -> int:
        return len(self.links)

    @property
    def message(self) -> str:
        if self.links:
            return (
                f"{self.count} transacoes importadas "
                f"({self.linked_count} vinculadas a saldo anterior)"
            )
        return f"{self.count} transacoes importadas com sucesso"


class StatementImportService:
    """Writes imported transactions and runs carryover reconciliation."""

    def __init__(self, store: BillingStore, reconciler: CarryoverReconciler | None = None):
        self.store = store
        self.reconciler = reconciler or CarryoverReconciler(store)

    def import_transactions(
        self,
        transactions: list[NormalizedTransaction],
        user_id: str,
        origin: str | None = None
    ) -> ImportResult:
        """Persist transactions in order.

        Rows already written stay written if a later row fails. A failure
        while linking a carryover is logged and the row is left unlinked.

        Args:
            transactions: Reviewed candidates
            user_id: Owner
            origin: Origin label for every row

        Returns:
            ImportResult
        """
        origin = origin or DEFAULT_ORIGIN
        result = ImportResult()

        for candidate in transactions:
            record = self.store.create_transaction(
                description=candidate.description,
                amount=candidate.amount,
                date=datetime.combine(candidate.date, IMPORT_TIME),
                type=candidate.type.value,
                origin=origin,
                category_id=candidate.suggested_category_id or None,
                is_installment=candidate.is_installment,
                current_installment=candidate.current_installment,
                total_installments=candidate.total_installments,
                transaction_kind=candidate.transaction_kind,
                user_id=user_id,
            )
            result.count += 1
            result.transaction_ids.append(record.id)

            try:
                link = self.reconciler.reconcile(record)
            except Exception as e:
                self.store.session.rollback()
                logger.error(f"Failed to link carryover {record.id}: {e}", exc_info=True)
                continue

            if link is not None:
                result.links.append(link)

        logger.info(f"Imported {result.count} transactions for {origin}, {result.linked_count} carryovers linked")
        return result
