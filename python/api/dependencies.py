"""
Route Dependencies

Builds per-request services from the database session and the
application-wide rules cache.
"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from billing import BillingStore, BillPaymentService, StatementImportService
from statement_import import CategoryRuleLookup, RulesCache

from .database import get_db


def get_rules_cache(request: Request) -> RulesCache:
    """Rules cache created by the application factory."""
    return request.app.state.rules_cache


def get_category_lookup(
    db: Session = Depends(get_db),
    cache: RulesCache = Depends(get_rules_cache),
) -> CategoryRuleLookup:
    return CategoryRuleLookup(db, cache)


def get_billing_store(db: Session = Depends(get_db)) -> BillingStore:
    return BillingStore(db)


def get_bill_payment_service(store: BillingStore = Depends(get_billing_store)) -> BillPaymentService:
    return BillPaymentService(store)


def get_import_service(store: BillingStore = Depends(get_billing_store)) -> StatementImportService:
    return StatementImportService(store)
