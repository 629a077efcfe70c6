"""
API Routes Package

Contains all route modules for the personal finance API.
"""

from .bill_payments import router as bill_payments_router
from .imports import router as imports_router
from .ocr import router as ocr_router
from .rules import router as rules_router

__all__ = [
    "bill_payments_router",
    "imports_router",
    "ocr_router",
    "rules_router",
]
