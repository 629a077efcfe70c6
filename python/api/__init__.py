"""
FastAPI Backend for Personal Finance

Provides REST API endpoints for statement import and bill payments.
"""

from .main import app, create_app

__all__ = ["app", "create_app"]
