"""
Pytest configuration and fixtures for statement import and bill payment tests.
"""

import os
import sys
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Generator

import pytest

# Project root directory
PROJECT_ROOT = Path(__file__).parent.parent

sys.path.insert(0, str(PROJECT_ROOT / "python"))

# The API module builds its engine at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ledger.models import Base, Category, CategoryRule


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def config_dir() -> Path:
    """Return the config directory path."""
    return PROJECT_ROOT / "config"


@pytest.fixture
def engine():
    """In-memory SQLite engine shared across connections."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine) -> Generator[Session, None, None]:
    """Create test database session."""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store(db):
    """Billing store over the test session."""
    from billing import BillingStore

    return BillingStore(db)


@pytest.fixture
def user_id() -> str:
    return "user-1"


@pytest.fixture
def categories(db, user_id) -> dict[str, Category]:
    """A few categories with keyword rules for the test user."""
    created = {}
    for name in ("Alimentacao", "Mercado", "Servicos", "Outros", "Investimentos"):
        category = Category(name=name, user_id=user_id)
        db.add(category)
        db.flush()
        created[name] = category

    rules = [
        ("IFOOD", "Alimentacao"),
        ("SUPERMERCADO", "Mercado"),
        ("NETFLIX", "Servicos"),
    ]
    for position, (keyword, name) in enumerate(rules):
        db.add(CategoryRule(
            keyword=keyword,
            category_id=created[name].id,
            user_id=user_id,
            position=position,
        ))

    db.commit()
    return created


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database."""
    from api.database import get_db
    from api.main import create_app

    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def auth_headers(user_id) -> dict:
    return {"X-User-ID": user_id}


@pytest.fixture
def c6_csv_content() -> str:
    """Sample C6 card CSV export."""
    return (
        "Data de Compra,Nome no Cartao,Final do Cartao,Categoria,Descricao,Parcela,Valor (em R$)\n"
        "10/01/2026,JOAO SILVA,1234,Restaurante,IFOOD *RESTAURANTE,Unica,\"45,90\"\n"
        "12/01/2026,JOAO SILVA,1234,Supermercado,SUPERMERCADO BOM PRECO - Parcela 2/3,Unica,\"1.234,56\"\n"
        "15/01/2026,JOAO SILVA,1234,Servicos,NETFLIX.COM,Unica,\"55,90\"\n"
    )


@pytest.fixture
def invoice_text() -> str:
    """OCR text of a credit card invoice due in June 2026."""
    return "\n".join([
        "C6 BANK - Fatura do cartao de credito",
        "Vencimento: 10/06/2026",
        "Pagamento minimo R$ 150,00",
        "13 ago NETFLIX.COM 55,90",
        "02 mai IFOOD *RESTAURANTE 45,90",
        "20 mai ESTORNO LOJA XYZ 30,00",
        "Total da fatura R$ 1.234,56",
    ])


@pytest.fixture
def reference_date() -> date:
    return date(2026, 3, 20)


@pytest.fixture
def money_cents():
    """Build a Decimal with two places."""
    def _make(value) -> Decimal:
        return Decimal(str(value)).quantize(Decimal("0.01"))
    return _make
