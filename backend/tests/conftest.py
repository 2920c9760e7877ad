import os
import tempfile

# Environment must be set before app.config builds its settings.
_TEST_DB_PATH = os.path.join(tempfile.gettempdir(), "test_agencia.db")
os.environ["SECRET_KEY"] = "test-secret-key-1234567890"
os.environ["DATABASE_URL"] = f"sqlite+pysqlite:///{_TEST_DB_PATH}"
os.environ["ENVIRONMENT"] = "test"
os.environ["API_V1_STR"] = "/api"

from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from app import models  # noqa: E402
from app.api import deps  # noqa: E402
from app.database import Base, get_db, engine as app_engine  # noqa: E402
from app.main import app  # noqa: E402

TEST_ENGINE = app_engine

TestingSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, bind=TEST_ENGINE, future=True
)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(scope="function", autouse=True)
def setup_test_database():
    """Fresh schema per test; test-specific dependency overrides are dropped afterwards."""
    original_overrides = dict(app.dependency_overrides)

    Base.metadata.drop_all(bind=TEST_ENGINE)
    Base.metadata.create_all(bind=TEST_ENGINE)

    yield

    app.dependency_overrides.clear()
    app.dependency_overrides.update(original_overrides)

    Base.metadata.drop_all(bind=TEST_ENGINE)


@pytest.fixture
def db_session():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client():
    return TestClient(app)


def _stub_user(role_name: models.RoleName):
    class StubUser:
        def __init__(self):
            self.id = 1
            self.email = f"{role_name.value}@test.com"
            self.name = role_name.value
            self.active = True
            self.role = type("Role", (), {"name": role_name})()

    return StubUser()


@pytest.fixture
def as_role():
    """Authenticate every following request as a stub user holding `role_name`."""

    def _apply(role_name: models.RoleName):
        app.dependency_overrides[deps.get_current_user] = lambda: _stub_user(role_name)

    return _apply


@pytest.fixture
def make_bank_account(db_session):
    def _make(nome: str = "Caixa", saldo: str = "0.00", ativo: bool = True) -> models.BankAccount:
        account = models.BankAccount(nome=nome, saldo=Decimal(saldo), ativo=ativo)
        db_session.add(account)
        db_session.commit()
        db_session.refresh(account)
        return account

    return _make


@pytest.fixture
def make_financial_account(db_session):
    def _make(
        descricao: str = "Conta",
        tipo: models.FinancialAccountType = models.FinancialAccountType.receber,
        valor_total: str = "100.00",
        categoria_id: int | None = None,
    ) -> models.FinancialAccount:
        total = Decimal(valor_total)
        account = models.FinancialAccount(
            descricao=descricao,
            tipo=tipo,
            valor_total=total,
            valor_liquidado=Decimal("0.00"),
            valor_aberto=total,
            status=models.PaymentStatus.pendente,
            categoria_id=categoria_id,
        )
        db_session.add(account)
        db_session.commit()
        db_session.refresh(account)
        return account

    return _make


@pytest.fixture
def make_sale(db_session):
    def _make(
        referencia: str = "V-001",
        valor_total: str = "1000.00",
        custo_total: str = "700.00",
        with_supplier: bool = True,
        status: models.SaleStatus = models.SaleStatus.orcamento,
    ) -> models.Sale:
        client_row = models.Client(nome="Cliente Teste")
        db_session.add(client_row)
        supplier = None
        if with_supplier:
            supplier = models.Supplier(nome="Operadora Teste")
            db_session.add(supplier)
        db_session.flush()

        sale = models.Sale(
            referencia=referencia,
            cliente_id=client_row.id,
            fornecedor_id=supplier.id if supplier is not None else None,
            status=status,
            valor_total=Decimal(valor_total),
            custo_total=Decimal(custo_total),
            lucro=Decimal(valor_total) - Decimal(custo_total),
        )
        db_session.add(sale)
        db_session.commit()
        db_session.refresh(sale)
        return sale

    return _make
