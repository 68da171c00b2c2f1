from decimal import Decimal

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from pitaka.core.auth import get_current_user_id
from pitaka.db.memory import InMemoryDocumentStore
from pitaka.db.session import get_store
from pitaka.main import app
from pitaka.repositories.account_repo import AccountRepository
from pitaka.repositories.transaction_repo import TransactionRepository
from pitaka.schemas.account import AccountCreate
from pitaka.services.account_service import AccountService

TEST_USER_ID = "507f1f77bcf86cd799439011"


@pytest.fixture
def store() -> InMemoryDocumentStore:
    """Fresh in-memory document store per test."""
    return InMemoryDocumentStore()


@pytest.fixture
def user_id() -> str:
    return TEST_USER_ID


@pytest.fixture
def client(store):
    """FastAPI test client wired to the in-memory store and a fixed user."""
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_current_user_id] = lambda: TEST_USER_ID
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def balance_of(store, user_id):
    """Current stored balance of an account."""
    accounts = AccountRepository(store)

    async def _balance(account_id: str) -> Decimal:
        account = await accounts.require(user_id, account_id)
        return account.balance

    return _balance


@pytest.fixture
def ledger_sum(store, user_id):
    """Sum of signed effects of every transaction on an account."""
    transactions = TransactionRepository(store)

    async def _sum(account_id: str) -> Decimal:
        items = await transactions.list_transactions(user_id, account_id=account_id)
        return sum((t.effect for t in items), Decimal("0"))

    return _sum


@pytest.fixture
def make_account(store, user_id):
    service = AccountService(store)

    async def _make(name: str = "Wallet", opening_balance: str = "0", type: str = "cash"):
        return await service.create_account(
            user_id,
            AccountCreate(name=name, type=type, opening_balance=Decimal(opening_balance)),
        )

    return _make


@pytest_asyncio.fixture
async def wallet(make_account):
    """Cash account opened with 1000.00."""
    return await make_account("Wallet", "1000")
