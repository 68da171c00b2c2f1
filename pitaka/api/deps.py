from fastapi import Depends

from pitaka.db.session import get_store
from pitaka.db.store import DocumentStore
from pitaka.services.account_service import AccountService
from pitaka.services.debt_service import DebtService
from pitaka.services.paluwagan_service import PaluwaganService
from pitaka.services.transaction_service import TransactionService
from pitaka.services.user_service import UserService


def get_account_service(store: DocumentStore = Depends(get_store)) -> AccountService:
    return AccountService(store)


def get_transaction_service(store: DocumentStore = Depends(get_store)) -> TransactionService:
    return TransactionService(store)


def get_debt_service(store: DocumentStore = Depends(get_store)) -> DebtService:
    return DebtService(store)


def get_paluwagan_service(store: DocumentStore = Depends(get_store)) -> PaluwaganService:
    return PaluwaganService(store)


def get_user_service(store: DocumentStore = Depends(get_store)) -> UserService:
    return UserService(store)
