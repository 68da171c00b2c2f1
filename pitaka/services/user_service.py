from typing import Optional, Tuple

from pitaka.core.logging import get_logger
from pitaka.db.store import DocumentStore
from pitaka.models.account import Account
from pitaka.models.user import UserProfile
from pitaka.repositories.user_repo import UserRepository
from pitaka.schemas.user import UserSetup
from pitaka.services.account_service import AccountService
from pitaka.services.ledger import LedgerBatch

logger = get_logger(__name__)


class UserService:
    """Profile preferences and first-run setup"""

    def __init__(self, store: DocumentStore):
        self.store = store
        self.users = UserRepository(store)
        self.accounts = AccountService(store)

    async def get_profile(self, user_id: str) -> UserProfile:
        return await self.users.get_or_default(user_id)

    async def setup(self, user_id: str, setup_in: UserSetup) -> Tuple[UserProfile, Optional[Account]]:
        """Save preferences and, optionally, create the first account in the same batch."""
        profile = await self.users.get_or_default(user_id)
        profile = profile.model_copy(update={
            "display_name": setup_in.display_name.strip() or profile.display_name,
            "email": setup_in.email or profile.email,
            "currency": setup_in.currency.value,
            "setup_complete": True,
        })

        batch = LedgerBatch(self.store, user_id)
        batch.add(self.users.save_op(profile))
        account = None
        if setup_in.first_account is not None:
            account = await self.accounts.stage_account(batch, setup_in.first_account)
        await batch.commit()

        logger.info(
            "user_setup_complete",
            user_id=user_id,
            currency=profile.currency,
            first_account=account.id if account else None,
        )
        return profile, account
