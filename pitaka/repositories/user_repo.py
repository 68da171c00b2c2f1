from pitaka.core.config import settings
from pitaka.db.store import DocumentStore, SetOp, user_path
from pitaka.models.user import UserProfile


class UserRepository:
    """User profile operations."""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def get_profile(self, user_id: str) -> UserProfile | None:
        doc = await self.store.get_document(user_path(user_id))
        if doc:
            return UserProfile(**doc)
        return None

    async def get_or_default(self, user_id: str) -> UserProfile:
        """Profile for the user, or an unsaved default one."""
        profile = await self.get_profile(user_id)
        return profile or UserProfile(id=user_id, currency=settings.DEFAULT_CURRENCY)

    def save_op(self, profile: UserProfile) -> SetOp:
        return SetOp(user_path(profile.id), profile.to_document(), merge=True)
