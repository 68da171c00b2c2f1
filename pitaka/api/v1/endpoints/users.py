from fastapi import APIRouter, Depends

from pitaka.api.deps import get_user_service
from pitaka.core.auth import get_current_user_id
from pitaka.schemas.account import AccountResponse
from pitaka.schemas.user import UserProfileResponse, UserSetup, UserSetupResponse
from pitaka.services.user_service import UserService

router = APIRouter()


@router.get("/me", response_model=UserProfileResponse)
async def get_me(
    user_id: str = Depends(get_current_user_id),
    service: UserService = Depends(get_user_service)
):
    """Current user's preferences"""
    profile = await service.get_profile(user_id)
    return UserProfileResponse.from_profile(profile)


@router.put("/me/setup", response_model=UserSetupResponse)
async def setup_me(
    setup_in: UserSetup,
    user_id: str = Depends(get_current_user_id),
    service: UserService = Depends(get_user_service)
):
    """Save preferences and optionally create the first account"""
    profile, account = await service.setup(user_id, setup_in)
    return UserSetupResponse(
        profile=UserProfileResponse.from_profile(profile),
        account=AccountResponse.model_validate(account) if account else None,
    )
