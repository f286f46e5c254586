from fastapi import APIRouter, Depends

from core.dependencies import get_container, get_current_user
from models.user import Account, ChangePasswordRequest, LoginRequest, TokenResponse
from services.container import ServiceContainer
from utils.logger import get_logger

logger = get_logger("AUTH_ROUTE")

router = APIRouter(prefix="/auth", tags=["Authentication"])

@router.post("/login", response_model=TokenResponse)
async def login(user: LoginRequest, container: ServiceContainer = Depends(get_container)):
    return await container.accounts.login(user.username, user.password)

@router.post("/change-password")
async def change_password(payload: ChangePasswordRequest, current_user: Account = Depends(get_current_user),
                          container: ServiceContainer = Depends(get_container)):
    await container.accounts.change_password(current_user, payload.current_password, payload.new_password)
    return {"message": "password_changed", "username": current_user.username}
