# core/authorization.py
from fastapi import Depends, HTTPException, Path, status
from core.dependencies import get_container, get_current_user
from models.restaurant import Restaurant
from models.user import ROLE_RESTAURANT, Account
from services.container import ServiceContainer
from utils.logger import get_logger

logger = get_logger("Authorization")

def require_role(*allowed_roles):
    async def _dependency(current_user: Account = Depends(get_current_user)):
        if current_user.role not in allowed_roles:
            logger.warning(f"Forbidden: {current_user.username} role {current_user.role} not in allowed {allowed_roles}")
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden: insufficient role")
        return current_user
    return _dependency

async def require_operational_restaurant(
    restaurant_id: int = Path(...),
    current_user: Account = Depends(require_role(ROLE_RESTAURANT)),
    container: ServiceContainer = Depends(get_container),
) -> Restaurant:
    """
    Gate for menu/hours/order tooling: the caller must own the restaurant and
    the restaurant must currently be approved.
    """
    return await container.gate.require_operational(current_user, restaurant_id)
