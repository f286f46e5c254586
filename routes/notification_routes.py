from fastapi import APIRouter, Depends

from core.authorization import require_role
from core.dependencies import get_container
from models.admin import EmailRequest
from models.user import ROLE_ADMIN, Account
from services.container import ServiceContainer
from utils.logger import get_logger

logger = get_logger("Notification_Route")
router = APIRouter(prefix="/notifications", tags=["Notifications"])

@router.post("/email")
async def api_send_email(payload: EmailRequest, current_admin: Account = Depends(require_role(ROLE_ADMIN)),
                         container: ServiceContainer = Depends(get_container)):
    await container.notifier.send(payload.to, payload.subject, payload.body)
    logger.info(f"{current_admin.username} sent an email", extra={"email": payload.to})
    return {"message": "email_sent", "to": payload.to}
