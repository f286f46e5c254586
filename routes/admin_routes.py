# routes/admin_routes.py
from typing import List

from fastapi import APIRouter, Body, Depends, Query

from core.authorization import require_role
from core.dependencies import get_container
from models.admin import ApprovalResult, AuditItem, ConfirmPayload, StatusChangeResult, WithdrawalRequest
from models.restaurant import Restaurant
from models.user import ROLE_ADMIN, Account
from services.container import ServiceContainer
from utils.logger import get_logger

router = APIRouter(prefix="/admin", tags=["Admin"])
logger = get_logger("Admin_Route")

admin_only = require_role(ROLE_ADMIN)


def _confirmed(payload: ConfirmPayload | None) -> bool:
    return bool(payload and payload.confirm)


@router.get("/restaurants/pending", response_model=List[Restaurant])
async def api_pending_restaurants(current_admin: Account = Depends(admin_only),
                                  container: ServiceContainer = Depends(get_container)):
    return await container.workflow.pending_restaurants()

@router.get("/restaurants/approved", response_model=List[Restaurant])
async def api_approved_restaurants(current_admin: Account = Depends(admin_only),
                                   container: ServiceContainer = Depends(get_container)):
    return await container.workflow.approved_restaurants()

@router.get("/restaurants/withdrawals", response_model=List[WithdrawalRequest])
async def api_pending_withdrawals(current_admin: Account = Depends(admin_only),
                                  container: ServiceContainer = Depends(get_container)):
    return await container.workflow.pending_withdrawals()

@router.post("/restaurants/{restaurant_id}/approve", response_model=ApprovalResult)
async def api_approve_restaurant(restaurant_id: int, current_admin: Account = Depends(admin_only),
                                 container: ServiceContainer = Depends(get_container)):
    """
    Approve a pending restaurant. The temporary password is in this response
    and in the approval email only.
    """
    return await container.workflow.approve(restaurant_id, actor=current_admin.username)

@router.post("/restaurants/{restaurant_id}/reject", response_model=StatusChangeResult)
async def api_reject_restaurant(restaurant_id: int, payload: ConfirmPayload | None = Body(None),
                                current_admin: Account = Depends(admin_only),
                                container: ServiceContainer = Depends(get_container)):
    return await container.workflow.reject(restaurant_id, confirmed=_confirmed(payload),
                                           actor=current_admin.username,
                                           reason=payload.reason if payload else None)

@router.post("/restaurants/{restaurant_id}/approve-withdrawal", response_model=StatusChangeResult)
async def api_approve_withdrawal(restaurant_id: int, payload: ConfirmPayload | None = Body(None),
                                 current_admin: Account = Depends(admin_only),
                                 container: ServiceContainer = Depends(get_container)):
    return await container.workflow.approve_withdrawal(restaurant_id, confirmed=_confirmed(payload),
                                                       actor=current_admin.username,
                                                       reason=payload.reason if payload else None)

@router.post("/restaurants/{restaurant_id}/reject-withdrawal", response_model=StatusChangeResult)
async def api_reject_withdrawal(restaurant_id: int, payload: ConfirmPayload | None = Body(None),
                                current_admin: Account = Depends(admin_only),
                                container: ServiceContainer = Depends(get_container)):
    return await container.workflow.reject_withdrawal(restaurant_id, confirmed=_confirmed(payload),
                                                      actor=current_admin.username,
                                                      reason=payload.reason if payload else None)

@router.get("/audit-logs", response_model=List[AuditItem])
async def api_audit_logs(skip: int = Query(0, ge=0), limit: int = Query(50, le=200),
                         current_admin: Account = Depends(admin_only),
                         container: ServiceContainer = Depends(get_container)):
    return await container.store.list_audit(skip=skip, limit=limit)
