# services/approval_workflow.py
"""
Restaurant approval lifecycle.

    pending --approve--> approved --request withdrawal--> withdrawal_requested
       |                    ^                                   |        |
       +--reject--> rejected +-------- reject withdrawal -------+        |
                                                                         v
                                              approve withdrawal --> inactive

`rejected` and `inactive` are terminal. Every mutation for a restaurant id
holds that id in the in-flight set for its whole duration, so two operations
on the same restaurant never interleave; different ids proceed independently.
"""
from contextlib import contextmanager
from datetime import datetime
from typing import List, Optional

from core.exceptions import (
    ConfirmationRequiredError,
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    NotificationError,
    PartialFailureError,
)
from db.store import RestaurantStore
from models.admin import ApprovalResult, StatusChangeResult, WithdrawalRequest
from models.restaurant import Restaurant, RestaurantStatus
from services.credential_service import CredentialIssuer, IssuedCredentials
from services.notifications import RestaurantNotifier
from utils.logger import get_logger

logger = get_logger("Approval_Workflow")

OPERATIONAL_STATUSES = (RestaurantStatus.APPROVED, RestaurantStatus.WITHDRAWAL_REQUESTED)


class InFlightGuard:
    """Set of restaurant ids with a mutation currently outstanding."""

    def __init__(self):
        self._ids: set[int] = set()

    def __contains__(self, restaurant_id: int) -> bool:
        return restaurant_id in self._ids

    @contextmanager
    def hold(self, restaurant_id: int, operation: str):
        # check-and-add happens without an await in between, so it is atomic on the event loop
        if restaurant_id in self._ids:
            logger.warning(f"Rejected concurrent {operation} for restaurant {restaurant_id}")
            raise ConflictError(
                f"Another operation is already in progress for restaurant {restaurant_id}; "
                "wait for it to finish before retrying"
            )
        self._ids.add(restaurant_id)
        try:
            yield
        finally:
            self._ids.discard(restaurant_id)


class ApprovalWorkflow:
    def __init__(self, store: RestaurantStore, credentials: CredentialIssuer, notifier: RestaurantNotifier):
        self.store = store
        self.credentials = credentials
        self.notifier = notifier
        self.in_flight = InFlightGuard()

    async def _load(self, restaurant_id: int) -> Restaurant:
        restaurant = await self.store.get(restaurant_id)
        if restaurant is None:
            raise NotFoundError(f"Restaurant with ID {restaurant_id} not found")
        return restaurant

    async def _audit(self, action: str, restaurant_id: int, before: RestaurantStatus, after: RestaurantStatus,
                     actor: Optional[str], reason: Optional[str] = None):
        try:
            await self.store.add_audit({
                "actor": actor,
                "action": action,
                "resource_type": "restaurant",
                "resource_id": str(restaurant_id),
                "before": {"status": before.value},
                "after": {"status": after.value},
                "reason": reason,
                "timestamp": datetime.utcnow(),
            })
        except Exception:
            # the transition itself is committed; a missing audit row must not report it as failed
            logger.exception(f"Could not write audit entry for {action} on restaurant {restaurant_id}")

    # admin review

    async def approve(self, restaurant_id: int, actor: Optional[str] = None) -> ApprovalResult:
        """
        pending -> approved. Issues credentials, sends the approval email and
        returns the credentials for one-time display.

        Either all three steps take effect or none do: a failed status update
        revokes the credentials, a failed email reverts the status to pending
        and revokes the credentials. When a revert itself fails the caller gets
        PartialFailureError naming the state left behind.
        """
        with self.in_flight.hold(restaurant_id, "approve"):
            restaurant = await self._load(restaurant_id)
            if restaurant.status != RestaurantStatus.PENDING:
                raise InvalidTransitionError(
                    f"Restaurant {restaurant_id} is {restaurant.status.value}; only pending restaurants can be approved",
                    restaurant_status=restaurant.status.value,
                )

            issued = await self.credentials.issue(restaurant)

            try:
                approved = await self.store.set_status(restaurant_id, RestaurantStatus.APPROVED,
                                                       expected=RestaurantStatus.PENDING)
            except Exception:
                logger.exception(f"Status update failed while approving restaurant {restaurant_id}")
                await self._revoke_or_fail(issued, restaurant_id, RestaurantStatus.PENDING)
                raise

            try:
                await self.notifier.approved(approved, issued.username, issued.temporary_password)
            except Exception as e:
                logger.exception(f"Approval email failed for restaurant {restaurant_id}, rolling back")
                await self._roll_back_approval(restaurant_id, issued)
                raise NotificationError(
                    f"Approval email to {approved.email} could not be sent; the approval was rolled back "
                    "and the restaurant is still pending",
                    restaurant_status=RestaurantStatus.PENDING.value,
                ) from e

            await self._audit("approve_restaurant", restaurant_id, RestaurantStatus.PENDING,
                              RestaurantStatus.APPROVED, actor)
            logger.info(f"{actor} approved restaurant {restaurant_id}", extra={"restaurant_id": restaurant_id})
            return ApprovalResult(
                restaurant_id=restaurant_id,
                username=issued.username,
                temporary_password=issued.temporary_password,
            )

    async def _revoke_or_fail(self, issued: IssuedCredentials, restaurant_id: int, believed: RestaurantStatus):
        try:
            await self.credentials.revoke(issued)
        except Exception as e:
            logger.exception(f"Could not revoke credentials for restaurant {restaurant_id}")
            raise PartialFailureError(
                f"Restaurant {restaurant_id} is {believed.value} but a login for {issued.username} "
                "could not be removed; remove it before retrying",
                restaurant_status=believed.value,
            ) from e

    async def _roll_back_approval(self, restaurant_id: int, issued: IssuedCredentials):
        try:
            await self.store.set_status(restaurant_id, RestaurantStatus.PENDING, expected=RestaurantStatus.APPROVED)
        except Exception as e:
            logger.exception(f"Could not revert restaurant {restaurant_id} to pending")
            raise PartialFailureError(
                f"Restaurant {restaurant_id} was approved but the approval email failed and the approval "
                "could not be reverted; credentials were not delivered",
                restaurant_status=RestaurantStatus.APPROVED.value,
            ) from e
        await self._revoke_or_fail(issued, restaurant_id, RestaurantStatus.PENDING)

    async def _transition(self, restaurant_id: int, *, action: str, source: RestaurantStatus,
                          target: RestaurantStatus, error: str, actor: Optional[str],
                          reason: Optional[str] = None) -> StatusChangeResult:
        with self.in_flight.hold(restaurant_id, action):
            restaurant = await self._load(restaurant_id)
            if restaurant.status == target:
                logger.info(f"{action} on restaurant {restaurant_id}: already {target.value}")
                return StatusChangeResult(restaurant_id=restaurant_id, status=target, changed=False,
                                          message=f"Restaurant is already {target.value}")
            if restaurant.status != source:
                raise InvalidTransitionError(error.format(status=restaurant.status.value),
                                             restaurant_status=restaurant.status.value)
            updated = await self.store.set_status(restaurant_id, target, expected=source)
            await self._audit(action, restaurant_id, source, target, actor, reason)
            logger.info(f"{actor} performed {action} on restaurant {restaurant_id}",
                        extra={"restaurant_id": restaurant_id})
            return StatusChangeResult(restaurant_id=restaurant_id, status=updated.status, changed=True,
                                      message=f"Restaurant is now {updated.status.value}")

    @staticmethod
    def _require_confirmation(confirmed: bool, action: str):
        if not confirmed:
            raise ConfirmationRequiredError(f"{action} must be confirmed; resend with confirm=true")

    async def reject(self, restaurant_id: int, *, confirmed: bool, actor: Optional[str] = None,
                     reason: Optional[str] = None) -> StatusChangeResult:
        """pending -> rejected. Rejecting an already rejected restaurant is a no-op."""
        self._require_confirmation(confirmed, "Rejection")
        return await self._transition(
            restaurant_id, action="reject_restaurant",
            source=RestaurantStatus.PENDING, target=RestaurantStatus.REJECTED,
            error="Restaurant is {status}; only pending restaurants can be rejected",
            actor=actor, reason=reason,
        )

    # withdrawal

    async def request_withdrawal(self, restaurant_id: int, actor: Optional[str] = None,
                                 reason: Optional[str] = None) -> StatusChangeResult:
        return await self._transition(
            restaurant_id, action="request_withdrawal",
            source=RestaurantStatus.APPROVED, target=RestaurantStatus.WITHDRAWAL_REQUESTED,
            error="Restaurant is {status}; only approved restaurants can request withdrawal",
            actor=actor, reason=reason,
        )

    async def approve_withdrawal(self, restaurant_id: int, *, confirmed: bool, actor: Optional[str] = None,
                                 reason: Optional[str] = None) -> StatusChangeResult:
        self._require_confirmation(confirmed, "Withdrawal approval")
        return await self._transition(
            restaurant_id, action="approve_withdrawal",
            source=RestaurantStatus.WITHDRAWAL_REQUESTED, target=RestaurantStatus.INACTIVE,
            error="Restaurant is {status}; there is no pending withdrawal to approve",
            actor=actor, reason=reason,
        )

    async def reject_withdrawal(self, restaurant_id: int, *, confirmed: bool, actor: Optional[str] = None,
                                reason: Optional[str] = None) -> StatusChangeResult:
        self._require_confirmation(confirmed, "Withdrawal rejection")
        return await self._transition(
            restaurant_id, action="reject_withdrawal",
            source=RestaurantStatus.WITHDRAWAL_REQUESTED, target=RestaurantStatus.APPROVED,
            error="Restaurant is {status}; there is no pending withdrawal to reject",
            actor=actor, reason=reason,
        )

    # queues

    async def pending_restaurants(self) -> List[Restaurant]:
        return await self.store.list_by_status(RestaurantStatus.PENDING)

    async def approved_restaurants(self) -> List[Restaurant]:
        return await self.store.list_by_status(*OPERATIONAL_STATUSES)

    async def pending_withdrawals(self) -> List[WithdrawalRequest]:
        restaurants = await self.store.list_by_status(RestaurantStatus.WITHDRAWAL_REQUESTED)
        return [
            WithdrawalRequest(restaurant_id=r.id, restaurant_name=r.name, email=r.email,
                              requested_at=r.withdrawal_requested_at)
            for r in restaurants
        ]
