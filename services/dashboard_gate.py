from core.exceptions import AccessDeniedError, NotFoundError
from db.store import RestaurantStore
from models.restaurant import DashboardView, Restaurant, RestaurantStatus
from models.user import Account
from utils.logger import get_logger

logger = get_logger("Dashboard_Gate")

PENDING_VIEW = "pending_approval"
DASHBOARD_VIEW = "dashboard"

NOT_OPERATIONAL_MESSAGES = {
    RestaurantStatus.PENDING: "Your registration is pending review. You will receive an email once it has been approved.",
    RestaurantStatus.REJECTED: "Your registration was not approved. Submit a new application to register again.",
    RestaurantStatus.INACTIVE: "Your restaurant has been withdrawn from the platform and is no longer listed.",
}


class DashboardGate:
    """
    Decides what an authenticated restaurant account may see. Operational
    tooling is only reachable while the restaurant is approved (a pending
    withdrawal still counts as approved).
    """

    def __init__(self, store: RestaurantStore):
        self.store = store

    async def _restaurant_for(self, account: Account) -> Restaurant:
        restaurant = await self.store.get(account.restaurant_id) if account.restaurant_id is not None else None
        if restaurant is None:
            raise NotFoundError("No restaurant is linked to this account")
        return restaurant

    async def resolve(self, account: Account) -> DashboardView:
        restaurant = await self._restaurant_for(account)
        if not restaurant.status.is_operational:
            logger.info(f"Restaurant {restaurant.id} is {restaurant.status.value}, showing pending view")
            return DashboardView(
                view=PENDING_VIEW,
                restaurant_id=restaurant.id,
                restaurant_name=restaurant.name,
                status=restaurant.status,
                message=NOT_OPERATIONAL_MESSAGES[restaurant.status],
            )

        first_visit = await self.store.acknowledge_approval(restaurant.id)
        if first_visit:
            message = f"Welcome aboard! {restaurant.name} is approved and visible to customers."
        elif restaurant.status == RestaurantStatus.WITHDRAWAL_REQUESTED:
            message = "Your withdrawal request is awaiting admin review."
        else:
            message = "Welcome back."
        return DashboardView(
            view=DASHBOARD_VIEW,
            restaurant_id=restaurant.id,
            restaurant_name=restaurant.name,
            status=restaurant.status,
            message=message,
            show_approval_summary=first_visit,
            withdrawal_pending=restaurant.status == RestaurantStatus.WITHDRAWAL_REQUESTED,
            must_change_password=account.must_change_password,
        )

    async def require_operational(self, account: Account, restaurant_id: int) -> Restaurant:
        if account.restaurant_id != restaurant_id:
            raise AccessDeniedError("You are not allowed to manage this restaurant")
        restaurant = await self._restaurant_for(account)
        if not restaurant.status.is_operational:
            logger.warning(f"Blocked operational access for restaurant {restaurant_id} ({restaurant.status.value})")
            raise AccessDeniedError(
                "Restaurant dashboard is unavailable until the restaurant is approved",
                restaurant_status=restaurant.status.value,
            )
        return restaurant
