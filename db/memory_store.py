import itertools
from datetime import datetime
from typing import Dict, List, Optional

from core.exceptions import ConflictError, InvalidTransitionError, NotFoundError
from models.admin import AuditItem
from models.menu import MenuItemCreate, MenuItemOut
from models.restaurant import DayHours, Restaurant, RestaurantApplication, RestaurantStatus
from models.user import Account
from utils.logger import get_logger

logger = get_logger("Memory_Store")


class InMemoryRestaurantStore:
    """
    Process-local store. Each method body runs without awaiting, so on a single
    event loop every call is atomic with respect to other coroutines.
    """

    def __init__(self):
        self._restaurants: Dict[int, Restaurant] = {}
        self._hours: Dict[int, Dict[str, DayHours]] = {}
        self._menu: Dict[int, Dict[int, MenuItemOut]] = {}
        self._accounts: Dict[str, Account] = {}
        self._acknowledged: set[int] = set()
        self._audit: List[AuditItem] = []
        self._restaurant_ids = itertools.count(1)
        self._item_ids = itertools.count(1)
        self._audit_ids = itertools.count(1)

    async def startup(self) -> None:
        logger.info("Using in-memory restaurant store")

    async def close(self) -> None:
        return None

    def _require(self, restaurant_id: int) -> Restaurant:
        restaurant = self._restaurants.get(restaurant_id)
        if restaurant is None:
            raise NotFoundError(f"Restaurant with ID {restaurant_id} not found")
        return restaurant

    async def create(self, application: RestaurantApplication) -> Restaurant:
        now = datetime.utcnow()
        restaurant_id = next(self._restaurant_ids)
        restaurant = Restaurant.from_application(restaurant_id, application, now)
        self._restaurants[restaurant_id] = restaurant
        self._hours[restaurant_id] = dict(application.operating_hours)
        self._menu[restaurant_id] = {}
        for item in application.menu_items:
            self._insert_item(restaurant_id, item, now)
        return restaurant.model_copy()

    async def get(self, restaurant_id: int) -> Optional[Restaurant]:
        restaurant = self._restaurants.get(restaurant_id)
        return restaurant.model_copy() if restaurant else None

    async def set_status(self, restaurant_id: int, status: RestaurantStatus, *, expected: RestaurantStatus) -> Restaurant:
        current = self._require(restaurant_id)
        if current.status != expected:
            raise InvalidTransitionError(
                f"Restaurant {restaurant_id} is {current.status.value}, expected {expected.value}",
                restaurant_status=current.status.value,
            )
        now = datetime.utcnow()
        changes = {"status": status, "updated_at": now}
        if status == RestaurantStatus.APPROVED and expected == RestaurantStatus.PENDING:
            changes["approved_at"] = now
        elif status == RestaurantStatus.PENDING and expected == RestaurantStatus.APPROVED:
            # rollback of an approval that never became visible
            changes["approved_at"] = None
        if status == RestaurantStatus.WITHDRAWAL_REQUESTED:
            changes["withdrawal_requested_at"] = now
        elif expected == RestaurantStatus.WITHDRAWAL_REQUESTED:
            changes["withdrawal_requested_at"] = None
        updated = current.model_copy(update=changes)
        self._restaurants[restaurant_id] = updated
        return updated.model_copy()

    async def list_by_status(self, *statuses: RestaurantStatus) -> List[Restaurant]:
        return [r.model_copy() for _, r in sorted(self._restaurants.items()) if r.status in statuses]

    async def list_all(self) -> List[Restaurant]:
        return [r.model_copy() for _, r in sorted(self._restaurants.items())]

    async def acknowledge_approval(self, restaurant_id: int) -> bool:
        self._require(restaurant_id)
        if restaurant_id in self._acknowledged:
            return False
        self._acknowledged.add(restaurant_id)
        return True

    async def get_hours(self, restaurant_id: int) -> Dict[str, DayHours]:
        self._require(restaurant_id)
        return dict(self._hours.get(restaurant_id, {}))

    async def replace_hours(self, restaurant_id: int, hours: Dict[str, DayHours]) -> Dict[str, DayHours]:
        self._require(restaurant_id)
        self._hours[restaurant_id] = dict(hours)
        return dict(hours)

    def _insert_item(self, restaurant_id: int, item: MenuItemCreate, now: datetime) -> MenuItemOut:
        out = MenuItemOut(id=next(self._item_ids), restaurant_id=restaurant_id, created_at=now, updated_at=now, **item.model_dump())
        self._menu[restaurant_id][out.id] = out
        return out

    async def get_menu(self, restaurant_id: int, only_available: bool = False) -> List[MenuItemOut]:
        self._require(restaurant_id)
        items = sorted(self._menu.get(restaurant_id, {}).values(), key=lambda i: i.id)
        if only_available:
            items = [i for i in items if i.is_available]
        return items

    async def add_menu_item(self, restaurant_id: int, item: MenuItemCreate) -> MenuItemOut:
        self._require(restaurant_id)
        return self._insert_item(restaurant_id, item, datetime.utcnow())

    async def update_menu_item(self, restaurant_id: int, item_id: int, changes: dict) -> MenuItemOut:
        self._require(restaurant_id)
        existing = self._menu[restaurant_id].get(item_id)
        if existing is None:
            raise NotFoundError("Menu item not found")
        updated = existing.model_copy(update={**changes, "updated_at": datetime.utcnow()})
        self._menu[restaurant_id][item_id] = updated
        return updated

    async def create_account(self, account: Account) -> Account:
        if account.username in self._accounts:
            raise ConflictError(f"Account {account.username} already exists")
        stored = account.model_copy(update={"created_at": account.created_at or datetime.utcnow()})
        self._accounts[account.username] = stored
        return stored

    async def get_account(self, username: str) -> Optional[Account]:
        return self._accounts.get(username)

    async def delete_account(self, username: str) -> bool:
        return self._accounts.pop(username, None) is not None

    async def update_account(self, username: str, **changes) -> Account:
        existing = self._accounts.get(username)
        if existing is None:
            raise NotFoundError("Account not found")
        updated = existing.model_copy(update=changes)
        self._accounts[username] = updated
        return updated

    async def add_audit(self, entry: dict) -> None:
        item = AuditItem(id=str(next(self._audit_ids)), timestamp=entry.get("timestamp") or datetime.utcnow(),
                         **{k: v for k, v in entry.items() if k != "timestamp"})
        self._audit.append(item)

    async def list_audit(self, skip: int = 0, limit: int = 50) -> List[AuditItem]:
        newest_first = list(reversed(self._audit))
        return newest_first[skip:skip + limit]
