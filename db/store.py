"""Restaurant record store interface.

The approval workflow, intake and dashboard gate only talk to the store
through this protocol. `set_status` is a compare-and-set: it is the single
mutation point for a restaurant's status and fails when the current status is
not the one the caller expects.
"""
from typing import Dict, List, Optional, Protocol, runtime_checkable

from models.admin import AuditItem
from models.menu import MenuItemCreate, MenuItemOut
from models.restaurant import DayHours, Restaurant, RestaurantApplication, RestaurantStatus
from models.user import Account
from settings.config import Settings


@runtime_checkable
class RestaurantStore(Protocol):

    async def startup(self) -> None:
        ...

    async def close(self) -> None:
        ...

    # restaurants

    async def create(self, application: RestaurantApplication) -> Restaurant:
        """Persist a new restaurant in `pending` together with its hours and sample menu."""
        ...

    async def get(self, restaurant_id: int) -> Optional[Restaurant]:
        ...

    async def set_status(
        self, restaurant_id: int, status: RestaurantStatus, *, expected: RestaurantStatus
    ) -> Restaurant:
        """
        Move a restaurant from `expected` to `status`.

        Raises:
            NotFoundError: no restaurant with this id.
            InvalidTransitionError: current status is not `expected`.
        """
        ...

    async def list_by_status(self, *statuses: RestaurantStatus) -> List[Restaurant]:
        ...

    async def list_all(self) -> List[Restaurant]:
        ...

    async def acknowledge_approval(self, restaurant_id: int) -> bool:
        """Set the one-time "seen since approval" marker. True only for the call that set it."""
        ...

    # hours and menu

    async def get_hours(self, restaurant_id: int) -> Dict[str, DayHours]:
        ...

    async def replace_hours(self, restaurant_id: int, hours: Dict[str, DayHours]) -> Dict[str, DayHours]:
        ...

    async def get_menu(self, restaurant_id: int, only_available: bool = False) -> List[MenuItemOut]:
        ...

    async def add_menu_item(self, restaurant_id: int, item: MenuItemCreate) -> MenuItemOut:
        ...

    async def update_menu_item(self, restaurant_id: int, item_id: int, changes: dict) -> MenuItemOut:
        ...

    # accounts

    async def create_account(self, account: Account) -> Account:
        """Raises ConflictError when the username is taken."""
        ...

    async def get_account(self, username: str) -> Optional[Account]:
        ...

    async def delete_account(self, username: str) -> bool:
        ...

    async def update_account(self, username: str, **changes) -> Account:
        ...

    # audit

    async def add_audit(self, entry: dict) -> None:
        ...

    async def list_audit(self, skip: int = 0, limit: int = 50) -> List[AuditItem]:
        ...


def build_store(settings: Settings) -> RestaurantStore:
    backend = settings.STORE_BACKEND.lower()
    if backend == "memory":
        from db.memory_store import InMemoryRestaurantStore
        return InMemoryRestaurantStore()
    if backend == "mongo":
        from db.db_operation import MongoConnection, MongoRestaurantStore
        return MongoRestaurantStore(MongoConnection(settings.MONGO_URI, settings.DB_NAME))
    raise ValueError(f"Unknown STORE_BACKEND: {settings.STORE_BACKEND}")
