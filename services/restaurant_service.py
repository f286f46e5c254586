# services/restaurant_service.py
from typing import Dict, List

from pydantic import ValidationError

from core.exceptions import ApplicationValidationError, NotFoundError
from db.store import RestaurantStore
from models.menu import MenuItemCreate, MenuItemOut, MenuItemUpdate
from models.restaurant import (
    DayHours,
    RegistrationReceipt,
    Restaurant,
    RestaurantApplication,
    RestaurantHoursUpdate,
)
from services.notifications import RestaurantNotifier
from utils.logger import get_logger

logger = get_logger("Restaurant_Service")


def validation_error_map(exc: ValidationError, prefix: str = "") -> Dict[str, str]:
    """Flatten pydantic errors into {"field.path": "message"}."""
    errors = {}
    for err in exc.errors():
        field = ".".join(str(part) for part in err["loc"]) or "__root__"
        if prefix:
            field = f"{prefix}.{field}"
        message = err["msg"]
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.setdefault(field, message)
    return errors


def parse_application(data: dict | RestaurantApplication) -> RestaurantApplication:
    if isinstance(data, RestaurantApplication):
        return data
    try:
        return RestaurantApplication.model_validate(data)
    except ValidationError as e:
        raise ApplicationValidationError(validation_error_map(e)) from e


class RegistrationIntake:
    def __init__(self, store: RestaurantStore, notifier: RestaurantNotifier):
        self.store = store
        self.notifier = notifier

    async def submit(self, data: dict | RestaurantApplication) -> RegistrationReceipt:
        """
        Validate and store a registration as a pending restaurant, then send
        the "registration received" email.

        Validation happens before anything is written. A failed email is logged
        and does not fail the registration.
        """
        application = parse_application(data)
        logger.info(f"Registration request received for {application.name}", extra={"email": application.email})
        restaurant = await self.store.create(application)
        try:
            await self.notifier.registration_received(restaurant)
        except Exception:
            logger.exception(f"Pending approval email failed for restaurant {restaurant.id}")
        logger.info(f"Restaurant registration complete: {restaurant.application_id}",
                    extra={"restaurant_id": restaurant.id})
        return RegistrationReceipt(
            restaurant_id=restaurant.id,
            application_id=restaurant.application_id,
            status=restaurant.status,
        )


class RestaurantService:
    """Detail lookups and the operational tooling (menu, hours) of a restaurant."""

    def __init__(self, store: RestaurantStore):
        self.store = store

    async def get_restaurant(self, restaurant_id: int) -> Restaurant:
        restaurant = await self.store.get(restaurant_id)
        if restaurant is None:
            raise NotFoundError(f"Restaurant with ID {restaurant_id} not found")
        return restaurant

    async def get_hours(self, restaurant_id: int) -> Dict[str, DayHours]:
        await self.get_restaurant(restaurant_id)
        return await self.store.get_hours(restaurant_id)

    async def get_menu(self, restaurant_id: int, only_available: bool = False) -> List[MenuItemOut]:
        await self.get_restaurant(restaurant_id)
        return await self.store.get_menu(restaurant_id, only_available=only_available)

    async def update_hours(self, restaurant_id: int, data: dict, actor: str | None = None) -> Dict[str, DayHours]:
        try:
            update = RestaurantHoursUpdate.model_validate(data)
        except ValidationError as e:
            raise ApplicationValidationError(validation_error_map(e)) from e
        hours = await self.store.replace_hours(restaurant_id, update.operating_hours)
        logger.info("Operating hours updated", extra={"restaurant_id": restaurant_id, "actor": actor})
        return hours

    async def add_menu_item(self, restaurant_id: int, item: MenuItemCreate, actor: str | None = None) -> MenuItemOut:
        created = await self.store.add_menu_item(restaurant_id, item)
        logger.info("Menu item created", extra={"restaurant_id": restaurant_id, "actor": actor, "item_id": created.id})
        return created

    async def update_menu_item(self, restaurant_id: int, item_id: int, payload: MenuItemUpdate,
                               actor: str | None = None) -> MenuItemOut:
        changes = {k: v for k, v in payload.model_dump().items() if v is not None}
        updated = await self.store.update_menu_item(restaurant_id, item_id, changes)
        logger.info("Menu item updated", extra={"restaurant_id": restaurant_id, "actor": actor, "item_id": item_id})
        return updated

    async def set_menu_item_availability(self, restaurant_id: int, item_id: int, is_available: bool,
                                         actor: str | None = None) -> MenuItemOut:
        return await self.store.update_menu_item(restaurant_id, item_id, {"is_available": is_available})
