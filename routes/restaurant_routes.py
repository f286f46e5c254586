# routes/restaurant_routes.py
from typing import Dict, List

from fastapi import APIRouter, Body, Depends, Path, Query, status

from core.authorization import require_operational_restaurant, require_role
from core.dependencies import get_container
from core.exceptions import AccessDeniedError
from models.admin import ConfirmPayload, StatusChangeResult
from models.menu import AvailabilityUpdate, MenuItemCreate, MenuItemOut, MenuItemUpdate
from models.restaurant import DashboardView, DayHours, RegistrationReceipt, Restaurant, VisibleRestaurant
from models.user import ROLE_RESTAURANT, Account
from services.container import ServiceContainer
from utils.logger import get_logger

logger = get_logger("Restaurant_Route")
router = APIRouter(prefix="/restaurants", tags=["Restaurants"])

# Public: submit a registration application
@router.post("/register", response_model=RegistrationReceipt, status_code=status.HTTP_201_CREATED)
async def api_register_restaurant(payload: dict = Body(...), container: ServiceContainer = Depends(get_container)):
    return await container.intake.submit(payload)

# Public: approved restaurants, open ones first
@router.get("", response_model=List[VisibleRestaurant])
async def api_list_restaurants(container: ServiceContainer = Depends(get_container)):
    return await container.visibility.visible_restaurants()

# Restaurant: what the signed-in restaurant is allowed to see
@router.get("/me/dashboard", response_model=DashboardView)
async def api_dashboard(current_user: Account = Depends(require_role(ROLE_RESTAURANT)),
                        container: ServiceContainer = Depends(get_container)):
    return await container.gate.resolve(current_user)

@router.get("/{restaurant_id}", response_model=Restaurant)
async def api_get_restaurant(restaurant_id: int = Path(...), container: ServiceContainer = Depends(get_container)):
    return await container.restaurants.get_restaurant(restaurant_id)

@router.get("/{restaurant_id}/menu", response_model=List[MenuItemOut])
async def api_get_menu(restaurant_id: int, available: bool = Query(False),
                       container: ServiceContainer = Depends(get_container)):
    return await container.restaurants.get_menu(restaurant_id, only_available=available)

@router.get("/{restaurant_id}/hours", response_model=Dict[str, DayHours])
async def api_get_hours(restaurant_id: int, container: ServiceContainer = Depends(get_container)):
    return await container.restaurants.get_hours(restaurant_id)

# Restaurant: ask to leave the platform
@router.post("/{restaurant_id}/withdraw", response_model=StatusChangeResult)
async def api_request_withdrawal(restaurant_id: int, payload: ConfirmPayload | None = Body(None),
                                 current_user: Account = Depends(require_role(ROLE_RESTAURANT)),
                                 container: ServiceContainer = Depends(get_container)):
    if current_user.restaurant_id != restaurant_id:
        raise AccessDeniedError("You are not allowed to withdraw this restaurant")
    reason = payload.reason if payload else None
    return await container.workflow.request_withdrawal(restaurant_id, actor=current_user.username, reason=reason)

# Restaurant (approved only): operational tooling
@router.post("/{restaurant_id}/menu", response_model=MenuItemOut, status_code=status.HTTP_201_CREATED)
async def api_create_menu_item(restaurant_id: int, payload: MenuItemCreate = Body(...),
                               restaurant: Restaurant = Depends(require_operational_restaurant),
                               container: ServiceContainer = Depends(get_container)):
    return await container.restaurants.add_menu_item(restaurant.id, payload, actor=restaurant.email)

@router.patch("/{restaurant_id}/menu/{item_id}", response_model=MenuItemOut)
async def api_update_menu_item(restaurant_id: int, item_id: int, payload: MenuItemUpdate = Body(...),
                               restaurant: Restaurant = Depends(require_operational_restaurant),
                               container: ServiceContainer = Depends(get_container)):
    return await container.restaurants.update_menu_item(restaurant.id, item_id, payload, actor=restaurant.email)

@router.patch("/{restaurant_id}/menu/{item_id}/availability", response_model=MenuItemOut)
async def api_toggle_availability(restaurant_id: int, item_id: int, payload: AvailabilityUpdate = Body(...),
                                  restaurant: Restaurant = Depends(require_operational_restaurant),
                                  container: ServiceContainer = Depends(get_container)):
    return await container.restaurants.set_menu_item_availability(restaurant.id, item_id, payload.is_available,
                                                                   actor=restaurant.email)

@router.put("/{restaurant_id}/hours", response_model=Dict[str, DayHours])
async def api_update_hours(restaurant_id: int, payload: dict = Body(...),
                           restaurant: Restaurant = Depends(require_operational_restaurant),
                           container: ServiceContainer = Depends(get_container)):
    return await container.restaurants.update_hours(restaurant.id, payload, actor=restaurant.email)
