from datetime import datetime

import pytest

from db.memory_store import InMemoryRestaurantStore
from models.restaurant import DayHours, RestaurantStatus
from services.restaurant_service import parse_application
from services.visibility import VisibilityService, is_open_at
from tests.conftest import make_application_data

# 2024-01-01 is a Monday
MONDAY_NOON = datetime(2024, 1, 1, 12, 0)
MONDAY_NIGHT = datetime(2024, 1, 1, 23, 30)


def week(**days):
    hours = {d: DayHours(open="09:00", close="22:00") for d in
             ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")}
    hours.update(days)
    return hours


def test_open_inside_hours():
    assert is_open_at(week(), MONDAY_NOON)


def test_closed_outside_hours():
    assert not is_open_at(week(), MONDAY_NIGHT)


def test_bounds_are_inclusive():
    assert is_open_at(week(), datetime(2024, 1, 1, 9, 0))
    assert is_open_at(week(), datetime(2024, 1, 1, 22, 0))
    assert not is_open_at(week(), datetime(2024, 1, 1, 22, 1))


def test_closed_day_is_never_open():
    assert not is_open_at(week(monday=DayHours(closed=True)), MONDAY_NOON)


def test_missing_hours_means_closed():
    assert not is_open_at({}, MONDAY_NOON)


async def add(store, status=RestaurantStatus.PENDING, **overrides) -> int:
    restaurant = await store.create(parse_application(make_application_data(**overrides)))
    if status in (RestaurantStatus.APPROVED, RestaurantStatus.WITHDRAWAL_REQUESTED, RestaurantStatus.REJECTED):
        first = RestaurantStatus.REJECTED if status == RestaurantStatus.REJECTED else RestaurantStatus.APPROVED
        await store.set_status(restaurant.id, first, expected=RestaurantStatus.PENDING)
    if status == RestaurantStatus.WITHDRAWAL_REQUESTED:
        await store.set_status(restaurant.id, status, expected=RestaurantStatus.APPROVED)
    return restaurant.id


@pytest.mark.asyncio
async def test_only_operational_restaurants_are_listed():
    store = InMemoryRestaurantStore()
    await add(store, RestaurantStatus.PENDING, name="Pending Place")
    await add(store, RestaurantStatus.REJECTED, name="Rejected Place")
    approved = await add(store, RestaurantStatus.APPROVED, name="Approved Place")
    leaving = await add(store, RestaurantStatus.WITHDRAWAL_REQUESTED, name="Leaving Place")

    visible = await VisibilityService(store).visible_restaurants(now=MONDAY_NOON)

    assert [v.restaurant.id for v in visible] == [approved, leaving]
    assert all(v.restaurant.status.is_operational for v in visible)


@pytest.mark.asyncio
async def test_open_restaurants_come_first_and_keep_order():
    store = InMemoryRestaurantStore()
    late_hours = make_application_data()["operating_hours"]
    late_hours["monday"] = {"open": "18:00", "close": "23:59", "closed": False}
    closed_a = await add(store, RestaurantStatus.APPROVED, name="Closed A", operating_hours=late_hours)
    open_a = await add(store, RestaurantStatus.APPROVED, name="Open A")
    closed_b = await add(store, RestaurantStatus.APPROVED, name="Closed B", operating_hours=late_hours)
    open_b = await add(store, RestaurantStatus.APPROVED, name="Open B")

    visible = await VisibilityService(store).visible_restaurants(now=MONDAY_NOON)

    assert [v.restaurant.id for v in visible] == [open_a, open_b, closed_a, closed_b]
    assert [v.action_label for v in visible] == ["Order Now", "Order Now", "Closed", "Closed"]
    assert [v.order_enabled for v in visible] == [True, True, False, False]


@pytest.mark.asyncio
async def test_listing_does_not_change_status():
    store = InMemoryRestaurantStore()
    restaurant_id = await add(store, RestaurantStatus.APPROVED)

    await VisibilityService(store).visible_restaurants(now=MONDAY_NIGHT)

    assert (await store.get(restaurant_id)).status == RestaurantStatus.APPROVED
