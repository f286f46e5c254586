"""Customer-facing projection of the restaurant list. Read-only: nothing here changes a status."""
from datetime import datetime
from typing import Dict, Iterable, List, Optional
from zoneinfo import ZoneInfo

from db.store import RestaurantStore
from models.restaurant import DAYS_OF_WEEK, DayHours, Restaurant, VisibleRestaurant
from utils.logger import get_logger

logger = get_logger("Visibility")


def is_open_at(hours: Dict[str, DayHours], now: datetime) -> bool:
    today = hours.get(DAYS_OF_WEEK[now.weekday()])
    if today is None or today.closed or not today.open or not today.close:
        return False
    current = now.strftime("%H:%M")
    return today.open <= current <= today.close


def list_visible(restaurants: Iterable[Restaurant], hours_by_id: Dict[int, Dict[str, DayHours]],
                 now: datetime) -> List[VisibleRestaurant]:
    entries = []
    for restaurant in restaurants:
        if not restaurant.status.is_operational:
            continue
        is_open = is_open_at(hours_by_id.get(restaurant.id, {}), now)
        entries.append(VisibleRestaurant(
            restaurant=restaurant,
            is_open=is_open,
            order_enabled=is_open,
            action_label="Order Now" if is_open else "Closed",
        ))
    # sorted() is stable, so the store order is kept inside each group
    return sorted(entries, key=lambda e: not e.is_open)


class VisibilityService:
    def __init__(self, store: RestaurantStore, timezone: str = "UTC"):
        self.store = store
        self.tz = ZoneInfo(timezone)

    async def visible_restaurants(self, now: Optional[datetime] = None) -> List[VisibleRestaurant]:
        now = now or datetime.now(self.tz)
        restaurants = [r for r in await self.store.list_all() if r.status.is_operational]
        hours_by_id = {r.id: await self.store.get_hours(r.id) for r in restaurants}
        return list_visible(restaurants, hours_by_id, now)
