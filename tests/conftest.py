"""
Shared fixtures: an in-memory store, a recording email sender and a fully
wired service container / FastAPI app on top of them.
"""
import asyncio
import copy

import httpx
import pytest
import pytest_asyncio

from core.exceptions import NotificationError
from db.memory_store import InMemoryRestaurantStore
from main import create_app
from models.restaurant import RestaurantApplication
from models.user import ROLE_RESTAURANT, Account
from services.container import build_container
from settings.config import Settings
from utils.email import ConsoleEmailSender, EmailMessage
from utils.hash import hash_password
from utils.jwt_handler import create_access_token

ADMIN_USERNAME = "admin@frontdash.com"
ADMIN_PASSWORD = "Admin@12345"

OPEN_WEEK = {
    day: {"open": "09:00", "close": "22:00", "closed": False}
    for day in ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
}

MARIO = {
    "name": "Mario's Pizzeria",
    "description": "Wood-fired Neapolitan pizza",
    "cuisines": ["Italian", "Pizza"],
    "established_year": 1998,
    "address": "12 Main Street",
    "city": "Dallas",
    "state": "TX",
    "zip_code": "75201",
    "phone": "(214) 555-0142",
    "contact_person": "Mario Rossi",
    "email": "mario@example.com",
    "website": "https://mariospizzeria.example.com",
    "average_price": "$$",
    "delivery_fee": 2.99,
    "minimum_order": 10,
    "preparation_time": 25,
    "operating_hours": OPEN_WEEK,
    "menu_items": [
        {"name": "Margherita", "description": "Tomato, mozzarella, basil", "price": 12.5, "category": "Pizza"},
        {"name": "Tiramisu", "price": "6.00", "category": "Dessert"},
    ],
}


def make_application_data(**overrides) -> dict:
    data = copy.deepcopy(MARIO)
    data.update(overrides)
    return data


class FailingEmailSender:
    def __init__(self):
        self.attempts: list[EmailMessage] = []

    async def send(self, message: EmailMessage) -> None:
        self.attempts.append(message)
        raise NotificationError("SMTP server unreachable")


class BrokenEmailSender:
    """Fails with something other than NotificationError."""

    def __init__(self):
        self.attempts: list[EmailMessage] = []

    async def send(self, message: EmailMessage) -> None:
        self.attempts.append(message)
        raise RuntimeError("sender bug")


class SlowEmailSender(ConsoleEmailSender):
    """Suspends inside send so concurrent callers get a chance to run."""

    async def send(self, message: EmailMessage) -> None:
        await asyncio.sleep(0.05)
        await super().send(message)


@pytest.fixture
def application_data() -> dict:
    return make_application_data()


@pytest.fixture
def application(application_data) -> RestaurantApplication:
    return RestaurantApplication.model_validate(application_data)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(STORE_BACKEND="memory", NOTIFIER_BACKEND="console", TEMP_PASSWORD_LENGTH=12)


@pytest.fixture
def store() -> InMemoryRestaurantStore:
    return InMemoryRestaurantStore()


@pytest.fixture
def sender() -> ConsoleEmailSender:
    return ConsoleEmailSender()


@pytest.fixture
def container(test_settings, store, sender):
    return build_container(test_settings, store=store, sender=sender)


@pytest.fixture
def app(container):
    return create_app(container)


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest_asyncio.fixture
async def admin_headers(container) -> dict:
    account = await container.accounts.create_admin(ADMIN_USERNAME, ADMIN_PASSWORD)
    token = create_access_token({"sub": account.username, "role": account.role, "token_version": 0})
    return {"Authorization": f"Bearer {token}"}


async def restaurant_headers(store, restaurant_id: int, username: str = "owner@example.com") -> dict:
    """Give a restaurant a login directly, bypassing approval."""
    account = await store.create_account(Account(
        username=username,
        password_hash=hash_password("Owner@12345"),
        role=ROLE_RESTAURANT,
        restaurant_id=restaurant_id,
    ))
    token = create_access_token({"sub": account.username, "role": account.role,
                                 "restaurant_id": restaurant_id, "token_version": 0})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_restaurant_headers(store):
    async def _make(restaurant_id: int, username: str = "owner@example.com") -> dict:
        return await restaurant_headers(store, restaurant_id, username)
    return _make
