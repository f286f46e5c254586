import pytest

from core.exceptions import AccessDeniedError
from db.memory_store import InMemoryRestaurantStore
from models.restaurant import RestaurantStatus
from models.user import ROLE_RESTAURANT, Account
from services.dashboard_gate import DASHBOARD_VIEW, PENDING_VIEW, DashboardGate
from services.restaurant_service import parse_application
from tests.conftest import make_application_data


async def setup_restaurant(store, *transitions):
    restaurant = await store.create(parse_application(make_application_data()))
    current = RestaurantStatus.PENDING
    for target in transitions:
        await store.set_status(restaurant.id, target, expected=current)
        current = target
    account = Account(username="mario@example.com", password_hash="x", role=ROLE_RESTAURANT,
                      restaurant_id=restaurant.id, must_change_password=True)
    return restaurant.id, account


@pytest.mark.asyncio
@pytest.mark.parametrize("transitions,status", [
    ((), RestaurantStatus.PENDING),
    ((RestaurantStatus.REJECTED,), RestaurantStatus.REJECTED),
    ((RestaurantStatus.APPROVED, RestaurantStatus.WITHDRAWAL_REQUESTED, RestaurantStatus.INACTIVE),
     RestaurantStatus.INACTIVE),
])
async def test_non_operational_restaurant_sees_pending_view(transitions, status):
    store = InMemoryRestaurantStore()
    restaurant_id, account = await setup_restaurant(store, *transitions)

    view = await DashboardGate(store).resolve(account)

    assert view.view == PENDING_VIEW
    assert view.status == status
    assert not view.show_approval_summary


@pytest.mark.asyncio
async def test_status_messages_differ():
    messages = set()
    for transitions in ((), (RestaurantStatus.REJECTED,)):
        store = InMemoryRestaurantStore()
        _, account = await setup_restaurant(store, *transitions)
        messages.add((await DashboardGate(store).resolve(account)).message)
    assert len(messages) == 2


@pytest.mark.asyncio
async def test_approval_summary_shows_once():
    store = InMemoryRestaurantStore()
    _, account = await setup_restaurant(store, RestaurantStatus.APPROVED)
    gate = DashboardGate(store)

    first = await gate.resolve(account)
    second = await gate.resolve(account)

    assert first.view == DASHBOARD_VIEW
    assert first.show_approval_summary
    assert first.must_change_password
    assert second.view == DASHBOARD_VIEW
    assert not second.show_approval_summary


@pytest.mark.asyncio
async def test_pending_withdrawal_keeps_dashboard():
    store = InMemoryRestaurantStore()
    _, account = await setup_restaurant(store, RestaurantStatus.APPROVED, RestaurantStatus.WITHDRAWAL_REQUESTED)

    view = await DashboardGate(store).resolve(account)

    assert view.view == DASHBOARD_VIEW
    assert view.withdrawal_pending


@pytest.mark.asyncio
async def test_require_operational_blocks_pending():
    store = InMemoryRestaurantStore()
    restaurant_id, account = await setup_restaurant(store)

    with pytest.raises(AccessDeniedError) as exc:
        await DashboardGate(store).require_operational(account, restaurant_id)
    assert exc.value.restaurant_status == "pending"


@pytest.mark.asyncio
async def test_require_operational_blocks_other_owner():
    store = InMemoryRestaurantStore()
    restaurant_id, account = await setup_restaurant(store, RestaurantStatus.APPROVED)

    with pytest.raises(AccessDeniedError):
        await DashboardGate(store).require_operational(account, restaurant_id + 1)


@pytest.mark.asyncio
async def test_require_operational_allows_approved():
    store = InMemoryRestaurantStore()
    restaurant_id, account = await setup_restaurant(store, RestaurantStatus.APPROVED)

    restaurant = await DashboardGate(store).require_operational(account, restaurant_id)

    assert restaurant.id == restaurant_id
