import pytest

from core.exceptions import ApplicationValidationError
from models.restaurant import RestaurantStatus
from services.notifications import PENDING_SUBJECT, RestaurantNotifier
from services.restaurant_service import RegistrationIntake
from tests.conftest import BrokenEmailSender, FailingEmailSender, make_application_data


@pytest.mark.asyncio
async def test_submit_stores_pending_restaurant_and_emails(container, store, sender, application_data):
    receipt = await container.intake.submit(application_data)

    assert receipt.status == RestaurantStatus.PENDING
    assert receipt.application_id == f"FD-{receipt.restaurant_id}"

    restaurant = await store.get(receipt.restaurant_id)
    assert restaurant.status == RestaurantStatus.PENDING
    assert restaurant.email == "mario@example.com"
    assert len(await store.get_menu(receipt.restaurant_id)) == 2
    assert (await store.get_hours(receipt.restaurant_id))["monday"].open == "09:00"

    assert len(sender.sent) == 1
    assert sender.sent[0].to == "mario@example.com"
    assert sender.sent[0].subject == PENDING_SUBJECT
    assert receipt.application_id in sender.sent[0].body


@pytest.mark.asyncio
async def test_invalid_application_writes_nothing(container, store, sender):
    with pytest.raises(ApplicationValidationError):
        await container.intake.submit(make_application_data(zip_code="123"))
    assert await store.list_all() == []
    assert sender.sent == []


@pytest.mark.asyncio
async def test_email_failure_does_not_fail_registration(store):
    failing = FailingEmailSender()
    intake = RegistrationIntake(store, RestaurantNotifier(failing, "http://login"))

    receipt = await intake.submit(make_application_data())

    assert len(failing.attempts) == 1
    assert (await store.get(receipt.restaurant_id)).status == RestaurantStatus.PENDING


@pytest.mark.asyncio
async def test_contact_person_defaults_to_email(container, store):
    data = make_application_data()
    del data["contact_person"]
    receipt = await container.intake.submit(data)
    assert (await store.get(receipt.restaurant_id)).contact_person == "mario@example.com"


@pytest.mark.asyncio
async def test_each_submission_gets_its_own_id(container):
    first = await container.intake.submit(make_application_data())
    second = await container.intake.submit(make_application_data(name="Luigi's", email="luigi@example.com"))
    assert first.restaurant_id != second.restaurant_id
    assert first.application_id != second.application_id


@pytest.mark.asyncio
async def test_unexpected_sender_error_does_not_fail_registration(store):
    broken = BrokenEmailSender()
    intake = RegistrationIntake(store, RestaurantNotifier(broken, "http://login"))

    receipt = await intake.submit(make_application_data())

    assert receipt.status == RestaurantStatus.PENDING
    assert len(broken.attempts) == 1
    assert [r.id for r in await store.list_all()] == [receipt.restaurant_id]
