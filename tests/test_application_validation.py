import pytest

from core.exceptions import ApplicationValidationError
from models.restaurant import DAYS_OF_WEEK, DayHours, RestaurantStatus
from services.restaurant_service import parse_application
from tests.conftest import make_application_data


def test_valid_application_is_normalized():
    application = parse_application(make_application_data(
        name="  Mario's Pizzeria  ",
        cuisines="Italian, Pizza, ",
    ))
    assert application.name == "Mario's Pizzeria"
    assert application.cuisines == ["Italian", "Pizza"]
    assert application.phone == "2145550142"
    assert list(application.operating_hours) == list(DAYS_OF_WEEK)


def test_missing_required_fields_are_reported_per_field():
    data = make_application_data(name="   ", city="")
    del data["email"]
    with pytest.raises(ApplicationValidationError) as exc:
        parse_application(data)
    errors = exc.value.errors
    assert "name" in errors
    assert "city" in errors
    assert "email" in errors


@pytest.mark.parametrize("field,value", [
    ("zip_code", "7520"),
    ("zip_code", "ABCDE"),
    ("phone", "555-0142"),
    ("phone", "214-555-01420"),
    ("average_price", "$$$$$"),
    ("established_year", 1700),
    ("email", "not-an-email"),
    ("cuisines", []),
])
def test_malformed_field_is_rejected(field, value):
    with pytest.raises(ApplicationValidationError) as exc:
        parse_application(make_application_data(**{field: value}))
    assert any(key.startswith(field) for key in exc.value.errors)


def test_operating_hours_must_cover_every_day():
    data = make_application_data()
    del data["operating_hours"]["sunday"]
    with pytest.raises(ApplicationValidationError) as exc:
        parse_application(data)
    assert "sunday" in exc.value.errors["operating_hours"]


def test_close_before_open_is_rejected():
    data = make_application_data()
    data["operating_hours"]["monday"] = {"open": "22:00", "close": "09:00", "closed": False}
    with pytest.raises(ApplicationValidationError) as exc:
        parse_application(data)
    assert any(key.startswith("operating_hours.monday") for key in exc.value.errors)


def test_closed_day_needs_no_times():
    data = make_application_data()
    data["operating_hours"]["sunday"] = {"closed": True}
    application = parse_application(data)
    assert application.operating_hours["sunday"] == DayHours(closed=True)


def test_menu_item_price_must_be_positive():
    data = make_application_data(menu_items=[{"name": "Free bread", "price": 0}])
    with pytest.raises(ApplicationValidationError) as exc:
        parse_application(data)
    assert "menu_items.0.price" in exc.value.errors


def test_validation_error_body_lists_fields():
    err = ApplicationValidationError({"zip_code": "ZIP code must be 5 digits"})
    assert err.status_code == 422
    assert err.to_dict() == {
        "detail": "Application has invalid fields",
        "errors": {"zip_code": "ZIP code must be 5 digits"},
    }


def test_status_flags():
    assert RestaurantStatus.APPROVED.is_operational
    assert RestaurantStatus.WITHDRAWAL_REQUESTED.is_operational
    assert not RestaurantStatus.PENDING.is_operational
    assert RestaurantStatus.REJECTED.is_terminal
    assert RestaurantStatus.INACTIVE.is_terminal
    assert not RestaurantStatus.PENDING.is_terminal
