from datetime import date
from decimal import Decimal

import pytest

from services.recurring_service import RecurringService
from utils.errors import InvalidFrequency

from conftest import ALICE, BOB, FOOD, HOUSING, UTILITIES, clock_at


@pytest.fixture
def service(recurring_repo, categories, users):
    return RecurringService(recurring_repo, categories, users, clock=clock_at(2024, 3, 10, 14, 30))


def test_create_rolls_a_past_start_forward(service, recurring_repo):
    rule = service.create(ALICE, "Rent", "1200", "monthly", HOUSING, date(2023, 1, 15))

    assert rule.id is not None
    assert rule.next_occurrence == date(2024, 3, 15)
    assert rule.amount == Decimal("1200.00")
    assert recurring_repo.rules[rule.id].next_occurrence == date(2024, 3, 15)


def test_create_with_future_start_keeps_it(service):
    rule = service.create(ALICE, "Insurance", "90", "yearly", HOUSING, date(2024, 9, 1))
    assert rule.next_occurrence == date(2024, 9, 1)


def test_create_defaults_currency_to_user_preference(service):
    assert service.create(ALICE, "Rent", "1200", "monthly", HOUSING, date(2024, 1, 1)).currency == "EUR"
    assert service.create(BOB, "Rent", "900", "monthly", HOUSING, date(2024, 1, 1)).currency == "USD"


def test_create_with_explicit_currency(service):
    rule = service.create(ALICE, "Cloud", "5", "monthly", UTILITIES, date(2024, 1, 1), currency="gbp")
    assert rule.currency == "GBP"


def test_create_unknown_user_falls_back_to_default_currency(service):
    rule = service.create(999, "Rent", "10", "monthly", HOUSING, date(2024, 1, 1))
    assert rule.currency == "USD"


def test_create_rejects_unknown_frequency(service, recurring_repo):
    with pytest.raises(InvalidFrequency):
        service.create(ALICE, "Rent", "1200", "biweekly", HOUSING, date(2024, 1, 1))
    assert recurring_repo.rules == {}


@pytest.mark.parametrize("amount", ["0", "-5", "abc"])
def test_create_rejects_bad_amounts(service, amount):
    with pytest.raises(ValueError):
        service.create(ALICE, "Rent", amount, "monthly", HOUSING, date(2024, 1, 1))


def test_create_rejects_end_before_start(service):
    with pytest.raises(ValueError, match="End date"):
        service.create(ALICE, "Gym", "35", "monthly", FOOD, date(2024, 2, 1), end_date=date(2024, 1, 1))


def test_create_rejects_unknown_category(service):
    with pytest.raises(ValueError, match="not found"):
        service.create(ALICE, "Gym", "35", "monthly", 4242, date(2024, 2, 1))


def test_create_rejects_blank_description(service):
    with pytest.raises(ValueError):
        service.create(ALICE, "   ", "35", "monthly", FOOD, date(2024, 2, 1))


def test_resolve_category_by_name(service):
    assert service.resolve_category(ALICE, "food") == FOOD
    with pytest.raises(ValueError, match="Unknown category"):
        service.resolve_category(ALICE, "Yachts")


def test_update_frequency_recomputes_next_occurrence(service):
    # Wednesday anchor; the clock moves on to a Friday.
    rule = service.create(ALICE, "Cleaner", "60", "monthly", HOUSING, date(2024, 3, 6))
    service.clock = clock_at(2024, 3, 15)
    updated = service.update(rule.id, ALICE, frequency="weekly")

    assert updated.frequency == "weekly"
    assert updated.next_occurrence == date(2024, 3, 20)


def test_update_start_date_recomputes_next_occurrence(service):
    rule = service.create(ALICE, "Rent", "1200", "monthly", HOUSING, date(2023, 1, 15))
    updated = service.update(rule.id, ALICE, start_date=date(2023, 1, 5))
    assert updated.next_occurrence == date(2024, 4, 5)


def test_update_amount_leaves_schedule_alone(service, recurring_repo):
    rule = service.create(ALICE, "Rent", "1200", "monthly", HOUSING, date(2023, 1, 15))
    recurring_repo.rules[rule.id].next_occurrence = date(2024, 4, 15)

    updated = service.update(rule.id, ALICE, amount="1250.50", description="New rent")

    assert updated.amount == Decimal("1250.50")
    assert updated.description == "New rent"
    assert updated.next_occurrence == date(2024, 4, 15)


def test_update_same_frequency_does_not_recompute(service, recurring_repo):
    rule = service.create(ALICE, "Rent", "1200", "monthly", HOUSING, date(2023, 1, 15))
    recurring_repo.rules[rule.id].next_occurrence = date(2024, 4, 15)

    assert service.update(rule.id, ALICE, frequency="monthly").next_occurrence == date(2024, 4, 15)


def test_update_sets_and_clears_end_date(service):
    rule = service.create(ALICE, "Gym", "35", "monthly", FOOD, date(2024, 1, 1))

    assert service.update(rule.id, ALICE, end_date=date(2024, 12, 31)).end_date == date(2024, 12, 31)
    assert service.update(rule.id, ALICE, end_date=None).end_date is None
    assert service.update(rule.id, ALICE, amount="36").end_date is None


def test_update_rejects_invalid_frequency(service):
    rule = service.create(ALICE, "Gym", "35", "monthly", FOOD, date(2024, 1, 1))
    with pytest.raises(InvalidFrequency):
        service.update(rule.id, ALICE, frequency="hourly")


def test_update_of_other_users_rule_returns_none(service):
    rule = service.create(ALICE, "Gym", "35", "monthly", FOOD, date(2024, 1, 1))
    assert service.update(rule.id, BOB, amount="1") is None
    assert service.update(9999, ALICE, amount="1") is None


def test_delete_removes_only_the_rule(service, recurring_repo):
    rule = service.create(ALICE, "Gym", "35", "monthly", FOOD, date(2024, 1, 1))

    assert service.delete(rule.id, BOB) is False
    assert service.delete(rule.id, ALICE) is True
    assert rule.id not in recurring_repo.rules
    assert service.delete(rule.id, ALICE) is False


def test_format_list_empty(service):
    assert service.format_list(ALICE) == "📭 No recurring expenses yet."


def test_format_list_sums_active_monthly_rules(service):
    service.create(ALICE, "Rent", "1200", "monthly", HOUSING, date(2023, 1, 15))
    service.create(ALICE, "Internet", "40", "monthly", UTILITIES, date(2023, 1, 3))
    service.create(ALICE, "Coffee", "3", "daily", FOOD, date(2024, 1, 1))

    text = service.format_list(ALICE)

    assert "Rent" in text and "Internet" in text and "Coffee" in text
    assert "Monthly commitments: 1240.00 EUR" in text
