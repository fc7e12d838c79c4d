"""
Tests for the transaction service: filters, ownership and validation.
"""
from datetime import date, datetime, timedelta, timezone
import pytest
from expense_tracker.core.exceptions import Forbidden, NotFound, ValidationError
from expense_tracker.core.utils import parse_iso_date_or_datetime, utcnow
from expense_tracker.models import Transaction, TransactionType
from expense_tracker.services.transaction_service import (
    TransactionFilter,
    build_filter_conditions,
    build_filters,
    create_transaction,
    delete_transaction,
    ensure_owner,
    get_owned_transaction,
    list_transactions,
    resolve_date_bound,
    summarize_transactions,
    update_transaction,
)


@pytest.fixture
def alice(make_user):
    return make_user("alice@mail.com")


@pytest.fixture
def bob(make_user):
    return make_user("bob@mail.com")


def add(db, owner, day, type="expense", amount=10, category="food", description="item"):
    return create_transaction(db, owner.id, {
        "type": type,
        "amount": amount,
        "category": category,
        "description": description,
        "date": day,
    })


@pytest.fixture
def january(db, alice, bob):
    """Four transactions for alice across January and one for bob."""
    rows = {
        "jan1": add(db, alice, datetime(2024, 1, 1, 9, 0)),
        "jan10": add(db, alice, datetime(2024, 1, 10, 12, 0), type="income", amount=1000, category="salary"),
        "jan20": add(db, alice, datetime(2024, 1, 20, 18, 30), category="transport"),
        "jan31": add(db, alice, datetime(2024, 1, 31, 23, 0), amount=25),
        "bob": add(db, bob, datetime(2024, 1, 15)),
    }
    return rows


def ids(transactions):
    return [t.id for t in transactions]


# Filter construction

def test_conditions_always_scope_to_owner():
    assert len(build_filter_conditions(1, TransactionFilter())) == 1


@pytest.mark.parametrize("filters,expected", [
    (TransactionFilter(), 1),
    (TransactionFilter(type=TransactionType.EXPENSE), 2),
    (TransactionFilter(type=TransactionType.EXPENSE, category="food"), 3),
    (TransactionFilter(date_from=datetime(2024, 1, 1)), 2),
    (TransactionFilter(date_to=datetime(2024, 1, 1)), 2),
    (TransactionFilter(date_from=datetime(2024, 1, 1), date_to=datetime(2024, 2, 1)), 2),
])
def test_condition_count(filters, expected):
    assert len(build_filter_conditions(1, filters)) == expected


def test_resolve_date_bound():
    assert resolve_date_bound(None) is None
    assert resolve_date_bound(date(2024, 1, 31)) == datetime(2024, 1, 31)
    assert resolve_date_bound(date(2024, 1, 31), end_of_day=True) == datetime(2024, 1, 31, 23, 59, 59, 999999)
    assert resolve_date_bound(datetime(2024, 1, 31, 10, 0), end_of_day=True) == datetime(2024, 1, 31, 10, 0)
    aware = datetime(2024, 1, 31, 12, 0, tzinfo=timezone(timedelta(hours=2)))
    assert resolve_date_bound(aware) == datetime(2024, 1, 31, 10, 0)


def test_parse_iso_date_or_datetime_keeps_dates_apart():
    assert parse_iso_date_or_datetime("2024-01-31") == date(2024, 1, 31)
    assert type(parse_iso_date_or_datetime("20240131")) is date
    assert parse_iso_date_or_datetime("2024-01-31T10:00:00") == datetime(2024, 1, 31, 10, 0)
    assert parse_iso_date_or_datetime("2024-01-31T10:00:00Z").tzinfo is not None
    assert parse_iso_date_or_datetime(None) is None


@pytest.mark.parametrize("value", ["yesterday", "2024-13-01", "31/01/2024"])
def test_parse_iso_date_or_datetime_rejects_garbage(value):
    with pytest.raises(ValueError):
        parse_iso_date_or_datetime(value)


def test_build_filters_ignores_empty_category():
    assert build_filters(category="") == TransactionFilter()


# Listing

def test_list_is_scoped_and_ordered(db, alice, bob, january):
    result = list_transactions(db, alice.id)
    assert ids(result) == [january[k].id for k in ("jan31", "jan20", "jan10", "jan1")]
    assert ids(list_transactions(db, bob.id)) == [january["bob"].id]


def test_other_users_rows_never_leak_through_filters(db, bob, january):
    filters = build_filters(
        type=TransactionType.EXPENSE, category="food", date_from=date(2024, 1, 1), date_to=date(2024, 12, 31)
    )
    assert ids(list_transactions(db, bob.id, filters)) == [january["bob"].id]


def test_filter_by_type_and_category(db, alice, january):
    income = list_transactions(db, alice.id, build_filters(type=TransactionType.INCOME))
    assert ids(income) == [january["jan10"].id]
    food = list_transactions(db, alice.id, build_filters(category="food"))
    assert ids(food) == [january["jan31"].id, january["jan1"].id]


def test_date_range_is_inclusive_on_both_sides(db, alice, january):
    result = list_transactions(db, alice.id, build_filters(date_from=date(2024, 1, 1), date_to=date(2024, 1, 31)))
    assert len(result) == 4

    exact = build_filters(date_from=datetime(2024, 1, 10, 12, 0), date_to=datetime(2024, 1, 20, 18, 30))
    assert ids(list_transactions(db, alice.id, exact)) == [january["jan20"].id, january["jan10"].id]


def test_single_bounds_relax_only_one_side(db, alice, january):
    from_only = list_transactions(db, alice.id, build_filters(date_from=date(2024, 1, 20)))
    assert ids(from_only) == [january["jan31"].id, january["jan20"].id]

    to_only = list_transactions(db, alice.id, build_filters(date_to=date(2024, 1, 10)))
    assert ids(to_only) == [january["jan10"].id, january["jan1"].id]


# Creation

def test_create_forces_owner_and_defaults_date(db, alice, bob):
    before = utcnow()
    transaction = create_transaction(db, alice.id, {
        "type": "expense", "amount": 50, "category": "food", "owner_id": bob.id,
    })
    assert transaction.id is not None
    assert transaction.owner_id == alice.id
    assert transaction.type == TransactionType.EXPENSE
    assert transaction.description is None
    assert transaction.date >= before
    assert transaction.created_at is not None and transaction.updated_at is not None


@pytest.mark.parametrize("payload", [
    {"amount": 50, "category": "food"},
    {"type": "expense", "category": "food"},
    {"type": "expense", "amount": 0, "category": "food"},
    {"type": "expense", "amount": 50},
    {"type": "expense", "amount": 50, "category": ""},
    {"type": "expense", "amount": 50, "category": "   "},
    {"type": "expense", "amount": -5, "category": "food"},
    {"type": "transfer", "amount": 50, "category": "food"},
    {"type": "expense", "amount": True, "category": "food"},
    {"type": "expense", "amount": 50, "category": "food", "date": "31/01/2024"},
])
def test_create_rejects_invalid_payload(db, alice, payload):
    with pytest.raises(ValidationError):
        create_transaction(db, alice.id, payload)
    assert db.query(Transaction).count() == 0


def test_create_accepts_iso_date_strings(db, alice):
    compact = create_transaction(db, alice.id, {
        "type": "income", "amount": 5, "category": "gift", "date": "20240131",
    })
    assert compact.date == datetime(2024, 1, 31)
    stamped = create_transaction(db, alice.id, {
        "type": "income", "amount": 5, "category": "gift", "date": "2024-01-31T12:00:00+02:00",
    })
    assert stamped.date == datetime(2024, 1, 31, 10, 0)


# Ownership, update and delete

def test_ensure_owner(alice, bob):
    record = Transaction(id=1, owner_id=alice.id)
    ensure_owner(alice.id, record)
    with pytest.raises(Forbidden):
        ensure_owner(bob.id, record)


def test_get_owned_transaction_checks_existence_first(db, alice, bob, january):
    with pytest.raises(NotFound):
        get_owned_transaction(db, bob.id, 9999)
    with pytest.raises(Forbidden):
        get_owned_transaction(db, bob.id, january["jan1"].id)


def test_update_merges_only_supplied_fields(db, alice, january):
    record = january["jan1"]
    updated = update_transaction(db, alice.id, record.id, {"amount": 99.5, "description": " dinner "})
    assert updated.amount == 99.5
    assert updated.description == "dinner"
    assert updated.category == "food"
    assert updated.type == TransactionType.EXPENSE
    assert updated.date == datetime(2024, 1, 1, 9, 0)


def test_update_cannot_reassign_owner(db, alice, bob, january):
    record = january["jan1"]
    updated = update_transaction(db, alice.id, record.id, {"owner_id": bob.id, "id": 12345})
    assert updated.owner_id == alice.id
    assert updated.id == record.id


def test_update_by_non_owner_leaves_record_unchanged(db, alice, bob, january):
    record_id = january["jan1"].id
    with pytest.raises(Forbidden):
        update_transaction(db, bob.id, record_id, {"amount": 1})
    db.expire_all()
    assert db.get(Transaction, record_id).amount == 10


def test_update_missing_record_is_not_found(db, bob):
    with pytest.raises(NotFound):
        update_transaction(db, bob.id, 9999, {"amount": 1})


@pytest.mark.parametrize("changes", [
    {"amount": -1},
    {"type": "gift"},
    {"category": ""},
    {"amount": 5, "category": None},
])
def test_update_rejects_invalid_values_without_changes(db, alice, january, changes):
    record_id = january["jan1"].id
    with pytest.raises(ValidationError):
        update_transaction(db, alice.id, record_id, changes)
    db.expire_all()
    record = db.get(Transaction, record_id)
    assert record.amount == 10
    assert record.category == "food"


def test_delete(db, alice, bob, january):
    record_id = january["jan1"].id
    with pytest.raises(NotFound):
        delete_transaction(db, bob.id, 9999)
    with pytest.raises(Forbidden):
        delete_transaction(db, bob.id, record_id)
    assert db.get(Transaction, record_id) is not None

    delete_transaction(db, alice.id, record_id)
    db.expire_all()
    assert db.get(Transaction, record_id) is None


# Summary

def test_summary(db, alice, january):
    summary = summarize_transactions(db, alice.id)
    assert summary["income"] == 1000
    assert summary["expense"] == 45
    assert summary["balance"] == 955
    assert summary["count"] == 4
    assert summary["categories"] == [
        {"category": "food", "total": 35, "count": 2},
        {"category": "transport", "total": 10, "count": 1},
    ]
    assert summary["monthly"] == [{"month": "2024-01", "income": 1000, "expense": 45}]


def test_summary_respects_filters(db, alice, january):
    summary = summarize_transactions(db, alice.id, build_filters(date_to=date(2024, 1, 10)))
    assert summary["income"] == 1000
    assert summary["expense"] == 10
    assert summary["count"] == 2
