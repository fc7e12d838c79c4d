"""
Transaction service: ownership checks, query filters and aggregation.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any, Dict, List, Optional, Union

from sqlalchemy.orm import Session

from expense_tracker.core.exceptions import Forbidden, NotFound, ValidationError
from expense_tracker.core.utils import parse_iso_date_or_datetime, to_naive_utc, utcnow
from expense_tracker.models.transaction import Transaction, TransactionType

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("type", "amount", "description", "category", "date")


@dataclass(frozen=True)
class TransactionFilter:
    """Optional constraints narrowing a listing; every field may be omitted."""
    type: Optional[TransactionType] = None
    category: Optional[str] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None


def parse_transaction_type(value: Any) -> TransactionType:
    """Coerce a client value to TransactionType or raise ValidationError."""
    try:
        return TransactionType(value)
    except ValueError:
        allowed = ", ".join(t.value for t in TransactionType)
        raise ValidationError(f"Transaction type must be one of: {allowed}")


def resolve_date_bound(value: Union[date, datetime, None], end_of_day: bool = False) -> Optional[datetime]:
    """
    Turn a parsed bound into the naive UTC datetime compared against storage.

    A plain date expands to the start of that day, or to its last microsecond
    when ``end_of_day`` is set, so an upper bound includes the whole day.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return to_naive_utc(value)
    return datetime.combine(value, time.max if end_of_day else time.min)


def build_filters(
    type: Optional[TransactionType] = None,
    category: Optional[str] = None,
    date_from: Union[date, datetime, None] = None,
    date_to: Union[date, datetime, None] = None,
) -> TransactionFilter:
    """Build a TransactionFilter from validated query parameters; an empty category is ignored."""
    return TransactionFilter(
        type=type,
        category=category or None,
        date_from=resolve_date_bound(date_from),
        date_to=resolve_date_bound(date_to, end_of_day=True),
    )


def build_filter_conditions(owner_id: int, filters: TransactionFilter) -> list:
    """
    Translate a filter into SQLAlchemy predicates.

    Owner scoping is always present; the remaining predicates are added only
    for the constraints that were supplied.
    """
    conditions = [Transaction.owner_id == owner_id]
    if filters.type is not None:
        conditions.append(Transaction.type == filters.type)
    if filters.category is not None:
        conditions.append(Transaction.category == filters.category)

    if filters.date_from is not None and filters.date_to is not None:
        conditions.append(Transaction.date.between(filters.date_from, filters.date_to))
    elif filters.date_from is not None:
        conditions.append(Transaction.date >= filters.date_from)
    elif filters.date_to is not None:
        conditions.append(Transaction.date <= filters.date_to)

    return conditions


def list_transactions(db: Session, requester_id: int, filters: Optional[TransactionFilter] = None) -> List[Transaction]:
    """List the requester's transactions, most recent first."""
    filters = filters or TransactionFilter()
    return (
        db.query(Transaction)
        .filter(*build_filter_conditions(requester_id, filters))
        .order_by(Transaction.date.desc(), Transaction.id.desc())
        .all()
    )


def ensure_owner(requester_id: int, transaction: Transaction) -> None:
    """Raise Forbidden unless ``requester_id`` owns ``transaction``."""
    if transaction.owner_id != requester_id:
        logger.warning(
            f"User {requester_id} denied access to transaction {transaction.id} "
            f"owned by user {transaction.owner_id}"
        )
        raise Forbidden()


def get_owned_transaction(db: Session, requester_id: int, transaction_id: int) -> Transaction:
    """Fetch a transaction, checking existence before ownership."""
    transaction = db.query(Transaction).filter(Transaction.id == transaction_id).first()
    if not transaction:
        raise NotFound("Transaction not found")

    ensure_owner(requester_id, transaction)
    return transaction


def _clean_category(value: Any) -> str:
    category = value.strip() if isinstance(value, str) else value
    if not category:
        raise ValidationError("Category must not be empty")
    return category


def _clean_amount(value: Any) -> float:
    if value is None or isinstance(value, bool):
        raise ValidationError("Amount is required")
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValidationError("Amount must be a number")
    if amount < 0:
        raise ValidationError("Amount must be positive")
    return amount


def _clean_description(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value).strip()


def _clean_date(value: Any) -> datetime:
    if isinstance(value, str):
        try:
            value = parse_iso_date_or_datetime(value)
        except ValueError:
            raise ValidationError(f"Invalid date: {value}")
    if isinstance(value, date):
        return resolve_date_bound(value)
    raise ValidationError("Invalid date")


def create_transaction(db: Session, requester_id: int, payload: Dict[str, Any]) -> Transaction:
    """
    Create a transaction owned by ``requester_id``.

    ``type``, ``amount`` and ``category`` must be present and non-empty (an
    amount of zero counts as missing). Any owner supplied in the payload is
    ignored.
    """
    if not payload.get("type") or not payload.get("amount") or not payload.get("category"):
        raise ValidationError("Please provide all required fields")

    transaction_date = payload.get("date")
    transaction = Transaction(
        type=parse_transaction_type(payload["type"]),
        amount=_clean_amount(payload["amount"]),
        description=_clean_description(payload.get("description")),
        category=_clean_category(payload["category"]),
        date=_clean_date(transaction_date) if transaction_date is not None else utcnow(),
        owner_id=requester_id,
    )
    try:
        db.add(transaction)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(transaction)

    logger.info(f"User {requester_id} created transaction {transaction.id}")
    return transaction


def update_transaction(
    db: Session,
    requester_id: int,
    transaction_id: int,
    changes: Dict[str, Any],
) -> Transaction:
    """
    Merge ``changes`` over an existing transaction.

    Existence and ownership are verified before any field is touched. Keys
    outside the updatable fields (owner, id, timestamps) are ignored. Values
    are all validated before the record is modified.
    """
    transaction = get_owned_transaction(db, requester_id, transaction_id)

    cleaned = {}
    for field in UPDATABLE_FIELDS:
        if field not in changes:
            continue
        value = changes[field]
        if field == "type":
            cleaned[field] = parse_transaction_type(value)
        elif field == "amount":
            cleaned[field] = _clean_amount(value)
        elif field == "category":
            cleaned[field] = _clean_category(value)
        elif field == "description":
            cleaned[field] = _clean_description(value)
        elif field == "date":
            cleaned[field] = _clean_date(value)

    for field, value in cleaned.items():
        setattr(transaction, field, value)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(transaction)

    logger.info(f"User {requester_id} updated transaction {transaction_id} ({', '.join(cleaned) or 'no fields'})")
    return transaction


def delete_transaction(db: Session, requester_id: int, transaction_id: int) -> None:
    """Permanently remove a transaction after the existence and ownership checks."""
    transaction = get_owned_transaction(db, requester_id, transaction_id)
    try:
        db.delete(transaction)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"User {requester_id} deleted transaction {transaction_id}")


def summarize_transactions(db: Session, requester_id: int, filters: Optional[TransactionFilter] = None) -> Dict[str, Any]:
    """Totals, per-category expense breakdown and per-month totals for the filtered list."""
    transactions = list_transactions(db, requester_id, filters)

    income = 0.0
    expense = 0.0
    by_category: Dict[str, Dict[str, Any]] = defaultdict(lambda: {"total": 0.0, "count": 0})
    by_month: Dict[str, Dict[str, float]] = defaultdict(lambda: {"income": 0.0, "expense": 0.0})

    for t in transactions:
        month = t.date.strftime("%Y-%m")
        if t.type == TransactionType.INCOME:
            income += t.amount
            by_month[month]["income"] += t.amount
        else:
            expense += t.amount
            by_month[month]["expense"] += t.amount
            by_category[t.category]["total"] += t.amount
            by_category[t.category]["count"] += 1

    categories = [
        {"category": name, "total": round(values["total"], 2), "count": values["count"]}
        for name, values in by_category.items()
    ]
    categories.sort(key=lambda item: (-item["total"], item["category"]))

    monthly = [
        {"month": month, "income": round(values["income"], 2), "expense": round(values["expense"], 2)}
        for month, values in sorted(by_month.items())
    ]

    return {
        "income": round(income, 2),
        "expense": round(expense, 2),
        "balance": round(income - expense, 2),
        "count": len(transactions),
        "categories": categories,
        "monthly": monthly,
    }
