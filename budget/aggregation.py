from collections.abc import Iterable
from datetime import date, datetime, timezone
from decimal import Decimal

from .models import CENT, EXPENSE, INCOME, Summary, Transaction
from .query import current_month, month_range, parse_month
from .repo import get_summary


def summarize(transactions: Iterable[Transaction]) -> Summary:
    """Reduce already owner-scoped transactions to income/expense totals."""
    income = Decimal("0")
    expenses = Decimal("0")
    for txn in transactions:
        if txn.type == INCOME:
            income += txn.amount
        elif txn.type == EXPENSE:
            expenses += txn.amount
    return Summary(income=income.quantize(CENT), expenses=expenses.quantize(CENT))


def dashboard(db_path, owner_id: str, *, today: date | None = None) -> dict:
    month_label = current_month(today or datetime.now(timezone.utc).date())
    start, end = month_range(*parse_month(month_label))
    return {
        "all_time": get_summary(db_path, owner_id),
        "month": get_summary(db_path, owner_id, start=start, end=end),
        "month_label": month_label,
    }
