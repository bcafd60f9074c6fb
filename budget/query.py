"""Translate list-request filters into an owner-scoped store query.

Every violation in a request is collected and reported together, so a caller
sending a bad ``month`` and a bad ``type`` learns about both at once.
"""

import math
import re
from dataclasses import dataclass
from datetime import date, datetime

from .errors import ValidationError
from .logic import format_timestamp, validate_type
from .models import Page, Transaction

DEFAULT_PAGE_LIMIT = 10
MAX_PAGE_LIMIT = 1000
_MAX_INT = 2**31 - 1

_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})(?:$|-)")


@dataclass(frozen=True)
class TransactionQuery:
    owner_id: str
    start: str | None = None
    end: str | None = None
    type: str | None = None
    category: str | None = None
    page: int = 1
    limit: int = DEFAULT_PAGE_LIMIT

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


def month_range(year: int, month: int) -> tuple[str, str]:
    """Half-open [start, end) bounds of a calendar month as stored timestamps."""
    month_start = datetime(year, month, 1)
    if month == 12:
        next_month_start = datetime(year + 1, 1, 1)
    else:
        next_month_start = datetime(year, month + 1, 1)
    return format_timestamp(month_start), format_timestamp(next_month_start)


def current_month(today: date | None = None) -> str:
    current = today or date.today()
    return f"{current.year:04d}-{current.month:02d}"


def parse_month(value) -> tuple[int, int]:
    if not isinstance(value, str):
        raise ValueError("month must be a valid date")
    text = value.strip()
    match = _MONTH_RE.match(text)
    if match is None:
        raise ValueError("month must be a valid date")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12 or year < 1:
        raise ValueError("month must be a valid date")
    if len(text) > 7:
        # A full ISO date is accepted as long as it parses.
        try:
            datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError as exc:
            raise ValueError("month must be a valid date") from exc
    return year, month


def _parse_positive_int(value, name: str, default: int) -> int:
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    if isinstance(value, bool):
        raise ValueError(f"{name} must be a positive integer")
    try:
        number = int(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be a positive integer") from exc
    if number < 1:
        raise ValueError(f"{name} must be a positive integer")
    if number > _MAX_INT:
        raise ValueError(f"{name} is too large")
    return number


def build_query(
    owner_id: str,
    *,
    month=None,
    category=None,
    type=None,
    page=None,
    limit=None,
    default_limit: int = DEFAULT_PAGE_LIMIT,
    max_limit: int = MAX_PAGE_LIMIT,
) -> TransactionQuery:
    errors = []
    start = end = None
    if month not in (None, ""):
        try:
            start, end = month_range(*parse_month(month))
        except ValueError as exc:
            errors.append({"field": "month", "message": str(exc)})

    category_filter = None
    if category is not None:
        if not isinstance(category, str):
            errors.append({"field": "category", "message": "category must be a string"})
        else:
            category_filter = category.strip() or None

    type_filter = None
    if type not in (None, ""):
        try:
            type_filter = validate_type(type)
        except ValueError as exc:
            errors.append({"field": "type", "message": str(exc)})

    page_number = 1
    try:
        page_number = _parse_positive_int(page, "page", 1)
    except ValueError as exc:
        errors.append({"field": "page", "message": str(exc)})

    page_limit = default_limit
    try:
        page_limit = _parse_positive_int(limit, "limit", default_limit)
        if page_limit > max_limit:
            raise ValueError(f"limit cannot exceed {max_limit}")
    except ValueError as exc:
        errors.append({"field": "limit", "message": str(exc)})

    if errors:
        raise ValidationError(errors)
    return TransactionQuery(
        owner_id=owner_id,
        start=start,
        end=end,
        type=type_filter,
        category=category_filter,
        page=page_number,
        limit=page_limit,
    )


def paginate(items: list[Transaction], *, total: int, page: int, limit: int) -> Page:
    skip = (page - 1) * limit
    return Page(
        items=list(items),
        current_page=page,
        total_pages=math.ceil(total / limit),
        total=total,
        has_next_page=skip + len(items) < total,
        has_prev_page=page > 1,
    )
