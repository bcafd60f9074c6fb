from collections.abc import Mapping
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from .errors import ValidationError
from .models import TRANSACTION_TYPES, UNSET, TransactionUpdate

CATEGORY_MAX_LENGTH = 30
DESCRIPTION_MAX_LENGTH = 200
MIN_AMOUNT = Decimal("0.01")
MAX_AMOUNT_CENTS = 10**15

PAYLOAD_FIELDS = ("type", "category", "amount", "date", "description")


def validate_type(s) -> str:
    if s not in TRANSACTION_TYPES:
        raise ValueError("type must be either income or expense")
    return s


def parse_amount_to_cents(s) -> int:
    if isinstance(s, bool) or s is None:
        raise ValueError("amount required")
    if isinstance(s, (int, float)):
        s = str(s)
    if not isinstance(s, str) or not s.strip():
        raise ValueError("amount required")
    try:
        d = Decimal(s.strip())
    except InvalidOperation as e:
        raise ValueError("amount invalid") from e
    if not d.is_finite():
        raise ValueError("amount invalid")
    if d <= 0:
        raise ValueError("amount must be a positive number")
    if d < MIN_AMOUNT:
        raise ValueError("amount must be at least 0.01")
    if d.adjusted() > 12:
        raise ValueError("amount too large")
    cents = (d * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    if (d * 100) != cents:
        raise ValueError("amount supports up to 2 decimals")
    if cents > MAX_AMOUNT_CENTS:
        raise ValueError("amount too large")
    return int(cents)


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.isoformat(timespec="microseconds")


def _checked_timestamp(value: datetime) -> str:
    # Shifting an aware value to UTC can leave the supported year range.
    try:
        return format_timestamp(value)
    except OverflowError as exc:
        raise ValueError("date must be a valid date") from exc


def parse_date(value) -> str:
    """Normalise an ISO date or datetime to the stored UTC timestamp text."""
    if isinstance(value, datetime):
        return _checked_timestamp(value)
    if isinstance(value, date):
        return format_timestamp(datetime(value.year, value.month, value.day))
    if not isinstance(value, str) or not value.strip():
        raise ValueError("date must be a valid date")
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise ValueError("date must be a valid date") from exc
    return _checked_timestamp(parsed)


def validate_category(value) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError("category is required")
    category = value.strip()
    if len(category) > CATEGORY_MAX_LENGTH:
        raise ValueError(f"category cannot exceed {CATEGORY_MAX_LENGTH} characters")
    return category


def validate_description(value) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError("description must be a string")
    description = value.strip()
    if len(description) > DESCRIPTION_MAX_LENGTH:
        raise ValueError(
            f"description cannot exceed {DESCRIPTION_MAX_LENGTH} characters"
        )
    return description or None


_VALIDATORS = {
    "type": ("type", validate_type),
    "category": ("category", validate_category),
    "amount": ("amount_cents", parse_amount_to_cents),
    "date": ("date", parse_date),
    "description": ("description", validate_description),
}


def _check_payload(payload) -> list[dict[str, str]]:
    if not isinstance(payload, Mapping):
        raise ValidationError(
            [{"field": "body", "message": "request body must be a JSON object"}]
        )
    return [
        {"field": str(key), "message": "unknown field"}
        for key in payload
        if key not in PAYLOAD_FIELDS
    ]


def _clean_fields(payload: Mapping, errors: list[dict[str, str]]) -> dict:
    cleaned = {}
    for key in PAYLOAD_FIELDS:
        if key not in payload:
            continue
        target, validator = _VALIDATORS[key]
        try:
            cleaned[target] = validator(payload[key])
        except ValueError as exc:
            errors.append({"field": key, "message": str(exc)})
    return cleaned


def validate_new_transaction(payload, *, now: datetime | None = None) -> dict:
    errors = _check_payload(payload)
    for key in ("type", "category", "amount"):
        if payload.get(key) is None:
            errors.append({"field": key, "message": f"{key} is required"})
    cleaned = _clean_fields(
        {k: v for k, v in payload.items() if v is not None or k == "description"},
        errors,
    )
    if errors:
        raise ValidationError(errors)
    if "date" not in cleaned:
        cleaned["date"] = format_timestamp(now or datetime.now(timezone.utc))
    cleaned.setdefault("description", None)
    return cleaned


def validate_update(payload) -> TransactionUpdate:
    errors = _check_payload(payload)
    for key in ("type", "category", "amount", "date"):
        if key in payload and payload[key] is None:
            errors.append({"field": key, "message": f"{key} cannot be null"})
    cleaned = _clean_fields(
        {k: v for k, v in payload.items() if v is not None or k == "description"},
        errors,
    )
    if not errors and not any(key in payload for key in PAYLOAD_FIELDS):
        errors.append({"field": "body", "message": "no fields to update"})
    if errors:
        raise ValidationError(errors)
    return TransactionUpdate(
        type=cleaned.get("type"),
        category=cleaned.get("category"),
        amount_cents=cleaned.get("amount_cents"),
        date=cleaned.get("date"),
        description=cleaned.get("description", UNSET),
    )
