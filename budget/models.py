from dataclasses import dataclass, field
from decimal import Decimal

CENT = Decimal("0.01")

INCOME = "income"
EXPENSE = "expense"
TRANSACTION_TYPES = (INCOME, EXPENSE)


def cents_to_decimal(cents: int) -> Decimal:
    return (Decimal(int(cents)) / 100).quantize(CENT)


@dataclass(frozen=True)
class Transaction:
    id: int
    owner_id: str
    type: str
    category: str
    amount_cents: int
    date: str
    description: str | None
    created_at: str
    updated_at: str

    @classmethod
    def from_row(cls, row) -> "Transaction":
        return cls(
            id=int(row["id"]),
            owner_id=row["owner_id"],
            type=row["type"],
            category=row["category"],
            amount_cents=int(row["amount_cents"]),
            date=row["date"],
            description=row["description"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    @property
    def amount(self) -> Decimal:
        return cents_to_decimal(self.amount_cents)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "ownerId": self.owner_id,
            "type": self.type,
            "category": self.category,
            "amount": self.amount,
            "formattedAmount": f"{self.amount:.2f}",
            "date": self.date,
            "description": self.description,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET = _Unset()


@dataclass(frozen=True)
class TransactionUpdate:
    """Partial update; a slot left as None (UNSET for description) is untouched.

    description=None clears the stored description.
    """

    type: str | None = None
    category: str | None = None
    amount_cents: int | None = None
    date: str | None = None
    description: str | None | _Unset = UNSET

    def changes(self) -> dict:
        values = {
            "type": self.type,
            "category": self.category,
            "amount_cents": self.amount_cents,
            "date": self.date,
        }
        changed = {name: value for name, value in values.items() if value is not None}
        if self.description is not UNSET:
            changed["description"] = self.description
        return changed


@dataclass(frozen=True)
class CategoryTotal:
    category: str
    amount: Decimal

    def to_dict(self) -> dict:
        return {"category": self.category, "amount": self.amount}


@dataclass(frozen=True)
class Summary:
    income: Decimal = Decimal("0.00")
    expenses: Decimal = Decimal("0.00")
    by_category: tuple[CategoryTotal, ...] = ()

    @property
    def balance(self) -> Decimal:
        return (self.income - self.expenses).quantize(CENT)

    def to_dict(self) -> dict:
        return {
            "income": self.income,
            "expenses": self.expenses,
            "balance": self.balance,
            "byCategory": [item.to_dict() for item in self.by_category],
        }


@dataclass(frozen=True)
class Page:
    items: list[Transaction] = field(default_factory=list)
    current_page: int = 1
    total_pages: int = 0
    total: int = 0
    has_next_page: bool = False
    has_prev_page: bool = False

    def pagination(self) -> dict:
        return {
            "currentPage": self.current_page,
            "totalPages": self.total_pages,
            "totalTransactions": self.total,
            "hasNextPage": self.has_next_page,
            "hasPrevPage": self.has_prev_page,
        }


SUGGESTED_CATEGORIES = {
    INCOME: (
        "Salary",
        "Freelance",
        "Investment",
        "Business",
        "Gift",
        "Other Income",
    ),
    EXPENSE: (
        "Food & Dining",
        "Transportation",
        "Shopping",
        "Entertainment",
        "Bills & Utilities",
        "Healthcare",
        "Education",
        "Travel",
        "Groceries",
        "Other Expenses",
    ),
}
