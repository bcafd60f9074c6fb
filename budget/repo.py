import logging

from .db import open_db
from .errors import NotFoundError
from .models import (
    CategoryTotal,
    Summary,
    Transaction,
    TransactionUpdate,
    cents_to_decimal,
)
from .query import TransactionQuery


logger = logging.getLogger(__name__)

_UPDATABLE_COLUMNS = ("type", "category", "amount_cents", "date", "description")


def create_txn(
    db_path,
    owner_id: str,
    *,
    type,
    category,
    amount_cents,
    date,
    description=None,
) -> Transaction:
    with open_db(db_path) as conn:
        cur = conn.execute(
            """
            INSERT INTO transactions(owner_id, type, category, amount_cents, date, description)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (owner_id, type, category, amount_cents, date, description),
        )
        txn_id = int(cur.lastrowid)
        row = conn.execute(
            "SELECT * FROM transactions WHERE id = ?", (txn_id,)
        ).fetchone()
    logger.info("transaction created id=%s owner=%s", txn_id, owner_id)
    return Transaction.from_row(row)


def get_txn(db_path, owner_id: str, txn_id: int) -> Transaction:
    with open_db(db_path) as conn:
        row = conn.execute(
            "SELECT * FROM transactions WHERE id = ? AND owner_id = ?",
            (txn_id, owner_id),
        ).fetchone()
    if row is None:
        raise NotFoundError()
    return Transaction.from_row(row)


def _where(query: TransactionQuery) -> tuple[str, list]:
    clauses = ["owner_id = ?"]
    params: list = [query.owner_id]
    if query.start is not None:
        clauses.append("date >= ?")
        params.append(query.start)
    if query.end is not None:
        clauses.append("date < ?")
        params.append(query.end)
    if query.type is not None:
        clauses.append("type = ?")
        params.append(query.type)
    if query.category:
        clauses.append("instr(lower(category), lower(?)) > 0")
        params.append(query.category)
    return " AND ".join(clauses), params


def list_txns(db_path, query: TransactionQuery) -> tuple[list[Transaction], int]:
    """Return one page of matching transactions and the unpaginated match count."""
    where, params = _where(query)
    with open_db(db_path) as conn:
        rows = conn.execute(
            f"""
            SELECT * FROM transactions
            WHERE {where}
            ORDER BY date DESC, id DESC
            LIMIT ? OFFSET ?
            """,
            (*params, query.limit, query.skip),
        ).fetchall()
        total = conn.execute(
            f"SELECT COUNT(*) AS c FROM transactions WHERE {where}",
            params,
        ).fetchone()["c"]
    return [Transaction.from_row(row) for row in rows], int(total)


def update_txn(
    db_path, owner_id: str, txn_id: int, update: TransactionUpdate
) -> Transaction:
    changes = update.changes()
    with open_db(db_path) as conn:
        if (
            conn.execute(
                "SELECT 1 FROM transactions WHERE id = ? AND owner_id = ?",
                (txn_id, owner_id),
            ).fetchone()
            is None
        ):
            raise NotFoundError()
        if changes:
            assignments = ", ".join(
                f"{column} = ?" for column in _UPDATABLE_COLUMNS if column in changes
            )
            values = [changes[column] for column in _UPDATABLE_COLUMNS if column in changes]
            conn.execute(
                f"UPDATE transactions SET {assignments} WHERE id = ? AND owner_id = ?",
                (*values, txn_id, owner_id),
            )
        row = conn.execute(
            "SELECT * FROM transactions WHERE id = ?", (txn_id,)
        ).fetchone()
    logger.info(
        "transaction updated id=%s owner=%s fields=%s",
        txn_id,
        owner_id,
        ",".join(sorted(changes)),
    )
    return Transaction.from_row(row)


def delete_txn(db_path, owner_id: str, txn_id: int) -> None:
    with open_db(db_path) as conn:
        cur = conn.execute(
            "DELETE FROM transactions WHERE id = ? AND owner_id = ?",
            (txn_id, owner_id),
        )
        deleted = cur.rowcount
    if deleted == 0:
        raise NotFoundError()
    logger.info("transaction deleted id=%s owner=%s", txn_id, owner_id)


def get_summary(
    db_path, owner_id: str, *, start: str | None = None, end: str | None = None
) -> Summary:
    """Income/expense totals and the expense split by category, summed in SQL."""
    where, params = _where(TransactionQuery(owner_id=owner_id, start=start, end=end))
    with open_db(db_path) as conn:
        totals = conn.execute(
            f"""
            SELECT
              COALESCE(SUM(CASE WHEN type = 'income' THEN amount_cents END), 0) AS income_cents,
              COALESCE(SUM(CASE WHEN type = 'expense' THEN amount_cents END), 0) AS expense_cents
            FROM transactions
            WHERE {where}
            """,
            params,
        ).fetchone()
        by_category_rows = conn.execute(
            f"""
            SELECT category, SUM(amount_cents) AS amount_cents
            FROM transactions
            WHERE {where} AND type = 'expense'
            GROUP BY category
            ORDER BY amount_cents DESC, category ASC
            """,
            params,
        ).fetchall()

    return Summary(
        income=cents_to_decimal(totals["income_cents"]),
        expenses=cents_to_decimal(totals["expense_cents"]),
        by_category=tuple(
            CategoryTotal(
                category=row["category"],
                amount=cents_to_decimal(row["amount_cents"]),
            )
            for row in by_category_rows
        ),
    )
