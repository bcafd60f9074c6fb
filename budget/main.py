import logging
from typing import Any

from fastapi import Body, Depends, FastAPI, Header, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .aggregation import dashboard
from .db import init_db
from .errors import NotFoundError, StoreError, ValidationError
from .logic import validate_new_transaction, validate_update
from .models import SUGGESTED_CATEGORIES
from .query import build_query, paginate
from .repo import create_txn, delete_txn, get_txn, list_txns, update_txn
from .settings import Settings, get_settings


def get_owner_id(x_user_id: str | None = Header(default=None)) -> str:
    """Owner identity as established by the upstream auth layer."""
    if x_user_id is None or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Authentication required")
    return x_user_id.strip()


def _parse_txn_id(txn_id: str) -> int:
    # Malformed ids look exactly like missing ones to the caller.
    try:
        value = int(txn_id)
    except ValueError as exc:
        raise NotFoundError() from exc
    if value < 1 or value > 2**63 - 1:
        raise NotFoundError()
    return value


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(
            status_code=400,
            content={"message": "Validation failed", "errors": exc.errors},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(
        request: Request, exc: RequestValidationError
    ):
        errors = [
            {
                "field": ".".join(str(part) for part in error.get("loc", ())[1:])
                or "body",
                "message": error.get("msg", "invalid value"),
            }
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content={"message": "Validation failed", "errors": errors},
        )

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"message": str(exc)})

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        # open_db has already logged the failure with its traceback.
        return JSONResponse(status_code=500, content={"message": "Server error"})


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level)
    init_db(settings)

    app = FastAPI(title="Budget tracker")
    _register_error_handlers(app)

    @app.get("/transactions")
    def list_transactions(
        month: str | None = None,
        category: str | None = None,
        type: str | None = None,
        page: str | None = None,
        limit: str | None = None,
        owner_id: str = Depends(get_owner_id),
    ):
        query = build_query(
            owner_id,
            month=month,
            category=category,
            type=type,
            page=page,
            limit=limit,
            default_limit=settings.default_page_limit,
            max_limit=settings.max_page_limit,
        )
        items, total = list_txns(settings.db_path, query)
        result = paginate(items, total=total, page=query.page, limit=query.limit)
        return {
            "transactions": [txn.to_dict() for txn in result.items],
            "pagination": result.pagination(),
        }

    @app.post("/transactions", status_code=201)
    def create_transaction(
        payload: Any = Body(default=None),
        owner_id: str = Depends(get_owner_id),
    ):
        fields = validate_new_transaction(payload)
        txn = create_txn(settings.db_path, owner_id, **fields)
        return {
            "message": "Transaction created successfully",
            "transaction": txn.to_dict(),
        }

    @app.get("/transactions/{txn_id}")
    def read_transaction(
        txn_id: str,
        owner_id: str = Depends(get_owner_id),
    ):
        txn = get_txn(settings.db_path, owner_id, _parse_txn_id(txn_id))
        return {"transaction": txn.to_dict()}

    @app.put("/transactions/{txn_id}")
    def update_transaction(
        txn_id: str,
        payload: Any = Body(default=None),
        owner_id: str = Depends(get_owner_id),
    ):
        update = validate_update(payload)
        txn = update_txn(settings.db_path, owner_id, _parse_txn_id(txn_id), update)
        return {
            "message": "Transaction updated successfully",
            "transaction": txn.to_dict(),
        }

    @app.delete("/transactions/{txn_id}")
    def delete_transaction(
        txn_id: str,
        owner_id: str = Depends(get_owner_id),
    ):
        delete_txn(settings.db_path, owner_id, _parse_txn_id(txn_id))
        return {"message": "Transaction deleted successfully"}

    @app.get("/summary")
    def summary(
        owner_id: str = Depends(get_owner_id),
    ):
        stats = dashboard(settings.db_path, owner_id)
        return {
            "allTime": stats["all_time"].to_dict(),
            "month": stats["month"].to_dict(),
            "monthLabel": stats["month_label"],
        }

    @app.get("/categories")
    def categories():
        return {kind: list(names) for kind, names in SUGGESTED_CATEGORIES.items()}

    return app
