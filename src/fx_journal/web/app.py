from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, Iterator

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from jinja2 import Undefined
from pydantic import BaseModel

from fx_journal.config.app_config import AppConfig, configure_logging, load_app_config
from fx_journal.metrics.calendar import parse_month
from fx_journal.records import RecordNotFound
from fx_journal.storage import sqlite_store
from fx_journal.storage.sqlite_reader import SqliteRecordSource
from fx_journal.validation import (
    ValidationError,
    build_account,
    build_trade,
    build_transaction,
    parse_timestamp,
)
from fx_journal.views import (
    account_cards,
    account_payload,
    analytics_payload,
    analytics_view,
    card_payload,
    format_money,
    format_percent,
    trade_payload,
    trade_rows,
    transaction_payload,
)

logger = logging.getLogger(__name__)

APP_ROOT = Path(__file__).resolve().parent
TEMPLATES = Jinja2Templates(directory=str(APP_ROOT / "templates"))


app = FastAPI(title="FX Journal")
app.mount("/static", StaticFiles(directory=str(APP_ROOT / "static")), name="static")


class AccountIn(BaseModel):
    name: str | None = None
    category: str | None = None
    initial_balance: float | None = None


class TradeIn(BaseModel):
    account_id: str | None = None
    pair: str | None = None
    open_time: datetime | None = None
    direction: str | None = None
    profit: float | None = None
    commission: float | None = None
    reward_ratio: str | None = None
    conclusion: str | None = None
    emotion: str | None = None
    remark: str | None = None


class TransactionIn(BaseModel):
    kind: str | None = None
    amount: float | None = None
    timestamp: datetime | None = None


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Same status as a ValidationError from the builders.
    logger.warning("Rejected request to %s: %s", request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


def get_config() -> AppConfig:
    return load_app_config()


def get_connection(config: AppConfig = Depends(get_config)) -> Iterator[sqlite3.Connection]:
    conn = sqlite_store.connect(config.app.db_path)
    try:
        sqlite_store.init_db(conn)
        yield conn
    finally:
        conn.close()


def get_record_source(conn: sqlite3.Connection = Depends(get_connection)) -> SqliteRecordSource:
    return SqliteRecordSource(conn)


@app.get("/", response_class=HTMLResponse)
def accounts_page(request: Request, source: SqliteRecordSource = Depends(get_record_source)) -> HTMLResponse:
    context = {
        "page": "accounts",
        "cards": account_cards(source),
    }
    return TEMPLATES.TemplateResponse(request, "accounts.html", context)


@app.get("/journal", response_class=HTMLResponse)
def journal_page(request: Request, source: SqliteRecordSource = Depends(get_record_source)) -> HTMLResponse:
    context = {
        "page": "journal",
        "trades": trade_rows(source),
    }
    return TEMPLATES.TemplateResponse(request, "journal.html", context)


@app.get("/analytics", response_class=HTMLResponse)
def analytics_page(
    request: Request,
    source: SqliteRecordSource = Depends(get_record_source),
    config: AppConfig = Depends(get_config),
) -> HTMLResponse:
    month = parse_month(request.query_params.get("month"))
    context = {
        "page": "analytics",
        "view": analytics_view(source, month, week_start=config.calendar.week_start),
    }
    return TEMPLATES.TemplateResponse(request, "analytics.html", context)


@app.get("/api/accounts")
def accounts_api(source: SqliteRecordSource = Depends(get_record_source)) -> list[dict[str, Any]]:
    return [card_payload(card) for card in account_cards(source)]


@app.post("/api/accounts", status_code=201)
def create_account_api(
    body: AccountIn,
    conn: sqlite3.Connection = Depends(get_connection),
) -> dict[str, Any]:
    account = _validated(build_account, body.model_dump())
    sqlite_store.insert_account(conn, account)
    return account_payload(account)


@app.get("/api/accounts/{account_id}")
def account_api(account_id: str, source: SqliteRecordSource = Depends(get_record_source)) -> dict[str, Any]:
    return account_payload(_or_404(source.get_account, account_id))


@app.put("/api/accounts/{account_id}")
def update_account_api(
    account_id: str,
    body: AccountIn,
    conn: sqlite3.Connection = Depends(get_connection),
) -> dict[str, Any]:
    account = _validated(build_account, body.model_dump(), account_id=account_id)
    _or_404(sqlite_store.update_account, conn, account)
    return account_payload(account)


@app.delete("/api/accounts/{account_id}")
def delete_account_api(account_id: str, conn: sqlite3.Connection = Depends(get_connection)) -> dict[str, Any]:
    result = _or_404(sqlite_store.delete_account, conn, account_id)
    return {
        "account_id": result.account_id,
        "trades_deleted": result.trades_deleted,
        "transactions_deleted": result.transactions_deleted,
    }


@app.post("/api/accounts/{account_id}/transactions", status_code=201)
def create_transaction_api(
    account_id: str,
    body: TransactionIn,
    conn: sqlite3.Connection = Depends(get_connection),
) -> dict[str, Any]:
    transaction = _validated(build_transaction, {**body.model_dump(), "account_id": account_id})
    _or_404(sqlite_store.insert_transaction, conn, transaction)
    return transaction_payload(transaction)


@app.get("/api/trades")
def trades_api(source: SqliteRecordSource = Depends(get_record_source)) -> list[dict[str, Any]]:
    return trade_rows(source)


@app.post("/api/trades", status_code=201)
def create_trade_api(body: TradeIn, conn: sqlite3.Connection = Depends(get_connection)) -> dict[str, Any]:
    trade = _validated(build_trade, body.model_dump())
    _or_404(sqlite_store.insert_trade, conn, trade)
    return trade_payload(trade)


@app.get("/api/trades/{trade_id}")
def trade_api(trade_id: str, source: SqliteRecordSource = Depends(get_record_source)) -> dict[str, Any]:
    return trade_payload(_or_404(source.get_trade, trade_id))


@app.put("/api/trades/{trade_id}")
def update_trade_api(
    trade_id: str,
    body: TradeIn,
    conn: sqlite3.Connection = Depends(get_connection),
) -> dict[str, Any]:
    trade = _validated(build_trade, body.model_dump(), trade_id=trade_id)
    _or_404(sqlite_store.update_trade, conn, trade)
    return trade_payload(trade)


@app.delete("/api/trades/{trade_id}")
def delete_trade_api(trade_id: str, conn: sqlite3.Connection = Depends(get_connection)) -> dict[str, Any]:
    _or_404(sqlite_store.delete_trade, conn, trade_id)
    return {"trade_id": trade_id, "deleted": True}


@app.get("/api/analytics")
def analytics_api(
    request: Request,
    source: SqliteRecordSource = Depends(get_record_source),
    config: AppConfig = Depends(get_config),
) -> dict[str, Any]:
    month = parse_month(request.query_params.get("month"))
    return analytics_payload(analytics_view(source, month, week_start=config.calendar.week_start))


def _validated(builder, raw: dict[str, Any], **kwargs):
    try:
        return builder(raw, **kwargs)
    except ValidationError as exc:
        logger.warning("Rejected submission: %s", exc)
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _or_404(operation, *args):
    try:
        return operation(*args)
    except RecordNotFound as exc:
        logger.warning("%s", exc)
        raise HTTPException(status_code=404, detail=str(exc)) from exc


def money_filter(value: float | None) -> str:
    if value is None or isinstance(value, Undefined):
        return "n/a"
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return "n/a"
    return format_money(amount)


def percent_filter(value: float | None) -> str:
    if value is None or isinstance(value, Undefined):
        return "n/a"
    return format_percent(value)


def date_only_filter(value: Any) -> str:
    parsed = parse_timestamp(value)
    if parsed is None:
        return "n/a"
    return parsed.astimezone().strftime("%b %d, %Y")


TEMPLATES.env.filters.update(
    {
        "money": money_filter,
        "percent": percent_filter,
        "date_only": date_only_filter,
    }
)


def main() -> None:
    import uvicorn

    app_config = load_app_config()
    configure_logging(app_config.logging.level)
    uvicorn.run(
        "fx_journal.web.app:app",
        host=app_config.app.host,
        port=app_config.app.port,
        reload=app_config.app.reload,
    )


if __name__ == "__main__":
    main()
