"""FastAPI entrypoint for the ledger HTTP endpoints."""

from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.requests import Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from backend.factory import build_transaction_service
from backend.services.transaction_service import InvalidInputError, TransactionService
from shared import config as _config
from shared.models import Balance, Transaction, TransactionCreateRequest, TransactionUpdateRequest


logging.basicConfig(level=_config.log_level())
logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_transaction_service() -> TransactionService:
    """Create and cache the transaction service once per process."""

    service = build_transaction_service()
    logger.info(
        "using_transactions_repository=%s",
        service.transactions_repository.__class__.__name__,
    )
    return service


app = FastAPI(title="Personal Finance API")

ALLOW_ORIGINS = _config.cors_allow_origins()


@app.middleware("http")
async def log_http_requests(request: Request, call_next):
    """Log incoming requests, HTTP status codes and unexpected errors."""

    logger.info("http_request_received method=%s path=%s", request.method, request.url.path)
    try:
        response = await call_next(request)
    except Exception:
        logger.exception(
            "http_request_failed method=%s path=%s",
            request.method,
            request.url.path,
        )
        raise

    logger.info(
        "http_response_sent method=%s path=%s status_code=%s",
        request.method,
        request.url.path,
        response.status_code,
    )
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

logger.info("cors_allow_origins=%s", ALLOW_ORIGINS)


@app.exception_handler(Exception)
async def handle_unexpected_exception(request: Request, exc: Exception) -> JSONResponse:
    """Return a JSON 500 response for unhandled exceptions."""

    logger.exception(
        "unhandled_exception method=%s path=%s exception_type=%s message=%s",
        request.method,
        request.url.path,
        type(exc).__name__,
        str(exc),
        exc_info=exc,
    )
    return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


def _bad_request(exc: InvalidInputError) -> HTTPException:
    logger.warning("invalid_input message=%s", exc)
    return HTTPException(status_code=400, detail=str(exc))


@app.get("/", response_class=PlainTextResponse)
def read_root() -> str:
    return "Personal Finance API is running"


@app.get("/health")
def health() -> dict[str, str]:
    """Healthcheck endpoint."""

    return {"status": "ok"}


@app.get("/db-test", response_class=PlainTextResponse)
def db_test() -> str:
    """Check that the transactions store answers."""

    return get_transaction_service().check_store()


@app.post("/transactions", response_model=Transaction, status_code=201)
def create_transaction(payload: TransactionCreateRequest, response: Response) -> Transaction:
    try:
        created = get_transaction_service().create_transaction(payload)
    except InvalidInputError as exc:
        raise _bad_request(exc) from exc
    response.headers["Location"] = f"/transactions/{created.id}"
    return created


@app.get("/transactions", response_model=list[Transaction])
def list_transactions(kind: str | None = None, category: str | None = None) -> list[Transaction]:
    try:
        return get_transaction_service().list_transactions(kind=kind, category=category)
    except InvalidInputError as exc:
        raise _bad_request(exc) from exc


@app.get("/transactions/{transaction_id}", response_model=Transaction)
def get_transaction(transaction_id: int) -> Transaction:
    transaction = get_transaction_service().get_transaction(transaction_id)
    if transaction is None:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return transaction


@app.put("/transactions/{transaction_id}", response_model=Transaction)
def update_transaction(transaction_id: int, payload: TransactionUpdateRequest) -> Transaction:
    try:
        updated = get_transaction_service().update_transaction(transaction_id, payload.to_patch())
    except InvalidInputError as exc:
        raise _bad_request(exc) from exc
    if updated is None:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return updated


@app.delete("/transactions/{transaction_id}", status_code=204)
def delete_transaction(transaction_id: int) -> Response:
    if not get_transaction_service().delete_transaction(transaction_id):
        raise HTTPException(status_code=404, detail="Transaction not found")
    return Response(status_code=204)


@app.get("/balance", response_model=Balance)
def get_balance() -> Balance:
    return get_transaction_service().get_balance()
