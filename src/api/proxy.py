"""
Proxy service: the two endpoints the register calls, forwarded to the
inventory/transaction backend configured by BACKEND_URL (or API_URL).
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Header, Request
from fastapi.responses import JSONResponse

from api.backend import IDEMPOTENCY_HEADER, BackendClient
from api.schemas import (
    BarcodeQuery,
    ErrorBody,
    ProductLookupResult,
    TransactionRequest,
    TransactionResult,
    inline_json_schema,
)
from utils.config import Settings, load_settings
from utils.errors import ProductNotFoundError, TransientError
from utils.logger import get_logger

_logger = get_logger(__name__)

MSG_NOT_FOUND = "Product not found"
MSG_LOOKUP_FAILED = "Failed to fetch product information"
MSG_TRANSACTION_FAILED = "Transaction processing failed"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(ErrorBody(error=message).model_dump(), status_code=status_code)


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    settings = settings or load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.backend = BackendClient(
            settings.backend_url, settings.http_timeout, transport=transport
        )
        _logger.info(f"Forwarding to backend at {settings.backend_url}")
        try:
            yield
        finally:
            await app.state.backend.aclose()

    app = FastAPI(title="POS Proxy", version="0.1.0", lifespan=lifespan)

    @app.get("/healthz")
    def healthz() -> dict:
        return {"status": "ok"}

    @app.post(
        "/api/barcode",
        response_model=ProductLookupResult,
        responses={404: {"model": ErrorBody}, 500: {"model": ErrorBody}},
    )
    async def lookup_barcode(query: BarcodeQuery, request: Request):
        backend: BackendClient = request.app.state.backend
        try:
            product = await backend.lookup_product(query.code)
        except ProductNotFoundError:
            _logger.info(f"Barcode {query.code!r} not found")
            return _error(404, MSG_NOT_FOUND)
        except TransientError as exc:
            _logger.error(f"Barcode API error: {exc}")
            return _error(500, MSG_LOOKUP_FAILED)
        return JSONResponse(product.to_wire())

    # the body goes to the backend untouched, the model only documents it
    @app.post(
        "/api/transaction",
        response_model=TransactionResult,
        responses={500: {"model": ErrorBody}},
        openapi_extra={
            "requestBody": {
                "required": True,
                "content": {
                    "application/json": {
                        "schema": inline_json_schema(TransactionRequest)
                    }
                },
            }
        },
    )
    async def submit_transaction(
        request: Request,
        idempotency_key: Optional[str] = Header(None, alias=IDEMPOTENCY_HEADER),
    ):
        backend: BackendClient = request.app.state.backend
        try:
            payload = await request.json()
        except ValueError as exc:
            _logger.error(f"Transaction body is not JSON: {exc}")
            return _error(500, MSG_TRANSACTION_FAILED)
        try:
            result = await backend.submit_transaction(payload, idempotency_key)
        except TransientError as exc:
            _logger.error(f"Transaction API error: {exc}")
            return _error(500, MSG_TRANSACTION_FAILED)
        _logger.info(f"Transaction confirmed, total {result.total_price}")
        return JSONResponse(result.to_wire())

    return app


def run() -> None:
    """Entry point for `pos-proxy`."""
    import uvicorn

    settings = load_settings()
    # listen where the register expects to find us
    port = httpx.URL(settings.proxy_url).port or 3000
    uvicorn.run(create_app(settings), host="0.0.0.0", port=port)


if __name__ == "__main__":
    run()
