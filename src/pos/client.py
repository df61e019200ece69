from __future__ import annotations

from typing import Optional

import httpx
from pydantic import ValidationError

from api.backend import IDEMPOTENCY_HEADER
from api.schemas import ProductLookupResult, TransactionRequest, TransactionResult
from utils.errors import ItemValidationError, ProductNotFoundError, TransientError
from utils.logger import get_logger

_logger = get_logger(__name__)


class PosClient:
    """
    Register-side client for the proxy service.

    lookup_product  -> ProductLookupResult | ProductNotFoundError | TransientError
    submit_transaction -> TransactionResult | TransientError
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url, timeout=timeout, transport=transport
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def lookup_product(self, code: str) -> ProductLookupResult:
        if not code.strip():
            raise ItemValidationError("Barcode is required")
        try:
            resp = await self._client.post("/api/barcode", json={"code": code})
        except httpx.HTTPError as exc:
            _logger.error(f"Lookup of {code!r} failed: {exc!r}")
            raise TransientError("Could not reach the proxy") from exc

        if resp.status_code == 404:
            raise ProductNotFoundError(code)
        if not resp.is_success:
            _logger.error(f"API Error {resp.status_code}: {resp.text}")
            raise TransientError(
                f"Lookup failed with status {resp.status_code}", resp.status_code
            )

        try:
            data = resp.json()
        except ValueError as exc:
            raise TransientError("Lookup returned a non-JSON body") from exc
        if not data:
            raise ProductNotFoundError(code)
        try:
            return ProductLookupResult.model_validate(data)
        except ValidationError as exc:
            raise TransientError("Lookup returned a malformed product") from exc

    async def submit_transaction(
        self, req: TransactionRequest, idempotency_key: Optional[str] = None
    ) -> TransactionResult:
        headers = {IDEMPOTENCY_HEADER: idempotency_key} if idempotency_key else None
        try:
            resp = await self._client.post(
                "/api/transaction", json=req.to_wire(), headers=headers
            )
        except httpx.HTTPError as exc:
            _logger.error(f"Purchase error: {exc!r}")
            raise TransientError("Could not reach the proxy") from exc

        if not resp.is_success:
            _logger.error(f"Purchase error {resp.status_code}: {resp.text}")
            raise TransientError(
                f"HTTP error! status: {resp.status_code}", resp.status_code
            )
        try:
            return TransactionResult.model_validate(resp.json())
        except ValueError as exc:
            raise TransientError("Transaction returned a malformed result") from exc
