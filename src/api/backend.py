from __future__ import annotations

from typing import Any, Optional

import httpx
from pydantic import ValidationError

from api.schemas import ProductLookupResult, TransactionResult
from utils.errors import ProductNotFoundError, TransientError
from utils.logger import get_logger

_logger = get_logger(__name__)

IDEMPOTENCY_HEADER = "Idempotency-Key"


class BackendClient:
    """
    Forwards proxy calls to the inventory/transaction backend.

    Only translates outcomes: 404 on lookup becomes ProductNotFoundError,
    every other failure becomes TransientError. Nothing is retried.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _post(self, path: str, payload: Any, headers: dict | None = None):
        try:
            return await self._client.post(path, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            _logger.error(f"POST {path} failed: {exc!r}")
            raise TransientError(f"Request to backend {path} failed") from exc

    async def lookup_product(self, code: str) -> ProductLookupResult:
        resp = await self._post("/api/barcode", {"code": code})
        if resp.status_code == 404:
            raise ProductNotFoundError(code)
        if not resp.is_success:
            _logger.error(f"Backend lookup for {code!r} returned {resp.status_code}")
            raise TransientError(
                f"HTTP error! status: {resp.status_code}", resp.status_code
            )
        try:
            data = resp.json()
        except ValueError as exc:
            raise TransientError("Backend returned a non-JSON body") from exc
        if data is None:
            raise ProductNotFoundError(code)
        try:
            return ProductLookupResult.model_validate(data)
        except ValidationError as exc:
            _logger.error(f"Malformed product body for {code!r}: {data!r}")
            raise TransientError("Backend returned a malformed product") from exc

    async def submit_transaction(
        self, payload: Any, idempotency_key: Optional[str] = None
    ) -> TransactionResult:
        """Forwards the register's JSON body as received; the backend validates it."""
        headers = {IDEMPOTENCY_HEADER: idempotency_key} if idempotency_key else None
        resp = await self._post("/api/transaction", payload, headers)
        if not resp.is_success:
            _logger.error(f"Backend transaction returned {resp.status_code}")
            raise TransientError(
                f"HTTP error! status: {resp.status_code}", resp.status_code
            )
        try:
            return TransactionResult.model_validate(resp.json())
        except (ValueError, ValidationError) as exc:
            _logger.error(f"Malformed transaction result: {resp.text!r}")
            raise TransientError("Backend returned a malformed result") from exc
