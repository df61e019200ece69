import json
import unittest

import httpx

from api.schemas import TransactionLine, TransactionRequest
from pos.client import PosClient
from utils.errors import ItemValidationError, ProductNotFoundError, TransientError

OCHA = {"productId": 1, "code": "4901777300446", "name": "おーいお茶", "price": 150}


def make_request() -> TransactionRequest:
    return TransactionRequest(
        employee_code="9999999999",
        store_code="30",
        pos_number="90",
        total_amount=300,
        total_amount_ex_tax=272,
        lines=[
            TransactionLine(
                product_id=1,
                code="4901777300446",
                name="おーいお茶",
                unit_price=150,
                tax_code="10",
                count=2,
            )
        ],
    )


class PosClientTestCase(unittest.IsolatedAsyncioTestCase):
    def client_with(self, handler) -> PosClient:
        self.seen = []

        def recording(request: httpx.Request):
            self.seen.append(request)
            return handler(request)

        client = PosClient("http://proxy.test", transport=httpx.MockTransport(recording))
        self.addAsyncCleanup(client.aclose)
        return client

    # ---------- lookup ----------

    async def test_lookup_success(self):
        client = self.client_with(lambda req: httpx.Response(200, json=OCHA))
        product = await client.lookup_product("4901777300446")
        self.assertEqual(product.product_id, 1)
        self.assertEqual(product.name, "おーいお茶")
        self.assertEqual(product.price, 150)

        sent = self.seen[0]
        self.assertEqual(sent.method, "POST")
        self.assertEqual(sent.url.path, "/api/barcode")
        self.assertEqual(json.loads(sent.content), {"code": "4901777300446"})

    async def test_lookup_404_is_not_found(self):
        client = self.client_with(
            lambda req: httpx.Response(404, json={"error": "Product not found"})
        )
        with self.assertRaises(ProductNotFoundError) as ctx:
            await client.lookup_product("0000000000000")
        self.assertEqual(ctx.exception.code, "0000000000000")

    async def test_lookup_null_body_is_not_found(self):
        client = self.client_with(lambda req: httpx.Response(200, content=b"null"))
        with self.assertRaises(ProductNotFoundError):
            await client.lookup_product("123")

    async def test_lookup_server_error_is_transient(self):
        client = self.client_with(lambda req: httpx.Response(500, json={"error": "x"}))
        with self.assertRaises(TransientError) as ctx:
            await client.lookup_product("123")
        self.assertEqual(ctx.exception.status_code, 500)

    async def test_lookup_network_failure_is_transient(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = self.client_with(refuse)
        with self.assertRaises(TransientError):
            await client.lookup_product("123")

    async def test_lookup_malformed_body_is_transient(self):
        client = self.client_with(lambda req: httpx.Response(200, text="<html>oops"))
        with self.assertRaises(TransientError):
            await client.lookup_product("123")

        client = self.client_with(lambda req: httpx.Response(200, json={"name": "x"}))
        with self.assertRaises(TransientError):
            await client.lookup_product("123")

    async def test_lookup_empty_code_is_not_sent(self):
        client = self.client_with(lambda req: httpx.Response(200, json=OCHA))
        with self.assertRaises(ItemValidationError):
            await client.lookup_product("  ")
        self.assertEqual(self.seen, [])

    # ---------- transaction ----------

    async def test_submit_success_with_idempotency_key(self):
        client = self.client_with(
            lambda req: httpx.Response(200, json={"totalPrice": 330, "totalPriceExTax": 300})
        )
        result = await client.submit_transaction(make_request(), "key-1")
        self.assertEqual(result.total_price, 330)
        self.assertEqual(result.total_price_ex_tax, 300)

        sent = self.seen[0]
        self.assertEqual(sent.url.path, "/api/transaction")
        self.assertEqual(sent.headers["Idempotency-Key"], "key-1")
        body = json.loads(sent.content)
        self.assertEqual(body["totalAmount"], 300)
        self.assertEqual(body["lines"][0]["count"], 2)

    async def test_submit_failure_is_transient(self):
        client = self.client_with(
            lambda req: httpx.Response(500, json={"error": "Transaction processing failed"})
        )
        with self.assertRaises(TransientError):
            await client.submit_transaction(make_request())
        self.assertNotIn("Idempotency-Key", self.seen[0].headers)

    async def test_submit_malformed_result_is_transient(self):
        client = self.client_with(lambda req: httpx.Response(200, json={"total": 1}))
        with self.assertRaises(TransientError):
            await client.submit_transaction(make_request(), "key-2")


if __name__ == "__main__":
    unittest.main()
