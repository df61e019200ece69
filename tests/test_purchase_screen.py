import os
import tempfile
import unittest

from textual.widgets import DataTable, Input, Label

from api.schemas import ProductLookupResult, TransactionResult
from db import journal
from main import PosApp
from utils.config import Settings
from utils.errors import ProductNotFoundError, TransientError
from views.modal_receipt import ReceiptModal
from views.scr_purchase import PurchaseScreen

OCHA = ProductLookupResult(product_id=1, code="4901777300446", name="おーいお茶", price=150)


class FakeClient:
    def __init__(self, fail_submit: bool = False):
        self.fail_submit = fail_submit
        self.submitted = []

    async def lookup_product(self, code):
        if code == OCHA.code:
            return OCHA
        if code == "down":
            raise TransientError("proxy down", 503)
        raise ProductNotFoundError(code)

    async def submit_transaction(self, req, key=None):
        self.submitted.append((req, key))
        if self.fail_submit:
            raise TransientError("HTTP error! status: 500", 500)
        return TransactionResult(total_price=330, total_price_ex_tax=300)

    async def aclose(self):
        pass


class PurchaseScreenTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.settings = Settings(db_path=os.path.join(self.temp_dir.name, "j.sqlite"))

    def tearDown(self):
        self.temp_dir.cleanup()

    async def lookup(self, screen: PurchaseScreen, code: str):
        screen.query_one("#input-barcode", Input).value = code
        await screen.handle_lookup().wait()

    async def test_scan_add_twice_and_purchase(self):
        client = FakeClient()
        app = PosApp(self.settings, client)
        async with app.run_test(size=(140, 45)) as pilot:
            await pilot.pause()
            screen = app.screen
            self.assertIsInstance(screen, PurchaseScreen)
            self.assertTrue(screen.query_one("#btn-purchase").disabled)

            for _ in range(2):
                await self.lookup(screen, OCHA.code)
                self.assertEqual(screen.query_one("#input-name", Input).value, "おーいお茶")
                self.assertEqual(screen.query_one("#input-price", Input).value, "150")
                screen.handle_add()
                await pilot.pause()

            self.assertEqual(len(screen.session.items), 1)
            self.assertEqual(screen.session.items[0].quantity, 2)
            self.assertEqual(screen.query_one("#table-items", DataTable).row_count, 1)
            self.assertIn("¥300", str(screen.query_one("#label-total", Label).render()))
            self.assertFalse(screen.query_one("#btn-purchase").disabled)

            screen.handle_purchase()
            for _ in range(50):
                await pilot.pause()
                if isinstance(app.screen, ReceiptModal):
                    break
            self.assertIsInstance(app.screen, ReceiptModal)

            req, key = client.submitted[0]
            self.assertEqual(req.total_amount, 300)
            self.assertEqual(req.lines[0].count, 2)
            self.assertTrue(key)
            self.assertEqual(screen.session.items, [])
            self.assertEqual(screen.session.last_result.total_price, 330)

            # journaled in the background for the history screen
            for _ in range(100):
                if await journal.count_transactions():
                    break
                await pilot.pause(0.01)
            entries, total = await journal.list_transactions(1)
            self.assertEqual(total, 1)
            self.assertEqual(entries[0].idempotency_key, key)

    async def test_not_found_leaves_form_empty(self):
        app = PosApp(self.settings, FakeClient())
        async with app.run_test(size=(140, 45)) as pilot:
            await pilot.pause()
            screen = app.screen
            await self.lookup(screen, "0000000000000")
            self.assertEqual(screen.query_one("#input-barcode", Input).value, "")
            self.assertEqual(screen.query_one("#input-name", Input).value, "")
            self.assertEqual(screen.query_one("#input-price", Input).value, "")
            self.assertFalse(screen.session.is_loading)

            await self.lookup(screen, "down")
            self.assertEqual(screen.query_one("#input-name", Input).value, "")

    async def test_failed_purchase_keeps_list(self):
        client = FakeClient(fail_submit=True)
        app = PosApp(self.settings, client)
        async with app.run_test(size=(140, 45)) as pilot:
            await pilot.pause()
            screen = app.screen
            await self.lookup(screen, OCHA.code)
            screen.handle_add()
            await screen.handle_purchase().wait()
            await pilot.pause()
            self.assertEqual(len(client.submitted), 1)
            self.assertEqual(screen.session.items[0].quantity, 1)
            self.assertFalse(screen.session.is_purchasing)
            self.assertFalse(screen.query_one("#btn-purchase").disabled)


if __name__ == "__main__":
    unittest.main()
