import os
import unittest
from unittest import mock

from utils.config import DEFAULT_SCAN_FORMATS, load_settings
from utils.pure import format_yen, generate_markdown_table, parse_price, provisional_ex_tax


class PureTestCase(unittest.TestCase):
    def test_parse_price(self):
        cases = {
            "150": 150,
            "¥1,500": 1500,
            " 980円 ": 980,
            "0": None,
            "000": None,
            "": None,
            "abc": None,
            "-5": 5,  # the sign is stripped with every other non-digit
        }
        for text, expected in cases.items():
            with self.subTest(text=text):
                self.assertEqual(parse_price(text), expected)

    def test_provisional_ex_tax_floors(self):
        self.assertEqual(provisional_ex_tax(300), 272)
        self.assertEqual(provisional_ex_tax(110), 100)
        self.assertEqual(provisional_ex_tax(0), 0)

    def test_format_yen(self):
        self.assertEqual(format_yen(1234567), "¥1,234,567")

    def test_markdown_table(self):
        md = generate_markdown_table(["A", "B"], [[1, "x"]], ["l", "r"])
        self.assertEqual(md, "| A | B |\n| :--- | ---: |\n| 1 | x |")
        self.assertEqual(generate_markdown_table(["A"], []), "")
        # first row doubles as header
        md = generate_markdown_table(None, [["k", "v"], ["store", "30"]])
        self.assertTrue(md.startswith("| k | v |"))
        with self.assertRaises(ValueError):
            generate_markdown_table(["A", "B"], [[1, 2]], ["l"])


class SettingsTestCase(unittest.TestCase):
    def load(self, env):
        with mock.patch.dict(os.environ, env, clear=True), mock.patch(
            "utils.config.load_dotenv"
        ):
            return load_settings()

    def test_defaults(self):
        settings = self.load({})
        self.assertEqual(settings.backend_url, "http://localhost:8000")
        self.assertEqual(settings.store_code, "30")
        self.assertEqual(settings.pos_number, "90")
        self.assertEqual(settings.scan_formats, DEFAULT_SCAN_FORMATS)
        self.assertFalse(settings.debug)

    def test_api_url_selects_backend(self):
        settings = self.load({"API_URL": "https://inventory.example.com/"})
        self.assertEqual(settings.backend_url, "https://inventory.example.com")
        settings = self.load(
            {"API_URL": "https://old.example.com", "BACKEND_URL": "https://new.example.com"}
        )
        self.assertEqual(settings.backend_url, "https://new.example.com")

    def test_overrides_and_bad_numbers(self):
        settings = self.load(
            {
                "POS_SCAN_FORMATS": "ean13, qrcode",
                "POS_CAMERA_INDEX": "2",
                "POS_HTTP_TIMEOUT": "soon",
                "DEBUG": "1",
            }
        )
        self.assertEqual(settings.scan_formats, ("EAN13", "QRCODE"))
        self.assertEqual(settings.camera_index, 2)
        self.assertEqual(settings.http_timeout, 10.0)
        self.assertTrue(settings.debug)


if __name__ == "__main__":
    unittest.main()
