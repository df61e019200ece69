from __future__ import annotations

import dataclasses
import uuid
from dataclasses import dataclass, field
from typing import List, Optional

from api.schemas import (
    ProductLookupResult,
    TransactionLine,
    TransactionRequest,
    TransactionResult,
)
from utils.config import Settings
from utils.errors import ItemValidationError
from utils.pure import parse_price, provisional_ex_tax


@dataclass(frozen=True)
class PurchaseItem:
    id: str
    name: str
    barcode: str
    unit_price: int  # minor currency unit
    quantity: int = 1
    product_id: Optional[int] = None

    @property
    def line_total(self) -> int:
        return self.unit_price * self.quantity


@dataclass
class PurchaseSession:
    """
    In-memory state of the purchase page, owned by PurchaseScreen.

    The screen never assigns list or flag fields directly; it calls the
    transition methods below. The form fields (barcode, name, price) mirror
    the editable inputs and may be set freely.

    States:
      idle          -> begin_lookup      -> looking up
      looking up    -> apply_lookup      -> form populated
                    -> fail_lookup       -> idle, form cleared
      any           -> add_item          -> idle with items, form cleared
      idle w/ items -> begin_purchase    -> purchasing
      purchasing    -> complete_purchase -> confirmation, list empty
                    -> fail_purchase     -> idle with items (list kept)
    """

    store_code: str = "30"
    pos_number: str = "90"
    employee_code: Optional[str] = "9999999999"
    tax_code: str = "10"

    barcode: str = ""
    name: str = ""
    price: str = ""
    product_id: Optional[int] = None

    items: List[PurchaseItem] = field(default_factory=list)
    is_loading: bool = False
    is_purchasing: bool = False
    last_result: Optional[TransactionResult] = None

    # reused across failed attempts of the same list, dropped once it changes
    submission_key: Optional[str] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "PurchaseSession":
        return cls(
            store_code=settings.store_code,
            pos_number=settings.pos_number,
            employee_code=settings.employee_code,
            tax_code=settings.tax_code,
        )

    @property
    def total(self) -> int:
        return sum(item.line_total for item in self.items)

    @property
    def busy(self) -> bool:
        return self.is_loading or self.is_purchasing

    @property
    def can_purchase(self) -> bool:
        return bool(self.items) and not self.busy

    def clear_form(self) -> None:
        self.barcode = ""
        self.name = ""
        self.price = ""
        self.product_id = None

    # ---------------------------
    # Lookup
    # ---------------------------

    def begin_lookup(self, code: str) -> None:
        self.barcode = code
        self.is_loading = True

    def apply_lookup(self, result: ProductLookupResult) -> None:
        self.name = result.name
        self.price = str(result.price)
        self.product_id = result.product_id
        self.is_loading = False

    def fail_lookup(self) -> None:
        """Not found or transient failure: nothing from the scan survives."""
        self.clear_form()
        self.is_loading = False

    # ---------------------------
    # Purchase list
    # ---------------------------

    def add_item(self) -> PurchaseItem:
        """
        Add the form contents to the list and clear the form.
        A barcode already in the list bumps that entry's quantity instead.
        Raises ItemValidationError, leaving everything untouched, if the
        form is incomplete or the price is not a positive integer.
        """
        if not self.name.strip() or not self.price or not self.barcode.strip():
            raise ItemValidationError("Please fill in every field.")
        unit_price = parse_price(self.price)
        if unit_price is None:
            raise ItemValidationError("Please enter a valid price.")

        for idx, item in enumerate(self.items):
            if item.barcode == self.barcode:
                added = dataclasses.replace(item, quantity=item.quantity + 1)
                self.items[idx] = added
                break
        else:
            added = PurchaseItem(
                id=uuid.uuid4().hex,
                name=self.name,
                barcode=self.barcode,
                unit_price=unit_price,
                product_id=self.product_id,
            )
            self.items.append(added)

        self.submission_key = None
        self.clear_form()
        return added

    # ---------------------------
    # Purchase
    # ---------------------------

    def build_request(self) -> TransactionRequest:
        total = self.total
        return TransactionRequest(
            employee_code=self.employee_code,
            store_code=self.store_code,
            pos_number=self.pos_number,
            total_amount=total,
            total_amount_ex_tax=provisional_ex_tax(total),
            lines=[
                TransactionLine(
                    product_id=item.product_id or 0,
                    code=item.barcode,
                    name=item.name,
                    unit_price=item.unit_price,
                    tax_code=self.tax_code,
                    count=item.quantity,
                )
                for item in self.items
            ],
        )

    def begin_purchase(self) -> tuple[TransactionRequest, str]:
        """
        Returns the request to submit and the idempotency key to send with it.
        """
        if not self.items:
            raise ItemValidationError("There is nothing to purchase.")
        if self.busy:
            raise ItemValidationError("Please wait for the current request.")
        if self.submission_key is None:
            self.submission_key = uuid.uuid4().hex
        self.is_purchasing = True
        return self.build_request(), self.submission_key

    def complete_purchase(self, result: TransactionResult) -> None:
        self.items.clear()
        self.last_result = result
        self.submission_key = None
        self.is_purchasing = False

    def fail_purchase(self) -> None:
        self.is_purchasing = False
