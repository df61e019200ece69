# provide dataclass models for the local transaction journal

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class JournalEntry:
    txn_no: int
    idempotency_key: str
    created_at: datetime
    store_code: str
    pos_number: str
    total_amount: int  # register's provisional total
    total_price: int  # backend's authoritative total
    total_price_ex_tax: int


@dataclass(frozen=True)
class JournalLine:
    txn_no: int
    line_no: int
    product_id: int
    code: str
    name: str
    unit_price: int
    count: int
