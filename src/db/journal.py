# src/db/journal.py
from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Tuple

from api.schemas import TransactionRequest, TransactionResult
from db import models
from db.database import connect


def _entry(row) -> models.JournalEntry:
    return models.JournalEntry(
        txn_no=row["txn_no"],
        idempotency_key=row["idempotency_key"],
        created_at=datetime.fromisoformat(row["created_at"]),
        store_code=row["store_code"],
        pos_number=row["pos_number"],
        total_amount=row["total_amount"],
        total_price=row["total_price"],
        total_price_ex_tax=row["total_price_ex_tax"],
    )


_ENTRY_COLUMNS = """
    txn_no, idempotency_key, created_at, store_code, pos_number,
    total_amount, total_price, total_price_ex_tax
"""


async def record_transaction(
    idempotency_key: str,
    req: TransactionRequest,
    result: TransactionResult,
    when: Optional[datetime] = None,
) -> int:
    """
    Journal a backend-confirmed transaction with its lines.
    Recording the same idempotency key twice returns the existing txn_no.
    """
    when = when or datetime.now()
    async with connect() as conn:
        cur = await conn.execute(
            "SELECT txn_no FROM transactions WHERE idempotency_key = ?;",
            (idempotency_key,),
        )
        row = await cur.fetchone()
        await cur.close()
        if row:
            return row[0]

        cur = await conn.execute(
            """
            INSERT INTO transactions(
                idempotency_key, created_at, store_code, pos_number,
                total_amount, total_price, total_price_ex_tax)
            VALUES (?, ?, ?, ?, ?, ?, ?);
            """,
            (
                idempotency_key,
                when.isoformat(sep=" ", timespec="seconds"),
                req.store_code,
                req.pos_number,
                req.total_amount,
                result.total_price,
                result.total_price_ex_tax,
            ),
        )
        txn_no = cur.lastrowid
        await cur.close()
        await conn.executemany(
            """
            INSERT INTO transaction_lines(
                txn_no, line_no, product_id, code, name, unit_price, count)
            VALUES (?, ?, ?, ?, ?, ?, ?);
            """,
            [
                (txn_no, i, ln.product_id, ln.code, ln.name, ln.unit_price, ln.count)
                for i, ln in enumerate(req.lines, start=1)
            ],
        )
        await conn.commit()
    return txn_no


async def count_transactions() -> int:
    async with connect() as conn:
        cur = await conn.execute("SELECT COUNT(*) FROM transactions;")
        total = (await cur.fetchone())[0]
        await cur.close()
    return total


async def list_transactions(
    page: int, page_size: int = 10
) -> Tuple[List[models.JournalEntry], int]:
    """
    List journaled transactions newest first, paginated.
    Return (entries_for_page, total_count).
    """
    total = await count_transactions()
    offset = max(page - 1, 0) * page_size
    async with connect() as conn:
        cur = await conn.execute(
            f"""
            SELECT {_ENTRY_COLUMNS}
            FROM transactions
            ORDER BY txn_no DESC
            LIMIT ? OFFSET ?;
            """,
            (page_size, offset),
        )
        rows = await cur.fetchall()
        await cur.close()
    return [_entry(row) for row in rows], total


async def get_transaction(
    txn_no: int,
) -> Tuple[Optional[models.JournalEntry], List[models.JournalLine]]:
    """Return (entry, lines) for txn_no, or (None, []) if it does not exist."""
    async with connect() as conn:
        cur = await conn.execute(
            f"SELECT {_ENTRY_COLUMNS} FROM transactions WHERE txn_no = ?;",
            (txn_no,),
        )
        row = await cur.fetchone()
        await cur.close()
        if not row:
            return None, []
        cur = await conn.execute(
            """
            SELECT txn_no, line_no, product_id, code, name, unit_price, count
            FROM transaction_lines
            WHERE txn_no = ?
            ORDER BY line_no;
            """,
            (txn_no,),
        )
        line_rows = await cur.fetchall()
        await cur.close()
    lines = [models.JournalLine(*tuple(r)) for r in line_rows]
    return _entry(row), lines
