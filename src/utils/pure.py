import math
import re
from typing import List, Literal, Optional, Sequence

_NON_DIGITS = re.compile(r"[^\d]")

# placeholder consumption tax used only for the provisional ex-tax figure
PROVISIONAL_TAX_RATE = 1.1


def parse_price(text: str) -> Optional[int]:
    """
    Strip every non-digit character and parse what is left.
    Returns None unless the result is a positive integer ("¥1,500" -> 1500).
    """
    digits = _NON_DIGITS.sub("", text or "")
    if not digits:
        return None
    value = int(digits)
    return value if value > 0 else None


def provisional_ex_tax(total: int) -> int:
    return math.floor(total / PROVISIONAL_TAX_RATE)


def format_yen(amount: int) -> str:
    return f"¥{amount:,}"


def generate_markdown_table(
    headers: Optional[Sequence[str]],
    rows: List[Sequence[object]],
    aligns: Optional[Sequence[Literal["l", "c", "r"]]] = None,
) -> str:
    """
    Generate a Markdown table.

    Args:
        headers: column headers, or None to use the first row as headers.
        rows: rows of cell values, rendered with str().
        aligns: 'l', 'c' or 'r' per column; defaults to left aligned.
    """
    if not rows:
        return ""

    if not headers:
        headers, rows = rows[0], rows[1:]

    headers = [str(h) for h in headers]
    aligns = list(aligns or ["l"] * len(headers))
    if len(aligns) != len(headers):
        raise ValueError("Length of aligns must match number of headers.")

    rule = {"l": ":---", "c": ":---:", "r": "---:"}

    def line(cells) -> str:
        return "| " + " | ".join(str(c) for c in cells) + " |"

    return "\n".join(
        [line(headers), line(rule[a] for a in aligns), *(line(r) for r in rows)]
    )
