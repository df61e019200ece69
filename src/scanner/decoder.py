"""
Frame decoding capability, backed by ZBar through pyzbar.

The decoder is a black box to the rest of the register: give it a frame,
get a payload back or SymbolNotFoundError.
"""

from __future__ import annotations

from typing import Iterable, List, Sequence

import cv2
from pyzbar.pyzbar import ZBarSymbol, decode

from utils.errors import DecodeError, SymbolNotFoundError
from utils.logger import get_logger

_logger = get_logger(__name__)


def zbar_symbols(names: Iterable[str]) -> List[ZBarSymbol]:
    """Map format names to ZBarSymbol members, skipping unknown names."""
    symbols = []
    for name in names:
        sym = getattr(ZBarSymbol, name.upper(), None)
        if sym is None:
            _logger.warning(f"Unknown barcode format {name!r} ignored")
            continue
        symbols.append(sym)
    return symbols


class FrameDecoder:
    def __init__(self, formats: Sequence[str]):
        self.symbols = zbar_symbols(formats)
        if not self.symbols:
            raise ValueError("No usable barcode formats configured")

    def decode(self, frame) -> str:
        """
        Decode one BGR frame.
        Raises SymbolNotFoundError when the frame holds no accepted symbol.
        """
        try:
            gray = cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
            results = decode(gray, symbols=self.symbols)
        except cv2.error as exc:
            raise DecodeError(f"Frame conversion failed: {exc}") from exc
        except (TypeError, ValueError) as exc:
            raise DecodeError(f"Frame could not be decoded: {exc}") from exc

        for result in results:
            payload = result.data.decode("utf-8", errors="replace").strip()
            if payload:
                return payload
        raise SymbolNotFoundError()
