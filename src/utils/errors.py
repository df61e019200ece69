from typing import Optional


class PosError(Exception):
    """Base class for every error the register or the proxy raises on purpose."""


class ProductNotFoundError(PosError):
    """
    The backend has no product for the barcode.
    An expected outcome, shown to the cashier as a friendly message.
    """

    def __init__(self, code: str):
        super().__init__(f"No product for barcode {code!r}")
        self.code = code


class ItemValidationError(PosError):
    """The add-item form is incomplete or the price is not a positive integer."""


class TransientError(PosError):
    """
    Network or backend failure. Never retried automatically; the cashier
    repeats the action.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class CameraUnavailableError(PosError):
    """Camera permission denied, device missing, or no frames delivered."""


class DecodeError(PosError):
    """The decoder failed on a frame for a reason other than 'no symbol'."""


class SymbolNotFoundError(DecodeError):
    """No barcode in this frame. Scanning simply continues."""
