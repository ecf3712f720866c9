"""Exceptions raised by the OCR collaborators around the slip parser."""


class SlipLedgerError(Exception):
    """Base class for slip ledger errors."""


class ImageLoadError(SlipLedgerError):
    """Raised when an uploaded file cannot be decoded as an image."""


class RecognitionError(SlipLedgerError):
    """Raised when the recognition engine fails or has been closed."""
