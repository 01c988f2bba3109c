"""
Exception hierarchy for the Aztec codec.

Every failure of an encode or decode call surfaces as one of the kinds below.
"""

import enum
from typing import Optional


class ErrorKind(enum.Enum):
    PAYLOAD_TOO_LARGE = "PayloadTooLarge"
    INVALID_BIT_SEQUENCE = "InvalidBitSequence"
    BINARIZATION_FAILED = "BinarizationFailed"
    SYMBOL_NOT_FOUND = "SymbolNotFound"
    UNCORRECTABLE_SYMBOL = "UncorrectableSymbol"


class AztecError(Exception):
    """Base exception for all codec failures."""
    kind = None


class PayloadTooLarge(AztecError):
    """No supported symbol size can hold the payload."""
    kind = ErrorKind.PAYLOAD_TOO_LARGE

    def __init__(self, message: str, bit_length: Optional[int] = None):
        super().__init__(message)
        self.bit_length = bit_length


class InvalidBitSequence(AztecError):
    """Malformed mode or codeword structure."""
    kind = ErrorKind.INVALID_BIT_SEQUENCE


class BinarizationFailed(AztecError):
    """Not enough contrast to separate black from white."""
    kind = ErrorKind.BINARIZATION_FAILED


class SymbolNotFound(AztecError):
    """No finder pattern could be located."""
    kind = ErrorKind.SYMBOL_NOT_FOUND


class UncorrectableSymbol(AztecError):
    """More codewords are damaged than the error correction can repair."""
    kind = ErrorKind.UNCORRECTABLE_SYMBOL

    def __init__(self, message: str, ecc_codewords: Optional[int] = None):
        super().__init__(message)
        self.ecc_codewords = ecc_codewords
