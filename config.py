"""
Codec configuration.

A frozen value passed into every encode/decode call, so that several
configurations can live side by side in one process.
"""

import codecs
from dataclasses import dataclass

# single-byte, ASCII-compatible Latin-family encodings
SUPPORTED_CHARSETS = ("iso8859-1", "iso8859-2", "iso8859-15", "cp1252")

MAX_LAYERS = 32
MAX_COMPACT_LAYERS = 4


@dataclass(frozen=True)
class AztecConfig:
    charset: str = "ISO-8859-1"
    # error correction bits = data bits * percent / 100 + 11
    min_ecc_percent: int = 33
    # 0 picks the smallest symbol, > 0 forces full layers, < 0 forces compact layers
    layers: int = 0
    # canonical raster size, used for rendering and for decode normalisation
    min_width: int = 500
    min_height: int = 500
    normalize: bool = True
    min_module_pitch: float = 2.0
    block_size: int = 8
    min_dynamic_range: int = 24

    def __post_init__(self):
        try:
            name = codecs.lookup(self.charset).name
        except LookupError as exc:
            raise ValueError(f"Unknown charset {self.charset!r}") from exc
        if name not in SUPPORTED_CHARSETS:
            raise ValueError(
                f"Charset {self.charset!r} is not a supported single-byte encoding "
                f"(use one of {', '.join(SUPPORTED_CHARSETS)})."
            )
        if not 0 <= self.min_ecc_percent < 100:
            raise ValueError("min_ecc_percent must be between 0 and 99.")
        max_layers = MAX_COMPACT_LAYERS if self.layers < 0 else MAX_LAYERS
        if abs(self.layers) > max_layers:
            raise ValueError(f"Illegal value {self.layers} for layers.")
        if self.min_width < 1 or self.min_height < 1:
            raise ValueError("min_width and min_height must be positive.")
        if self.min_module_pitch <= 0:
            raise ValueError("min_module_pitch must be positive.")
        if self.block_size < 2:
            raise ValueError("block_size must be at least 2.")
        if self.min_dynamic_range < 0:
            raise ValueError("min_dynamic_range must not be negative.")


DEFAULT_CONFIG = AztecConfig()
