"""
Symbol sizing and module layout.

Everything here is derived from three numbers: whether the symbol is compact,
its number of data layers and its number of data codewords. Coordinates are
(row, column) pairs into the symbol matrix.
"""

from dataclasses import dataclass
from functools import lru_cache

from bit_sequencer import stuff_bits
from config import DEFAULT_CONFIG, MAX_COMPACT_LAYERS, MAX_LAYERS
from errors import InvalidBitSequence, PayloadTooLarge, SymbolNotFound, UncorrectableSymbol
from galois_field import GaloisField
from reed_solomon import ReedSolomonCodec

# codeword width, indexed by layer count
WORD_SIZE = (4, 6, 6) + (8,) * 6 + (10,) * 14 + (12,) * 10

# primitive polynomial for each codeword width
FIELD_PRIMITIVES = {4: 0x13, 6: 0x43, 8: 0x12D, 10: 0x409, 12: 0x1069}

MODE_WORD_SIZE = 4
MAX_COMPACT_DATA_CODEWORDS = 64

# number of mode message words: (data nibbles, total nibbles)
COMPACT_MODE_WORDS = (2, 7)
FULL_MODE_WORDS = (4, 10)


@lru_cache(maxsize=None)
def galois_field_for(word_size: int) -> GaloisField:
    '''Field used for codewords of the given width'''
    try:
        primitive = FIELD_PRIMITIVES[word_size]
    except KeyError:
        raise ValueError(f"Unsupported codeword width {word_size}") from None
    return GaloisField(primitive, 1 << word_size, 1)


def base_matrix_size(compact: bool, layers: int) -> int:
    '''Matrix size before the reference grid is inserted'''
    return (11 if compact else 14) + layers * 4


def matrix_size(compact: bool, layers: int) -> int:
    base = base_matrix_size(compact, layers)
    if compact:
        return base
    return base + 1 + 2 * ((base // 2 - 1) // 15)


def layer_capacity(compact: bool, layers: int) -> int:
    '''Number of module bits in the data layers'''
    return ((88 if compact else 112) + 16 * layers) * layers


@dataclass(frozen=True)
class SymbolDescriptor:
    compact: bool
    layers: int
    data_codewords: int

    @property
    def word_size(self) -> int:
        return WORD_SIZE[self.layers]

    @property
    def total_bits(self) -> int:
        return layer_capacity(self.compact, self.layers)

    @property
    def total_codewords(self) -> int:
        return self.total_bits // self.word_size

    @property
    def ecc_codewords(self) -> int:
        return self.total_codewords - self.data_codewords

    @property
    def base_size(self) -> int:
        return base_matrix_size(self.compact, self.layers)

    @property
    def size(self) -> int:
        return matrix_size(self.compact, self.layers)

    @property
    def field(self) -> GaloisField:
        return galois_field_for(self.word_size)


def _fits(stream, compact, layers, ecc_bits):
    '''Stuffed data word count if the stream fits the symbol, else None'''
    capacity = layer_capacity(compact, layers)
    if len(stream) + ecc_bits > capacity:
        return None
    word_size = WORD_SIZE[layers]
    usable = capacity - capacity % word_size
    words = stuff_bits(stream, word_size)
    if len(words) * word_size + ecc_bits > usable:
        return None
    if compact and len(words) > MAX_COMPACT_DATA_CODEWORDS:
        return None
    return len(words)


def for_encode(stream, config=DEFAULT_CONFIG) -> SymbolDescriptor:
    '''Smallest symbol holding the bit stream and its error correction.

    Compact symbols with 1 to 4 layers are tried first, then full symbols
    with 4 to 32 layers. A non-zero config.layers pins the symbol instead.
    '''
    ecc_bits = len(stream) * config.min_ecc_percent // 100 + 11
    if config.layers:
        compact = config.layers < 0
        layers = abs(config.layers)
        words = _fits(stream, compact, layers, ecc_bits)
        if words is None:
            raise PayloadTooLarge(
                f"Data too large for {'compact' if compact else 'full'} symbol with {layers} layers",
                bit_length=len(stream),
            )
        return SymbolDescriptor(compact, layers, words)

    for i in range(MAX_LAYERS + 1):
        compact = i < MAX_COMPACT_LAYERS
        layers = i + 1 if compact else i
        words = _fits(stream, compact, layers, ecc_bits)
        if words is not None:
            return SymbolDescriptor(compact, layers, words)
    raise PayloadTooLarge(
        f"Data too large for an Aztec code ({len(stream)} bits)", bit_length=len(stream)
    )


def for_decode(probe) -> SymbolDescriptor:
    '''Descriptor announced by the mode message read next to the finder pattern'''
    limit = MAX_COMPACT_LAYERS if probe.compact else MAX_LAYERS
    if not 1 <= probe.layers <= limit:
        raise SymbolNotFound(f"Invalid layer count {probe.layers} in mode message")
    descriptor = SymbolDescriptor(probe.compact, probe.layers, probe.data_codewords)
    if not 0 < descriptor.data_codewords < descriptor.total_codewords:
        raise InvalidBitSequence(
            f"Mode message announces {descriptor.data_codewords} data codewords "
            f"for a symbol holding {descriptor.total_codewords}"
        )
    return descriptor


def alignment_map(descriptor: SymbolDescriptor) -> list:
    '''Matrix row/column for each row/column of the grid-free layout'''
    base = descriptor.base_size
    if descriptor.compact:
        return list(range(base))
    center = descriptor.size // 2
    orig_center = base // 2
    mapping = [0] * base
    for i in range(orig_center):
        offset = i + i // 15
        mapping[orig_center - i - 1] = center - offset - 1
        mapping[orig_center + i] = center + offset + 1
    return mapping


def data_positions(descriptor: SymbolDescriptor) -> list:
    '''Module of every data layer bit, outermost layer first.

    Each layer is four strips two modules wide, walked along the top, right,
    bottom and left sides in turn.
    '''
    mapping = alignment_map(descriptor)
    base = descriptor.base_size
    positions = [None] * descriptor.total_bits
    row_offset = 0
    for i in range(descriptor.layers):
        row_size = (descriptor.layers - i) * 4 + (9 if descriptor.compact else 12)
        for j in range(row_size):
            column_offset = j * 2
            for k in range(2):
                near = mapping[i * 2 + k]
                far = mapping[base - 1 - i * 2 - k]
                along = mapping[i * 2 + j]
                back = mapping[base - 1 - i * 2 - j]
                positions[row_offset + column_offset + k] = (along, near)
                positions[row_offset + row_size * 2 + column_offset + k] = (far, along)
                positions[row_offset + row_size * 4 + column_offset + k] = (back, far)
                positions[row_offset + row_size * 6 + column_offset + k] = (near, back)
        row_offset += row_size * 8
    return positions


def reference_grid(descriptor: SymbolDescriptor) -> list:
    '''Black modules of the reference grid (full symbols only)'''
    if descriptor.compact:
        return []
    size = descriptor.size
    center = size // 2
    modules = []
    i = j = 0
    while i < descriptor.base_size // 2 - 1:
        for k in range(center & 1, size, 2):
            modules += [(center - j, k), (center + j, k), (k, center - j), (k, center + j)]
        i += 15
        j += 16
    return modules


def _mode_codec():
    return ReedSolomonCodec(galois_field_for(MODE_WORD_SIZE))


def mode_message(descriptor: SymbolDescriptor) -> list:
    '''Bits of the error protected mode message'''
    if descriptor.compact:
        value = ((descriptor.layers - 1) << 6) | (descriptor.data_codewords - 1)
        data_words, total_words = COMPACT_MODE_WORDS
    else:
        value = ((descriptor.layers - 1) << 11) | (descriptor.data_codewords - 1)
        data_words, total_words = FULL_MODE_WORDS
    nibbles = [(value >> (4 * (data_words - 1 - i))) & 0xF for i in range(data_words)]
    words = _mode_codec().encode(nibbles, total_words - data_words)
    return [(word >> (3 - b)) & 1 for word in words for b in range(4)]


def parse_mode_message(bits, compact: bool):
    '''Correct and unpack a mode message, returning (layers, data_codewords)'''
    data_words, total_words = COMPACT_MODE_WORDS if compact else FULL_MODE_WORDS
    bits = list(bits)
    if len(bits) != total_words * 4:
        raise ValueError(f"Expected {total_words * 4} mode message bits, got {len(bits)}")
    words = [
        (bits[i] << 3) | (bits[i + 1] << 2) | (bits[i + 2] << 1) | bits[i + 3]
        for i in range(0, len(bits), 4)
    ]
    try:
        words = _mode_codec().decode(words, total_words - data_words)
    except UncorrectableSymbol as exc:
        raise SymbolNotFound("Mode message could not be read") from exc
    value = 0
    for word in words[:data_words]:
        value = (value << 4) | word
    if compact:
        return (value >> 6) + 1, (value & 0x3F) + 1
    return (value >> 11) + 1, (value & 0x7FF) + 1


def mode_message_positions(compact: bool, center: int) -> list:
    '''Module of each mode message bit, clockwise around the finder pattern'''
    if compact:
        count, radius = 7, 5
    else:
        count, radius = 10, 7
    positions = [None] * (count * 4)
    for i in range(count):
        offset = center - count // 2 + i
        if not compact:
            offset = center - 5 + i + i // 5
        positions[i] = (center - radius, offset)
        positions[i + count] = (offset, center + radius)
        positions[count * 3 - 1 - i] = (center + radius, offset)
        positions[count * 4 - 1 - i] = (offset, center - radius)
    return positions


def orientation_marks(compact: bool, center: int) -> list:
    '''(row, column, black) for the three modules at each mode ring corner.

    Read clockwise from the top left the corners hold 3, 2, 1 and 0 black
    modules, which fixes the rotation of the symbol.
    '''
    s = 5 if compact else 7
    top, bottom = center - s, center + s
    left, right = center - s, center + s
    return [
        (top, left, True), (top, left + 1, True), (top + 1, left, True),
        (top, right, True), (top, right - 1, False), (top + 1, right, True),
        (bottom, right, False), (bottom - 1, right, True), (bottom, right - 1, False),
        (bottom, left, False), (bottom - 1, left, False), (bottom, left + 1, False),
    ]


def bullseye(compact: bool, center: int) -> list:
    '''Black modules of the concentric finder rings'''
    radius = 5 if compact else 7
    modules = []
    for d in range(0, radius, 2):
        for j in range(center - d, center + d + 1):
            modules += [(center - d, j), (center + d, j), (j, center - d), (j, center + d)]
    return modules
