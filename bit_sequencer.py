"""
Packs a byte payload into the Aztec mode-switching bit stream and back.

Characters are coded through five tables (UPPER, LOWER, MIXED, PUNCT and
DIGIT). Switching tables is driven by an explicit transition table of latches
(permanent) and shifts (one character); bytes that no table holds go through
a binary shift. The encoder picks the cheapest sequence of table switches
with a dynamic programme, the decoder is a small state machine over the
current latched table and a pending shift.
"""

import enum
from collections import namedtuple

from errors import InvalidBitSequence


class Mode(enum.Enum):
    UPPER = "U"
    LOWER = "L"
    MIXED = "M"
    PUNCT = "P"
    DIGIT = "D"


# action is one of "latch", "shift", "binary", "flg"
Control = namedtuple("Control", "action target")

P_S = Control("shift", Mode.PUNCT)
U_S = Control("shift", Mode.UPPER)
U_L = Control("latch", Mode.UPPER)
L_L = Control("latch", Mode.LOWER)
M_L = Control("latch", Mode.MIXED)
P_L = Control("latch", Mode.PUNCT)
D_L = Control("latch", Mode.DIGIT)
B_S = Control("binary", None)
FLG = Control("flg", None)

TABLES = {
    Mode.UPPER: [P_S, " "] + [chr(c) for c in range(ord("A"), ord("Z") + 1)] + [L_L, M_L, D_L, B_S],
    Mode.LOWER: [P_S, " "] + [chr(c) for c in range(ord("a"), ord("z") + 1)] + [U_S, M_L, D_L, B_S],
    Mode.MIXED: [P_S, " "] + [chr(c) for c in range(1, 8)] + [
        "\b", "\t", "\n", "\x0b", "\x0c", "\r", "\x1b", "\x1c", "\x1d", "\x1e", "\x1f",
        "@", "\\", "^", "_", "`", "|", "~", "\x7f", L_L, U_L, P_L, B_S,
    ],
    Mode.PUNCT: [FLG, "\r", "\r\n", ". ", ", ", ": "] + list("!\"#$%&'()*+,-./:;<=>?[]{}") + [U_L],
    Mode.DIGIT: [P_S, " "] + list("0123456789") + [",", ".", U_L, U_S],
}

CODE_WIDTHS = {mode: 4 if mode is Mode.DIGIT else 5 for mode in Mode}

CHARACTER_CODES = {
    mode: {entry: code for code, entry in enumerate(table) if isinstance(entry, str) and len(entry) == 1}
    for mode, table in TABLES.items()
}

PAIR_CODES = {
    entry: code for code, entry in enumerate(TABLES[Mode.PUNCT]) if isinstance(entry, str) and len(entry) == 2
}

# codes to emit for each latch, as (table the code is read from, code)
LATCHES = {
    (Mode.UPPER, Mode.LOWER): ((Mode.UPPER, 28),),
    (Mode.UPPER, Mode.MIXED): ((Mode.UPPER, 29),),
    (Mode.UPPER, Mode.DIGIT): ((Mode.UPPER, 30),),
    (Mode.UPPER, Mode.PUNCT): ((Mode.UPPER, 29), (Mode.MIXED, 30)),
    (Mode.LOWER, Mode.UPPER): ((Mode.LOWER, 30), (Mode.DIGIT, 14)),
    (Mode.LOWER, Mode.MIXED): ((Mode.LOWER, 29),),
    (Mode.LOWER, Mode.DIGIT): ((Mode.LOWER, 30),),
    (Mode.LOWER, Mode.PUNCT): ((Mode.LOWER, 29), (Mode.MIXED, 30)),
    (Mode.MIXED, Mode.UPPER): ((Mode.MIXED, 29),),
    (Mode.MIXED, Mode.LOWER): ((Mode.MIXED, 28),),
    (Mode.MIXED, Mode.DIGIT): ((Mode.MIXED, 29), (Mode.UPPER, 30)),
    (Mode.MIXED, Mode.PUNCT): ((Mode.MIXED, 30),),
    (Mode.PUNCT, Mode.UPPER): ((Mode.PUNCT, 31),),
    (Mode.PUNCT, Mode.LOWER): ((Mode.PUNCT, 31), (Mode.UPPER, 28)),
    (Mode.PUNCT, Mode.MIXED): ((Mode.PUNCT, 31), (Mode.UPPER, 29)),
    (Mode.PUNCT, Mode.DIGIT): ((Mode.PUNCT, 31), (Mode.UPPER, 30)),
    (Mode.DIGIT, Mode.UPPER): ((Mode.DIGIT, 14),),
    (Mode.DIGIT, Mode.LOWER): ((Mode.DIGIT, 14), (Mode.UPPER, 28)),
    (Mode.DIGIT, Mode.MIXED): ((Mode.DIGIT, 14), (Mode.UPPER, 29)),
    (Mode.DIGIT, Mode.PUNCT): ((Mode.DIGIT, 14), (Mode.UPPER, 29), (Mode.MIXED, 30)),
}

LATCH_COSTS = {
    key: sum(CODE_WIDTHS[mode] for mode, _ in codes) for key, codes in LATCHES.items()
}

# shift code for each (latched table, shifted table)
SHIFTS = {
    Mode.UPPER: {Mode.PUNCT: 0},
    Mode.LOWER: {Mode.PUNCT: 0, Mode.UPPER: 28},
    Mode.MIXED: {Mode.PUNCT: 0},
    Mode.DIGIT: {Mode.PUNCT: 0, Mode.UPPER: 15},
    Mode.PUNCT: {},
}

BINARY_SHIFT_MODES = (Mode.UPPER, Mode.LOWER, Mode.MIXED)
BINARY_SHIFT_CODE = 31
# B/S header: code plus 5-bit length
BINARY_SHIFT_COST = 10
MAX_SHORT_BINARY = 31
MAX_BINARY = 31 + 2047
# run lengths from here on share one long header
LONG_BINARY = 2 * MAX_SHORT_BINARY + 1
# pad ones left after unstuffing are fewer than the widest (12-bit) codeword
MAX_FILLER_BITS = 11


class BitStream:
    '''An append-only, bit addressable sequence (most significant bit first)'''

    def __init__(self, bits=()):
        self._bits = [1 if bit else 0 for bit in bits]

    def __len__(self):
        return len(self._bits)

    def __iter__(self):
        return iter(self._bits)

    def __getitem__(self, index):
        return self._bits[index]

    def __eq__(self, other):
        if isinstance(other, BitStream):
            return self._bits == other._bits
        return NotImplemented

    def __repr__(self):
        return f"BitStream('{self}')"

    def __str__(self):
        return "".join(str(bit) for bit in self._bits)

    def append_bit(self, bit):
        self._bits.append(1 if bit else 0)

    def append_bits(self, value: int, count: int):
        if value < 0 or value >> count:
            raise ValueError(f"{value} does not fit in {count} bits")
        for shift in range(count - 1, -1, -1):
            self._bits.append((value >> shift) & 1)

    def read(self, offset: int, count: int) -> int:
        if offset < 0 or offset + count > len(self._bits):
            raise IndexError("read past the end of the bit stream")
        value = 0
        for bit in self._bits[offset:offset + count]:
            value = (value << 1) | bit
        return value

    def trailing_ones(self) -> int:
        count = 0
        for bit in reversed(self._bits):
            if not bit:
                break
            count += 1
        return count


def _relax(table, state, cost, back):
    current = table.get(state)
    if current is None or cost < current[0]:
        table[state] = (cost, back)


def _byte_cost(run):
    '''Bits added by one more byte of a binary run already holding run bytes'''
    if run == 0 or run == MAX_SHORT_BINARY:
        # a new B/S, or the second of two short blocks
        return 8 + BINARY_SHIFT_COST
    if run == 2 * MAX_SHORT_BINARY:
        # two short headers give way to one 21-bit long header
        return 8 + 1
    return 8


def _plan(text):
    '''Cheapest sequence of steps that codes text, with its cost in bits.

    States are (latched mode, bytes in the current binary run), the run
    capped at LONG_BINARY; every entry stores its cost and a pointer
    (position, state, step) to the state it came from.
    '''
    n = len(text)
    best = [{} for _ in range(n + 1)]
    best[0][(Mode.UPPER, 0)] = (0, None)
    for i in range(n + 1):
        here = best[i]
        # a binary shift may end before any character
        for state, (cost, _) in list(here.items()):
            if state[1]:
                _relax(here, (state[0], 0), cost, (i, state, None))
        latched = {state[0]: entry[0] for state, entry in here.items() if not state[1]}
        for source, cost in latched.items():
            for target in Mode:
                if target is not source:
                    _relax(here, (target, 0), cost + LATCH_COSTS[source, target],
                           (i, (source, 0), ("latch", source, target)))
        if i == n:
            break

        char = text[i]
        pair = PAIR_CODES.get(text[i:i + 2])
        for state, (cost, _) in list(here.items()):
            mode, run = state
            if run:
                _relax(best[i + 1], (mode, min(run + 1, LONG_BINARY)),
                       cost + _byte_cost(run), (i, state, ("byte", i)))
                continue
            if mode in BINARY_SHIFT_MODES:
                _relax(best[i + 1], (mode, 1), cost + _byte_cost(0),
                       (i, state, ("binary", mode, i)))
            width = CODE_WIDTHS[mode]
            code = CHARACTER_CODES[mode].get(char)
            if code is not None:
                _relax(best[i + 1], state, cost + width, (i, state, ("code", mode, code)))
            for target, shift_code in SHIFTS[mode].items():
                code = CHARACTER_CODES[target].get(char)
                if code is not None:
                    _relax(best[i + 1], state, cost + width + CODE_WIDTHS[target],
                           (i, state, ("shift", mode, shift_code, target, code)))
            if pair is not None:
                if mode is Mode.PUNCT:
                    _relax(best[i + 2], state, cost + width, (i, state, ("code", mode, pair)))
                elif Mode.PUNCT in SHIFTS[mode]:
                    _relax(best[i + 2], state, cost + width + CODE_WIDTHS[Mode.PUNCT],
                           (i, state, ("shift", mode, SHIFTS[mode][Mode.PUNCT], Mode.PUNCT, pair)))

    state = min(best[n], key=lambda s: best[n][s][0])
    total = best[n][state][0]
    steps = []
    position = n
    back = best[position][state][1]
    while back is not None:
        position, state, step = back
        if step is not None:
            steps.append(step)
        back = best[position][state][1]
    steps.reverse()
    return total, steps


def _append_binary(stream, data):
    for start in range(0, len(data), MAX_BINARY):
        chunk = data[start:start + MAX_BINARY]
        count = len(chunk)
        for i, byte in enumerate(chunk):
            # 32..62 bytes are cheaper as two short blocks than one long one
            if i == 0 or (i == MAX_SHORT_BINARY and count <= 2 * MAX_SHORT_BINARY):
                stream.append_bits(BINARY_SHIFT_CODE, 5)
                if count > 2 * MAX_SHORT_BINARY:
                    stream.append_bits(0, 5)
                    stream.append_bits(count - MAX_SHORT_BINARY, 11)
                elif i == 0:
                    stream.append_bits(min(count, MAX_SHORT_BINARY), 5)
                else:
                    stream.append_bits(count - MAX_SHORT_BINARY, 5)
            stream.append_bits(byte, 8)


def encode(payload: bytes, charset: str) -> BitStream:
    '''Code payload (interpreted in the single-byte charset) as a bit stream'''
    payload = bytes(payload)
    try:
        text = payload.decode(charset)
    except UnicodeDecodeError as exc:
        raise InvalidBitSequence(f"Payload is not valid {charset}: {exc}") from exc
    if len(text) != len(payload):
        raise InvalidBitSequence(f"{charset} is not a single-byte charset")

    stream = BitStream()
    run = None
    _, steps = _plan(text)
    for step in steps:
        kind = step[0]
        if kind == "byte":
            run.append(payload[step[1]])
            continue
        if run is not None:
            _append_binary(stream, run)
            run = None
        if kind == "binary":
            run = [payload[step[2]]]
        elif kind == "code":
            _, mode, code = step
            stream.append_bits(code, CODE_WIDTHS[mode])
        elif kind == "shift":
            _, mode, shift_code, target, code = step
            stream.append_bits(shift_code, CODE_WIDTHS[mode])
            stream.append_bits(code, CODE_WIDTHS[target])
        else:
            _, source, target = step
            for mode, code in LATCHES[source, target]:
                stream.append_bits(code, CODE_WIDTHS[mode])
    if run is not None:
        _append_binary(stream, run)
    return stream


def decode(stream: BitStream, charset: str, max_filler: int = MAX_FILLER_BITS) -> bytes:
    '''Inverse of encode.

    The stream may end with filler: at most max_filler one bits, which is
    shorter than one codeword. Longer runs of ones are data.
    '''
    out = bytearray()
    end = len(stream)
    trailing = stream.trailing_ones()
    latch = Mode.UPPER
    shift = None
    index = 0
    while index < end:
        mode = shift or latch
        width = CODE_WIDTHS[mode]
        if end - index <= min(trailing, max_filler):
            break
        if end - index < width:
            raise InvalidBitSequence(f"Bit stream ends inside a {mode.name} code")
        code = stream.read(index, width)
        index += width
        entry = TABLES[mode][code]
        if isinstance(entry, str):
            out += entry.encode(charset)
            shift = None
        elif entry.action == "latch":
            latch = entry.target
            shift = None
        elif entry.action == "shift":
            shift = entry.target
        elif entry.action == "binary":
            index = _read_binary(stream, index, out)
            shift = None
        else:
            raise InvalidBitSequence(f"Unsupported {mode.name} code {code} (FLG(n))")
    return bytes(out)


def _read_binary(stream, index, out):
    end = len(stream)
    if end - index < 5:
        raise InvalidBitSequence("Bit stream ends inside a binary shift length")
    count = stream.read(index, 5)
    index += 5
    if count == 0:
        if end - index < 11:
            raise InvalidBitSequence("Bit stream ends inside a binary shift length")
        count = stream.read(index, 11) + MAX_SHORT_BINARY
        index += 11
    if end - index < count * 8:
        raise InvalidBitSequence(f"Binary shift of {count} bytes runs past the end of the stream")
    for _ in range(count):
        out.append(stream.read(index, 8))
        index += 8
    return index


def stuff_bits(stream: BitStream, word_size: int) -> list:
    '''Cut the stream into codewords, none of which is all zeros or all ones.

    The last word is padded with ones; an empty stream still gives one word.
    '''
    mask = (1 << word_size) - 2
    n = len(stream)
    words = []
    i = 0
    while i < n or not words:
        word = 0
        for j in range(word_size):
            if i + j >= n or stream[i + j]:
                word |= 1 << (word_size - 1 - j)
        if word & mask == mask:
            words.append(word & mask)
            i += word_size - 1
        elif word & mask == 0:
            words.append(word | 1)
            i += word_size - 1
        else:
            words.append(word)
            i += word_size
    return words


def unstuff_words(words, word_size: int) -> BitStream:
    '''Inverse of stuff_bits'''
    mask = (1 << word_size) - 1
    stream = BitStream()
    for word in words:
        if word == 0 or word == mask:
            raise InvalidBitSequence(f"Invalid {word_size}-bit data codeword {word:#x}")
        if word == 1 or word == mask - 1:
            stream.append_bits(word >> 1, word_size - 1)
        else:
            stream.append_bits(word, word_size)
    return stream
