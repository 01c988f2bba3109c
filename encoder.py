import bit_sequencer
import geometry
from config import DEFAULT_CONFIG
from matrix import ModuleMatrix
from reed_solomon import ReedSolomonCodec


def generate_check_words(words, descriptor) -> list:
    """
    Extend the data words with check words up to the symbol capacity and
    return the bits to place in the data layers: total_bits % word_size zero
    bits followed by every codeword, most significant bit first.
    """
    word_size = descriptor.word_size
    codec = ReedSolomonCodec(descriptor.field)
    codewords = codec.encode(words, descriptor.total_codewords - len(words))
    bits = [0] * (descriptor.total_bits % word_size)
    for word in codewords:
        bits += [(word >> (word_size - 1 - b)) & 1 for b in range(word_size)]
    return bits


def encode_symbol(payload: bytes, config=DEFAULT_CONFIG) -> ModuleMatrix:
    # bit stream and symbol size
    stream = bit_sequencer.encode(payload, config.charset)
    descriptor = geometry.for_encode(stream, config)
    words = bit_sequencer.stuff_bits(stream, descriptor.word_size)
    message_bits = generate_check_words(words, descriptor)

    size = descriptor.size
    center = size // 2
    modules = [[False] * size for _ in range(size)]

    # data layers
    for bit, (row, column) in zip(message_bits, geometry.data_positions(descriptor)):
        if bit:
            modules[row][column] = True

    # mode message
    mode_bits = geometry.mode_message(descriptor)
    for bit, (row, column) in zip(mode_bits, geometry.mode_message_positions(descriptor.compact, center)):
        if bit:
            modules[row][column] = True

    # finder pattern, orientation marks and reference grid
    for row, column in geometry.bullseye(descriptor.compact, center):
        modules[row][column] = True
    for row, column, black in geometry.orientation_marks(descriptor.compact, center):
        if black:
            modules[row][column] = True
    for row, column in geometry.reference_grid(descriptor):
        modules[row][column] = True

    return ModuleMatrix.from_rows(modules)
