import bit_sequencer
import geometry
from binarizer import BinaryBitmap, binarize
from config import DEFAULT_CONFIG
from detector import locate, probe_matrix, sample
from errors import InvalidBitSequence
from matrix import ModuleMatrix
from reed_solomon import ReedSolomonCodec
from utils import normalize_image, to_luminance


def decode_bits(bits, descriptor, config=DEFAULT_CONFIG) -> bytes:
    """
    Correct the raw data layer bits and unpack the payload.

    The bits start with total_bits % word_size padding bits, followed by the
    data codewords and then the check words.
    """
    word_size = descriptor.word_size
    bits = list(bits)
    total = len(bits) // word_size
    offset = len(bits) % word_size
    data = descriptor.data_codewords
    if not 0 < data < total:
        raise InvalidBitSequence(f"Cannot take {data} data codewords out of {total}")

    words = []
    for i in range(total):
        word = 0
        for bit in bits[offset + i * word_size:offset + (i + 1) * word_size]:
            word = (word << 1) | bit
        words.append(word)

    corrected = ReedSolomonCodec(descriptor.field).decode(words, total - data)
    stream = bit_sequencer.unstuff_words(corrected[:data], word_size)
    return bit_sequencer.decode(stream, config.charset, max_filler=word_size - 1)


def decode_matrix(matrix: ModuleMatrix, config=DEFAULT_CONFIG) -> bytes:
    '''Decode a module matrix given in any of the four orientations'''
    probe = probe_matrix(matrix)
    descriptor = geometry.for_decode(probe)
    bitmap = BinaryBitmap(matrix.rows)
    return decode_bits(sample(bitmap, probe, descriptor), descriptor, config)


def decode_symbol(image, config=DEFAULT_CONFIG) -> bytes:
    '''Recover the payload from a PIL image of an Aztec symbol'''
    if config.normalize:
        image = normalize_image(image, config.min_width, config.min_height)
    bitmap = binarize(to_luminance(image), config.block_size, config.min_dynamic_range)
    probe = locate(bitmap, config)
    descriptor = geometry.for_decode(probe)
    bits = sample(bitmap, probe, descriptor)
    return decode_bits(bits, descriptor, config)
