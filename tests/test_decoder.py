"""
End-to-end tests: payload -> module matrix -> image -> payload.
"""

import random

import pytest
from PIL import Image

import geometry
from bit_sequencer import encode
from config import SUPPORTED_CHARSETS, AztecConfig
from decoder import decode_bits, decode_matrix, decode_symbol
from encoder import encode_symbol
from errors import (
    AztecError,
    BinarizationFailed,
    InvalidBitSequence,
    PayloadTooLarge,
    SymbolNotFound,
)


def round_trip(payload, config=AztecConfig(), width=500, height=500):
    image = encode_symbol(payload, config).to_image(width, height)
    return decode_symbol(image, config)


class TestScenarios:
    """Behaviour of the complete pipeline."""

    def test_empty_payload(self):
        assert round_trip(b"") == b""

    def test_digits(self):
        matrix = encode_symbol(b"1234")
        assert matrix.size == 15
        assert decode_symbol(matrix.to_image(500, 500)) == b"1234"

    def test_small_image_is_normalized(self):
        # one pixel per module, far below the canonical size
        image = encode_symbol(b"normalize me").to_image()
        assert decode_symbol(image) == b"normalize me"

    def test_small_image_without_normalization(self):
        image = encode_symbol(b"normalize me").to_image()
        with pytest.raises(SymbolNotFound):
            decode_symbol(image, AztecConfig(normalize=False))

    @pytest.mark.parametrize("color", [0, 255])
    def test_blank_image(self, color):
        with pytest.raises((SymbolNotFound, BinarizationFailed)):
            decode_symbol(Image.new("L", (500, 500), color))

    def test_image_without_symbol(self):
        image = Image.new("L", (500, 500), 255)
        image.paste(0, (0, 0, 250, 500))
        with pytest.raises(SymbolNotFound):
            decode_symbol(image)

    def test_payload_too_large(self):
        with pytest.raises(PayloadTooLarge):
            encode_symbol(bytes(random.Random(5).randrange(256) for _ in range(3000)))


class TestRoundTrip:
    """Payloads of different shapes and sizes."""

    def test_every_byte_value(self):
        payload = bytes(range(256))
        assert round_trip(payload) == payload

    def test_text(self):
        payload = b"Ticket 0042 / Zone B: valid 2024-05-01 10:30, Price 3.50 EUR."
        assert round_trip(payload) == payload

    def test_large_full_symbol(self):
        payload = b"The quick brown fox jumps over the lazy dog. " * 20
        matrix = encode_symbol(payload)
        assert matrix.size > 80
        assert decode_symbol(matrix.to_image(500, 500)) == payload

    def test_upscaled_with_uneven_modules(self):
        """Nearest neighbour scaling by a non-integer factor."""
        payload = b"Aztec " * 40
        image = encode_symbol(payload).to_image()
        assert decode_symbol(image) == payload

    def test_non_square_stretch(self):
        image = encode_symbol(b"stretched").to_image(300, 300)
        image = image.resize((600, 900), Image.Resampling.NEAREST)
        assert decode_symbol(image) == b"stretched"

    @pytest.mark.parametrize("turns", [1, 2, 3])
    def test_rotated_image(self, turns):
        image = encode_symbol(b"upside down?").to_image(500, 500).rotate(90 * turns)
        assert decode_symbol(image) == b"upside down?"

    def test_rgb_image(self):
        image = encode_symbol(b"colour").to_image(500, 500).convert("RGB")
        assert decode_symbol(image) == b"colour"

    @pytest.mark.parametrize("charset", SUPPORTED_CHARSETS)
    def test_charsets(self, charset):
        config = AztecConfig(charset=charset)
        payload = "Grüße aus Zürich, 12.5 km".encode(charset)
        assert round_trip(payload, config) == payload

    @pytest.mark.parametrize("layers", [-1, -4, 1, 3, 8])
    def test_pinned_layers(self, layers):
        config = AztecConfig(layers=layers)
        assert round_trip(b"pinned", config) == b"pinned"

    @pytest.mark.parametrize("payload", [
        b"\xff" * 31,
        b"Ticket" + b"\xff" * 31,
        b"\xff" * 62,
    ])
    def test_payload_ending_in_ones(self, payload):
        """A binary run of 0xFF bytes at the end is data, not filler."""
        assert round_trip(payload) == payload

    def test_long_chunk_then_short_run_of_ones(self):
        payload = b"\xff" * (2078 + 31)
        config = AztecConfig(min_ecc_percent=5)
        assert round_trip(payload, config, 1000, 1000) == payload

    def test_low_error_correction(self):
        config = AztecConfig(min_ecc_percent=5)
        payload = b"less error correction"
        assert round_trip(payload, config) == payload


def codeword_modules(descriptor, index):
    '''Matrix positions of the bits of one codeword'''
    positions = geometry.data_positions(descriptor)
    offset = descriptor.total_bits % descriptor.word_size
    start = offset + index * descriptor.word_size
    return positions[start:start + descriptor.word_size]


class TestErrorCorrection:
    """Corrupted codewords, decoded straight from the module matrix."""

    PAYLOAD = b"error correction keeps this readable"

    def setup_method(self):
        self.matrix = encode_symbol(self.PAYLOAD)
        self.descriptor = geometry.for_encode(encode(self.PAYLOAD, "iso8859-1"))

    def corrupted(self, count, seed=3):
        rng = random.Random(seed)
        indices = rng.sample(range(self.descriptor.total_codewords), count)
        flips = []
        for index in indices:
            modules = codeword_modules(self.descriptor, index)
            flips += rng.sample(modules, rng.randrange(1, len(modules) + 1))
        return self.matrix.flipped(flips)

    def test_clean(self):
        assert decode_matrix(self.matrix) == self.PAYLOAD

    @pytest.mark.parametrize("turns", range(4))
    def test_any_orientation(self, turns):
        assert decode_matrix(self.matrix.rotated(turns)) == self.PAYLOAD

    @pytest.mark.parametrize("seed", range(5))
    def test_within_bound(self, seed):
        count = self.descriptor.ecc_codewords // 2
        assert decode_matrix(self.corrupted(count, seed)) == self.PAYLOAD

    @pytest.mark.parametrize("seed", range(5))
    def test_beyond_bound(self, seed):
        count = self.descriptor.ecc_codewords // 2 + 1
        try:
            result = decode_matrix(self.corrupted(count, seed))
        except AztecError:
            pass
        else:
            assert result != self.PAYLOAD

    def test_corrupted_image(self):
        """Damage survives the image path as well."""
        matrix = self.corrupted(self.descriptor.ecc_codewords // 3)
        assert decode_symbol(matrix.to_image(500, 500)) == self.PAYLOAD


class TestDecodeBits:
    """Codeword level decoding."""

    def test_too_few_codewords(self):
        descriptor = geometry.SymbolDescriptor(True, 1, 10)
        with pytest.raises(InvalidBitSequence):
            decode_bits([0] * 30, descriptor)

    def test_reserved_data_word(self):
        """An all-zero data word that passes error correction is still invalid."""
        descriptor = geometry.SymbolDescriptor(True, 1, 2)
        codec_bits = [0] * descriptor.total_bits
        with pytest.raises(InvalidBitSequence):
            decode_bits(codec_bits, descriptor)
