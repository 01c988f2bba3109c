"""
Unit tests for GF(2**m) arithmetic.
"""

import pytest

from galois_field import GaloisField


@pytest.fixture
def gf256():
    return GaloisField(0x12D, 256, 1)


@pytest.fixture
def gf16():
    return GaloisField(0x13, 16, 1)


class TestTables:
    """Exponent and logarithm tables."""

    def test_first_powers(self, gf256):
        """Powers of 2 below the field size are plain shifts."""
        assert [gf256.exp(i) for i in range(8)] == [1, 2, 4, 8, 16, 32, 64, 128]

    def test_reduction_by_primitive(self, gf256, gf16):
        """The first power past the field size is reduced by the primitive polynomial."""
        assert gf256.exp(8) == 0x2D
        assert gf16.exp(4) == 0x3

    def test_exp_wraps_around(self, gf16):
        """exp is periodic with the order of the multiplicative group."""
        assert gf16.order == 15
        assert gf16.exp(15) == 1
        assert gf16.exp(-1) == gf16.exp(14)

    def test_log_inverts_exp(self, gf256):
        for i in range(255):
            assert gf256.log(gf256.exp(i)) == i

    def test_every_element_generated(self, gf16):
        """A primitive polynomial makes 2 generate every non-zero element."""
        assert sorted(gf16.exp(i) for i in range(15)) == list(range(1, 16))

    def test_log_of_zero(self, gf256):
        with pytest.raises(ValueError):
            gf256.log(0)


class TestArithmetic:
    """Field operations."""

    def test_add_is_xor(self):
        assert GaloisField.add(0b1010, 0b0110) == 0b1100

    def test_multiply_by_zero(self, gf256):
        assert gf256.multiply(0, 77) == 0
        assert gf256.multiply(77, 0) == 0

    def test_inverse(self, gf256):
        for x in range(1, 256):
            assert gf256.multiply(x, gf256.inverse(x)) == 1

    def test_divide_undoes_multiply(self, gf16):
        for x in range(16):
            for y in range(1, 16):
                assert gf16.divide(gf16.multiply(x, y), y) == x

    def test_division_by_zero(self, gf256):
        with pytest.raises(ZeroDivisionError):
            gf256.divide(3, 0)
        with pytest.raises(ZeroDivisionError):
            gf256.inverse(0)

    def test_wide_field(self):
        """12-bit field used by the largest symbols."""
        field = GaloisField(0x1069, 4096, 1)
        assert sorted(set(field.exp(i) for i in range(4095))) == list(range(1, 4096))


class TestPolynomials:
    """Polynomials are coefficient lists, highest degree first."""

    def test_eval(self, gf256):
        # x**2 + 3 at x = 2
        assert gf256.poly_eval([1, 0, 3], 2) == 4 ^ 3

    def test_add_aligns_lowest_degree(self, gf256):
        assert gf256.poly_add([1, 2, 3], [5]) == [1, 2, 3 ^ 5]

    def test_mul_then_mod(self, gf256):
        """A multiple of a monic divisor leaves no remainder."""
        divisor = [1, 7, 9]
        product = gf256.poly_mul([4, 0, 200, 17], divisor)
        assert gf256.poly_mod(product, divisor) == [0, 0]

    def test_mod_remainder_evaluates_like_dividend(self, gf256):
        """At a root of the divisor, dividend and remainder agree."""
        root = gf256.exp(3)
        divisor = [1, root]
        dividend = [9, 8, 7, 6, 5]
        remainder = gf256.poly_mod(dividend, divisor)
        assert remainder == [gf256.poly_eval(dividend, root)]

    def test_scale(self, gf16):
        assert gf16.poly_scale([1, 0, 5], 1) == [1, 0, 5]
        assert gf16.poly_scale([1, 0, 5], 0) == [0, 0, 0]
