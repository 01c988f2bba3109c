"""
Reed-Solomon error correction over a configurable Galois field.

The codeword layout is systematic: data words first, followed by the
error-correction words, with received[0] as the highest-degree coefficient.
Decoding uses Berlekamp-Massey to find the error locator, a Chien search for
the error positions and the Forney algorithm for the error values.
"""

from errors import UncorrectableSymbol
from galois_field import GaloisField


class ReedSolomonCodec:
    '''Encoder/decoder bound to one field.

    Holds no state besides the (immutable) field, so a single codec may be
    used concurrently.
    '''

    def __init__(self, field: GaloisField):
        self.field = field

    def generator_polynomial(self, ecc_count):
        '''Product of (x - a**(i + base)) for i in range(ecc_count)'''
        field = self.field
        g = [1]
        for i in range(ecc_count):
            g = field.poly_mul(g, [1, field.exp(i + field.generator_base)])
        return g

    def encode(self, data, ecc_count: int) -> list:
        '''Append ecc_count check words to the data words.'''
        field = self.field
        data = list(data)
        if ecc_count < 1:
            raise ValueError("At least one error correction word is required.")
        if len(data) + ecc_count > field.order:
            raise ValueError(
                "Message is too long (%i when max is %i)" % (len(data) + ecc_count, field.order)
            )
        if any(not 0 <= word < field.size for word in data):
            raise ValueError(f"Data word out of range for {field!r}")
        gen = self.generator_polynomial(ecc_count)
        return data + field.poly_mod(data + [0] * ecc_count, gen)

    def syndromes(self, received, ecc_count):
        field = self.field
        return [
            field.poly_eval(received, field.exp(i + field.generator_base))
            for i in range(ecc_count)
        ]

    def check(self, received, ecc_count) -> bool:
        '''True when the received words form a valid codeword'''
        return not any(self.syndromes(list(received), ecc_count))

    def decode(self, received, ecc_count: int) -> list:
        '''Return the corrected codeword (data and check words).

        Raises UncorrectableSymbol when more than ecc_count // 2 words are
        wrong, or when the computed correction does not yield a valid codeword.
        '''
        field = self.field
        received = list(received)
        n = len(received)
        if n > field.order:
            raise ValueError("Message is too long (%i when max is %i)" % (n, field.order))
        if not 0 < ecc_count < n:
            raise ValueError(f"Invalid error correction word count {ecc_count} for {n} words.")
        synd = self.syndromes(received, ecc_count)
        if not any(synd):
            return received

        locator, errors = self._find_error_locator(synd)
        if errors * 2 > ecc_count or len(locator) - 1 != errors:
            raise UncorrectableSymbol("Too many errors to correct", ecc_codewords=ecc_count)
        positions = self._find_errors(locator, n)
        if len(positions) != errors:
            raise UncorrectableSymbol(
                "Error locator roots fall outside the codeword", ecc_codewords=ecc_count
            )
        self._correct_errata(received, synd, locator, positions)
        if any(self.syndromes(received, ecc_count)):
            raise UncorrectableSymbol("Could not correct message", ecc_codewords=ecc_count)
        return received

    def _eval_ascending(self, p, x):
        # p is lowest degree first here
        y = 0
        for c in reversed(p):
            y = self.field.multiply(y, x) ^ c
        return y

    def _find_error_locator(self, synd):
        '''Berlekamp-Massey; returns the locator (lowest degree first) and its length'''
        field = self.field
        locator = [1]
        previous = [1]
        length = 0
        shift = 1
        last_delta = 1
        for n, s in enumerate(synd):
            delta = s
            for i in range(1, min(length, len(locator) - 1) + 1):
                delta ^= field.multiply(locator[i], synd[n - i])
            if delta == 0:
                shift += 1
                continue
            update = [0] * shift + field.poly_scale(previous, field.divide(delta, last_delta))
            candidate = locator + [0] * (len(update) - len(locator))
            for i, c in enumerate(update):
                candidate[i] ^= c
            if 2 * length <= n:
                previous = locator
                last_delta = delta
                length = n + 1 - length
                shift = 1
            else:
                shift += 1
            locator = candidate
        while len(locator) > 1 and locator[-1] == 0:
            locator.pop()
        return locator, length

    def _find_errors(self, locator, n):
        '''Chien search restricted to the n valid positions'''
        field = self.field
        positions = []
        for degree in range(n):
            if self._eval_ascending(locator, field.exp(-degree)) == 0:
                positions.append(n - 1 - degree)
        return positions

    def _correct_errata(self, received, synd, locator, positions):
        '''Forney algorithm, fixes received in place'''
        field = self.field
        ecc_count = len(synd)
        omega = [0] * ecc_count
        for i, s in enumerate(synd):
            if s == 0:
                continue
            for j, l in enumerate(locator[:ecc_count - i]):
                omega[i + j] ^= field.multiply(s, l)
        # formal derivative: only odd powers survive in characteristic 2
        derivative = [c if i % 2 else 0 for i, c in enumerate(locator)][1:]
        n = len(received)
        for pos in positions:
            degree = n - 1 - pos
            x_inv = field.exp(-degree)
            denominator = self._eval_ascending(derivative, x_inv)
            if denominator == 0:
                raise UncorrectableSymbol(
                    "Forney algorithm could not compute the error value", ecc_codewords=ecc_count
                )
            magnitude = field.divide(self._eval_ascending(omega, x_inv), denominator)
            magnitude = field.multiply(magnitude, field.exp((1 - field.generator_base) * degree))
            received[pos] ^= magnitude
