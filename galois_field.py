"""
Arithmetic over GF(2**m).

Polynomials are lists of coefficients, highest degree first.
"""


class GaloisField:
    '''A binary extension field built from a primitive polynomial.

    The exponent and logarithm tables are computed once and never modified,
    so an instance can be shared freely between threads.
    '''

    def __init__(self, primitive: int, size: int, generator_base: int = 1):
        self.primitive = primitive
        self.size = size
        self.generator_base = generator_base
        exp = [0] * size
        log = [0] * size
        x = 1
        for i in range(size):
            exp[i] = x
            x <<= 1
            if x >= size:
                x ^= primitive
                x &= size - 1
        for i in range(size - 1):
            log[exp[i]] = i
        self._exp = tuple(exp)
        self._log = tuple(log)

    def __repr__(self):
        return f"GaloisField(0x{self.primitive:x}, {self.size}, {self.generator_base})"

    @property
    def order(self) -> int:
        '''Number of non-zero elements.'''
        return self.size - 1

    @staticmethod
    def add(x, y):
        '''Add (and subtract) two field elements'''
        return x ^ y

    def exp(self, power):
        '''2 raised to any integer power, wrapped around the multiplicative group'''
        return self._exp[power % self.order]

    def log(self, x):
        if x == 0:
            raise ValueError("log(0) is undefined")
        return self._log[x]

    def inverse(self, x):
        if x == 0:
            raise ZeroDivisionError()
        return self._exp[self.order - self._log[x]]

    def multiply(self, x, y):
        if x == 0 or y == 0:
            return 0
        return self._exp[(self._log[x] + self._log[y]) % self.order]

    def divide(self, x, y):
        if y == 0:
            raise ZeroDivisionError()
        if x == 0:
            return 0
        return self._exp[(self._log[x] - self._log[y]) % self.order]

    def poly_scale(self, p, x):
        '''Multiply every coefficient of p by the scalar x'''
        return [self.multiply(c, x) for c in p]

    def poly_add(self, p, q):
        r = [0] * max(len(p), len(q))
        r[len(r) - len(p):] = p
        offset = len(r) - len(q)
        for i, c in enumerate(q):
            r[i + offset] ^= c
        return r

    def poly_mul(self, p, q):
        r = [0] * (len(p) + len(q) - 1)
        for j, qj in enumerate(q):
            if qj == 0:
                continue
            for i, pi in enumerate(p):
                if pi != 0:
                    r[i + j] ^= self.multiply(pi, qj)
        return r

    def poly_eval(self, p, x):
        '''Evaluate p at x with Horner's scheme'''
        y = p[0]
        for c in p[1:]:
            y = self.multiply(y, x) ^ c
        return y

    def poly_mod(self, dividend, divisor):
        '''Remainder of dividend / divisor, for a monic divisor (extended synthetic division)'''
        out = list(dividend)
        degree = len(divisor) - 1
        for i in range(len(dividend) - degree):
            coef = out[i]
            if coef != 0:
                for j in range(1, len(divisor)):
                    if divisor[j] != 0:
                        out[i + j] ^= self.multiply(divisor[j], coef)
        return out[len(out) - degree:]
