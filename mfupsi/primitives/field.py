"""
Arithmetic in the prime field Z_q.

Python integers never overflow, so the operand widening a fixed-width
implementation needs is implicit here; every result is reduced into [0, q).
"""


def add_mod(a: int, b: int, q: int) -> int:
    """Return (a + b) mod q."""
    return (a + b) % q


def sub_mod(a: int, b: int, q: int) -> int:
    """Return (a - b) mod q, always non-negative."""
    return (a - b) % q


def mul_mod(a: int, b: int, q: int) -> int:
    """Return (a * b) mod q."""
    return (a * b) % q


def fast_pow(base: int, exp: int, q: int) -> int:
    """
    Compute base^exp mod q by binary exponentiation.

    Runs in O(log exp) multiplications, which matters for the inverse where
    exp = q - 2 is as large as the modulus.
    """
    if q == 1:
        return 0

    result = 1
    b = base % q
    while exp > 0:
        if exp & 1:
            result = (result * b) % q
        b = (b * b) % q
        exp >>= 1
    return result


def mod_inverse(a: int, q: int) -> int:
    """
    Multiplicative inverse of a in Z_q via Fermat's little theorem.

    Requires q prime. An input of 0 (mod q) has no inverse and yields 0
    instead of raising; elimination relies on this lenient sentinel.
    """
    if a % q == 0:
        return 0
    return fast_pow(a, q - 2, q)


# Deterministic Miller-Rabin witnesses, correct for every n < 3.3 * 10^24.
_MR_WITNESSES = (2, 3, 5, 7, 11, 13, 17, 19, 23, 29, 31, 37, 41)


def is_prime(n: int) -> bool:
    """Miller-Rabin primality test (deterministic below 3.3 * 10^24)."""
    if n < 2:
        return False
    for p in _MR_WITNESSES:
        if n % p == 0:
            return n == p

    s, d = 0, n - 1
    while d % 2 == 0:
        s += 1
        d //= 2

    for a in _MR_WITNESSES:
        x = pow(a, d, n)
        if x == 1 or x == n - 1:
            continue
        for _ in range(s - 1):
            x = pow(x, 2, n)
            if x == n - 1:
                break
        else:
            return False
    return True


def element_bytes(q: int) -> int:
    """Bytes needed to transmit one field element of Z_q."""
    return max(1, ((q - 1).bit_length() + 7) // 8)
