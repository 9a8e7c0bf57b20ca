"""
Split an integer into two factors by trial division.
"""

from math import isqrt


# Trial divisors tried before giving up; covers every |n| below 2**32.
TRIAL_DIVISION_LIMIT = 1 << 16


def factorize(n: int, limit: int = TRIAL_DIVISION_LIMIT) -> tuple:
    """
    (p, n // p) for the smallest factor p > 1 of |n|, or (1, n).

    For negative n the sign goes on the second factor, so exactly one
    factor is negative:  factorize(-12) == (2, -6).
    """
    n = int(n)
    if n < 0:
        p, q = factorize(-n, limit)
        return p, -q
    if n < 4:
        return 1, n
    if n % 2 == 0:
        return 2, n // 2
    stop = min(isqrt(n), limit)
    for p in range(3, stop + 1, 2):
        if n % p == 0:
            return p, n // p
    return 1, n
