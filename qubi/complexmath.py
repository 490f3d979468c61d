"""
Scalar complex arithmetic.

Amplitudes are Python complex numbers, which are already immutable values.
These helpers give the arithmetic the simulator relies on a single home and,
above all, provide the epsilon-based equality used everywhere instead of
exact float comparison.
"""

import math

ZERO = complex(0, 0)
ONE = complex(1, 0)
NEG_ONE = complex(-1, 0)
I = complex(0, 1)
NEG_I = complex(0, -1)

EPSILON = 1e-10


def add(a: complex, b: complex) -> complex:
    return complex(a.real + b.real, a.imag + b.imag)


def sub(a: complex, b: complex) -> complex:
    return complex(a.real - b.real, a.imag - b.imag)


def mul(a: complex, b: complex) -> complex:
    """(a.re·b.re − a.im·b.im) + i(a.re·b.im + a.im·b.re)"""
    return complex(a.real * b.real - a.imag * b.imag,
                   a.real * b.imag + a.imag * b.real)


def scale(a: complex, s: float) -> complex:
    return complex(a.real * s, a.imag * s)


def conj(a: complex) -> complex:
    return complex(a.real, -a.imag)


def probability(a: complex) -> float:
    """Squared magnitude |a|², without the square root."""
    return a.real * a.real + a.imag * a.imag


def magnitude(a: complex) -> float:
    return math.sqrt(probability(a))


def from_polar(r: float, theta: float) -> complex:
    """r·e^{iθ}"""
    return complex(r * math.cos(theta), r * math.sin(theta))


def equals(a: complex, b: complex, epsilon: float = EPSILON) -> bool:
    """Component-wise equality within epsilon."""
    return abs(a.real - b.real) < epsilon and abs(a.imag - b.imag) < epsilon


def format_complex(a: complex, digits: int = 4, epsilon: float = 1e-6) -> str:
    """
    Format an amplitude compactly: "0.7071", "-0.7071i" or "(0.500+0.500i)".
    """
    if abs(a.imag) < epsilon:
        return f"{a.real:.{digits}f}"
    if abs(a.real) < epsilon:
        return f"{a.imag:.{digits}f}i"
    sign = "+" if a.imag >= 0 else "-"
    short = max(digits - 1, 1)
    return f"({a.real:.{short}f}{sign}{abs(a.imag):.{short}f}i)"
