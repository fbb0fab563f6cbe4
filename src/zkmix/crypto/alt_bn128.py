"""alt-bn128 (BN254) field and group arithmetic.

G1 is the curve ``y^2 = x^3 + 3`` over Fq; G2 is its sextic twist
``y^2 = x^3 + 3/(9+i)`` over Fq2 = Fq[i]/(i^2 + 1). Both groups have prime
order ``r`` (``CURVE_ORDER``).

Points are plain affine tuples of ints:

- G1: ``(x, y)``
- G2: ``((x_c0, x_c1), (y_c0, y_c1))`` where an Fq2 element is ``c0 + c1*i``
  (the coefficient order snarkjs writes)

The point at infinity is ``None``. The EVM precompile encoding ``(0, 0)`` is
accepted by the curve checks and mapped to ``None`` by ``to_g1_point``.

The G1 group law (add, double, negate, scalar multiplication) is implemented
here directly. The pairing itself is delegated to the optimized BN128 Miller
loop and final exponentiation of ``py_ecc``; the product of several pairings
shares a single final exponentiation.
"""

import logging
from typing import Optional, Sequence, Tuple

from py_ecc.optimized_bn128 import (
    FQ,
    FQ2,
    FQ12,
    final_exponentiate,
    is_inf,
    multiply,
    pairing,
)

from zkmix.exceptions import PointNotOnCurveError

logger = logging.getLogger(__name__)

FIELD_MODULUS = 21888242871839275222246405745257275088696311157297893186057583010887373370093
CURVE_ORDER = 21888242871839275222246405745257275088548364400416034343698204186575808495617

G1Point = Optional[Tuple[int, int]]
Fq2Element = Tuple[int, int]
G2Point = Optional[Tuple[Fq2Element, Fq2Element]]

G1: G1Point = (1, 2)
G2: G2Point = (
    (
        10857046999023057135944570762232829481370756359578518086990519993285655852781,
        11559732032986387107991004021392285783925812861821192530917403151452391805634,
    ),
    (
        8495653923123431417604973247489272438418190587263600148770280649306958101930,
        4082367875863433681332203403145435568316851327593401208105741076214120093531,
    ),
)

B1 = 3


def field_inverse(a: int) -> int:
    """
    Multiplicative inverse in Fq via Fermat's little theorem.

    Raises:
        ZeroDivisionError: If ``a`` is zero modulo q
    """
    a %= FIELD_MODULUS
    if a == 0:
        raise ZeroDivisionError("Zero has no inverse in Fq")
    return pow(a, FIELD_MODULUS - 2, FIELD_MODULUS)


# Fq2 arithmetic on (c0, c1) pairs, i^2 = -1.

def _fq2_add(a: Fq2Element, b: Fq2Element) -> Fq2Element:
    return ((a[0] + b[0]) % FIELD_MODULUS, (a[1] + b[1]) % FIELD_MODULUS)


def _fq2_mul(a: Fq2Element, b: Fq2Element) -> Fq2Element:
    return (
        (a[0] * b[0] - a[1] * b[1]) % FIELD_MODULUS,
        (a[0] * b[1] + a[1] * b[0]) % FIELD_MODULUS,
    )


# 3 / (9 + i) = 3 * (9 - i) / 82
_INV_82 = field_inverse(82)
B2: Fq2Element = ((27 * _INV_82) % FIELD_MODULUS, (-3 * _INV_82) % FIELD_MODULUS)


def _in_field(*coords: int) -> bool:
    return all(isinstance(c, int) and 0 <= c < FIELD_MODULUS for c in coords)


def is_on_curve_g1(x: int, y: int) -> bool:
    """
    Check ``y^2 == x^3 + 3 (mod q)`` with both coordinates canonical.

    ``(0, 0)`` is accepted as the encoding of the point at infinity.
    """
    if not _in_field(x, y):
        return False
    if x == 0 and y == 0:
        return True
    return (y * y - x * x * x - B1) % FIELD_MODULUS == 0


def is_on_curve_g2(x0: int, x1: int, y0: int, y1: int) -> bool:
    """
    Check ``y^2 == x^3 + 3/(9+i)`` over Fq2 with all coefficients canonical.

    ``x = x0 + x1*i`` and ``y = y0 + y1*i``. All-zero coordinates are accepted
    as the encoding of the point at infinity.
    """
    if not _in_field(x0, x1, y0, y1):
        return False
    if x0 == x1 == y0 == y1 == 0:
        return True
    x = (x0, x1)
    y = (y0, y1)
    lhs = _fq2_mul(y, y)
    rhs = _fq2_add(_fq2_mul(_fq2_mul(x, x), x), B2)
    return lhs == rhs


def is_in_subgroup_g2(point: G2Point) -> bool:
    """Return True if ``r * Q`` is the identity (the twist has a large cofactor)."""
    if point is None:
        return True
    return is_inf(multiply(_to_jacobian_g2(point), CURVE_ORDER))


def to_g1_point(x: int, y: int) -> G1Point:
    """Build a validated G1 point, mapping ``(0, 0)`` to infinity."""
    if not is_on_curve_g1(x, y):
        raise PointNotOnCurveError(f"G1 point not on curve: ({x}, {y})")
    if x == 0 and y == 0:
        return None
    return (x, y)


def to_g2_point(x0: int, x1: int, y0: int, y1: int) -> G2Point:
    """Build a validated G2 point, mapping all-zero coordinates to infinity."""
    if not is_on_curve_g2(x0, x1, y0, y1):
        raise PointNotOnCurveError("G2 point not on twist curve")
    if x0 == x1 == y0 == y1 == 0:
        return None
    return ((x0, x1), (y0, y1))


def g1_on_curve(point: G1Point) -> bool:
    """Curve check for a point tuple (infinity included)."""
    return point is None or is_on_curve_g1(point[0], point[1])


def g2_on_curve(point: G2Point) -> bool:
    """Curve check for a twist point tuple (infinity included)."""
    if point is None:
        return True
    (x0, x1), (y0, y1) = point
    return is_on_curve_g2(x0, x1, y0, y1)


def negate_g1(point: G1Point) -> G1Point:
    """Return ``-P``."""
    if point is None:
        return None
    x, y = point
    return (x, (-y) % FIELD_MODULUS)


def double_g1(point: G1Point) -> G1Point:
    """Return ``2P`` using the affine tangent rule."""
    if point is None:
        return None
    x, y = point
    if y == 0:
        return None
    slope = (3 * x * x * field_inverse(2 * y)) % FIELD_MODULUS
    x3 = (slope * slope - 2 * x) % FIELD_MODULUS
    y3 = (slope * (x - x3) - y) % FIELD_MODULUS
    return (x3, y3)


def add_g1(p: G1Point, q: G1Point) -> G1Point:
    """Return ``P + Q`` using the affine chord rule."""
    if p is None:
        return q
    if q is None:
        return p
    x1, y1 = p
    x2, y2 = q
    if x1 == x2:
        if (y1 + y2) % FIELD_MODULUS == 0:
            return None
        return double_g1(p)
    slope = ((y2 - y1) * field_inverse(x2 - x1)) % FIELD_MODULUS
    x3 = (slope * slope - x1 - x2) % FIELD_MODULUS
    y3 = (slope * (x1 - x3) - y1) % FIELD_MODULUS
    return (x3, y3)


def scalar_mul_g1(point: G1Point, k: int) -> G1Point:
    """
    Return ``k * P`` by left-to-right double-and-add.

    ``k == 0`` and ``P == O`` both give the identity; a negative ``k``
    multiplies ``-P``.
    """
    if point is None or k == 0:
        return None
    if k < 0:
        return scalar_mul_g1(negate_g1(point), -k)

    result: G1Point = None
    for bit in bin(k)[2:]:
        result = double_g1(result)
        if bit == "1":
            result = add_g1(result, point)
    return result


def _to_jacobian_g1(point: Tuple[int, int]):
    return (FQ(point[0]), FQ(point[1]), FQ(1))


def _to_jacobian_g2(point: Tuple[Fq2Element, Fq2Element]):
    (x0, x1), (y0, y1) = point
    return (FQ2([x0, x1]), FQ2([y0, y1]), FQ2.one())


def pairing_check(g1_points: Sequence[G1Point], g2_points: Sequence[G2Point]) -> bool:
    """
    Return True iff ``prod e(P_i, Q_i) == 1`` in GT.

    Args:
        g1_points: Points in G1
        g2_points: Points in G2, parallel to ``g1_points``

    Returns:
        bool: True if the pairing product is the identity

    Raises:
        ValueError: If the two lists differ in length
        PointNotOnCurveError: If any point fails its curve equation
    """
    if len(g1_points) != len(g2_points):
        raise ValueError(
            f"Pairing inputs differ in length: {len(g1_points)} vs {len(g2_points)}"
        )

    for p in g1_points:
        if not g1_on_curve(p):
            raise PointNotOnCurveError("G1 pairing input not on curve")
    for q in g2_points:
        if not g2_on_curve(q):
            raise PointNotOnCurveError("G2 pairing input not on twist curve")

    acc = FQ12.one()
    for p, q in zip(g1_points, g2_points):
        if p is None or q is None or p == (0, 0) or q == ((0, 0), (0, 0)):
            continue
        acc = acc * pairing(_to_jacobian_g2(q), _to_jacobian_g1(p), final_exponentiate=False)

    result = final_exponentiate(acc) == FQ12.one()
    logger.debug("Pairing product over %d pairs: %s", len(g1_points), result)
    return result
