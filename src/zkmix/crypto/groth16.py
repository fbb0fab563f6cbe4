"""Groth16 verification over alt-bn128.

Verification equation::

    e(A, B) == e(alpha1, beta2) * e(vk_x, gamma2) * e(C, delta2)

checked as a single product in GT::

    e(-A, B) * e(alpha1, beta2) * e(vk_x, gamma2) * e(C, delta2) == 1

with ``vk_x = IC[0] + sum(inputs[i] * IC[i + 1])``.

Proofs and verification keys use the snarkjs JSON layout::

    proof: {"pi_a": [ax, ay, "1"], "pi_b": [[bx0, bx1], [by0, by1], ["1", "0"]],
            "pi_c": [cx, cy, "1"]}
    vk:    {"vk_alpha_1": [..], "vk_beta_2": [[..], [..]], "vk_gamma_2": ..,
            "vk_delta_2": .., "IC": [[ic0x, ic0y], ...]}

Coordinates are decimal strings, ``0x`` hex strings, or ints. The trailing
projective coordinate snarkjs emits is accepted when it equals one.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Sequence, Tuple, Union

from zkmix.crypto.alt_bn128 import (
    CURVE_ORDER,
    G1Point,
    G2Point,
    add_g1,
    g1_on_curve,
    g2_on_curve,
    is_in_subgroup_g2,
    negate_g1,
    pairing_check,
    scalar_mul_g1,
    to_g1_point,
    to_g2_point,
)
from zkmix.exceptions import DeserializationError, PointNotOnCurveError
from zkmix.utils.hash import keccak256

logger = logging.getLogger(__name__)

Coordinate = Union[int, str]


def _to_int(value: Coordinate) -> int:
    if isinstance(value, bool):
        raise DeserializationError("Boolean is not a coordinate")
    if isinstance(value, int):
        return value
    try:
        text = str(value).strip().lower()
        return int(text, 16) if text.startswith("0x") else int(text)
    except ValueError as e:
        raise DeserializationError(f"Invalid coordinate: {value!r}") from e


def _parse_g1(raw: Sequence[Coordinate]) -> G1Point:
    if len(raw) == 3 and _to_int(raw[2]) != 1:
        raise DeserializationError("Only affine G1 points (z == 1) are accepted")
    if len(raw) not in (2, 3):
        raise DeserializationError(f"G1 point needs 2 coordinates, got {len(raw)}")
    return to_g1_point(_to_int(raw[0]), _to_int(raw[1]))


def _parse_g2(raw: Sequence[Sequence[Coordinate]]) -> G2Point:
    if len(raw) == 3 and [_to_int(c) for c in raw[2]] != [1, 0]:
        raise DeserializationError("Only affine G2 points (z == 1) are accepted")
    if len(raw) not in (2, 3) or len(raw[0]) != 2 or len(raw[1]) != 2:
        raise DeserializationError("G2 point needs [[x0, x1], [y0, y1]]")
    return to_g2_point(
        _to_int(raw[0][0]), _to_int(raw[0][1]), _to_int(raw[1][0]), _to_int(raw[1][1])
    )


def _dump_g1(point: G1Point) -> List[str]:
    x, y = point if point is not None else (0, 0)
    return [str(x), str(y), "1"]


def _dump_g2(point: G2Point) -> List[List[str]]:
    (x0, x1), (y0, y1) = point if point is not None else ((0, 0), (0, 0))
    return [[str(x0), str(x1)], [str(y0), str(y1)], ["1", "0"]]


@dataclass(frozen=True)
class Proof:
    """Groth16 proof: A, C in G1 and B in G2."""

    a: G1Point
    b: G2Point
    c: G1Point

    @classmethod
    def from_snarkjs(cls, data: Dict[str, Any]) -> "Proof":
        """
        Parse a snarkjs proof object.

        Raises:
            DeserializationError: If fields are missing or malformed
            PointNotOnCurveError: If any point fails its curve equation
        """
        try:
            return cls(
                a=_parse_g1(data["pi_a"]),
                b=_parse_g2(data["pi_b"]),
                c=_parse_g1(data["pi_c"]),
            )
        except (KeyError, TypeError, IndexError) as e:
            raise DeserializationError(f"Malformed proof: {e}") from e

    def to_snarkjs(self) -> Dict[str, Any]:
        return {
            "pi_a": _dump_g1(self.a),
            "pi_b": _dump_g2(self.b),
            "pi_c": _dump_g1(self.c),
            "protocol": "groth16",
            "curve": "bn128",
        }


@dataclass(frozen=True)
class VerificationKey:
    """Fixed per-circuit verification parameters."""

    alpha1: G1Point
    beta2: G2Point
    gamma2: G2Point
    delta2: G2Point
    ic: Tuple[G1Point, ...]

    @property
    def n_public(self) -> int:
        """Number of public inputs the circuit expects."""
        return len(self.ic) - 1

    @classmethod
    def from_snarkjs(cls, data: Dict[str, Any]) -> "VerificationKey":
        """
        Parse a snarkjs ``verification_key.json`` object.

        Raises:
            DeserializationError: If fields are missing or malformed
            PointNotOnCurveError: If any point fails its curve equation
        """
        try:
            ic = tuple(_parse_g1(p) for p in data["IC"])
            vk = cls(
                alpha1=_parse_g1(data["vk_alpha_1"]),
                beta2=_parse_g2(data["vk_beta_2"]),
                gamma2=_parse_g2(data["vk_gamma_2"]),
                delta2=_parse_g2(data["vk_delta_2"]),
                ic=ic,
            )
        except (KeyError, TypeError, IndexError) as e:
            raise DeserializationError(f"Malformed verification key: {e}") from e

        if not ic:
            raise DeserializationError("Verification key has no IC points")
        if "nPublic" in data and int(data["nPublic"]) != vk.n_public:
            raise DeserializationError(
                f"nPublic={data['nPublic']} does not match {len(ic)} IC points"
            )
        return vk

    def to_snarkjs(self) -> Dict[str, Any]:
        return {
            "protocol": "groth16",
            "curve": "bn128",
            "nPublic": self.n_public,
            "vk_alpha_1": _dump_g1(self.alpha1),
            "vk_beta_2": _dump_g2(self.beta2),
            "vk_gamma_2": _dump_g2(self.gamma2),
            "vk_delta_2": _dump_g2(self.delta2),
            "IC": [_dump_g1(p) for p in self.ic],
        }


def load_verification_key(path: Union[str, Path]) -> VerificationKey:
    """Read a snarkjs verification key from disk."""
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise DeserializationError(f"Verification key is not JSON: {path}") from e
    return VerificationKey.from_snarkjs(data)


def compute_vk_x(ic: Sequence[G1Point], public_inputs: Sequence[int]) -> G1Point:
    """
    Compute ``IC[0] + sum(inputs[i] * IC[i + 1])`` in G1.

    Raises:
        ValueError: If ``len(ic) != len(public_inputs) + 1``
    """
    if len(ic) != len(public_inputs) + 1:
        raise ValueError(f"IC length {len(ic)} != 1 + {len(public_inputs)} inputs")
    acc = ic[0]
    for point, value in zip(ic[1:], public_inputs):
        if value:
            acc = add_g1(acc, scalar_mul_g1(point, value))
    return acc


def is_well_formed(proof: Proof) -> bool:
    """Return True if every proof point has the affine tuple shape and lies on its curve."""
    for point in (proof.a, proof.c):
        if point is not None and (not isinstance(point, tuple) or len(point) != 2):
            return False
    try:
        return g1_on_curve(proof.a) and g2_on_curve(proof.b) and g1_on_curve(proof.c)
    except (TypeError, ValueError, IndexError):
        return False


def verify(proof: Proof, verification_key: VerificationKey, public_inputs: Sequence[int]) -> bool:
    """
    Check a Groth16 proof against a verification key and public inputs.

    Pure and deterministic. Malformed inputs are a rejection, not an error.

    Args:
        proof: Proof points
        verification_key: Circuit verification key
        public_inputs: Scalars in ``[0, r)``, one per non-constant IC point

    Returns:
        bool: True if the proof is accepted
    """
    if len(public_inputs) != verification_key.n_public:
        logger.debug(
            "Rejecting proof: %d inputs for a key expecting %d",
            len(public_inputs),
            verification_key.n_public,
        )
        return False

    for value in public_inputs:
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value < CURVE_ORDER:
            logger.debug("Rejecting proof: public input is not a canonical scalar")
            return False

    if not is_well_formed(proof):
        logger.debug("Rejecting proof: malformed point or point not on curve")
        return False
    if not is_in_subgroup_g2(proof.b):
        logger.debug("Rejecting proof: B outside the G2 subgroup")
        return False

    vk_x = compute_vk_x(verification_key.ic, public_inputs)
    try:
        return pairing_check(
            [negate_g1(proof.a), verification_key.alpha1, vk_x, proof.c],
            [proof.b, verification_key.beta2, verification_key.gamma2, verification_key.delta2],
        )
    except PointNotOnCurveError:
        return False


def proof_id(proof: Proof, public_inputs: Sequence[int]) -> str:
    """Deterministic identifier of a (proof, inputs) pair for event logs."""
    payload = json.dumps(
        {"proof": proof.to_snarkjs(), "inputs": [str(v) for v in public_inputs]},
        sort_keys=True,
    )
    return "0x" + keccak256(payload).hex()
