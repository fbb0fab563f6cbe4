"""Cryptographic primitives module"""

from zkmix.crypto.alt_bn128 import (
    CURVE_ORDER,
    FIELD_MODULUS,
    G1,
    G2,
    add_g1,
    double_g1,
    is_on_curve_g1,
    is_on_curve_g2,
    negate_g1,
    pairing_check,
    scalar_mul_g1,
)
from zkmix.crypto.groth16 import (
    Proof,
    VerificationKey,
    compute_vk_x,
    load_verification_key,
    proof_id,
    verify,
)

__all__ = [
    "CURVE_ORDER",
    "FIELD_MODULUS",
    "G1",
    "G2",
    "add_g1",
    "double_g1",
    "is_on_curve_g1",
    "is_on_curve_g2",
    "negate_g1",
    "pairing_check",
    "scalar_mul_g1",
    "Proof",
    "VerificationKey",
    "compute_vk_x",
    "load_verification_key",
    "proof_id",
    "verify",
]
