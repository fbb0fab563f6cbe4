"""Pytest configuration and fixtures.

The trusted setup is external to the mixer, so tests build a toy Groth16 key
from known trapdoor scalars. Knowing the trapdoor, ``ToyCircuit.prove`` can
produce a proof satisfying the verification equation for any public inputs:
with B = G2 and C = c*G1 for random c, choosing
A = (alpha*beta + vk_x*gamma + c*delta) * G1 makes
e(A, B) = e(alpha1, beta2) * e(vk_x, gamma2) * e(C, delta2).
"""

import random
import sys
from pathlib import Path
from typing import List, Sequence

import pytest
from py_ecc.optimized_bn128 import G2 as ECC_G2
from py_ecc.optimized_bn128 import multiply, normalize

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from zkmix.config import MixerSettings  # noqa: E402
from zkmix.core.mixer import MixingPoolManager, withdrawal_public_inputs  # noqa: E402
from zkmix.core.randomness import SeededRandomness  # noqa: E402
from zkmix.crypto.alt_bn128 import CURVE_ORDER, G1, G2, scalar_mul_g1  # noqa: E402
from zkmix.crypto.groth16 import Proof, VerificationKey  # noqa: E402

OWNER = "0x" + "0a" * 20
ALICE = "0x" + "a1" * 20
BOB = "0x" + "b0" * 20
CAROL = "0x" + "c4" * 20
ETHER = 10**18


def g2_mul(k: int):
    """Affine G2 point k * G2 as ((x0, x1), (y0, y1)) ints."""
    x, y = normalize(multiply(ECC_G2, k))
    return (
        (int(x.coeffs[0]), int(x.coeffs[1])),
        (int(y.coeffs[0]), int(y.coeffs[1])),
    )


class ToyCircuit:
    """Verification key with a known trapdoor, plus a proof simulator."""

    def __init__(self, n_public: int, seed: int = 7):
        rng = random.Random(seed)
        self._rng = rng
        self.alpha, self.beta, self.gamma, self.delta = (
            rng.randrange(1, CURVE_ORDER) for _ in range(4)
        )
        self.ic_scalars = [rng.randrange(1, CURVE_ORDER) for _ in range(n_public + 1)]
        self.vk = VerificationKey(
            alpha1=scalar_mul_g1(G1, self.alpha),
            beta2=g2_mul(self.beta),
            gamma2=g2_mul(self.gamma),
            delta2=g2_mul(self.delta),
            ic=tuple(scalar_mul_g1(G1, s) for s in self.ic_scalars),
        )

    def prove(self, public_inputs: Sequence[int]) -> Proof:
        vk_x = self.ic_scalars[0]
        for scalar, value in zip(self.ic_scalars[1:], public_inputs):
            vk_x += scalar * value
        c = self._rng.randrange(1, CURVE_ORDER)
        a = (self.alpha * self.beta + vk_x * self.gamma + c * self.delta) % CURVE_ORDER
        return Proof(a=scalar_mul_g1(G1, a), b=G2, c=scalar_mul_g1(G1, c))


class FakeClock:
    """Settable clock for delay-dependent tests."""

    def __init__(self, now: int = 1_700_000_000):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


@pytest.fixture(scope="session")
def withdraw_circuit() -> ToyCircuit:
    """Toy circuit with the five withdrawal public inputs."""
    return ToyCircuit(n_public=5, seed=7)


@pytest.fixture(scope="session")
def deposit_circuit() -> ToyCircuit:
    """Toy circuit with the two deposit public inputs."""
    return ToyCircuit(n_public=2, seed=11)


@pytest.fixture
def settings() -> MixerSettings:
    """Explicit settings so tests ignore the environment."""
    return MixerSettings(
        min_deposit=ETHER // 100,
        max_deposit=1_000_000 * ETHER,
        withdrawal_fee_bps=10,
        random_delay_range=3600,
        max_batch_size=10,
        min_batch_delay=60,
        max_batch_delay=86_400,
        database_url="sqlite://",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def manager(withdraw_circuit, settings, clock) -> MixingPoolManager:
    """Manager with in-memory registry and deterministic randomness."""
    return MixingPoolManager(
        OWNER,
        withdraw_circuit.vk,
        settings=settings,
        randomness=SeededRandomness(b"test-seed"),
        clock=clock,
    )


@pytest.fixture
def pool_id(manager) -> int:
    """Pool with the standard (3600, 604800, 32) parameters."""
    return manager.create_pool(3600, 604_800, 32, caller=OWNER)


def withdrawal_proof(
    manager: MixingPoolManager,
    circuit: ToyCircuit,
    nullifier_hash: bytes,
    recipient: str,
    amount: int,
    pool_id: int = 1,
) -> Proof:
    """Simulated proof bound to the pool's current root and the withdrawal."""
    inputs: List[int] = withdrawal_public_inputs(
        manager.current_root(pool_id),
        nullifier_hash,
        recipient,
        amount,
        manager.compute_fee(amount),
    )
    return circuit.prove(inputs)
