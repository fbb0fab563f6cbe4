#!/usr/bin/env python3
"""
Quick start guide for the ZK privacy mixer.

Needs a snarkjs verification key for the withdrawal circuit (five public
inputs: root, nullifier hash, recipient, amount, fee):

    ZKMIX_VERIFICATION_KEY_PATH=build/verification_key.json python examples/quick_start.py

The script creates a pool, deposits one ether under a fresh note, and prints
the Merkle path and public inputs the prover needs. Run it again with
``--proof proof.json --note note.json`` to withdraw with a proof generated
off-line for that note.
"""

import argparse
import json
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from zkmix.config import configure_logging, get_settings
from zkmix.core.commitment import Commitment
from zkmix.core.mixer import MixingPoolManager, withdrawal_public_inputs
from zkmix.crypto.groth16 import load_verification_key
from zkmix.utils.encoding import bytes_to_hex, format_ether, parse_ether

OWNER = "0x" + "0a" * 20
RECIPIENT = "0x" + "b0" * 20


def main():
    """Run a simple example of the mixer."""
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--note", type=Path, default=Path("note.json"))
    parser.add_argument("--proof", type=Path, help="snarkjs proof for the saved note")
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(settings)
    if settings.verification_key_path is None:
        print("Set ZKMIX_VERIFICATION_KEY_PATH to a withdrawal verification_key.json")
        return 1

    print("=" * 70)
    print("ZK-MIXER QUICK START EXAMPLE")
    print("=" * 70)
    print()

    # Step 1: Initialize the manager and a pool
    print("Step 1: Initialize the mixer")
    print("-" * 70)
    manager = MixingPoolManager(OWNER, load_verification_key(settings.verification_key_path))
    pool_id = manager.create_pool(3600, 604_800, 20, caller=OWNER)
    print(f"✓ Pool {pool_id} created (delay 1h-7d, depth 20)")
    print()

    # Step 2: Deposit under a fresh (or saved) note
    print("Step 2: Deposit 1 ETH")
    print("-" * 70)
    amount = parse_ether("1")
    if args.note.exists():
        saved = json.loads(args.note.read_text())
        secret, seed = int(saved["secret"], 16), int(saved["nullifier_seed"], 16)
        commitment = Commitment.compute_commitment(secret, amount, seed)
        nullifier_hash = Commitment.compute_nullifier_hash(secret, seed)
    else:
        note = Commitment.create_note(amount)
        args.note.write_text(json.dumps(note.to_dict(), indent=2))
        commitment, nullifier_hash = note.commitment, note.nullifier_hash
        print(f"✓ Note saved to {args.note} (keep it secret)")

    receipt = manager.deposit(commitment, pool_id, 7200, amount)
    print(f"  Commitment: {bytes_to_hex(commitment)[:34]}...")
    print(f"  Leaf index: {receipt.leaf_index}")
    print(f"  Release at: {receipt.release_at}")
    print()

    # Step 3: Show what the prover needs
    print("Step 3: Prover inputs")
    print("-" * 70)
    elements, indices = manager.get_merkle_path(pool_id, receipt.leaf_index)
    fee = manager.compute_fee(amount)
    inputs = withdrawal_public_inputs(
        manager.current_root(pool_id), nullifier_hash, RECIPIENT, amount, fee
    )
    print(f"  Path indices: {''.join(str(i) for i in indices)}")
    print(f"  First sibling: {bytes_to_hex(elements[0])[:34]}...")
    print(f"  Public inputs: {json.dumps([str(v) for v in inputs])}")
    print()

    if args.proof is None:
        print("Generate a proof for these inputs and rerun with --proof.")
        return 0

    # Step 4: Withdraw
    print("Step 4: Withdraw to a fresh address")
    print("-" * 70)
    proof = json.loads(args.proof.read_text())
    withdrawal = manager.withdraw(nullifier_hash, RECIPIENT, amount, proof, pool_id=pool_id)
    print("✓ Withdrawal successful!")
    print(f"  Recipient received: {format_ether(withdrawal.net_amount)} ETH")
    print(f"  Protocol fee:       {format_ether(withdrawal.fee)} ETH")
    print(f"  Proof id:           {withdrawal.proof_id[:18]}...")
    print(f"  Nullifier spent:    {manager.is_nullifier_used(nullifier_hash)}")
    print()

    stats = manager.get_statistics()
    print(f"Deposits: {stats.total_deposits}  Withdrawals: {stats.total_withdrawals}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
