"""
vrf — verifiable random function primitive for the randomness beacon.

Re-exports the ECVRF-EDWARDS25519-SHA512-TAI functions from `vrf.ecvrf`.
"""

from .ecvrf import (
    OUTPUT_SIZE,
    PROOF_SIZE,
    PUBLIC_KEY_SIZE,
    SECRET_KEY_SIZE,
    SEED_SIZE,
    decode_secret_key,
    keypair,
    keypair_from_seed,
    proof_to_hash,
    prove,
    public_key_of,
    verify,
)

__all__ = [
    "OUTPUT_SIZE",
    "PROOF_SIZE",
    "PUBLIC_KEY_SIZE",
    "SECRET_KEY_SIZE",
    "SEED_SIZE",
    "decode_secret_key",
    "keypair",
    "keypair_from_seed",
    "proof_to_hash",
    "prove",
    "public_key_of",
    "verify",
]
