"""
beacond.prover — turns a block seed into the proof `complete_request` expects.
"""

from __future__ import annotations

from typing import Optional

import vrf
from beacond.errors import ConfigError, ProofError


class Prover:
    """Holds the operator's VRF secret key."""

    def __init__(self, secret_key: bytes) -> None:
        if len(secret_key) != vrf.SECRET_KEY_SIZE:
            raise ConfigError("VRF_KEYPAIR_SECRET_KEY", f"must be {vrf.SECRET_KEY_SIZE} bytes")
        self._sk = bytes(secret_key)
        self.public_key = vrf.public_key_of(self._sk)

    def __repr__(self) -> str:
        return f"Prover(public_key={self.public_key.hex()})"

    def prove(self, seed: bytes, *, round: Optional[int] = None) -> bytes:
        proof, status = vrf.prove(self._sk, seed)
        if status != 0:
            raise ProofError(round, status)
        return proof


__all__ = ["Prover"]
