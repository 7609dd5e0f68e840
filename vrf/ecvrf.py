"""
vrf.ecvrf — ECVRF-EDWARDS25519-SHA512-TAI (RFC 9381, suite 0x03).

Pure-Python reference implementation used by the beacon contract (verify) and
the beacon daemon (prove). Sizes follow the suite:

- public key : 32 bytes (compressed Edwards point)
- secret key : 64 bytes (32-byte seed || 32-byte public key, libsodium layout)
- proof      : 80 bytes (Gamma || c || s)
- output     : 64 bytes (SHA-512 of cofactor * Gamma)

API
---
    pk, sk = keypair()
    proof, status = prove(sk, alpha)        # status 0 on success
    output, valid = verify(pk, proof, alpha)
    output, status = proof_to_hash(proof)

Functions never raise on malformed key/proof material; failures are reported
through the status / valid flags. Scalar arithmetic is not constant-time, so
keep secret keys on hosts you trust.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import secrets
from typing import Optional, Tuple

SUITE = b"\x03"

PUBLIC_KEY_SIZE = 32
SECRET_KEY_SIZE = 64
SEED_SIZE = 32
PROOF_SIZE = 80
OUTPUT_SIZE = 64

_C_LEN = 16
_PT_LEN = 32
_Q_LEN = 32

# Curve constants (RFC 8032 §5.1)
_P = 2**255 - 19
_L = 2**252 + 27742317777372353535851937790883648493
_D = (-121665 * pow(121666, _P - 2, _P)) % _P
_SQRT_M1 = pow(2, (_P - 1) // 4, _P)
_COFACTOR = 8

Point = Tuple[int, int, int, int]  # extended coordinates (X, Y, Z, T)

_IDENTITY: Point = (0, 1, 1, 0)


# --------------------------------------------------------------------------- #
# Field / group helpers
# --------------------------------------------------------------------------- #

def _inv(x: int) -> int:
    return pow(x, _P - 2, _P)


def _recover_x(y: int, sign: int) -> Optional[int]:
    if y >= _P:
        return None
    x2 = (y * y - 1) * _inv(_D * y * y + 1) % _P
    if x2 == 0:
        return None if sign else 0
    x = pow(x2, (_P + 3) // 8, _P)
    if (x * x - x2) % _P != 0:
        x = x * _SQRT_M1 % _P
    if (x * x - x2) % _P != 0:
        return None
    if (x & 1) != sign:
        x = _P - x
    return x


def _add(p1: Point, p2: Point) -> Point:
    a = (p1[1] - p1[0]) * (p2[1] - p2[0]) % _P
    b = (p1[1] + p1[0]) * (p2[1] + p2[0]) % _P
    c = 2 * p1[3] * p2[3] * _D % _P
    d = 2 * p1[2] * p2[2] % _P
    e, f, g, h = b - a, d - c, d + c, b + a
    return (e * f % _P, g * h % _P, f * g % _P, e * h % _P)


def _neg(pt: Point) -> Point:
    return ((-pt[0]) % _P, pt[1], pt[2], (-pt[3]) % _P)


def _mul(k: int, pt: Point) -> Point:
    acc = _IDENTITY
    while k > 0:
        if k & 1:
            acc = _add(acc, pt)
        pt = _add(pt, pt)
        k >>= 1
    return acc


def _equal(p1: Point, p2: Point) -> bool:
    if (p1[0] * p2[2] - p2[0] * p1[2]) % _P != 0:
        return False
    return (p1[1] * p2[2] - p2[1] * p1[2]) % _P == 0


def _encode_point(pt: Point) -> bytes:
    zinv = _inv(pt[2])
    x = pt[0] * zinv % _P
    y = pt[1] * zinv % _P
    return int.to_bytes(y | ((x & 1) << 255), _PT_LEN, "little")


def _decode_point(s: bytes) -> Optional[Point]:
    if len(s) != _PT_LEN:
        return None
    y = int.from_bytes(s, "little")
    sign = y >> 255
    y &= (1 << 255) - 1
    x = _recover_x(y, sign)
    if x is None:
        return None
    return (x, y, 1, x * y % _P)


_BY = 4 * _inv(5) % _P
_BX = _recover_x(_BY, 0)
_BASE: Point = (_BX, _BY, 1, _BX * _BY % _P)  # type: ignore[operator]


# --------------------------------------------------------------------------- #
# Key handling (RFC 8032 §5.1.5)
# --------------------------------------------------------------------------- #

def _expand_seed(seed: bytes) -> Tuple[int, bytes]:
    h = hashlib.sha512(seed).digest()
    a = bytearray(h[:32])
    a[0] &= 248
    a[31] &= 127
    a[31] |= 64
    return int.from_bytes(bytes(a), "little"), h[32:]


def keypair_from_seed(seed: bytes) -> Tuple[bytes, bytes]:
    """Derive a (public_key, secret_key) pair from a 32-byte seed."""
    if len(seed) != SEED_SIZE:
        raise ValueError(f"seed must be {SEED_SIZE} bytes")
    x, _ = _expand_seed(seed)
    pk = _encode_point(_mul(x, _BASE))
    return pk, bytes(seed) + pk


def keypair() -> Tuple[bytes, bytes]:
    """Generate a fresh random keypair."""
    return keypair_from_seed(secrets.token_bytes(SEED_SIZE))


def public_key_of(sk: bytes) -> bytes:
    """Public key embedded in a 64-byte secret key."""
    if len(sk) != SECRET_KEY_SIZE:
        raise ValueError(f"secret key must be {SECRET_KEY_SIZE} bytes")
    return bytes(sk[SEED_SIZE:])


def decode_secret_key(text: str) -> bytes:
    """Parse a base64 secret key; raises ValueError unless it is a consistent 64-byte key."""
    try:
        sk = base64.b64decode(text, validate=True)
    except binascii.Error as e:
        raise ValueError("secret key is not valid base64") from e
    if len(sk) != SECRET_KEY_SIZE:
        raise ValueError(f"secret key must decode to {SECRET_KEY_SIZE} bytes, got {len(sk)}")
    if keypair_from_seed(sk[:SEED_SIZE])[0] != sk[SEED_SIZE:]:
        raise ValueError("secret key does not embed its own public key")
    return sk


# --------------------------------------------------------------------------- #
# Suite primitives (RFC 9381 §5.4)
# --------------------------------------------------------------------------- #

def _encode_to_curve(salt: bytes, alpha: bytes) -> Point:
    ctr = 0
    while True:
        h = hashlib.sha512(SUITE + b"\x01" + salt + alpha + bytes([ctr]) + b"\x00").digest()
        pt = _decode_point(h[:_PT_LEN])
        if pt is not None:
            return _mul(_COFACTOR, pt)
        ctr += 1
        if ctr > 255:  # pragma: no cover - probability ~2^-256
            raise RuntimeError("encode_to_curve exhausted counter")


def _challenge(*points: Point) -> int:
    buf = SUITE + b"\x02" + b"".join(_encode_point(p) for p in points) + b"\x00"
    return int.from_bytes(hashlib.sha512(buf).digest()[:_C_LEN], "little")


def _nonce(prefix: bytes, h_string: bytes) -> int:
    return int.from_bytes(hashlib.sha512(prefix + h_string).digest(), "little") % _L


def _decode_proof(pi: bytes) -> Optional[Tuple[Point, int, int]]:
    if len(pi) != PROOF_SIZE:
        return None
    gamma = _decode_point(pi[:_PT_LEN])
    if gamma is None:
        return None
    c = int.from_bytes(pi[_PT_LEN:_PT_LEN + _C_LEN], "little")
    s = int.from_bytes(pi[_PT_LEN + _C_LEN:], "little")
    if s >= _L:
        return None
    return gamma, c, s


def _gamma_to_hash(gamma: Point) -> bytes:
    return hashlib.sha512(SUITE + b"\x03" + _encode_point(_mul(_COFACTOR, gamma)) + b"\x00").digest()


# --------------------------------------------------------------------------- #
# Public API
# --------------------------------------------------------------------------- #

def prove(sk: bytes, alpha: bytes) -> Tuple[bytes, int]:
    """
    Produce a proof for `alpha` under secret key `sk`.

    Returns (proof, status). status is 0 on success; on a malformed secret key
    the proof is empty and status is non-zero.
    """
    if not isinstance(sk, (bytes, bytearray)) or len(sk) != SECRET_KEY_SIZE:
        return b"", 1
    seed, pk = bytes(sk[:SEED_SIZE]), bytes(sk[SEED_SIZE:])
    x, prefix = _expand_seed(seed)
    y_point = _mul(x, _BASE)
    if _encode_point(y_point) != pk:
        return b"", 2
    h = _encode_to_curve(pk, bytes(alpha))
    h_string = _encode_point(h)
    gamma = _mul(x, h)
    k = _nonce(prefix, h_string)
    c = _challenge(y_point, h, gamma, _mul(k, _BASE), _mul(k, h))
    s = (k + c * x) % _L
    proof = _encode_point(gamma) + c.to_bytes(_C_LEN, "little") + s.to_bytes(_Q_LEN, "little")
    return proof, 0


def proof_to_hash(pi: bytes) -> Tuple[bytes, int]:
    """Return (output, status) for a proof without verifying it."""
    decoded = _decode_proof(bytes(pi)) if isinstance(pi, (bytes, bytearray)) else None
    if decoded is None:
        return bytes(OUTPUT_SIZE), 1
    return _gamma_to_hash(decoded[0]), 0


def verify(pk: bytes, pi: bytes, alpha: bytes) -> Tuple[bytes, bool]:
    """
    Verify proof `pi` for message `alpha` under public key `pk`.

    Returns (output, valid). output is 64 zero bytes when invalid.
    """
    zero = bytes(OUTPUT_SIZE)
    if not isinstance(pk, (bytes, bytearray)) or not isinstance(pi, (bytes, bytearray)):
        return zero, False
    y_point = _decode_point(bytes(pk))
    if y_point is None or _equal(_mul(_COFACTOR, y_point), _IDENTITY):
        return zero, False
    decoded = _decode_proof(bytes(pi))
    if decoded is None:
        return zero, False
    gamma, c, s = decoded
    h = _encode_to_curve(bytes(pk), bytes(alpha))
    u = _add(_mul(s, _BASE), _neg(_mul(c, y_point)))
    v = _add(_mul(s, h), _neg(_mul(c, gamma)))
    if _challenge(y_point, h, gamma, u, v) != c:
        return zero, False
    return _gamma_to_hash(gamma), True


__all__ = [
    "PUBLIC_KEY_SIZE",
    "SECRET_KEY_SIZE",
    "SEED_SIZE",
    "PROOF_SIZE",
    "OUTPUT_SIZE",
    "keypair",
    "decode_secret_key",
    "keypair_from_seed",
    "public_key_of",
    "prove",
    "verify",
    "proof_to_hash",
]
