import base64

import pytest

from vrf import ecvrf

# RFC 8032 §7.1, TEST 1
RFC8032_SEED = bytes.fromhex("9d61b19deffd5a60ba844af492ec2cc44449c5697b326919703bac031cae7f60")
RFC8032_PK = bytes.fromhex("d75a980182b10ab7d54bfed3c964073a0ee172f3daa62325af021a68f707511a")


@pytest.fixture(scope="module")
def keys():
    return ecvrf.keypair_from_seed(RFC8032_SEED)


def test_public_key_derivation_matches_ed25519(keys):
    pk, sk = keys
    assert pk == RFC8032_PK
    assert sk == RFC8032_SEED + RFC8032_PK
    assert ecvrf.public_key_of(sk) == pk


def test_rfc9381_example_16(keys):
    # ECVRF-EDWARDS25519-SHA512-TAI, empty alpha
    pk, sk = keys
    beta = bytes.fromhex(
        "90cf1df3b703cce59e2a35b925d411164068269d7b2d29f3301c03dd757876ff"
        "66b71dda49d2de59d03450451af026798e8f81cd2e333de5cdf4f3e140fdd8ae"
    )
    proof, status = ecvrf.prove(sk, b"")
    assert status == 0
    assert proof.hex().startswith("8657106690b5")
    assert proof.hex().endswith("ca76567805")
    assert ecvrf.proof_to_hash(proof) == (beta, 0)
    assert ecvrf.verify(pk, proof, b"") == (beta, True)


def test_keypair_sizes():
    pk, sk = ecvrf.keypair()
    assert len(pk) == ecvrf.PUBLIC_KEY_SIZE
    assert len(sk) == ecvrf.SECRET_KEY_SIZE


def test_prove_and_verify(keys):
    pk, sk = keys
    proof, status = ecvrf.prove(sk, b"round-seed")
    assert status == 0
    assert len(proof) == ecvrf.PROOF_SIZE

    output, valid = ecvrf.verify(pk, proof, b"round-seed")
    assert valid
    assert len(output) == ecvrf.OUTPUT_SIZE
    assert ecvrf.proof_to_hash(proof) == (output, 0)


def test_prove_is_deterministic(keys):
    _, sk = keys
    assert ecvrf.prove(sk, b"abc") == ecvrf.prove(sk, b"abc")
    assert ecvrf.prove(sk, b"abc")[0] != ecvrf.prove(sk, b"abd")[0]


def test_verify_rejects_wrong_message(keys):
    pk, sk = keys
    proof, _ = ecvrf.prove(sk, b"message")
    output, valid = ecvrf.verify(pk, proof, b"other message")
    assert not valid
    assert output == bytes(64)


def test_verify_rejects_wrong_key(keys):
    _, sk = keys
    other_pk, _ = ecvrf.keypair_from_seed(bytes(range(32)))
    proof, _ = ecvrf.prove(sk, b"message")
    assert ecvrf.verify(other_pk, proof, b"message")[1] is False


def test_verify_rejects_tampered_proof(keys):
    pk, sk = keys
    proof, _ = ecvrf.prove(sk, b"message")
    tampered = bytearray(proof)
    tampered[40] ^= 0x01
    assert ecvrf.verify(pk, bytes(tampered), b"message")[1] is False


@pytest.mark.parametrize("proof", [b"", b"\x00" * 79, b"\xff" * 80])
def test_verify_malformed_proof(keys, proof):
    pk, _ = keys
    assert ecvrf.verify(pk, proof, b"m") == (bytes(64), False)


def test_verify_rejects_small_order_key(keys):
    _, sk = keys
    proof, _ = ecvrf.prove(sk, b"m")
    identity = (1).to_bytes(32, "little")
    assert ecvrf.verify(identity, proof, b"m")[1] is False


def test_prove_rejects_malformed_secret_key(keys):
    pk, sk = keys
    assert ecvrf.prove(sk[:32], b"m") == (b"", 1)
    mismatched = sk[:32] + bytes(32)
    proof, status = ecvrf.prove(mismatched, b"m")
    assert proof == b"" and status != 0


def test_keypair_from_seed_rejects_bad_length():
    with pytest.raises(ValueError):
        ecvrf.keypair_from_seed(b"short")


def test_decode_secret_key(keys):
    _, sk = keys
    assert ecvrf.decode_secret_key(base64.b64encode(sk).decode()) == sk
    for bad in ("not base64!", base64.b64encode(sk[:32]).decode(), base64.b64encode(sk[:32] + bytes(32)).decode()):
        with pytest.raises(ValueError):
            ecvrf.decode_secret_key(bad)
