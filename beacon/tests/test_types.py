import pytest

from beacon.types import (
    RandomnessRequest,
    RandomnessRequestCosts,
    request_box_key,
    request_id_from_box_key,
)


def _request():
    return RandomnessRequest(
        created_at=7,
        requester_app_id=1002,
        requester_address=bytes(range(32)),
        round=42,
        costs=RandomnessRequestCosts(fees=12_000, box_mbr=37_700),
    )


def test_request_record_layout():
    raw = _request().encode()
    assert len(raw) == RandomnessRequest.SIZE == 72
    assert raw[:8] == (7).to_bytes(8, "big")
    assert raw[16:48] == bytes(range(32))
    assert raw[-8:] == (37_700).to_bytes(8, "big")
    assert RandomnessRequest.decode(raw) == _request()


def test_request_decode_rejects_wrong_size():
    with pytest.raises(ValueError):
        RandomnessRequest.decode(bytes(71))


def test_costs_total():
    assert _request().costs.total == 49_700


def test_box_keys():
    key = request_box_key(5)
    assert key == b"requests" + (5).to_bytes(8, "big")
    assert len(key) == 16
    assert request_id_from_box_key(key) == 5
    with pytest.raises(ValueError):
        request_id_from_box_key(b"other" + bytes(8))
