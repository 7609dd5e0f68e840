import pytest
from fastapi.testclient import TestClient

from ledger.accounts import random_address
from ledger.chain import Ledger
from ledger.codec import bytes_to_hex, payment_to_json
from ledger.rpc import INVALID_PARAMS, LEDGER_ERROR, METHOD_NOT_FOUND, create_app
from ledger.tests.test_chain import Counter


@pytest.fixture
def node():
    ledger = Ledger()
    alice = random_address()
    ledger.fund(alice, 10_000_000)
    app_id = ledger.deploy(Counter, alice, 0)
    ledger.payment(alice, ledger.app_address(app_id), 1_000_000)
    return ledger, alice, app_id, TestClient(create_app(ledger))


def _rpc(client, method, params=None):
    r = client.post("/rpc", json={"jsonrpc": "2.0", "id": 7, "method": method, "params": params or {}})
    assert r.status_code == 200
    body = r.json()
    assert body["id"] == 7
    return body


def test_status_and_block(node):
    ledger, _, _, client = node
    ledger.advance(3)
    assert _rpc(client, "ledger.getStatus")["result"]["last_round"] == 3
    block = _rpc(client, "ledger.getBlock", {"round": 2})["result"]
    assert block == {"round": 2, "seed": bytes_to_hex(ledger.block_seed(2))}
    assert client.get("/healthz").json() == {"ok": True, "round": 3}


def test_account(node):
    ledger, alice, _, client = node
    res = _rpc(client, "ledger.getAccount", {"address": bytes_to_hex(alice)})["result"]
    assert res["balance"] == ledger.balance(alice)
    assert res["min_balance"] == 100_000


def test_call_read_and_boxes(node):
    _, alice, app_id, client = node
    res = _rpc(client, "app.call", {"sender": bytes_to_hex(alice), "app_id": app_id, "method": "bump"})["result"]
    assert res == {"result": 1, "round": 0}
    assert _rpc(client, "app.read", {"app_id": app_id, "method": "count"})["result"] == {"result": 1}
    assert _rpc(client, "app.getGlobalState", {"app_id": app_id})["result"] == {"count": 1}
    boxes = _rpc(client, "app.getBoxes", {"app_id": app_id, "prefix": "0x6e"})["result"]
    assert boxes == [{"key": "0x6e" + "00" * 7 + "01", "value": "0x" + "78" * 8}]


def test_call_with_payment_argument(node):
    ledger, alice, app_id, client = node
    pay = payment_to_json(ledger.app_address(app_id), 5000)
    res = _rpc(client, "app.call", {
        "sender": bytes_to_hex(alice), "app_id": app_id, "method": "deposit", "args": [pay],
    })
    assert res["result"]["result"] == 5000


def test_errors(node):
    _, alice, app_id, client = node
    assert _rpc(client, "no.such")["error"]["code"] == METHOD_NOT_FOUND
    assert _rpc(client, "ledger.getBlock", {"round": -1})["error"]["code"] == INVALID_PARAMS
    assert _rpc(client, "ledger.getAccount", {"address": "0x1234"})["error"]["code"] == INVALID_PARAMS

    err = _rpc(client, "app.call", {
        "sender": bytes_to_hex(alice), "app_id": app_id, "method": "bump", "args": [True],
    })["error"]
    assert err["code"] == LEDGER_ERROR
    assert err["data"]["code"] == "REVERT"
    assert err["data"]["data"]["reason"] == "asked to fail"

    err = _rpc(client, "ledger.getBlock", {"round": 5})["error"]
    assert err["data"]["code"] == "SEED_UNAVAILABLE"
