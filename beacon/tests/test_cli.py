import base64
import json

import pytest
from fastapi.testclient import TestClient
from typer.testing import CliRunner

from beacon import cli
from ledger.codec import bytes_to_hex
from ledger.rpc import create_app


@pytest.fixture
def runner(monkeypatch, ledger):
    node = TestClient(create_app(ledger))
    monkeypatch.setattr(cli.requests, "post", lambda url, json=None, timeout=None: node.post("/rpc", json=json))
    return CliRunner()


def _invoke(runner, *args):
    result = runner.invoke(cli.app, list(args))
    assert result.exit_code == 0, result.output
    return json.loads(result.output)


def test_costs(runner, beacon):
    assert _invoke(runner, "costs", "--app-id", str(beacon)) == {"fees": 12_000, "box_mbr": 37_700}


def test_request_and_list(runner, ledger, beacon, caller, user):
    out = _invoke(runner, "request", "--beacon-app-id", str(beacon), "--caller-app-id", str(caller),
                  "--sender", bytes_to_hex(user), "--rounds-ahead", "2")
    assert out == {"request_id": 1, "round": 2, "paid": 49_700}

    rows = _invoke(runner, "requests", "--app-id", str(beacon))
    assert [(r["request_id"], r["round"], r["requester_app_id"]) for r in rows] == [(1, 2, caller)]
    assert rows[0]["requester_address"] == bytes_to_hex(user)

    state = _invoke(runner, "state", "--app-id", str(beacon))
    assert state["total_pending_requests"] == 1


@pytest.mark.parametrize("secret_key", ["not base64!", base64.b64encode(b"short").decode(),
                                        base64.b64encode(bytes(64)).decode()])
def test_devnet_rejects_bad_secret_key(secret_key):
    result = CliRunner().invoke(cli.app, ["devnet", "--secret-key", secret_key])
    assert result.exit_code == 2
    assert not isinstance(result.exception, ValueError)
