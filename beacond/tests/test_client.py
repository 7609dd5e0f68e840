import pytest
import requests
from fastapi.testclient import TestClient

from beacon import errors
from beacon.constants import KEY_PUBLIC_KEY
from beacond.client import RpcBeaconClient
from beacond.errors import ClientError
from beacond.service import BeaconDaemon
from ledger.rpc import create_app


class _TestSession:
    """`requests.Session`-shaped adapter over FastAPI's TestClient."""

    def __init__(self, app):
        self.client = TestClient(app)
        self.methods = []

    def post(self, url, json=None, timeout=None):
        self.methods.append(json["method"])
        return self.client.post(url, json=json)


class _Response:
    def __init__(self, status_code, text="", body=None):
        self.status_code = status_code
        self.text = text
        self._body = body

    def json(self):
        if self._body is None:
            raise ValueError("no json")
        return self._body


@pytest.fixture
def session(ledger):
    return _TestSession(create_app(ledger))


@pytest.fixture
def rpc_client(session, beacon, manager):
    return RpcBeaconClient("/rpc", beacon, manager, session=session)


def test_reads_over_rpc(ledger, rpc_client, make_request, vrf_keys):
    request_id, rnd = make_request()
    ledger.advance(2)

    assert rpc_client.last_round() == 2
    assert rpc_client.min_txn_fee() == ledger.params.min_txn_fee
    assert rpc_client.block_seed(rnd) == ledger.block_seed(rnd)
    assert rpc_client.global_state()[KEY_PUBLIC_KEY] == vrf_keys[0]
    pending = rpc_client.pending_requests()
    assert list(pending) == [request_id]
    assert pending[request_id].round == rnd


def test_daemon_cycle_over_rpc(ledger, beacon, rpc_client, prover, metrics, make_request, session):
    stale_id, _ = make_request()
    ledger.advance(21)
    ready_id, _ = make_request()
    ledger.advance()

    daemon = BeaconDaemon(rpc_client, prover, poll_interval_s=0.01, metrics=metrics)
    daemon.check_ready()
    report = daemon.run_once()

    assert report.cancelled == [stale_id]
    assert report.completed == [ready_id]
    assert ledger.boxes(beacon) == {}
    assert "app.call" in session.methods


def test_rejected_call_surfaces_remote_reason(ledger, rpc_client, make_request):
    request_id, _ = make_request()
    with pytest.raises(ClientError) as ei:
        rpc_client.cancel_request(request_id)
    assert ei.value.method == "app.call"
    assert ei.value.code == "REVERT"
    assert ei.value.reason == errors.ERR_REQUEST_MUST_BE_STALE


def test_seed_unavailable_over_rpc(rpc_client):
    with pytest.raises(ClientError) as ei:
        rpc_client.block_seed(99)
    assert ei.value.code == "SEED_UNAVAILABLE"


def test_network_and_http_errors(manager):
    class Down:
        def post(self, url, json=None, timeout=None):
            raise requests.ConnectionError("connection refused")

    class Broken:
        def __init__(self, resp):
            self.resp = resp

        def post(self, url, json=None, timeout=None):
            return self.resp

    with pytest.raises(ClientError) as ei:
        RpcBeaconClient("http://node/rpc", 1001, manager, session=Down()).last_round()
    assert ei.value.code == "NETWORK"

    with pytest.raises(ClientError) as ei:
        RpcBeaconClient("http://node/rpc", 1001, manager, session=Broken(_Response(502, "bad gateway"))).last_round()
    assert ei.value.code == "HTTP"

    with pytest.raises(ClientError) as ei:
        RpcBeaconClient("http://node/rpc", 1001, manager, session=Broken(_Response(200, "<html>"))).last_round()
    assert ei.value.code == "HTTP"


def test_local_client_wraps_ledger_errors(client):
    with pytest.raises(ClientError) as ei:
        client.cancel_request(77)
    assert ei.value.code == "REVERT"
    assert ei.value.reason == errors.ERR_REQUEST_NOT_FOUND
