"""
beacon.cli
----------

Devnet and inspection CLI for the randomness beacon (requires `typer`,
`requests`, and `uvicorn` for `devnet`).

Commands:
  - devnet   : Run an in-process ledger with a deployed beacon + example caller,
               serve it over JSON-RPC and advance rounds on a timer.
  - costs    : Show get_costs() of a deployed beacon.
  - state    : Show the beacon's global state.
  - requests : List pending requests.
  - request  : Ask an ExampleCaller app to request randomness (pays get_costs()).

Environment:
  LEDGER_RPC_URL may be set to override the default RPC endpoint.

Example:
  python -m beacon devnet --port 8545 --round-interval 2
  python -m beacon costs --app-id 1001
"""

from __future__ import annotations

import base64
import json
import logging
import os
from typing import Any, Dict, Optional

import requests
import typer

from beacon.constants import REQUESTS_BOX_PREFIX
from beacon.deploy import BeaconDeployConfig, deploy_beacon, deploy_example_caller
from beacon.types import RandomnessRequest, request_id_from_box_key
from ledger.accounts import application_address, random_address
from ledger.chain import Ledger, LedgerParams
from ledger.codec import bytes_to_hex, hex_to_bytes, payment_to_json

__all__ = ["app", "main"]

log = logging.getLogger(__name__)

_DEFAULT_RPC = os.getenv("LEDGER_RPC_URL") or "http://127.0.0.1:8545/rpc"


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _rpc_call(url: str, method: str, params: Optional[Dict[str, Any]] = None, timeout: float = 10.0) -> Any:
    """
    Minimal JSON-RPC 2.0 helper.
    """
    body = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params or {}}
    try:
        r = requests.post(url, json=body, timeout=timeout)
    except requests.RequestException as e:
        raise SystemExit(f"RPC POST failed: {e}")
    if r.status_code != 200:
        raise SystemExit(f"RPC error HTTP {r.status_code}: {r.text}")
    data = r.json()
    if data.get("error"):
        raise SystemExit(f"RPC error: {json.dumps(data['error'], indent=2)}")
    return data.get("result")


app = typer.Typer(
    name="beacon",
    help="Randomness beacon devnet and inspection tools.",
    no_args_is_help=True,
    add_completion=False,
)


def _opt_rpc() -> str:
    return typer.Option(_DEFAULT_RPC, "--rpc", help=f"JSON-RPC endpoint (default: {_DEFAULT_RPC})")  # type: ignore[return-value]


@app.command("devnet")
def cmd_devnet(
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(8545, "--port"),
    round_interval: float = typer.Option(1.0, "--round-interval", help="Seconds between rounds."),
    secret_key: Optional[str] = typer.Option(
        None, "--secret-key", envvar="VRF_KEYPAIR_SECRET_KEY", help="Base64 VRF secret key (generated if omitted)."
    ),
    max_pending_requests: int = typer.Option(5, "--max-pending"),
    max_future_rounds: int = typer.Option(100, "--max-future-rounds"),
    stale_request_timeout: int = typer.Option(1000, "--stale-timeout"),
    log_level: str = typer.Option("INFO", "--log-level", envvar="LOG_LEVEL"),
) -> None:
    """Serve a devnet ledger with a deployed beacon over JSON-RPC."""
    import vrf

    if secret_key:
        try:
            sk = vrf.decode_secret_key(secret_key)
        except ValueError as e:
            raise typer.BadParameter(str(e), param_hint="--secret-key")
        pk = vrf.public_key_of(sk)
    else:
        pk, sk = vrf.keypair()

    import uvicorn

    from ledger.rpc import create_app
    from ledger.ticker import RoundTicker

    _setup_logging(log_level)

    ledger = Ledger(LedgerParams())
    manager = random_address()
    ledger.fund(manager, 1_000_000_000)
    beacon_id = deploy_beacon(
        ledger,
        manager,
        pk,
        BeaconDeployConfig(
            max_pending_requests=max_pending_requests,
            max_future_rounds=max_future_rounds,
            stale_request_timeout=stale_request_timeout,
        ),
    )
    caller_id = deploy_example_caller(ledger, manager, beacon_id)
    ledger.advance()

    typer.echo(json.dumps({
        "rpc": f"http://{host}:{port}/rpc",
        "BEACON_APP_ID": beacon_id,
        "EXAMPLE_CALLER_APP_ID": caller_id,
        "MANAGER_ADDRESS": bytes_to_hex(manager),
        "VRF_KEYPAIR_SECRET_KEY": base64.b64encode(sk).decode(),
        "VRF_KEYPAIR_PUBLIC_KEY": base64.b64encode(pk).decode(),
    }, indent=2))

    with RoundTicker(ledger, round_interval):
        uvicorn.run(create_app(ledger), host=host, port=port, log_level=log_level.lower(), workers=1)


@app.command("costs")
def cmd_costs(app_id: int = typer.Option(..., "--app-id"), rpc: str = _opt_rpc()) -> None:
    """Show fees and box MBR a requester must pay."""
    res = _rpc_call(rpc, "app.read", {"app_id": app_id, "method": "get_costs"})
    typer.echo(json.dumps(res["result"], indent=2))


@app.command("state")
def cmd_state(app_id: int = typer.Option(..., "--app-id"), rpc: str = _opt_rpc()) -> None:
    """Show the beacon's global state."""
    typer.echo(json.dumps(_rpc_call(rpc, "app.getGlobalState", {"app_id": app_id}), indent=2))


@app.command("requests")
def cmd_requests(app_id: int = typer.Option(..., "--app-id"), rpc: str = _opt_rpc()) -> None:
    """List pending requests."""
    boxes = _rpc_call(rpc, "app.getBoxes", {"app_id": app_id, "prefix": bytes_to_hex(REQUESTS_BOX_PREFIX)})
    out = []
    for box in boxes:
        req = RandomnessRequest.decode(hex_to_bytes(box["value"]))
        out.append({
            "request_id": request_id_from_box_key(hex_to_bytes(box["key"])),
            "round": req.round,
            "created_at": req.created_at,
            "requester_app_id": req.requester_app_id,
            "requester_address": bytes_to_hex(req.requester_address),
            "fees": req.costs.fees,
            "box_mbr": req.costs.box_mbr,
        })
    typer.echo(json.dumps(out, indent=2))


@app.command("request")
def cmd_request(
    beacon_app_id: int = typer.Option(..., "--beacon-app-id"),
    caller_app_id: int = typer.Option(..., "--caller-app-id"),
    sender: str = typer.Option(..., "--sender", help="0x-hex address paying for the request."),
    rounds_ahead: int = typer.Option(1, "--rounds-ahead"),
    rpc: str = _opt_rpc(),
) -> None:
    """Request randomness through an ExampleCaller app."""
    costs = _rpc_call(rpc, "app.read", {"app_id": beacon_app_id, "method": "get_costs"})["result"]
    amount = int(costs["fees"]) + int(costs["box_mbr"])
    pay = payment_to_json(application_address(caller_app_id), amount)
    res = _rpc_call(rpc, "app.call", {
        "sender": sender,
        "app_id": caller_app_id,
        "method": "request_randomness",
        "args": [pay, rounds_ahead],
    })
    request_id, target_round = res["result"]
    typer.echo(json.dumps({"request_id": request_id, "round": target_round, "paid": amount}, indent=2))


def main() -> None:  # pragma: no cover - console entry
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
