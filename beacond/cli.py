"""
beacond.cli
-----------

Operator daemon for the randomness beacon.

Commands:
  - run    : Poll the beacon until SIGINT/SIGTERM (exit 0) or a fatal startup error (exit 1).
  - once   : Run a single cycle and print its report as JSON.
  - keygen : Generate a VRF keypair for VRF_KEYPAIR_SECRET_KEY / the beacon's public key.

Configuration comes from the environment (see `beacond.config`).

Example:
  export BEACON_APP_ID=1001 MANAGER_ADDRESS=0x… VRF_KEYPAIR_SECRET_KEY=… POLL_INTERVAL=2000
  python -m beacond run
"""

from __future__ import annotations

import base64
import json
import logging
import signal
import threading
from typing import Any, Optional

import typer

import vrf
from beacond.client import BeaconClient, RpcBeaconClient
from beacond.config import DaemonConfig
from beacond.errors import DaemonError
from beacond.metrics import METRICS, Metrics
from beacond.prover import Prover
from beacond.service import BeaconDaemon

__all__ = ["app", "build_daemon", "main", "run_daemon"]

log = logging.getLogger(__name__)


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_daemon(cfg: DaemonConfig, *, client: Optional[BeaconClient] = None,
                 metrics: Optional[Metrics] = None) -> BeaconDaemon:
    if client is None:
        client = RpcBeaconClient(
            cfg.rpc_url,
            cfg.beacon_app_id,
            cfg.manager_address,
            timeout=cfg.rpc_timeout_s,
            complete_fee_multiplier=cfg.complete_fee_multiplier,
            cancel_fee_multiplier=cfg.cancel_fee_multiplier,
        )
    return BeaconDaemon(client, Prover(cfg.vrf_secret_key), poll_interval_s=cfg.poll_interval_s,
                        metrics=metrics)


def run_daemon(
    cfg: DaemonConfig,
    *,
    client: Optional[BeaconClient] = None,
    stop_event: Optional[threading.Event] = None,
    metrics: Optional[Metrics] = None,
    install_signals: bool = True,
) -> int:
    """Run the poll loop; returns 0 after a graceful stop and 1 on a fatal startup error."""
    stop_event = stop_event if stop_event is not None else threading.Event()
    log.info("config: %s", cfg.redacted())
    try:
        daemon = build_daemon(cfg, client=client, metrics=metrics)
        daemon.check_ready()
    except DaemonError as e:
        log.error("fatal: %s", e)
        return 1

    if install_signals:
        def _signal_handler(sig: int, frame: Any) -> None:
            log.info("received signal %s: shutting down…", sig)
            stop_event.set()

        for s in (signal.SIGINT, signal.SIGTERM):
            signal.signal(s, _signal_handler)

    daemon.run(stop_event)
    return 0


app = typer.Typer(
    name="beacond",
    help="Randomness beacon operator daemon.",
    no_args_is_help=True,
    add_completion=False,
)


@app.command("run")
def cmd_run() -> None:
    """Poll the beacon until interrupted."""
    try:
        cfg = DaemonConfig.from_env()
    except DaemonError as e:
        _setup_logging("INFO")
        log.error("fatal: %s", e)
        raise typer.Exit(code=1)
    _setup_logging(cfg.log_level)
    if cfg.prometheus_port is not None:
        from prometheus_client import start_http_server

        start_http_server(cfg.prometheus_port)
        log.info("metrics exported on :%d", cfg.prometheus_port)
    raise typer.Exit(code=run_daemon(cfg, metrics=METRICS))


@app.command("once")
def cmd_once() -> None:
    """Run one poll cycle and print what was done."""
    try:
        cfg = DaemonConfig.from_env()
        _setup_logging(cfg.log_level)
        report = build_daemon(cfg).run_once()
    except DaemonError as e:
        typer.echo(json.dumps({"ok": False, "error": str(e)}))
        raise typer.Exit(code=1)
    typer.echo(json.dumps({"ok": True, **report.to_dict()}, indent=2))


@app.command("keygen")
def cmd_keygen() -> None:
    """Print a fresh base64 VRF keypair."""
    pk, sk = vrf.keypair()
    typer.echo(json.dumps({
        "VRF_KEYPAIR_PUBLIC_KEY": base64.b64encode(pk).decode(),
        "VRF_KEYPAIR_SECRET_KEY": base64.b64encode(sk).decode(),
        "public_key_hex": "0x" + pk.hex(),
    }, indent=2))


def main() -> None:  # pragma: no cover - console entry
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
