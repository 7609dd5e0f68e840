"""
beacond — operator daemon that completes and cancels beacon requests.

    from beacond import BeaconDaemon, DaemonConfig, RpcBeaconClient, Prover
"""

from beacond.client import BeaconClient, LocalBeaconClient, RpcBeaconClient
from beacond.config import DaemonConfig
from beacond.errors import ClientError, ConfigError, DaemonError, NotReadyError, ProofError
from beacond.prover import Prover
from beacond.service import BeaconDaemon, CycleReport, RequestAction, classify

__all__ = [
    "BeaconClient",
    "BeaconDaemon",
    "ClientError",
    "ConfigError",
    "CycleReport",
    "DaemonConfig",
    "DaemonError",
    "LocalBeaconClient",
    "NotReadyError",
    "ProofError",
    "Prover",
    "RequestAction",
    "RpcBeaconClient",
    "classify",
]
