"""
beacon — on-chain randomness beacon: request ledger, contract logic and
requester callback interface.

    from beacon import RandomnessBeacon, ExampleCaller, deploy_beacon
"""

from beacon.contract import RandomnessBeacon
from beacon.deploy import BeaconDeployConfig, deploy_beacon, deploy_example_caller
from beacon.requester import ExampleCaller, RandomnessRequester
from beacon.types import RandomnessRequest, RandomnessRequestCosts, request_box_key, request_id_from_box_key

__all__ = [
    "BeaconDeployConfig",
    "ExampleCaller",
    "RandomnessBeacon",
    "RandomnessRequest",
    "RandomnessRequestCosts",
    "RandomnessRequester",
    "deploy_beacon",
    "deploy_example_caller",
    "request_box_key",
    "request_id_from_box_key",
]
