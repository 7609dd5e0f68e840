"""
beacon.constants — storage keys, sizes and fee multipliers of the beacon contract.
"""

from __future__ import annotations

# ---- global state keys ----
KEY_PUBLIC_KEY = "public_key"
KEY_NEXT_REQUEST_ID = "next_request_id"
KEY_MAX_PENDING_REQUESTS = "max_pending_requests"
KEY_MAX_FUTURE_ROUNDS = "max_future_rounds"
KEY_STALE_REQUEST_TIMEOUT = "stale_request_timeout"
KEY_TOTAL_PENDING_REQUESTS = "total_pending_requests"
KEY_MANAGER = "manager"
KEY_PAUSER = "pauser"
KEY_PAUSED = "paused"
KEY_UNCLAIMED_REFUNDS = "unclaimed_refunds"

# ---- boxes ----
REQUESTS_BOX_PREFIX = b"requests"
REQUEST_ID_SIZE = 8
REQUEST_BOX_KEY_SIZE = len(REQUESTS_BOX_PREFIX) + REQUEST_ID_SIZE

# ---- VRF sizes ----
VRF_PUBLIC_KEY_SIZE = 32
VRF_PROOF_SIZE = 80
VRF_OUTPUT_SIZE = 64

# Opcode budget needed by vrf_verify.
VRF_VERIFY_OPCODE_COST = 5700

# completeRequest group: 8 op-ups + 2 payouts + 1 app call + 1 callback call
COMPLETE_FEE_MULTIPLIER = 8 + 2 + 1 + 1

# cancelRequest group: 1 app call + 2 payouts (incentive, refund)
CANCEL_FEE_MULTIPLIER = 3

# ---- payment notes ----
NOTE_BOX_MBR_REFUND = b"box mbr refund"
NOTE_FEES_PAYMENT = b"fees payment for caller"
NOTE_CANCEL_PAYMENT = b"cancellation fees for caller"
NOTE_CLOSE_OUT_REMAINDER = b"close out remainder to manager"

# ---- deployment defaults ----
DEFAULT_MAX_PENDING_REQUESTS = 5
DEFAULT_MAX_FUTURE_ROUNDS = 100
DEFAULT_STALE_REQUEST_TIMEOUT = 1000
DEFAULT_APP_FUNDING = 1_000_000
