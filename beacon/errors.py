"""
beacon.errors — failure reasons reported by the beacon contract.

Every contract failure is raised as `ledger.errors.Revert(reason)`; the reason
strings below are the stable, user-visible names of those conditions.
Clients match on `Revert.reason`.

Taxonomy
--------
Validation      : ERR_*_CANNOT_BE_ZERO, ERR_INVALID_PUBLIC_KEY,
                  ERR_TIMEOUT_EXCEEDS_SEED_LOOKBACK, ERR_MUST_BE_FUTURE_ROUND,
                  ERR_ROUND_EXCEEDS_MAX_FUTURE_ROUND, ERR_MUST_BE_CALLED_FROM_APP,
                  ERR_COSTS_PAYMENT_MUST_BE_VALID, ERR_MAX_PENDING_REQUESTS
Authorization   : ERR_ONLY_MANAGER, ERR_ONLY_PAUSER, ERR_PAUSED
Precondition    : ERR_REQUEST_NOT_FOUND, ERR_REQUEST_MUST_BE_STALE,
                  ERR_PROOF_MUST_BE_VALID, ERR_NO_PENDING_REQUESTS
"""

from __future__ import annotations

ERR_MAX_PENDING_REQUESTS_CANNOT_BE_ZERO = "max pending requests cannot be zero"
ERR_MAX_FUTURE_ROUNDS_CANNOT_BE_ZERO = "max future rounds cannot be zero"
ERR_TIMEOUT_CANNOT_BE_ZERO = "stale request timeout cannot be zero"
ERR_INVALID_PUBLIC_KEY = "public key must be 32 bytes"
ERR_TIMEOUT_EXCEEDS_SEED_LOOKBACK = "stale request timeout exceeds seed lookback"

ERR_MAX_PENDING_REQUESTS = "cannot exceed max pending requests"
ERR_MUST_BE_FUTURE_ROUND = "must be a future round"
ERR_ROUND_EXCEEDS_MAX_FUTURE_ROUND = "round exceeds max future round"
ERR_MUST_BE_CALLED_FROM_APP = "must be called by an application"
ERR_COSTS_PAYMENT_MUST_BE_VALID = "costs payment must be valid"

ERR_REQUEST_NOT_FOUND = "request not found"
ERR_REQUEST_MUST_BE_STALE = "request must be stale to cancel"
ERR_INVALID_PROOF_LENGTH = "proof must be 80 bytes"
ERR_PROOF_MUST_BE_VALID = "proof must be valid"
ERR_NO_PENDING_REQUESTS = "must have no pending requests"

ERR_ONLY_MANAGER = "only manager can perform this action"
ERR_MANAGER_ZERO_ADDRESS = "manager cannot be zero address"
ERR_ONLY_PAUSER = "only pauser can call this method"
ERR_PAUSER_ZERO_ADDRESS = "pauser cannot be zero address"
ERR_PAUSED = "contract is paused"
