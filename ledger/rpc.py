"""
ledger.rpc
----------

JSON-RPC 2.0 surface of a devnet ledger node (FastAPI).

Endpoint: POST /rpc

Exposed methods:

- ledger.getStatus()
- ledger.getBlock(round)
- ledger.getAccount(address)
- app.getGlobalState(app_id)
- app.getBoxes(app_id, prefix?)
- app.call(sender, app_id, method, args?, fee?)
- app.read(app_id, method, args?, sender?)

Params are passed by name (JSON object). All hex-typed inputs/outputs are
0x-prefixed. This is a devnet node: `sender` is trusted as given, there is no
signature check.

Ledger failures map to JSON-RPC error -32000 with the ledger error's
`{code, message, data}` under `error.data`.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple, Type, Union

from fastapi import APIRouter, FastAPI
from pydantic import BaseModel, Field, ValidationError

from ledger.accounts import address_from_hex
from ledger.chain import Ledger
from ledger.codec import from_json, hex_to_bytes, to_json
from ledger.errors import LedgerError

logger = logging.getLogger(__name__)

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
LEDGER_ERROR = -32000


# ---------- request models ----------

class RpcRequest(BaseModel):
    jsonrpc: str = "2.0"
    id: Optional[Union[int, str]] = None
    method: str
    params: Dict[str, Any] = Field(default_factory=dict)


class NoParams(BaseModel):
    pass


class GetBlockParams(BaseModel):
    round: int = Field(..., ge=0)


class GetAccountParams(BaseModel):
    address: str = Field(..., description="0x-hex address")


class AppParams(BaseModel):
    app_id: int = Field(..., ge=1)


class GetBoxesParams(AppParams):
    prefix: str = Field("", description="0x-hex key prefix")


class CallParams(AppParams):
    sender: str = Field(..., description="0x-hex sender address")
    method: str
    args: List[Any] = Field(default_factory=list)
    fee: Optional[int] = Field(None, ge=0)


class ReadParams(AppParams):
    method: str
    args: List[Any] = Field(default_factory=list)
    sender: Optional[str] = None


# ---------- handlers ----------

def _get_status(ledger: Ledger, p: NoParams) -> Dict[str, Any]:
    return ledger.status()


def _get_block(ledger: Ledger, p: GetBlockParams) -> Dict[str, Any]:
    return to_json(ledger.block(p.round))


def _get_account(ledger: Ledger, p: GetAccountParams) -> Dict[str, Any]:
    addr = address_from_hex(p.address)
    acct = ledger.account(addr)
    return {
        "address": p.address,
        "balance": acct.balance if acct else 0,
        "min_balance": ledger.min_balance(addr),
    }


def _get_global_state(ledger: Ledger, p: AppParams) -> Dict[str, Any]:
    return to_json(ledger.global_state(p.app_id))


def _get_boxes(ledger: Ledger, p: GetBoxesParams) -> List[Dict[str, str]]:
    prefix = hex_to_bytes(p.prefix) if p.prefix else b""
    return [{"key": to_json(k), "value": to_json(v)} for k, v in ledger.boxes(p.app_id, prefix).items()]


def _app_call(ledger: Ledger, p: CallParams) -> Dict[str, Any]:
    args = [from_json(a) for a in p.args]
    result = ledger.call(address_from_hex(p.sender), p.app_id, p.method, *args, fee=p.fee)
    return {"result": to_json(result), "round": ledger.round}


def _app_read(ledger: Ledger, p: ReadParams) -> Dict[str, Any]:
    args = [from_json(a) for a in p.args]
    sender = address_from_hex(p.sender) if p.sender else None
    return {"result": to_json(ledger.read(p.app_id, p.method, *args, sender=sender))}


Handler = Callable[[Ledger, Any], Any]

RPC_METHODS: Dict[str, Tuple[Type[BaseModel], Handler]] = {
    "ledger.getStatus": (NoParams, _get_status),
    "ledger.getBlock": (GetBlockParams, _get_block),
    "ledger.getAccount": (GetAccountParams, _get_account),
    "app.getGlobalState": (AppParams, _get_global_state),
    "app.getBoxes": (GetBoxesParams, _get_boxes),
    "app.call": (CallParams, _app_call),
    "app.read": (ReadParams, _app_read),
}


def _error(req_id: Any, code: int, message: str, data: Any = None) -> Dict[str, Any]:
    err: Dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        err["data"] = data
    return {"jsonrpc": "2.0", "id": req_id, "error": err}


def dispatch(ledger: Ledger, req: RpcRequest) -> Dict[str, Any]:
    """Execute one JSON-RPC request against `ledger` and build the response envelope."""
    entry = RPC_METHODS.get(req.method)
    if entry is None:
        return _error(req.id, METHOD_NOT_FOUND, f"method not found: {req.method}")
    model, handler = entry
    try:
        params = model(**req.params)
    except ValidationError as e:
        return _error(req.id, INVALID_PARAMS, "invalid params", {"errors": str(e)})
    try:
        result = handler(ledger, params)
    except LedgerError as e:
        logger.info("rpc %s failed: %s", req.method, e)
        return _error(req.id, LEDGER_ERROR, e.message, e.to_dict())
    except ValueError as e:
        return _error(req.id, INVALID_PARAMS, str(e))
    return {"jsonrpc": "2.0", "id": req.id, "result": result}


def get_router(ledger: Ledger) -> APIRouter:
    r = APIRouter(tags=["ledger"])

    @r.post("/rpc")
    def rpc(req: RpcRequest) -> Dict[str, Any]:
        return dispatch(ledger, req)

    @r.get("/healthz")
    def healthz() -> Dict[str, Any]:
        return {"ok": True, "round": ledger.round}

    return r


def create_app(ledger: Ledger) -> FastAPI:
    app = FastAPI(title="beacon devnet ledger", version="0.1.0")
    app.include_router(get_router(ledger))
    return app


__all__ = ["RPC_METHODS", "RpcRequest", "create_app", "dispatch", "get_router"]
