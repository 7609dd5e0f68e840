"""
ledger.events — append-only application event log.

Applications emit dataclass events through their host; the ledger buffers them
per transaction and appends them to the sink only when the transaction
commits, so every successful state transition is logged exactly once and a
failed one not at all.

Backends:

- InMemoryEventSink: test/dev friendly; keeps all records in RAM.
- JsonlEventSink: append-only JSONL file, one record per line.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import os
import threading
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Protocol, runtime_checkable


def _jsonable(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


@dataclass(frozen=True)
class EventRecord:
    """
    An emitted event with its execution context.

    Fields
    ------
    round : int
        Round in which the emitting transaction committed.
    txn_id : int
        Ledger-wide transaction sequence number.
    app_id : int
        Emitting application.
    log_index : int
        0-based index of the event inside the transaction, in emission order.
    name : str
        Event type name (e.g. 'RequestCreated').
    fields : dict
        Event payload.
    """

    round: int
    txn_id: int
    app_id: int
    log_index: int
    name: str
    fields: Dict[str, Any]

    @classmethod
    def from_event(cls, event: Any, *, round: int, txn_id: int, app_id: int, log_index: int) -> "EventRecord":
        if not dataclasses.is_dataclass(event):
            raise TypeError("events must be dataclass instances")
        return cls(
            round=round,
            txn_id=txn_id,
            app_id=app_id,
            log_index=log_index,
            name=type(event).__name__,
            fields=dataclasses.asdict(event),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "round": self.round,
            "txn_id": self.txn_id,
            "app_id": self.app_id,
            "log_index": self.log_index,
            "name": self.name,
            "fields": _jsonable(self.fields),
        }


@runtime_checkable
class EventSink(Protocol):
    def append(self, record: EventRecord) -> None:
        """Persist one committed record."""

    def get_logs(
        self,
        *,
        app_id: Optional[int] = None,
        name: Optional[str] = None,
        from_round: Optional[int] = None,
        to_round: Optional[int] = None,
    ) -> Iterable[EventRecord]:
        """Iterate matching records in append order."""

    def close(self) -> None:
        """Release resources."""


def _matches(rec: EventRecord, app_id: Optional[int], name: Optional[str],
             from_round: Optional[int], to_round: Optional[int]) -> bool:
    if app_id is not None and rec.app_id != app_id:
        return False
    if name is not None and rec.name != name:
        return False
    if from_round is not None and rec.round < from_round:
        return False
    if to_round is not None and rec.round > to_round:
        return False
    return True


class InMemoryEventSink(EventSink):
    """Thread-safe in-memory sink."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._records: List[EventRecord] = []

    def append(self, record: EventRecord) -> None:
        with self._lock:
            self._records.append(record)

    def get_logs(
        self,
        *,
        app_id: Optional[int] = None,
        name: Optional[str] = None,
        from_round: Optional[int] = None,
        to_round: Optional[int] = None,
    ) -> List[EventRecord]:
        with self._lock:
            return [r for r in self._records if _matches(r, app_id, name, from_round, to_round)]

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def close(self) -> None:
        with self._lock:
            self._records.clear()


class JsonlEventSink(EventSink):
    """
    Append-only JSONL sink. Bytes fields are stored as 0x-hex, so records read
    back from disk carry hex strings where the emitter used bytes.
    """

    def __init__(self, path: str) -> None:
        self._path = path
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        self._fh = open(path, "a+", encoding="utf-8", buffering=1)
        self._lock = threading.RLock()
        self._log = logging.getLogger(__name__)

    def append(self, record: EventRecord) -> None:
        line = json.dumps(record.to_dict(), separators=(",", ":"))
        with self._lock:
            self._fh.write(line + "\n")

    def get_logs(
        self,
        *,
        app_id: Optional[int] = None,
        name: Optional[str] = None,
        from_round: Optional[int] = None,
        to_round: Optional[int] = None,
    ) -> List[EventRecord]:
        out: List[EventRecord] = []
        with self._lock:
            self._fh.flush()
            with open(self._path, "r", encoding="utf-8") as fh:
                for lineno, line in enumerate(fh, 1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        obj = json.loads(line)
                    except json.JSONDecodeError:
                        self._log.warning("skipping corrupt event line %d in %s", lineno, self._path)
                        continue
                    rec = EventRecord(
                        round=int(obj["round"]),
                        txn_id=int(obj["txn_id"]),
                        app_id=int(obj["app_id"]),
                        log_index=int(obj["log_index"]),
                        name=str(obj["name"]),
                        fields=dict(obj.get("fields") or {}),
                    )
                    if _matches(rec, app_id, name, from_round, to_round):
                        out.append(rec)
        return out

    def close(self) -> None:
        with self._lock:
            self._fh.close()


__all__ = [
    "EventRecord",
    "EventSink",
    "InMemoryEventSink",
    "JsonlEventSink",
]
