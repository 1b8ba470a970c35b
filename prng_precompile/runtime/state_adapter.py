"""
prng_precompile.runtime.state_adapter
-------------------------------------

Bridge that presents a host ledger object through the narrow `StateDB`
capability surface, so a precompile can run against the host's real state
without being coupled to its wider API.

Design goals
============
- Duck-typed: adapts to a variety of host-state shapes by probing for common
  method names.
- Narrow: only the StateDB operations are exposed; nothing else on the host
  object is reachable through the adapter.
- Reads degrade to neutral defaults when the host lacks a capability. Writes
  never degrade silently: a missing mutator raises NotImplementedError, since
  a dropped write would break snapshot/rollback.

What we look for on the provided host state
===========================================
Storage:      get_state, get_storage, read_storage / set_state, set_storage, write_storage
Nonce:        get_nonce, nonce_of / set_nonce
Balance:      get_balance, balance_of / add_balance, credit
Accounts:     create_account, ensure_account / exist, exists, account_exists, has_account
Logs:         add_log, emit_log / get_log_data
Predicates:   get_predicate_storage_slots / set_predicate_storage_slots
Tx hash:      get_tx_hash, tx_hash (method or attribute)
Journaling:   snapshot, checkpoint / revert_to_snapshot, revert_to, rollback_to
              / discard_snapshot, release_snapshot (optional)

Typical usage
=============
    from prng_precompile.runtime.state_adapter import HostStateAdapter
    state = HostStateAdapter(host_ledger)
    registry.call(address, AccessibleState(state), caller, input, gas)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Sequence, Tuple

from ..types import UINT256_MAX, WORD
from .state import ZERO_WORD

log = logging.getLogger(__name__)


def _first_call(obj: Any, candidates: List[str], *args, **kwargs):
    """Call the first present attribute name on obj; return (found, result)."""
    for name in candidates:
        fn = getattr(obj, name, None)
        if callable(fn):
            return True, fn(*args, **kwargs)
    return False, None


def _require_call(obj: Any, candidates: List[str], *args):
    ok, out = _first_call(obj, candidates, *args)
    if not ok:
        raise NotImplementedError(f"host state provides none of {candidates}")
    return out


def _as_word(out: Any) -> bytes:
    """Normalize a host word (None, int, hex string or bytes) to 32 bytes."""
    if out is None:
        return ZERO_WORD
    if isinstance(out, bool):
        raise TypeError("host returned a bool where a word was expected")
    if isinstance(out, int):
        if not 0 <= out <= UINT256_MAX:
            raise ValueError(f"host word out of uint256 range: {out}")
        return out.to_bytes(WORD, "big")
    if isinstance(out, str):
        h = out[2:] if out.startswith(("0x", "0X")) else out
        b = bytes.fromhex(h.rjust(len(h) + len(h) % 2, "0"))
    elif isinstance(out, (bytes, bytearray, memoryview)):
        b = bytes(out)
    else:
        raise TypeError(f"cannot read a word from {type(out).__name__}")
    if len(b) > WORD:
        raise ValueError(f"host word is {len(b)} bytes, expected at most {WORD}")
    return b.rjust(WORD, b"\x00")


@dataclass
class HostStateAdapter:
    """
    StateDB view over an arbitrary host ledger object.
    """

    host: Any

    # --- storage ------------------------------------------------------------

    def get_state(self, address: bytes, key: bytes) -> bytes:
        ok, out = _first_call(self.host, ["get_state", "get_storage", "read_storage"], address, key)
        return _as_word(out) if ok else ZERO_WORD

    def set_state(self, address: bytes, key: bytes, value: bytes) -> None:
        _require_call(self.host, ["set_state", "set_storage", "write_storage"], address, key, value)

    # --- accounts -----------------------------------------------------------

    def get_nonce(self, address: bytes) -> int:
        ok, out = _first_call(self.host, ["get_nonce", "nonce_of"], address)
        return int(out or 0) if ok else 0

    def set_nonce(self, address: bytes, nonce: int) -> None:
        _require_call(self.host, ["set_nonce"], address, int(nonce))

    def get_balance(self, address: bytes) -> int:
        ok, out = _first_call(self.host, ["get_balance", "balance_of"], address)
        return int(out or 0) if ok else 0

    def add_balance(self, address: bytes, amount: int) -> None:
        _require_call(self.host, ["add_balance", "credit"], address, int(amount))

    def create_account(self, address: bytes) -> None:
        _require_call(self.host, ["create_account", "ensure_account"], address)

    def exist(self, address: bytes) -> bool:
        ok, out = _first_call(self.host, ["exist", "exists", "account_exists", "has_account"], address)
        return bool(out) if ok else False

    # --- logs ---------------------------------------------------------------

    def add_log(self, address: bytes, topics: Sequence[bytes], data: bytes, block_number: int) -> None:
        _require_call(self.host, ["add_log", "emit_log"], address, list(topics), bytes(data), int(block_number))

    def get_log_data(self) -> Tuple[List[List[bytes]], List[bytes]]:
        ok, out = _first_call(self.host, ["get_log_data"])
        if not ok or out is None:
            return [], []
        topics, data = out
        return [list(t) for t in topics], [bytes(d) for d in data]

    # --- predicate slots ----------------------------------------------------

    def get_predicate_storage_slots(self, address: bytes, index: int) -> Tuple[bytes, bool]:
        ok, out = _first_call(self.host, ["get_predicate_storage_slots"], address, index)
        if not ok or out is None:
            return b"", False
        value, found = out
        return bytes(value or b""), bool(found)

    def set_predicate_storage_slots(self, address: bytes, predicates: Sequence[bytes]) -> None:
        _require_call(self.host, ["set_predicate_storage_slots"], address, [bytes(p) for p in predicates])

    # --- tx -----------------------------------------------------------------

    def get_tx_hash(self) -> bytes:
        ok, out = _first_call(self.host, ["get_tx_hash"])
        if not ok:
            out = getattr(self.host, "tx_hash", None)
        return _as_word(out)

    # --- journaling ---------------------------------------------------------

    def snapshot(self) -> int:
        return int(_require_call(self.host, ["snapshot", "checkpoint"]))

    def revert_to_snapshot(self, snapshot_id: int) -> None:
        log.debug("host_state_revert", extra={"snapshot": snapshot_id})
        _require_call(self.host, ["revert_to_snapshot", "revert_to", "rollback_to"], int(snapshot_id))

    def discard_snapshot(self, snapshot_id: int) -> None:
        # hosts without a release hook manage snapshot lifetimes themselves
        _first_call(self.host, ["discard_snapshot", "release_snapshot"], int(snapshot_id))


__all__ = ["HostStateAdapter"]
