"""
prng_precompile.runtime.state — the narrow state capability surface.

A precompile never sees the host ledger directly. It gets an object that
implements `StateDB`, exactly the operations below, so it cannot reach
unrelated ledger internals:

  storage     get_state / set_state            (address, 32-byte key) -> 32-byte value
  accounts    get_nonce / set_nonce, get_balance / add_balance,
              create_account / exist
  logs        add_log / get_log_data
  predicates  get_predicate_storage_slots / set_predicate_storage_slots
  tx          get_tx_hash
  journaling  snapshot() -> int, revert_to_snapshot(int)
              (optional) discard_snapshot(int)

Every mutation participates in snapshot/rollback. `ReadOnlyStateDB` wraps any
implementation and rejects every mutation with WriteProtection; that is the
view handed out for static calls, and the only view the random generator ever
receives.

`MemoryStateDB` is a deterministic in-memory implementation backed by an undo
journal. Hosts plug their own ledger in through `state_adapter`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, Sequence, Set, Tuple, runtime_checkable

from ..errors import WriteProtection
from ..types import ADDRESS_LEN, UINT256_MAX, UINT64_MAX, WORD

ZERO_WORD = b"\x00" * WORD


def _b(x: bytes | bytearray | memoryview, *, name: str, size: Optional[int] = None) -> bytes:
    if not isinstance(x, (bytes, bytearray, memoryview)):
        raise TypeError(f"{name} must be bytes-like")
    out = bytes(x)
    if size is not None and len(out) != size:
        raise ValueError(f"{name} must be {size} bytes, got {len(out)}")
    return out


def _addr(x: bytes | bytearray | memoryview) -> bytes:
    return _b(x, name="address", size=ADDRESS_LEN)


def _word(x: bytes | bytearray | memoryview, name: str) -> bytes:
    return _b(x, name=name, size=WORD)


@dataclass(frozen=True)
class LogEntry:
    address: bytes
    topics: Tuple[bytes, ...]
    data: bytes
    block_number: int


@runtime_checkable
class StateDB(Protocol):
    def get_state(self, address: bytes, key: bytes) -> bytes: ...
    def set_state(self, address: bytes, key: bytes, value: bytes) -> None: ...

    def get_nonce(self, address: bytes) -> int: ...
    def set_nonce(self, address: bytes, nonce: int) -> None: ...

    def get_balance(self, address: bytes) -> int: ...
    def add_balance(self, address: bytes, amount: int) -> None: ...

    def create_account(self, address: bytes) -> None: ...
    def exist(self, address: bytes) -> bool: ...

    def add_log(self, address: bytes, topics: Sequence[bytes], data: bytes, block_number: int) -> None: ...
    def get_log_data(self) -> Tuple[List[List[bytes]], List[bytes]]: ...

    def get_predicate_storage_slots(self, address: bytes, index: int) -> Tuple[bytes, bool]: ...
    def set_predicate_storage_slots(self, address: bytes, predicates: Sequence[bytes]) -> None: ...

    def get_tx_hash(self) -> bytes: ...

    def snapshot(self) -> int: ...
    def revert_to_snapshot(self, snapshot_id: int) -> None: ...


# Names of the StateDB operations that mutate ledger contents.
MUTATING_OPS = (
    "set_state",
    "set_nonce",
    "add_balance",
    "create_account",
    "add_log",
    "set_predicate_storage_slots",
)


# =============================================================================
# In-memory implementation
# =============================================================================


@dataclass
class _Account:
    nonce: int = 0
    balance: int = 0


class MemoryStateDB:
    """
    Deterministic in-memory StateDB with an undo journal.

    Each mutation made while a snapshot is open appends an undo record
    holding the previous value.
    `snapshot()` returns an id marking the current journal length;
    `revert_to_snapshot(id)` replays undo records back to that mark and
    invalidates every later snapshot. `discard_snapshot(id)` keeps the
    changes and releases the same snapshots; once none is open the journal
    is dropped.

    Notes
    -----
    - Unknown accounts read as nonce 0, balance 0, and do not `exist()`.
    - Writing a nonce or balance creates the account implicitly.
    - `create_account` on an existing account is a no-op.
    """

    def __init__(self, *, tx_hash: bytes = ZERO_WORD) -> None:
        self._tx_hash = _word(tx_hash, "tx_hash")
        self._accounts: Dict[bytes, _Account] = {}
        self._storage: Dict[bytes, Dict[bytes, bytes]] = {}
        self._logs: List[LogEntry] = []
        self._predicates: Dict[bytes, List[bytes]] = {}
        self._journal: List[tuple] = []
        self._snapshots: List[int] = []

    # --- storage ------------------------------------------------------------

    def get_state(self, address: bytes, key: bytes) -> bytes:
        slots = self._storage.get(_addr(address), {})
        return slots.get(_word(key, "key"), ZERO_WORD)

    def set_state(self, address: bytes, key: bytes, value: bytes) -> None:
        a, k, v = _addr(address), _word(key, "key"), _word(value, "value")
        slots = self._storage.setdefault(a, {})
        self._record(("storage", a, k, slots.get(k)))
        slots[k] = v

    # --- accounts -----------------------------------------------------------

    def _account_for_write(self, address: bytes) -> _Account:
        acc = self._accounts.get(address)
        self._record(("account", address, None if acc is None else _Account(acc.nonce, acc.balance)))
        if acc is None:
            acc = self._accounts[address] = _Account()
        return acc

    def get_nonce(self, address: bytes) -> int:
        acc = self._accounts.get(_addr(address))
        return acc.nonce if acc else 0

    def set_nonce(self, address: bytes, nonce: int) -> None:
        if not isinstance(nonce, int) or not 0 <= nonce <= UINT64_MAX:
            raise ValueError(f"nonce must be a u64, got {nonce!r}")
        self._account_for_write(_addr(address)).nonce = nonce

    def get_balance(self, address: bytes) -> int:
        acc = self._accounts.get(_addr(address))
        return acc.balance if acc else 0

    def add_balance(self, address: bytes, amount: int) -> None:
        if not isinstance(amount, int) or amount < 0:
            raise ValueError(f"amount must be a non-negative int, got {amount!r}")
        a = _addr(address)
        if self.get_balance(a) + amount > UINT256_MAX:
            raise ValueError("balance overflows uint256")
        self._account_for_write(a).balance += amount

    def create_account(self, address: bytes) -> None:
        a = _addr(address)
        if a not in self._accounts:
            self._account_for_write(a)

    def exist(self, address: bytes) -> bool:
        return _addr(address) in self._accounts

    # --- logs ---------------------------------------------------------------

    def add_log(self, address: bytes, topics: Sequence[bytes], data: bytes, block_number: int) -> None:
        entry = LogEntry(
            address=_addr(address),
            topics=tuple(_word(t, "topic") for t in topics),
            data=_b(data, name="data"),
            block_number=int(block_number),
        )
        self._record(("log",))
        self._logs.append(entry)

    def get_log_data(self) -> Tuple[List[List[bytes]], List[bytes]]:
        return [list(e.topics) for e in self._logs], [e.data for e in self._logs]

    @property
    def logs(self) -> Tuple[LogEntry, ...]:
        return tuple(self._logs)

    # --- predicate slots ----------------------------------------------------

    def get_predicate_storage_slots(self, address: bytes, index: int) -> Tuple[bytes, bool]:
        slots = self._predicates.get(_addr(address))
        if slots is None or not 0 <= index < len(slots):
            return b"", False
        return slots[index], True

    def set_predicate_storage_slots(self, address: bytes, predicates: Sequence[bytes]) -> None:
        a = _addr(address)
        self._record(("predicates", a, self._predicates.get(a)))
        self._predicates[a] = [_b(p, name="predicate") for p in predicates]

    # --- tx -----------------------------------------------------------------

    def get_tx_hash(self) -> bytes:
        return self._tx_hash

    # --- journaling ---------------------------------------------------------

    def snapshot(self) -> int:
        self._snapshots.append(len(self._journal))
        return len(self._snapshots) - 1

    def revert_to_snapshot(self, snapshot_id: int) -> None:
        self._check_snapshot(snapshot_id)
        mark = self._snapshots[snapshot_id]
        while len(self._journal) > mark:
            self._undo(self._journal.pop())
        self._drop_snapshots(snapshot_id)

    def discard_snapshot(self, snapshot_id: int) -> None:
        """Keep every change since `snapshot_id` and release it and all later snapshots."""
        self._check_snapshot(snapshot_id)
        self._drop_snapshots(snapshot_id)

    @property
    def open_snapshots(self) -> int:
        return len(self._snapshots)

    def _check_snapshot(self, snapshot_id: int) -> None:
        if not 0 <= snapshot_id < len(self._snapshots):
            raise ValueError(f"snapshot id {snapshot_id} is not open")

    def _drop_snapshots(self, snapshot_id: int) -> None:
        del self._snapshots[snapshot_id:]
        # undo records are only needed while some snapshot can still revert them
        if not self._snapshots:
            self._journal.clear()

    def _record(self, rec: tuple) -> None:
        if self._snapshots:
            self._journal.append(rec)

    def _undo(self, rec: tuple) -> None:
        kind = rec[0]
        if kind == "storage":
            _, a, k, prev = rec
            if prev is None:
                self._storage[a].pop(k, None)
            else:
                self._storage[a][k] = prev
        elif kind == "account":
            _, a, prev = rec
            if prev is None:
                self._accounts.pop(a, None)
            else:
                self._accounts[a] = prev
        elif kind == "log":
            self._logs.pop()
        elif kind == "predicates":
            _, a, prev = rec
            if prev is None:
                self._predicates.pop(a, None)
            else:
                self._predicates[a] = prev


# =============================================================================
# Read-only view
# =============================================================================


class ReadOnlyStateDB:
    """
    StateDB view that forwards reads and rejects every mutation.

    The view may take snapshots and revert to (or discard) the ones it took
    itself; nothing changes inside them, so that changes no ledger contents.
    Reverting to any other snapshot would undo writes made outside the view
    and raises WriteProtection.
    """

    __slots__ = ("_inner", "_own")

    def __init__(self, inner: StateDB) -> None:
        self._inner = inner
        self._own: Set[int] = set()

    @property
    def inner(self) -> StateDB:
        return self._inner

    def get_state(self, address: bytes, key: bytes) -> bytes:
        return self._inner.get_state(address, key)

    def get_nonce(self, address: bytes) -> int:
        return self._inner.get_nonce(address)

    def get_balance(self, address: bytes) -> int:
        return self._inner.get_balance(address)

    def exist(self, address: bytes) -> bool:
        return self._inner.exist(address)

    def get_log_data(self) -> Tuple[List[List[bytes]], List[bytes]]:
        return self._inner.get_log_data()

    def get_predicate_storage_slots(self, address: bytes, index: int) -> Tuple[bytes, bool]:
        return self._inner.get_predicate_storage_slots(address, index)

    def get_tx_hash(self) -> bytes:
        return self._inner.get_tx_hash()

    def snapshot(self) -> int:
        snapshot_id = self._inner.snapshot()
        self._own.add(snapshot_id)
        return snapshot_id

    def revert_to_snapshot(self, snapshot_id: int) -> None:
        self._release(snapshot_id, "revert_to_snapshot")
        self._inner.revert_to_snapshot(snapshot_id)

    def discard_snapshot(self, snapshot_id: int) -> None:
        self._release(snapshot_id, "discard_snapshot")
        release = getattr(self._inner, "discard_snapshot", None)
        if callable(release):
            release(snapshot_id)

    def _release(self, snapshot_id: int, op: str) -> None:
        if snapshot_id not in self._own:
            raise WriteProtection(op)
        self._own = {s for s in self._own if s < snapshot_id}

    def set_state(self, address: bytes, key: bytes, value: bytes) -> None:
        raise WriteProtection("set_state")

    def set_nonce(self, address: bytes, nonce: int) -> None:
        raise WriteProtection("set_nonce")

    def add_balance(self, address: bytes, amount: int) -> None:
        raise WriteProtection("add_balance")

    def create_account(self, address: bytes) -> None:
        raise WriteProtection("create_account")

    def add_log(self, address: bytes, topics: Sequence[bytes], data: bytes, block_number: int) -> None:
        raise WriteProtection("add_log")

    def set_predicate_storage_slots(self, address: bytes, predicates: Sequence[bytes]) -> None:
        raise WriteProtection("set_predicate_storage_slots")


def guard(state: StateDB, read_only: bool) -> StateDB:
    """Return `state` itself, or a read-only view of it for static calls."""
    if read_only and not isinstance(state, ReadOnlyStateDB):
        return ReadOnlyStateDB(state)
    return state


__all__ = [
    "ZERO_WORD",
    "LogEntry",
    "StateDB",
    "MUTATING_OPS",
    "MemoryStateDB",
    "ReadOnlyStateDB",
    "guard",
]
