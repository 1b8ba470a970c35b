from __future__ import annotations

import hashlib
import hmac

import pytest
from Crypto.Hash import keccak
from prometheus_client import CollectorRegistry

from prng_precompile.config import PrecompileConfig
from prng_precompile.metrics import Metrics
from prng_precompile.runtime.context import AccessibleState
from prng_precompile.runtime.state import MemoryStateDB

CONTRACT = bytes.fromhex("0000000000000000000000000000000000069420")
CALLER = bytes.fromhex("abcd" + "00" * 17 + "01")
OTHER_CALLER = bytes.fromhex("abcd" + "00" * 17 + "02")


def reference_keccak(data: bytes) -> bytes:
    h = keccak.new(digest_bits=256)
    h.update(data)
    return h.digest()


def reference_values(contract: bytes, caller: bytes, nonce: int, n: int) -> list:
    """Straight-line derivation used to cross-check the package's wiring."""
    server = reference_keccak(contract)
    user = reference_keccak(caller + server)
    out = []
    for i in range(n):
        msg = user + nonce.to_bytes(8, "big") + i.to_bytes(8, "big")
        out.append(int.from_bytes(hmac.new(server, msg, hashlib.sha256).digest(), "big"))
    return out


@pytest.fixture
def metrics() -> Metrics:
    return Metrics(registry=CollectorRegistry())


@pytest.fixture
def state() -> MemoryStateDB:
    return MemoryStateDB()


@pytest.fixture
def accessible(state: MemoryStateDB) -> AccessibleState:
    return AccessibleState(state_db=state)


@pytest.fixture
def typed_config() -> PrecompileConfig:
    return PrecompileConfig()


@pytest.fixture
def raw_config() -> PrecompileConfig:
    return PrecompileConfig(layout="raw", nonce_source="payload")
