from __future__ import annotations

import pytest
from prometheus_client import CollectorRegistry

import prng_precompile
from prng_precompile.abi.encoding import encode_raw_request, encode_uint256
from prng_precompile.abi.types import RANDOM_NCSPRNG_ABI, RANDOM_PRNG_ABI
from prng_precompile.config import PrecompileConfig
from prng_precompile.errors import InvalidInputLength, WriteProtection
from prng_precompile.metrics import Metrics
from prng_precompile.precompiles import (StatefulPrecompiledContract,
                                         StatefulPrecompileFunction,
                                         create_random_precompile,
                                         pack_random_ncsprng_input,
                                         pack_random_prng_input,
                                         unpack_random_ncsprng_output)
from prng_precompile.runtime.context import AccessibleState
from prng_precompile.runtime.entropy import StaticEntropy
from prng_precompile.runtime.state import MemoryStateDB
from prng_precompile.types import UINT256_MAX

from .conftest import CALLER, CONTRACT, OTHER_CALLER, reference_values

GAS = 1024


def _run(contract, accessible, input, gas=GAS, *, caller=CALLER, read_only=False):
    return contract.run(accessible, caller, CONTRACT, input, gas, read_only)


@pytest.fixture
def typed(typed_config, metrics):
    return create_random_precompile(typed_config, metrics=metrics)


@pytest.fixture
def raw(raw_config, metrics):
    return create_random_precompile(raw_config, metrics=metrics)


# --------------------------------------------------------------------------- #
# typed layout
# --------------------------------------------------------------------------- #


def test_three_values_for_exact_gas(typed, accessible):
    res = _run(typed, accessible, pack_random_ncsprng_input(3))
    assert res.ok
    assert res.remaining_gas == 0
    values = unpack_random_ncsprng_output(res.output)
    assert values == reference_values(CONTRACT, CALLER, 0, 3)
    assert len(res.output) == 32 * 5


def test_repeated_call_is_identical(typed, accessible):
    a = _run(typed, accessible, pack_random_ncsprng_input(3))
    b = _run(typed, accessible, pack_random_ncsprng_input(3))
    assert a.output == b.output


def test_surplus_gas_is_returned(typed, accessible):
    res = _run(typed, accessible, pack_random_ncsprng_input(1), gas=5000)
    assert res.ok
    assert res.remaining_gas == 5000 - GAS


def test_one_gas_short_is_out_of_gas(typed, accessible):
    res = _run(typed, accessible, pack_random_ncsprng_input(3), gas=GAS - 1)
    assert not res.ok
    assert res.error.code == "OUT_OF_GAS"
    assert res.remaining_gas == 0
    assert res.output == b""


def test_zero_count_returns_empty_array(typed, accessible):
    res = _run(typed, accessible, pack_random_ncsprng_input(0))
    assert res.ok
    assert res.output == encode_uint256(32) + encode_uint256(0)
    assert unpack_random_ncsprng_output(res.output) == []


@pytest.mark.parametrize("payload", [b"", b"\x01", b"\x01\x02\x03"])
def test_missing_selector_keeps_all_gas(typed, accessible, payload):
    res = _run(typed, accessible, payload, gas=5000)
    assert res.error.code == "MISSING_SELECTOR"
    assert res.remaining_gas == 5000


def test_unknown_selector_keeps_all_gas(typed, accessible):
    res = _run(typed, accessible, b"\xde\xad\xbe\xef" + encode_uint256(3), gas=5000)
    assert res.error.code == "UNKNOWN_SELECTOR"
    assert res.error.data == {"selector": "0xdeadbeef"}
    assert res.remaining_gas == 5000


def test_short_arguments_after_metering(typed, accessible):
    res = _run(typed, accessible, RANDOM_NCSPRNG_ABI.selector + b"\x00" * 31, gas=5000)
    assert res.error.code == "INVALID_INPUT_LENGTH"
    assert res.remaining_gas == 5000 - GAS


def test_max_uint256_count_overflows(typed, accessible):
    res = _run(typed, accessible, RANDOM_NCSPRNG_ABI.selector + encode_uint256(UINT256_MAX), gas=5000)
    assert res.error.code == "VALUE_OVERFLOW"
    assert res.remaining_gas == 5000 - GAS
    assert res.output == b""


def test_count_above_ceiling(typed, accessible):
    res = _run(typed, accessible, pack_random_ncsprng_input(1025), gas=5000)
    assert res.error.code == "REQUEST_TOO_LARGE"
    assert res.error.data == {"n": 1025, "ceiling": 1024}
    assert res.remaining_gas == 5000 - GAS


def test_count_at_ceiling(typed_config, metrics, accessible):
    contract = create_random_precompile(typed_config.with_overrides(max_count=16), metrics=metrics)
    res = _run(contract, accessible, pack_random_ncsprng_input(16))
    assert res.ok
    assert len(unpack_random_ncsprng_output(res.output)) == 16


def test_state_nonce_feeds_the_derivation(typed, state, accessible):
    before = _run(typed, accessible, pack_random_ncsprng_input(2)).output
    state.set_nonce(CALLER, 7)
    after = _run(typed, accessible, pack_random_ncsprng_input(2))
    assert after.output != before
    assert unpack_random_ncsprng_output(after.output) == reference_values(CONTRACT, CALLER, 7, 2)
    assert state.get_nonce(CALLER) == 7


def test_callers_get_different_sequences(typed, accessible):
    a = _run(typed, accessible, pack_random_ncsprng_input(2), caller=CALLER)
    b = _run(typed, accessible, pack_random_ncsprng_input(2), caller=OTHER_CALLER)
    assert a.output != b.output


def test_read_only_call_succeeds(typed, accessible):
    res = _run(typed, accessible, pack_random_ncsprng_input(2), read_only=True)
    assert res.ok
    assert unpack_random_ncsprng_output(res.output) == reference_values(CONTRACT, CALLER, 0, 2)


def test_random_prng_is_first_value(typed, state, accessible):
    state.set_nonce(CALLER, 3)
    res = _run(typed, accessible, pack_random_prng_input())
    assert res.ok
    assert res.remaining_gas == 0
    assert int.from_bytes(res.output, "big") == reference_values(CONTRACT, CALLER, 3, 1)[0]


def test_random_prng_rejects_arguments(typed, accessible):
    res = _run(typed, accessible, RANDOM_PRNG_ABI.selector + b"\x00", gas=2000)
    assert isinstance(res.error, InvalidInputLength)
    assert res.remaining_gas == 2000 - GAS


def test_random_prng_ignores_count_ceiling(typed_config, metrics, accessible):
    contract = create_random_precompile(typed_config.with_overrides(max_count=0), metrics=metrics)
    res = _run(contract, accessible, pack_random_prng_input())
    assert res.ok
    assert int.from_bytes(res.output, "big") == reference_values(CONTRACT, CALLER, 0, 1)[0]
    capped = _run(contract, accessible, pack_random_ncsprng_input(1), gas=2000)
    assert capped.error.code == "REQUEST_TOO_LARGE"
    assert _run(contract, accessible, pack_random_ncsprng_input(0)).ok


def test_per_word_gas_scaling(typed_config, metrics, accessible):
    cfg = typed_config.with_overrides(base_gas=100, gas_per_word=10)
    contract = create_random_precompile(cfg, metrics=metrics)
    payload = pack_random_ncsprng_input(1)  # 36 bytes -> one whole word
    assert _run(contract, accessible, payload, gas=110).remaining_gas == 0
    assert _run(contract, accessible, payload, gas=109).error.code == "OUT_OF_GAS"


def test_entropy_contribution_changes_output(typed_config, metrics, accessible):
    plain = create_random_precompile(typed_config, metrics=metrics)
    mixed = create_random_precompile(typed_config, entropy=StaticEntropy(b"round-17"), metrics=metrics)
    a = _run(plain, accessible, pack_random_ncsprng_input(2))
    b = _run(mixed, accessible, pack_random_ncsprng_input(2))
    assert a.ok and b.ok
    assert a.output != b.output


# --------------------------------------------------------------------------- #
# raw layout
# --------------------------------------------------------------------------- #


def test_raw_layout_dispatch(raw, accessible):
    res = _run(raw, accessible, encode_raw_request(CALLER, 3, 7))
    assert res.ok
    assert res.remaining_gas == 0
    values = unpack_random_ncsprng_output(res.output, "raw")
    assert values == reference_values(CONTRACT, CALLER, 7, 3)
    assert len(res.output) == 32 * 4


def test_raw_layout_uses_payload_caller(raw, accessible):
    res = _run(raw, accessible, encode_raw_request(OTHER_CALLER, 2, 1), caller=CALLER)
    assert unpack_random_ncsprng_output(res.output, "raw") == reference_values(CONTRACT, OTHER_CALLER, 1, 2)


def test_raw_layout_ignores_trailing_bytes(raw, accessible):
    payload = encode_raw_request(CALLER, 2, 7)
    a = _run(raw, accessible, payload)
    b = _run(raw, accessible, payload + b"\xff" * 5)
    assert a.output == b.output


def test_raw_layout_short_payload(raw, accessible):
    res = _run(raw, accessible, encode_raw_request(CALLER, 2, 7)[:59], gas=5000)
    assert res.error.code == "INVALID_INPUT_LENGTH"
    assert res.error.data["minimum"] is True
    assert res.remaining_gas == 5000 - GAS


def test_raw_layout_has_no_selector_table(raw):
    assert raw.selectors == ()


def test_raw_layout_with_state_nonce(metrics, accessible, state):
    cfg = PrecompileConfig(layout="raw", nonce_source="state")
    contract = create_random_precompile(cfg, metrics=metrics)
    state.set_nonce(OTHER_CALLER, 11)
    state.set_nonce(CALLER, 5)
    res = _run(contract, accessible, encode_raw_request(OTHER_CALLER, 3, 7), caller=CALLER)
    assert res.ok
    values = unpack_random_ncsprng_output(res.output, "raw")
    # nonce of the payload's caller, not the payload nonce or the call's sender
    assert values == reference_values(CONTRACT, OTHER_CALLER, 11, 3)
    assert values != reference_values(CONTRACT, OTHER_CALLER, 7, 3)
    other = _run(contract, accessible, encode_raw_request(OTHER_CALLER, 3, 12345), caller=CALLER)
    assert other.output == res.output


# --------------------------------------------------------------------------- #
# dispatcher behaviour
# --------------------------------------------------------------------------- #


def _failing_writer(call):
    call.gas.consume(10)
    call.state_db.set_state(CALLER, b"\x01" * 32, b"\x02" * 32)
    call.state_db.set_nonce(CALLER, 99)
    raise InvalidInputLength(len(call.args), 0)


def test_failed_call_reverts_state(accessible, state, metrics):
    contract = StatefulPrecompiledContract(
        functions=[StatefulPrecompileFunction(b"\x00\x00\x00\x01", _failing_writer, "write")],
        metrics=metrics,
    )
    res = _run(contract, accessible, b"\x00\x00\x00\x01\xaa", gas=50)
    assert res.error.code == "INVALID_INPUT_LENGTH"
    assert res.remaining_gas == 40
    assert state.get_nonce(CALLER) == 0
    assert state.get_state(CALLER, b"\x01" * 32) == b"\x00" * 32
    assert not state.exist(CALLER)


def test_read_only_call_cannot_write(accessible, state, metrics):
    contract = StatefulPrecompiledContract(
        functions=[StatefulPrecompileFunction(b"\x00\x00\x00\x01", _failing_writer, "write")],
        metrics=metrics,
    )
    res = _run(contract, accessible, b"\x00\x00\x00\x01", gas=50, read_only=True)
    assert isinstance(res.error, WriteProtection)
    assert res.remaining_gas == 40
    assert state.get_state(CALLER, b"\x01" * 32) == b"\x00" * 32


def test_unexpected_exception_propagates_after_revert(accessible, state, metrics):
    def boom(call):
        call.state_db.set_nonce(CALLER, 5)
        raise RuntimeError("host bug")

    contract = StatefulPrecompiledContract(fallback=boom, metrics=metrics)
    with pytest.raises(RuntimeError):
        _run(contract, accessible, b"")
    assert state.get_nonce(CALLER) == 0


def test_successful_calls_release_their_snapshot(typed, state, accessible):
    for _ in range(5):
        assert _run(typed, accessible, pack_random_ncsprng_input(1)).ok
    assert state.open_snapshots == 0


def test_call_inside_outer_snapshot_keeps_it_open(accessible, state, metrics):
    def write(call):
        call.gas.consume(1)
        call.state_db.set_nonce(CALLER, 3)
        return b""

    contract = StatefulPrecompiledContract(fallback=write, metrics=metrics)
    outer = state.snapshot()
    assert _run(contract, accessible, b"").ok
    assert state.get_nonce(CALLER) == 3
    assert state.open_snapshots == 1
    # the call's write is still covered by the enclosing snapshot
    state.revert_to_snapshot(outer)
    assert state.get_nonce(CALLER) == 0


def test_failed_call_releases_its_snapshot(typed, state, accessible):
    assert _run(typed, accessible, pack_random_ncsprng_input(3), gas=1).error.code == "OUT_OF_GAS"
    assert state.open_snapshots == 0


def test_contract_rejects_duplicate_selectors():
    f = StatefulPrecompileFunction(b"\x00\x00\x00\x01", lambda call: b"", "a")
    with pytest.raises(ValueError):
        StatefulPrecompiledContract(functions=[f, f])
    with pytest.raises(ValueError):
        StatefulPrecompiledContract()
    with pytest.raises(ValueError):
        StatefulPrecompileFunction(b"\x01", lambda call: b"")


def test_result_to_dict(typed, accessible):
    ok = _run(typed, accessible, pack_random_ncsprng_input(0)).to_dict()
    assert ok["ok"] is True and ok["remainingGas"] == 0 and "error" not in ok
    bad = _run(typed, accessible, b"", gas=7).to_dict()
    assert bad["error"]["code"] == "MISSING_SELECTOR"
    assert bad["output"] == "0x"


def test_metrics_record_outcomes(typed_config, accessible):
    registry = CollectorRegistry()
    contract = create_random_precompile(typed_config, metrics=Metrics(registry=registry))
    _run(contract, accessible, pack_random_ncsprng_input(3))
    _run(contract, accessible, pack_random_ncsprng_input(3), gas=1)
    _run(contract, accessible, b"")

    def calls(outcome):
        return registry.get_sample_value("prng_precompile_calls_total", {"outcome": outcome})

    assert calls("ok") == 1
    assert calls("out_of_gas") == 1
    assert calls("missing_selector") == 1
    # ok call charged 1024, out-of-gas call consumed its single unit
    assert registry.get_sample_value("prng_precompile_gas_charged_total") == GAS + 1
    assert registry.get_sample_value("prng_precompile_values_generated_sum") == 3
    assert registry.get_sample_value("prng_precompile_values_generated_count") == 1


def test_metrics_fold_unknown_outcomes():
    registry = CollectorRegistry()
    m = Metrics(registry=registry)
    m.record_call("SOMETHING_NEW")
    m.record_call("OK")
    assert registry.get_sample_value("prng_precompile_calls_total", {"outcome": "error"}) == 1
    assert registry.get_sample_value("prng_precompile_calls_total", {"outcome": "ok"}) == 1


# --------------------------------------------------------------------------- #
# package facade
# --------------------------------------------------------------------------- #


def test_run_call_facade(typed_config):
    state = MemoryStateDB()
    res = prng_precompile.run_call(CALLER, pack_random_ncsprng_input(2), GAS, state=state, config=typed_config)
    assert res.ok
    assert unpack_random_ncsprng_output(res.output) == reference_values(CONTRACT, CALLER, 0, 2)


def test_generate_facade_matches_precompile():
    assert prng_precompile.generate(CONTRACT, CALLER, 7, 3) == reference_values(CONTRACT, CALLER, 7, 3)


def test_accessible_state_block_env_optional():
    acc = AccessibleState(state_db=MemoryStateDB())
    assert acc.get_block_env() is None
