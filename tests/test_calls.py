import dataclasses

import pytest

from stylkit.abi import function_selector, uint
from stylkit.calls import (
    U64_MAX,
    AbiDecodingFailed,
    CallError,
    Context,
    Revert,
    panic_generic,
)


class _Storage:
    pass


def test_default_context_is_static_with_all_gas():
    ctx = Context()
    assert ctx.gas == 2**64 - 1
    assert ctx.value == 0
    assert ctx.storage is None
    assert ctx.is_static() is True
    assert ctx.is_non_payable() is False


def test_with_gas_keeps_static():
    ctx = Context().with_gas(1000)
    assert ctx.gas == 1000
    assert ctx.is_static() is True


def test_with_value_is_neither_static_nor_non_payable():
    ctx = Context().with_value(7)
    assert ctx.value == 7
    assert ctx.has_value is True
    assert ctx.is_static() is False
    assert ctx.is_non_payable() is False


def test_zero_value_still_counts_as_value():
    ctx = Context().mutate(_Storage()).with_value(0)
    assert ctx.has_value is True
    assert ctx.is_non_payable() is False


def test_mutate_makes_non_payable_context():
    storage = _Storage()
    ctx = Context().with_gas(50).mutate(storage)
    assert ctx.storage is storage
    assert ctx.gas == 50
    assert ctx.is_static() is False
    assert ctx.is_non_payable() is True


def test_mutate_preserves_value():
    ctx = Context().with_value(3).mutate(_Storage())
    assert ctx.value == 3
    assert ctx.has_value is True
    assert ctx.is_non_payable() is False


def test_with_gas_preserves_value_and_storage():
    storage = _Storage()
    ctx = Context().mutate(storage).with_value(9).with_gas(12)
    assert (ctx.gas, ctx.value, ctx.storage, ctx.has_value) == (12, 9, storage, True)


def test_mutate_requires_storage():
    with pytest.raises(ValueError):
        Context().mutate(None)


@pytest.mark.parametrize("gas", [-1, U64_MAX + 1])
def test_gas_out_of_range(gas):
    with pytest.raises(ValueError):
        Context().with_gas(gas)


def test_value_out_of_range():
    with pytest.raises(ValueError):
        Context().with_value(1 << 256)


def test_gas_must_be_int():
    with pytest.raises(TypeError):
        Context(gas=True)


def test_context_is_immutable():
    ctx = Context()
    with pytest.raises(dataclasses.FrozenInstanceError):
        ctx.gas = 5
    assert ctx.with_gas(5).gas == 5
    assert ctx.gas == U64_MAX


def test_panic_generic_layout():
    data = panic_generic()
    assert len(data) == 36
    assert data[:4] == bytes.fromhex("4e487b71")
    assert data[:4] == function_selector("Panic", uint(256))
    assert data[4:] == bytes(32)


def test_revert_to_bytes_returns_data():
    err = Revert(b"\x01\x02")
    assert err.to_bytes() == b"\x01\x02"
    assert bytes(err) == b"\x01\x02"


def test_revert_is_call_error():
    with pytest.raises(CallError) as info:
        raise Revert(b"oops")
    assert info.value == Revert(b"oops")
    assert info.value.to_bytes() == b"oops"


def test_abi_decoding_failed_reverts_with_panic():
    err = AbiDecodingFailed("buffer overrun")
    assert err.to_bytes() == panic_generic()
    assert err.error == "buffer overrun"
    assert err == AbiDecodingFailed("buffer overrun")


def test_errors_of_different_kinds_differ():
    assert (Revert(b"") == AbiDecodingFailed("x")) is False