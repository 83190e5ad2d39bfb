import pytest

from stylkit.layout import (
    FieldPlacement,
    StorageField,
    check_field_type,
    erase_order,
    place_fields,
    required_slots,
)
from stylkit.storage_types import StorageTypeError


def word(name, **kwargs):
    return StorageField(name, "StorageU256", 32, 1, **kwargs)


def byte(name):
    return StorageField(name, "StorageU8", 1, 0)


@pytest.mark.parametrize(
    "type_name,message",
    [("u8", "Instead try `StorageU8`."), ("I128", "Instead try `StorageI128`."),
     ("core::primitive::u32", "Instead try `StorageU32`."), ("bool", "Instead try `StorageBool`."),
     ("f64", "Consider fixed-point arithmetic."), ("usize", "Type `usize` not supported"),
     ("&u8", "Type not supported for EVM state storage"),
     ("[u8; 4]", "Type not supported for EVM state storage")],
)
def test_check_field_type_rejects(type_name, message):
    with pytest.raises(StorageTypeError, match=message.replace("(", r"\(").replace("[", r"\[")):
        check_field_type(type_name)


def test_check_field_type_returns_last_segment():
    assert check_field_type("stylus_sdk::storage::StorageU256") == "StorageU256"
    assert check_field_type("Erc20<WethParams>") == "Erc20"
    assert check_field_type("a::StorageMap<b::Key, c::Value>") == "StorageMap"


def test_required_slots_of_empty_struct():
    assert required_slots([]) == 1


def test_required_slots_grow_with_words():
    one = required_slots([word("a")])
    two = required_slots([word("a"), word("b")])
    assert two > one


def test_packed_bytes_share_a_slot():
    full = [byte(f"b{n}") for n in range(32)]
    assert required_slots(full) == required_slots([byte("a")])
    assert required_slots(full + [byte("extra")]) > required_slots(full)


def test_words_get_distinct_slots():
    placements = place_fields([word("a"), word("b"), word("c")])
    slots = [p.slot for p in placements]
    assert slots == sorted(set(slots))
    assert {p.offset for p in placements} == {0}


def test_bytes_pack_downwards():
    placements = place_fields([byte(f"b{n}") for n in range(10)])
    assert {p.slot for p in placements} == {placements[0].slot}
    offsets = [p.offset for p in placements]
    assert offsets == sorted(offsets, reverse=True)
    assert len(set(offsets)) == len(offsets)
    assert all(0 <= offset < 32 for offset in offsets)


def test_bytes_overflow_into_next_slot():
    placements = place_fields([byte(f"b{n}") for n in range(33)])
    assert placements[-1].slot == placements[0].slot + 1
    assert sum(p.slot == placements[0].slot for p in placements) == 32


def test_field_after_word_starts_new_slot():
    first, second = place_fields([word("a"), byte("b")])
    assert second.slot > first.slot


def test_unnamed_fields_are_skipped():
    fields = [word("a"), StorageField(None, "StorageU256"), word("b")]
    assert [p.name for p in place_fields(fields)] == ["a", "b"]
    assert required_slots(fields) == required_slots([word("a"), word("b")])


def test_placement_carries_borrow():
    placements = place_fields([word("a"), word("erc20", attrs=("borrow",))])
    assert [p.borrowed for p in placements] == [False, True]
    assert isinstance(placements[1], FieldPlacement) and placements[1].type_name == "StorageU256"


@pytest.mark.parametrize("attr", ["borrow(x)", "borrow = true"])
def test_borrow_with_parameters_fails(attr):
    with pytest.raises(StorageTypeError, match="borrow attribute does not take parameters"):
        place_fields([word("a", attrs=(attr,))])


def test_invalid_field_type_fails_placement():
    with pytest.raises(StorageTypeError, match="StorageU8"):
        place_fields([StorageField("x", "u8", 1, 0)])
    with pytest.raises(StorageTypeError):
        required_slots([StorageField("y", "f32", 4, 0)])


def test_erase_order():
    assert erase_order([word("total"), byte("flag"), word("owner")]) == ["total", "flag", "owner"]
    assert erase_order([StorageField(None, "StorageU256"), word("x")]) == ["0", "x"]