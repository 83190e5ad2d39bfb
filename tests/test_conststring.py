import pytest

from stylkit.conststring import MAX_CONST_STRING_LENGTH, ConstString


@pytest.mark.parametrize("number", [*range(0, 101), 1000, 1001])
def test_from_decimal(number):
    assert ConstString.from_decimal_number(number).as_str() == str(number)


def test_from_decimal_rejects_negative():
    with pytest.raises(ValueError):
        ConstString.from_decimal_number(-1)


def test_new_round_trip():
    text = ConstString("uint256")
    assert text.as_str() == "uint256"
    assert text.as_bytes() == b"uint256"
    assert str(text) == "uint256"
    assert len(text) == 7


def test_empty_string():
    empty = ConstString("")
    assert len(empty) == 0
    assert empty.as_bytes() == b""


def test_concat():
    joined = ConstString("uint").concat(ConstString.from_decimal_number(8))
    assert joined == "uint8"
    assert joined == ConstString("uint8")


def test_concat_accepts_str():
    assert ConstString("bool").concat("[]").as_str() == "bool[]"


def test_concat_leaves_operands_unchanged():
    left = ConstString("ab")
    right = ConstString("cd")
    left.concat(right)
    assert left == "ab"
    assert right == "cd"


def test_select():
    assert ConstString.select(True, " calldata", " memory") == " calldata"
    assert ConstString.select(False, " calldata", " memory") == " memory"


def test_maximum_length_accepted():
    text = ConstString("a" * MAX_CONST_STRING_LENGTH)
    assert len(text) == MAX_CONST_STRING_LENGTH


def test_too_long_rejected():
    with pytest.raises(ValueError):
        ConstString("a" * (MAX_CONST_STRING_LENGTH + 1))


def test_concat_overflow_rejected():
    half = ConstString("a" * (MAX_CONST_STRING_LENGTH // 2 + 1))
    with pytest.raises(ValueError):
        half.concat(half)


def test_length_counts_utf8_bytes():
    assert len(ConstString("é")) == 2


def test_hash_matches_equality():
    assert {ConstString("x"), ConstString("x")} == {ConstString("x")}


def test_non_str_rejected():
    with pytest.raises(TypeError):
        ConstString(5)