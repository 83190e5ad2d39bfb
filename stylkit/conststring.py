"""Bounded, immutable strings used to build ABI type names."""

from __future__ import annotations

MAX_CONST_STRING_LENGTH = 1024


class ConstString:
    """A UTF-8 string whose encoded form never exceeds ``MAX_CONST_STRING_LENGTH`` bytes."""

    __slots__ = ("_data",)

    def __init__(self, text: str) -> None:
        if not isinstance(text, str):
            raise TypeError(f"expected str, got {type(text).__name__}")
        data = text.encode("utf-8")
        if len(data) > MAX_CONST_STRING_LENGTH:
            raise ValueError("out-of-bounds memcpy")
        self._data = data

    @classmethod
    def from_decimal_number(cls, number: int) -> ConstString:
        """Create the decimal representation of a non-negative integer, e.g. 42 -> "42"."""
        if isinstance(number, bool) or not isinstance(number, int):
            raise TypeError("number must be an int")
        if number < 0:
            raise ValueError("number must not be negative")
        digits = str(number)
        if len(digits) > MAX_CONST_STRING_LENGTH:
            raise ValueError("from_decimal_number: too many digits")
        return cls(digits)

    @classmethod
    def select(cls, cond: bool, true_value: str, false_value: str) -> ConstString:
        """Pick one of two strings depending on ``cond``."""
        return cls(true_value if cond else false_value)

    def concat(self, other: ConstString | str) -> ConstString:
        """Return a new string holding this one followed by ``other``."""
        if isinstance(other, str):
            other = ConstString(other)
        if not isinstance(other, ConstString):
            raise TypeError("can only concatenate ConstString or str")
        if len(self._data) + len(other._data) > MAX_CONST_STRING_LENGTH:
            raise ValueError("out-of-bounds memcpy")
        return ConstString((self._data + other._data).decode("utf-8"))

    def as_bytes(self) -> bytes:
        return self._data

    def as_str(self) -> str:
        return self._data.decode("utf-8")

    def __str__(self) -> str:
        return self.as_str()

    def __repr__(self) -> str:
        return repr(self.as_str())

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ConstString):
            return self._data == other._data
        if isinstance(other, str):
            return self.as_str() == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.as_str())