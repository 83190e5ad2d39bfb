"""Assignment of storage struct fields to storage slots."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from .storage_types import StorageTypeError

WORD_BYTES = 32

_PATH_START = re.compile(r"^(?:::)?([A-Za-z_][A-Za-z0-9_]*)")
_IDENT = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_ATTR = re.compile(
    r"\s*((?:::)?[A-Za-z_][A-Za-z0-9_]*(?:::[A-Za-z_][A-Za-z0-9_]*)*)\s*(.*)", re.DOTALL
)

_NATIVE_INTS = frozenset(
    "u8 u16 u32 u64 u128 i8 i16 i32 i64 i128 U8 U16 U32 U64 U128 I8 I16 I32 I64 I128".split()
)


@dataclass(frozen=True)
class StorageField:
    """A struct field with the storage footprint of its type."""

    name: str | None
    type_name: str
    slot_bytes: int = WORD_BYTES
    required_slots: int = 1
    attrs: tuple[str, ...] = field(default_factory=tuple)

    @property
    def borrowed(self) -> bool:
        """Whether the field carries a parameterless ``borrow`` attribute."""
        found = False
        for attr in self.attrs:
            match = _ATTR.match(attr)
            if match is None or match.group(1) != "borrow":
                continue
            if match.group(2).strip():
                raise StorageTypeError("borrow attribute does not take parameters")
            found = True
        return found


@dataclass(frozen=True)
class FieldPlacement:
    """Where a field lives: a slot relative to the struct root and a byte offset in it."""

    name: str
    type_name: str
    slot: int
    offset: int
    borrowed: bool


def _last_segment(text: str) -> str:
    depth = 0
    start = 0
    for position, char in enumerate(text):
        if char == "<":
            depth += 1
        elif char == ">":
            depth -= 1
        elif depth == 0 and text.startswith("::", position):
            start = position + 2
    match = _IDENT.match(text, start)
    if match is None:
        raise StorageTypeError("Type not supported for EVM state storage")
    return match.group(0)


def check_field_type(type_name: str) -> str:
    """Reject types that cannot live in storage; return the type's final name."""
    text = type_name.strip()
    start = _PATH_START.match(text)
    if start is None or start.group(1) in ("dyn", "impl", "fn"):
        raise StorageTypeError("Type not supported for EVM state storage")
    name = _last_segment(text)
    not_supported = f"Type `{name}` not supported for EVM state storage"
    if name in _NATIVE_INTS:
        raise StorageTypeError(f"{not_supported}. Instead try `Storage{name.upper()}`.")
    if name in ("usize", "isize"):
        raise StorageTypeError(f"{not_supported}.")
    if name == "bool":
        raise StorageTypeError(f"{not_supported}. Instead try `StorageBool`.")
    if name in ("f32", "f64"):
        raise StorageTypeError(f"{not_supported}. Consider fixed-point arithmetic.")
    return name


def _named(fields: list[StorageField]) -> list[StorageField]:
    for item in fields:
        check_field_type(item.type_name)
        item.borrowed  # validates borrow attributes
    return [item for item in fields if item.name is not None]


def required_slots(fields: list[StorageField]) -> int:
    """The number of slots a struct with these fields reserves."""
    total = 0
    space = WORD_BYTES
    for item in _named(list(fields)):
        if item.required_slots > 0:
            total += item.required_slots
            space = WORD_BYTES
        else:
            if space < item.slot_bytes:
                space = WORD_BYTES
                total += 1
            space -= item.slot_bytes
    if space != WORD_BYTES or total == 0:
        total += 1
    return total


def place_fields(fields: list[StorageField]) -> list[FieldPlacement]:
    """Assign each named field a slot and a byte offset, packing small values."""
    placements = []
    space = WORD_BYTES
    slot = 0
    for item in _named(list(fields)):
        if space < item.slot_bytes:
            space = WORD_BYTES
            slot += 1
        space -= item.slot_bytes
        placements.append(FieldPlacement(item.name, item.type_name, slot, space, item.borrowed))
        if item.required_slots > 0:
            slot += item.required_slots
            space = WORD_BYTES
    return placements


def erase_order(fields: list[StorageField]) -> list[str]:
    """Accessors of the fields in the order they are erased."""
    return [str(index) if item.name is None else item.name for index, item in enumerate(fields)]