"""Method purity and Solidity type descriptions for generated interfaces."""

from __future__ import annotations

import enum
import re
from collections import deque
from dataclasses import dataclass

SOL_DATA_PATH = "stylus_sdk::alloy_sol_types::sol_data::"

_LEXEME = re.compile(r"\s*(?:(?P<num>\d+)|(?P<word>[A-Za-z_$][A-Za-z0-9_$.]*)|(?P<punct>\S))")
_INTEGER = re.compile(r"(u?int)(\d*)")
_FIXED_BYTES = re.compile(r"bytes(\d+)")


class Purity(enum.IntEnum):
    """How much of the chain state a method may touch, from least to most."""

    PURE = 0
    VIEW = 1
    WRITE = 2
    PAYABLE = 3

    @classmethod
    def parse(cls, text: str) -> Purity:
        """Parse the lower-case attribute name of a purity."""
        for purity in cls:
            if str(purity) == text:
                return purity
        raise ValueError(f"unknown purity: {text!r}")

    @classmethod
    def from_mutability(cls, mutable: bool) -> Purity:
        """Purity implied by a storage receiver: mutable means write, shared means view."""
        return cls.WRITE if mutable else cls.VIEW

    def __str__(self) -> str:
        return self.name.lower()

    def __format__(self, spec: str) -> str:
        return format(str(self), spec)


class UnsupportedTypeError(ValueError):
    """Raised for Solidity types that have no generated counterpart."""


@dataclass(frozen=True)
class SolType:
    """A parsed Solidity type.

    ``kind`` is one of bool, address, string, bytes, fixed_bytes, uint, int,
    array, tuple or custom.
    """

    kind: str
    size: int | None = None
    inner: SolType | None = None
    items: tuple[SolType, ...] = ()
    name: str = ""

    def __str__(self) -> str:
        if self.kind in ("uint", "int"):
            return self.kind if self.size is None else f"{self.kind}{self.size}"
        if self.kind == "fixed_bytes":
            return f"bytes{self.size}"
        if self.kind == "array":
            size = "" if self.size is None else str(self.size)
            return f"{self.inner}[{size}]"
        if self.kind == "tuple":
            return "(" + ",".join(str(item) for item in self.items) + ")"
        if self.kind == "custom":
            return self.name
        return self.kind


def _split_pieces(text: str) -> list[str]:
    pieces = []
    pos = 0
    while (match := _LEXEME.match(text, pos)) is not None and match.end() > pos:
        pieces.append(match.group(match.lastgroup))
        pos = match.end()
    return pieces


def _sized(digits: str, valid, what: str) -> int:
    size = int(digits)
    if not valid(size):
        raise ValueError(f"invalid {what} size: {size}")
    return size


class _TypeParser:
    def __init__(self, text: str) -> None:
        self._pieces = deque(_split_pieces(text))

    def peek(self) -> str | None:
        return self._pieces[0] if self._pieces else None

    def take(self) -> str:
        if not self._pieces:
            raise ValueError("unexpected end of type")
        return self._pieces.popleft()

    def expect(self, piece: str) -> None:
        found = self.take()
        if found != piece:
            raise ValueError(f"expected {piece!r}, found {found!r}")

    def finish(self) -> None:
        if self._pieces:
            raise ValueError(f"unexpected token {self._pieces[0]!r}")

    def parse_type(self) -> SolType:
        ty = self._base()
        while self.peek() == "[":
            self.take()
            size = None
            if self.peek() != "]":
                digits = self.take()
                if not digits.isdigit():
                    raise ValueError(f"invalid array size: {digits!r}")
                size = int(digits)
            self.expect("]")
            ty = SolType("array", size=size, inner=ty)
        return ty

    def _base(self) -> SolType:
        piece = self.take()
        if piece == "(":
            return self._tuple()
        if not (piece[0].isalpha() or piece[0] in "_$"):
            raise ValueError(f"unexpected token {piece!r}")
        return self._elementary(piece)

    def _tuple(self) -> SolType:
        if self.peek() == ")":
            self.take()
            return SolType("tuple")
        items = []
        while True:
            items.append(self.parse_type())
            separator = self.take()
            if separator == ")":
                return SolType("tuple", items=tuple(items))
            if separator != ",":
                raise ValueError(f"expected ',' or ')', found {separator!r}")

    def _elementary(self, word: str) -> SolType:
        if word in ("bool", "string", "bytes"):
            return SolType(word)
        if word == "address":
            if self.peek() == "payable":
                self.take()
            return SolType("address")
        if match := _INTEGER.fullmatch(word):
            kind, digits = match.groups()
            if not digits:
                return SolType(kind)
            size = _sized(digits, lambda n: 8 <= n <= 256 and n % 8 == 0, "integer")
            return SolType(kind, size=size)
        if match := _FIXED_BYTES.fullmatch(word):
            return SolType("fixed_bytes", size=_sized(match.group(1), lambda n: 1 <= n <= 32, "bytes"))
        return SolType("custom", name=word)


def parse_sol_type(text: str) -> SolType:
    """Parse a Solidity type such as ``uint256[]`` or ``(bool,address)``."""
    parser = _TypeParser(text)
    ty = parser.parse_type()
    parser.finish()
    return ty


_SIMPLE = {
    "bool": ("Bool", "bool"),
    "address": ("Address", "address"),
    "string": ("String", "string"),
    "bytes": ("Bytes", "bytes"),
}


def solidity_type_info(ty: SolType) -> tuple[str, str]:
    """Return the generated-code path and the ABI name of a Solidity type."""
    if ty.kind in _SIMPLE:
        name, abi = _SIMPLE[ty.kind]
        return SOL_DATA_PATH + name, abi
    if ty.kind == "fixed_bytes":
        return f"{SOL_DATA_PATH}FixedBytes<{ty.size}>", f"bytes[{ty.size}]"
    if ty.kind in ("uint", "int"):
        size = 256 if ty.size is None else ty.size
        return f"{SOL_DATA_PATH}{ty.kind.capitalize()}<{size}>", f"{ty.kind}{size}"
    if ty.kind == "array":
        path, abi = solidity_type_info(ty.inner)
        if ty.size is None:
            return f"{SOL_DATA_PATH}Array<{path}>", f"{abi}[]"
        return f"{SOL_DATA_PATH}FixedArray<{path}, {ty.size}>", f"{abi}[{ty.size}]"
    if ty.kind == "tuple":
        if not ty.items:
            return "()", "()"
        if len(ty.items) == 1:
            return solidity_type_info(ty.items[0])
        infos = [solidity_type_info(item) for item in ty.items]
        path = "(" + ", ".join(p for p, _ in infos) + ")"
        abi = "(" + ",".join(a for _, a in infos) + ")"
        return path, abi
    raise UnsupportedTypeError(f"Solidity type {ty} is not yet implemented")