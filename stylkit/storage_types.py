"""Parsing of Solidity-style storage declarations into storage type paths."""

from __future__ import annotations

import re
from collections import deque
from dataclasses import dataclass
from typing import NamedTuple

STORAGE_PATH = "stylus_sdk::storage::"
PRIMITIVES_PATH = "stylus_sdk::alloy_primitives::"

_UINT = re.compile(r"^uint(\d+)$")
_INT = re.compile(r"^int(\d+)$")
_BYTES = re.compile(r"^bytes(\d+)$")
_LOWER = re.compile(r"^[0-9a-z]+$")
_IDENT = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_LEXER = re.compile(
    r"""
    (?P<ws>\s+)
    |(?P<doc>///(?!/)[^\n]*)
    |(?P<comment>//[^\n]*|/\*.*?\*/)
    |(?P<str>"(?:\\.|[^"\\])*")
    |(?P<word>[A-Za-z_][A-Za-z0-9_]*)
    |(?P<num>\d+)
    |(?P<lifetime>'[A-Za-z_][A-Za-z0-9_]*)
    |(?P<punct>::|=>|->|\S)
    """,
    re.VERBOSE | re.DOTALL,
)

_CLOSERS = {"(": ")", "[": "]", "{": "}"}


class StorageTypeError(ValueError):
    """Raised for storage declarations that cannot be stored."""


@dataclass(frozen=True)
class SolidityField:
    attrs: tuple[str, ...]
    name: str
    ty: str


@dataclass(frozen=True)
class SolidityStruct:
    attrs: tuple[str, ...]
    vis: str
    name: str
    generics: str
    fields: tuple[SolidityField, ...]


class _Lexeme(NamedTuple):
    kind: str
    text: str


def _sized(name: str) -> tuple[str, int] | None:
    for kind, pattern in (("uint", _UINT), ("int", _INT), ("bytes", _BYTES)):
        if match := pattern.match(name):
            size = int(match.group(1))
            limit, unit = (32, "bytes") if kind == "bytes" else (256, "bits")
            if size > limit:
                raise StorageTypeError(f"Type not supported: too many {unit}")
            return kind, size
    return None


def _limbs(bits: int) -> int:
    return (63 + bits) // 64


def primitive(name: str) -> str:
    """Map a Solidity value type to its storage type path.

    Anything that is not a single identifier is returned unchanged.
    """
    name = name.strip()
    if not _IDENT.match(name):
        return name
    if sized := _sized(name):
        kind, size = sized
        if kind == "uint":
            return f"{STORAGE_PATH}StorageUint<{size}, {_limbs(size)}>"
        if kind == "int":
            return f"{STORAGE_PATH}StorageSigned<{size}, {_limbs(size)}>"
        return f"{STORAGE_PATH}StorageFixedBytes<{size}>"
    simple = {
        "address": "StorageAddress",
        "bool": "StorageBool",
        "bytes": "StorageBytes",
        "int": "StorageI256",
        "string": "StorageString",
        "uint": "StorageU256",
    }
    if name in simple:
        return STORAGE_PATH + simple[name]
    if _LOWER.match(name):
        raise StorageTypeError("Type not supported")
    return name


def primitive_key(name: str) -> str:
    """Map a Solidity value type to the key type of a storage mapping."""
    name = name.strip()
    if not _IDENT.match(name):
        return name
    if sized := _sized(name):
        kind, size = sized
        if kind == "uint":
            return f"{PRIMITIVES_PATH}Uint<{size}, {_limbs(size)}>"
        if kind == "int":
            return f"{PRIMITIVES_PATH}Signed<{size}, {_limbs(size)}>"
        return f"{PRIMITIVES_PATH}FixedBytes<{size}>"
    if name == "bytes":
        return "Vec<u8>"
    if name == "string":
        return "String"
    simple = {"address": "Address", "bool": "U8", "int": "I256", "uint": "U256"}
    if name in simple:
        return PRIMITIVES_PATH + simple[name]
    if _LOWER.match(name):
        raise StorageTypeError("Type not supported")
    return name


def _lex(source: str) -> deque[_Lexeme]:
    lexemes: deque[_Lexeme] = deque()
    for match in _LEXER.finditer(source):
        kind = match.lastgroup
        if kind in ("ws", "comment"):
            continue
        text = match.group(kind)
        if kind == "doc":
            text = text[3:]
        lexemes.append(_Lexeme(kind, text))
    return lexemes


def _wordy(text: str) -> bool:
    return text[0].isalnum() or text[0] in "_\"'"


def _render(texts: list[str]) -> str:
    out = []
    prev = None
    for text in texts:
        if prev is not None and (
            (_wordy(prev) and _wordy(text)) or text in ("=", "=>") or prev in (",", "=", "=>")
        ):
            out.append(" ")
        out.append(text)
        prev = text
    return "".join(out)


class _Parser:
    def __init__(self, source: str) -> None:
        self._lexemes = _lex(source)

    def at_end(self) -> bool:
        return not self._lexemes

    def peek(self) -> str | None:
        return self._lexemes[0].text if self._lexemes else None

    def take(self) -> _Lexeme:
        if not self._lexemes:
            raise StorageTypeError("unexpected end of input")
        return self._lexemes.popleft()

    def expect(self, text: str) -> None:
        lexeme = self.take()
        if lexeme.text != text or lexeme.kind == "doc":
            raise StorageTypeError(f"expected `{text}`, found `{lexeme.text}`")

    def word(self) -> str:
        lexeme = self.take()
        if lexeme.kind != "word":
            raise StorageTypeError(f"expected identifier, found `{lexeme.text}`")
        return lexeme.text

    def finish(self) -> None:
        if self._lexemes:
            raise StorageTypeError(f"unexpected `{self._lexemes[0].text}`")

    def _group(self, opener: str) -> list[str]:
        """Collect the lexemes up to the closer matching an already consumed opener."""
        stack = [_CLOSERS[opener]]
        collected = []
        while True:
            lexeme = self.take()
            if lexeme.text in _CLOSERS:
                stack.append(_CLOSERS[lexeme.text])
            elif lexeme.text in (")", "]", "}"):
                if lexeme.text != stack.pop():
                    raise StorageTypeError(f"unbalanced `{lexeme.text}`")
                if not stack:
                    return collected
            collected.append(lexeme.text)

    def _angle(self) -> str:
        self.expect("<")
        depth = 1
        collected = ["<"]
        while depth:
            lexeme = self.take()
            if lexeme.text == "<":
                depth += 1
            elif lexeme.text == ">":
                depth -= 1
            collected.append(lexeme.text)
        return _render(collected)

    def path(self) -> str:
        parts = []
        if self.peek() == "::":
            self.take()
            parts.append("::")
        while True:
            parts.append(self.word())
            if self.peek() == "<":
                parts.append(self._angle())
            if self.peek() != "::":
                return "".join(parts)
            self.take()
            parts.append("::")

    def attrs(self) -> tuple[str, ...]:
        found = []
        while self._lexemes:
            lexeme = self._lexemes[0]
            if lexeme.kind == "doc":
                self.take()
                found.append(f'doc = "{lexeme.text}"')
            elif lexeme.text == "#":
                self.take()
                self.expect("[")
                found.append(_render(self._group("[")))
            else:
                break
        return tuple(found)

    def vis(self) -> str:
        if self.peek() != "pub":
            return ""
        self.take()
        if self.peek() == "(" and len(self._lexemes) > 1 and self._lexemes[1].text in (
            "crate",
            "self",
            "super",
            "in",
        ):
            self.take()
            return "pub(" + _render(self._group("(")) + ")"
        return "pub"

    def storage_type(self) -> str:
        start = self.path()
        if start == "mapping":
            self.expect("(")
            key = primitive_key(self.path())
            self.expect("=>")
            value = self.storage_type()
            self.expect(")")
            path = f"{STORAGE_PATH}StorageMap<{key}, {value}>"
        else:
            path = primitive(start)
        while self.peek() == "[":
            self.take()
            self._group("[")
            path = f"{STORAGE_PATH}StorageVec<{path}>"
        return path

    def structure(self) -> SolidityStruct:
        attrs = self.attrs()
        vis = self.vis()
        self.expect("struct")
        name = self.word()
        generics = self._angle() if self.peek() == "<" else ""
        self.expect("{")
        fields = []
        while self.peek() != "}":
            field_attrs = self.attrs()
            ty = self.storage_type()
            fields.append(SolidityField(field_attrs, self.word(), ty))
            if self.peek() == ";":
                self.take()
            elif self.peek() != "}":
                raise StorageTypeError(f"expected `;` or `}}`, found `{self.peek()}`")
        self.expect("}")
        return SolidityStruct(attrs, vis, name, generics, tuple(fields))


def parse_storage_type(text: str) -> str:
    """Translate a Solidity storage type, including mappings and arrays, to a storage path."""
    parser = _Parser(text)
    path = parser.storage_type()
    parser.finish()
    return path


def parse_sol_storage(source: str) -> list[SolidityStruct]:
    """Parse a sequence of Solidity-style struct declarations."""
    parser = _Parser(source)
    structs = []
    while not parser.at_end():
        structs.append(parser.structure())
    return structs