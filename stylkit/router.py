"""Dispatch of contract calls to external methods, and contract entry points.

A :class:`Router` maps 4-byte selectors to :class:`ExternalMethod` objects,
decodes ABI-encoded arguments, calls the method and ABI-encodes its result.
Routers may inherit from other routers; methods of the inheriting router
take precedence. An :class:`Entrypoint` turns raw calldata into a status
code and output bytes, the way a deployed program answers a call.

Storage objects may provide ``borrow(name)`` to hand out the part of
themselves that a router named ``name`` works on. Without it, methods receive
the storage object itself.

Methods revert by raising an exception that provides ``to_bytes()`` or
``__bytes__``; its bytes become the revert data. Other exceptions propagate.
"""

from __future__ import annotations

import functools
import logging
import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from .abi import AbiType, function_selector, solidity_returns
from .export import GenerateAbi, underscore_if_sol
from .soltypes import Purity

log = logging.getLogger(__name__)

_WORD = re.compile(r"[A-Z]+(?![a-z])|[A-Z]?[a-z]+|[A-Z]|\d+")
_ATTR = re.compile(r"\s*([A-Za-z_][A-Za-z0-9_]*)(.*)", re.DOTALL)
_PURITY_NAMES = frozenset(str(purity) for purity in Purity)
_IDENT = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_ARG_PIECE = re.compile(r"\s*(?:(?P<word>[A-Za-z_][A-Za-z0-9_]*)|(?P<punct>\S))")


class MethodError(ValueError):
    """Raised for method or entry point declarations that are not valid."""


def resolve_purity(declared: Purity | str | None, receiver: bool | None) -> Purity:
    """Combine a declared purity with the one implied by the storage receiver.

    ``receiver`` is ``None`` when the method does not touch storage, ``False``
    for shared access and ``True`` for mutable access.
    """
    needed = Purity.PURE if receiver is None else Purity.from_mutability(bool(receiver))
    if declared is None:
        purity = needed
    elif isinstance(declared, str):
        purity = Purity.parse(declared)
    else:
        purity = Purity(declared)
    if purity == Purity.PURE and purity < needed:
        raise MethodError("pure method must not access storage")
    if purity == Purity.VIEW and purity < needed:
        raise MethodError(f"storage is &mut, but the method is {purity}")
    return purity


def sol_name(name: str) -> str:
    """Convert a method name such as ``balance_of`` to camel case (``balanceOf``)."""
    words = _WORD.findall(name)
    if not words:
        return ""
    first, *rest = words
    return first.lower() + "".join(word[:1].upper() + word[1:].lower() for word in rest)


@dataclass
class ExternalMethod:
    """A method callable from other contracts.

    ``args`` holds ``(name, type)`` pairs; a name may be ``None``.
    ``returns`` is the type of the successful result, ``None`` for no value.
    ``mutable`` is ``None`` for methods without storage, else whether the
    storage access is mutable. ``has_self`` tells whether storage is reached
    through the router's own (borrowed) storage or as the top-level storage.
    Purity attributes (``pure``, ``view``, ``write``, ``payable``) in ``attrs``
    fix the method's purity; other attributes are kept.
    """

    name: str
    func: Callable[..., Any]
    args: Sequence[tuple[str | None, AbiType]] = ()
    returns: AbiType | None = None
    mutable: bool | None = None
    has_self: bool = True
    attrs: Sequence[str] = ()
    purity: Purity = field(init=False)
    needed_purity: Purity = field(init=False)

    def __post_init__(self) -> None:
        self.args = tuple((arg_name, ty) for arg_name, ty in self.args)
        declared: Purity | None = None
        kept = []
        for attr in self.attrs:
            match = _ATTR.match(attr)
            if match is None or match.group(1) not in _PURITY_NAMES:
                kept.append(attr)
                continue
            if match.group(2).strip():
                raise MethodError("attribute does not take parameters")
            if declared is not None:
                raise MethodError("more than one purity attribute")
            declared = Purity.parse(match.group(1))
        self.attrs = tuple(kept)
        self.needed_purity = (
            Purity.PURE if self.mutable is None else Purity.from_mutability(bool(self.mutable))
        )
        self.purity = resolve_purity(declared, self.mutable)

    @property
    def sol_name(self) -> str:
        return sol_name(self.name)

    def selector(self) -> int:
        """The method's 4-byte selector as a big-endian integer."""
        digest = function_selector(self.sol_name, *(ty for _, ty in self.args))
        return int.from_bytes(digest, "big")

    def abi_line(self) -> str:
        """The method's line in an exported Solidity interface."""
        parts = [f"\n    function {self.sol_name}("]
        for index, (arg_name, ty) in enumerate(self.args):
            comma = ", " if index else ""
            parts.append(f"{comma}{ty.export_abi_arg}{underscore_if_sol(arg_name or '')}")
        parts.append(") external")
        if self.purity != Purity.WRITE:
            parts.append(f" {self.purity}")
        if self.returns is not None:
            parts.append(solidity_returns(self.returns))
        parts.append(";\n")
        return "".join(parts)


def _borrow(storage: Any, name: str) -> Any:
    borrow = getattr(storage, "borrow", None)
    return borrow(name) if callable(borrow) else storage


def _revert_data(exc: BaseException) -> bytes | None:
    to_bytes = getattr(exc, "to_bytes", None)
    if callable(to_bytes):
        return bytes(to_bytes())
    if hasattr(exc, "__bytes__"):
        return bytes(exc)
    return None


def _type_name(name: str) -> str:
    text = name.strip()
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
        raise MethodError("Can't generate ABI for unnamed type")
    return match.group(0)


class Router(GenerateAbi):
    """Routes selectors to methods, falling back to inherited routers in order."""

    def __init__(
        self,
        name: str,
        methods: Iterable[ExternalMethod],
        inherits: Iterable[Router] = (),
    ) -> None:
        self.name = name
        self.methods = tuple(methods)
        self.inherits = tuple(inherits)
        for parent in self.inherits:
            if not isinstance(parent, Router):
                raise MethodError("only routers can be inherited")
        self._by_selector: dict[int, ExternalMethod] = {}
        seen: set[str] = set()
        for method in self.methods:
            if method.name in seen:
                raise MethodError(f"duplicate method `{method.name}`")
            seen.add(method.name)
            self._by_selector.setdefault(method.selector(), method)

    @property
    def NAME(self) -> str:  # noqa: N802 - interface name required by GenerateAbi
        return _type_name(self.name)

    def route(
        self, storage: Any, selector: int, payload: bytes, value: int = 0
    ) -> tuple[bool, bytes] | None:
        """Run the method for ``selector``.

        Returns ``None`` when no router knows the selector, otherwise a pair
        of a success flag and the output or revert data.
        """
        method = self._by_selector.get(selector)
        if method is None:
            for parent in self.inherits:
                result = parent.route(storage, selector, payload, value)
                if result is not None:
                    return result
            return None
        return self._invoke(method, storage, bytes(payload), value)

    def _invoke(
        self, method: ExternalMethod, storage: Any, payload: bytes, value: int
    ) -> tuple[bool, bytes]:
        if method.purity != Purity.PAYABLE and value != 0:
            log.debug("method %s not payable", method.sol_name)
            return False, b""
        try:
            args = _decode_seq([_parse_abi(ty.abi) for _, ty in method.args], payload, 0)
        except _AbiError as err:
            log.debug("failed to decode arguments: %s", err)
            return False, b""
        call_args: list[Any] = []
        if method.needed_purity != Purity.PURE:
            call_args.append(_borrow(storage, self.name) if method.has_self else storage)
        try:
            result = method.func(*call_args, *args)
        except Exception as exc:
            data = _revert_data(exc)
            if data is None:
                raise
            return False, data
        if method.returns is None:
            return True, b""
        return True, _encode_seq([_parse_abi(method.returns.abi)], [result])

    def fmt_abi(self) -> str:
        parts = [parent.fmt_abi() + "\n" for parent in self.inherits]
        parts.append(f"interface {self.NAME}")
        if self.inherits:
            parts.append(" is " + ", ".join(parent.NAME for parent in self.inherits))
        parts.append(" {")
        parts.extend(method.abi_line() for method in self.methods)
        parts.append("}\n")
        return "".join(parts)


def parse_entrypoint_args(text: str) -> bool:
    """Parse entry point attributes such as ``allow_reentrancy = true``.

    Returns whether reentrancy is allowed; the default is ``False``.
    """
    pieces = [m.group(m.lastgroup) for m in _ARG_PIECE.finditer(text)]
    allow_reentrancy = False
    position = 0

    def take(what: str) -> str:
        nonlocal position
        if position >= len(pieces):
            raise MethodError(f"unexpected end of input, expected {what}")
        piece = pieces[position]
        position += 1
        return piece

    while position < len(pieces):
        ident = take("identifier")
        if not _IDENT.fullmatch(ident):
            raise MethodError(f"expected identifier, found `{ident}`")
        if take("`=`") != "=":
            raise MethodError("expected `=`")
        if ident != "allow_reentrancy":
            raise MethodError("Unknown entrypoint attribute")
        literal = take("boolean literal")
        if literal not in ("true", "false"):
            raise MethodError(f"expected boolean literal, found `{literal}`")
        allow_reentrancy = literal == "true"
    return allow_reentrancy


class Entrypoint:
    """The program's entry point: a router, or a plain bytes-to-bytes function."""

    def __init__(
        self,
        router: Router | Callable[[bytes], bytes],
        allow_reentrancy: bool = False,
    ) -> None:
        if not isinstance(router, Router) and not callable(router):
            raise MethodError("not a struct or fn")
        self.router = router
        self.allow_reentrancy = bool(allow_reentrancy)

    def run(
        self, storage: Any, calldata: bytes, value: int = 0, reentrant: bool = False
    ) -> tuple[int, bytes]:
        """Handle one call; returns status (0 success, 1 revert) and output data."""
        if not self.allow_reentrancy and reentrant:
            return 1, b""
        calldata = bytes(calldata)
        if isinstance(self.router, Router):
            ok, data = self._dispatch(storage, calldata, value)
        else:
            try:
                data = bytes(self.router(calldata))
                ok = True
            except Exception as exc:
                revert = _revert_data(exc)
                if revert is None:
                    raise
                ok, data = False, revert
        return (0 if ok else 1), data

    def _dispatch(self, storage: Any, calldata: bytes, value: int) -> tuple[bool, bytes]:
        if len(calldata) < 4:
            log.debug("calldata too short: %s", calldata.hex())
            return False, b""
        selector = int.from_bytes(calldata[:4], "big")
        result = self.router.route(storage, selector, calldata[4:], value)
        if result is None:
            log.debug("unknown method selector: %08x", selector)
            return False, b""
        return result


# ABI encoding and decoding


class _AbiError(ValueError):
    pass


@dataclass(frozen=True)
class _Ty:
    kind: str
    size: int = 0
    inner: _Ty | None = None
    items: tuple[_Ty, ...] = ()

    @functools.cached_property
    def dynamic(self) -> bool:
        if self.kind in ("bytes", "string", "array"):
            return True
        if self.kind == "farray":
            return self.inner.dynamic
        if self.kind == "tuple":
            return any(item.dynamic for item in self.items)
        return False

    @functools.cached_property
    def head_size(self) -> int:
        if self.dynamic:
            return 32
        if self.kind == "farray":
            return self.size * self.inner.head_size
        if self.kind == "tuple":
            return sum(item.head_size for item in self.items)
        return 32


_BASE = re.compile(r"[a-z]+\d*")
_SUFFIX = re.compile(r"\[(\d*)\]")
_SIZED = re.compile(r"(uint|int|bytes)(\d+)")


def _elementary(word: str) -> _Ty:
    if word in ("bool", "address", "string", "bytes"):
        return _Ty(word)
    match = _SIZED.fullmatch(word)
    if match is None:
        raise _AbiError(f"unknown type {word!r}")
    kind, size = match.group(1), int(match.group(2))
    if kind == "bytes":
        if not 1 <= size <= 32:
            raise _AbiError(f"invalid bytes size {size}")
        return _Ty("fixed", size=size)
    if not (8 <= size <= 256 and size % 8 == 0):
        raise _AbiError(f"invalid integer size {size}")
    return _Ty(kind, size=size)


def _parse_at(text: str, pos: int) -> tuple[_Ty, int]:
    if text.startswith("(", pos):
        pos += 1
        items = []
        if text.startswith(")", pos):
            pos += 1
        else:
            while True:
                item, pos = _parse_at(text, pos)
                items.append(item)
                if text.startswith(",", pos):
                    pos += 1
                elif text.startswith(")", pos):
                    pos += 1
                    break
                else:
                    raise _AbiError(f"malformed tuple type {text!r}")
        ty = _Ty("tuple", items=tuple(items))
    else:
        match = _BASE.match(text, pos)
        if match is None:
            raise _AbiError(f"malformed type {text!r}")
        ty = _elementary(match.group())
        pos = match.end()
    while (match := _SUFFIX.match(text, pos)) is not None:
        if match.group(1):
            ty = _Ty("farray", size=int(match.group(1)), inner=ty)
        else:
            ty = _Ty("array", inner=ty)
        pos = match.end()
    return ty, pos


@functools.lru_cache(maxsize=None)
def _parse_abi(text: str) -> _Ty:
    ty, pos = _parse_at(text, 0)
    if pos != len(text):
        raise _AbiError(f"malformed type {text!r}")
    return ty


def _word(number: int) -> bytes:
    return number.to_bytes(32, "big")


def _as_int(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"expected int, got {type(value).__name__}")
    return value


def _as_bytes(value: Any, size: int) -> bytes:
    data = bytes(value)
    if len(data) != size:
        raise ValueError(f"expected {size} bytes, got {len(data)}")
    return data


def _encode(ty: _Ty, value: Any) -> bytes:
    kind = ty.kind
    if kind == "uint":
        number = _as_int(value)
        if not 0 <= number < 1 << ty.size:
            raise ValueError(f"{number} does not fit in uint{ty.size}")
        return _word(number)
    if kind == "int":
        number = _as_int(value)
        bound = 1 << (ty.size - 1)
        if not -bound <= number < bound:
            raise ValueError(f"{number} does not fit in int{ty.size}")
        return _word(number % (1 << 256))
    if kind == "bool":
        if not isinstance(value, bool):
            raise TypeError("expected bool")
        return _word(int(value))
    if kind == "address":
        return bytes(12) + _as_bytes(value, 20)
    if kind == "fixed":
        return _as_bytes(value, ty.size) + bytes(32 - ty.size)
    if kind in ("bytes", "string"):
        if kind == "string":
            if not isinstance(value, str):
                raise TypeError("expected str")
            data = value.encode("utf-8")
        else:
            data = bytes(value)
        return _word(len(data)) + data + bytes(-len(data) % 32)
    values = list(value)
    if kind == "array":
        return _word(len(values)) + _encode_seq([ty.inner] * len(values), values)
    expected = ty.size if kind == "farray" else len(ty.items)
    if len(values) != expected:
        raise ValueError(f"expected {expected} elements, got {len(values)}")
    types = [ty.inner] * ty.size if kind == "farray" else list(ty.items)
    return _encode_seq(types, values)


def _encode_seq(types: Sequence[_Ty], values: Sequence[Any]) -> bytes:
    head_len = sum(ty.head_size for ty in types)
    heads = []
    tails = []
    tail_len = 0
    for ty, value in zip(types, values):
        encoded = _encode(ty, value)
        if ty.dynamic:
            heads.append(_word(head_len + tail_len))
            tails.append(encoded)
            tail_len += len(encoded)
        else:
            heads.append(encoded)
    return b"".join(heads) + b"".join(tails)


def _read_word(data: bytes, pos: int) -> bytes:
    if pos < 0 or pos + 32 > len(data):
        raise _AbiError("buffer overrun while decoding")
    return data[pos : pos + 32]


def _read_uint(data: bytes, pos: int) -> int:
    return int.from_bytes(_read_word(data, pos), "big")


def _decode(ty: _Ty, data: bytes, pos: int) -> Any:
    kind = ty.kind
    if kind == "uint":
        number = _read_uint(data, pos)
        if number >> ty.size:
            raise _AbiError(f"value out of range for uint{ty.size}")
        return number
    if kind == "int":
        raw = _read_uint(data, pos)
        number = raw - (1 << 256) if raw >> 255 else raw
        bound = 1 << (ty.size - 1)
        if not -bound <= number < bound:
            raise _AbiError(f"value out of range for int{ty.size}")
        return number
    if kind == "bool":
        number = _read_uint(data, pos)
        if number not in (0, 1):
            raise _AbiError("invalid boolean")
        return bool(number)
    if kind == "address":
        word = _read_word(data, pos)
        if any(word[:12]):
            raise _AbiError("dirty address padding")
        return bytes(word[12:])
    if kind == "fixed":
        word = _read_word(data, pos)
        if any(word[ty.size :]):
            raise _AbiError("dirty fixed bytes padding")
        return bytes(word[: ty.size])
    if kind in ("bytes", "string"):
        length = _read_uint(data, pos)
        start = pos + 32
        if start + length > len(data):
            raise _AbiError("buffer overrun while decoding")
        raw = bytes(data[start : start + length])
        if kind == "bytes":
            return raw
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as err:
            raise _AbiError("invalid utf-8 string") from err
    if kind == "array":
        length = _read_uint(data, pos)
        start = pos + 32
        if length > len(data) or length * ty.inner.head_size > len(data) - start:
            raise _AbiError("array length exceeds data")
        return _decode_seq([ty.inner] * length, data, start)
    if kind == "farray":
        return _decode_seq([ty.inner] * ty.size, data, pos)
    return tuple(_decode_seq(list(ty.items), data, pos))


def _decode_seq(types: Sequence[_Ty], data: bytes, base: int) -> list[Any]:
    values = []
    pos = base
    for ty in types:
        if ty.dynamic:
            offset = _read_uint(data, pos)
            if offset > len(data):
                raise _AbiError("offset out of range")
            values.append(_decode(ty, data, base + offset))
        else:
            values.append(_decode(ty, data, pos))
        pos += ty.head_size
    return values