"""Solidity ABI type descriptions, keccak hashing and function selectors."""

from __future__ import annotations

from dataclasses import dataclass

from Crypto.Hash import keccak as _keccak

from .conststring import ConstString

MAX_TUPLE_ARITY = 24


def keccak(data: bytes | bytearray | memoryview | str) -> bytes:
    """Compute the keccak256 hash of ``data``."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    hasher = _keccak.new(digest_bits=256)
    hasher.update(bytes(data))
    return hasher.digest()


def _join(*parts: ConstString | str) -> str:
    result = ConstString("")
    for part in parts:
        result = result.concat(part)
    return result.as_str()


@dataclass(frozen=True)
class AbiType:
    """How a value type is named in the ABI and in exported interfaces."""

    abi: str
    export_abi_arg: str
    export_abi_ret: str
    can_be_calldata: bool = True

    def __str__(self) -> str:
        return self.abi


def _plain(abi: str) -> AbiType:
    return AbiType(abi, abi, abi)


def _check_int(value: object, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{what} must be an int")
    return value


def _check_bits(bits: int) -> int:
    bits = _check_int(bits, "bits")
    if bits < 8 or bits > 256 or bits % 8:
        raise ValueError(f"unsupported integer width: {bits}")
    return bits


def uint(bits: int) -> AbiType:
    """Unsigned integer of ``bits`` bits (8..256, multiple of 8)."""
    bits = _check_bits(bits)
    return _plain(_join("uint", ConstString.from_decimal_number(bits)))


def int_(bits: int) -> AbiType:
    """Signed integer of ``bits`` bits (8..256, multiple of 8)."""
    bits = _check_bits(bits)
    return _plain(_join("int", ConstString.from_decimal_number(bits)))


def bool_() -> AbiType:
    return _plain("bool")


def address() -> AbiType:
    return _plain("address")


def string() -> AbiType:
    return AbiType("string", "string calldata", "string memory")


def bytes_() -> AbiType:
    """Dynamically sized byte array."""
    return AbiType("bytes", "bytes calldata", "bytes memory")


def fixed_bytes(size: int) -> AbiType:
    """Fixed-size byte array of 1..32 bytes."""
    size = _check_int(size, "size")
    if size < 1 or size > 32:
        raise ValueError(f"unsupported fixed bytes size: {size}")
    return _plain(_join("bytes", ConstString.from_decimal_number(size)))


def array(inner: AbiType) -> AbiType:
    """Dynamically sized array; never passed as calldata."""
    ret = _join(inner.abi, "[] memory")
    return AbiType(_join(inner.abi, "[]"), ret, ret, can_be_calldata=False)


def fixed_array(inner: AbiType, size: int) -> AbiType:
    """Fixed-size array of ``size`` elements."""
    size = _check_int(size, "size")
    if size < 0:
        raise ValueError("size must not be negative")
    abi = _join(inner.abi, "[", ConstString.from_decimal_number(size), "]")
    location = ConstString.select(inner.can_be_calldata, " calldata", " memory")
    return AbiType(
        abi,
        _join(abi, location),
        _join(abi, " memory"),
        can_be_calldata=inner.can_be_calldata,
    )


def tuple_(*args: AbiType) -> AbiType:
    """Tuple of up to 24 element types; the empty tuple is ``()``."""
    if not args:
        return _plain("()")
    if len(args) > MAX_TUPLE_ARITY:
        raise ValueError(f"tuples hold at most {MAX_TUPLE_ARITY} elements")
    return AbiType(
        _join("(", ",".join(a.abi for a in args), ")"),
        _join("(", ", ".join(a.export_abi_arg for a in args), ")"),
        _join("(", ", ".join(a.export_abi_ret for a in args), ")"),
        can_be_calldata=False,
    )


def digest_to_selector(digest: bytes) -> bytes:
    """Take the first four bytes of a 32-byte digest."""
    if len(digest) != 32:
        raise ValueError("digest must be 32 bytes long")
    return bytes(digest[:4])


def function_selector(name: str, *args: AbiType) -> bytes:
    """The 4-byte selector of a method with the given name and argument types."""
    signature = f"{name}({','.join(arg.abi for arg in args)})"
    return digest_to_selector(keccak(signature))


def solidity_returns(abi_type: AbiType) -> str:
    """The ``returns`` clause of an exported method returning ``abi_type``."""
    abi = abi_type.export_abi_ret
    if abi == "()":
        return ""
    if abi.startswith("("):
        return f" returns {abi}"
    return f" returns ({abi})"