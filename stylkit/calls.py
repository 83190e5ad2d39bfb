"""Call contexts for invoking other contracts, and the errors such calls produce."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .abi import function_selector, uint

log = logging.getLogger(__name__)

U64_MAX = (1 << 64) - 1
U256_MAX = (1 << 256) - 1

# Panic code for a generic compiler-inserted panic.
PANIC_GENERIC = 0x00


def _check_range(value: object, upper: int, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{what} must be an int")
    if not 0 <= value <= upper:
        raise ValueError(f"{what} out of range: {value}")
    return value


@dataclass(frozen=True, init=False)
class Context:
    """Configuration of a call to another contract.

    A context without storage and without value makes static calls only.
    Attaching storage with :meth:`mutate` allows mutating calls; attaching
    value with :meth:`with_value`, even a zero amount, rules out calls to
    non-payable methods.
    """

    gas: int
    value: int
    storage: Any
    has_value: bool

    def __init__(self, gas: int = U64_MAX, value: int | None = None, storage: Any = None) -> None:
        object.__setattr__(self, "gas", _check_range(gas, U64_MAX, "gas"))
        has_value = value is not None
        amount = _check_range(value, U256_MAX, "value") if has_value else 0
        object.__setattr__(self, "value", amount)
        object.__setattr__(self, "storage", storage)
        object.__setattr__(self, "has_value", has_value)

    def _attached_value(self) -> int | None:
        return self.value if self.has_value else None

    def mutate(self, storage: Any) -> Context:
        """Attach top-level storage so that mutating methods can be called.

        Mutation prevents calls to ``pure`` and ``view`` methods.
        """
        if storage is None:
            raise ValueError("mutating calls require storage")
        return Context(self.gas, self._attached_value(), storage)

    def with_gas(self, gas: int) -> Context:
        """Set the gas to supply; the host clips it to the gas remaining."""
        return Context(gas, self._attached_value(), self.storage)

    def with_value(self, value: int) -> Context:
        """Set the amount of wei to send; this prevents calls to non-payable methods."""
        return Context(self.gas, value, self.storage)

    def is_static(self) -> bool:
        """Whether the context can call ``pure`` and ``view`` methods."""
        return self.storage is None and not self.has_value

    def is_non_payable(self) -> bool:
        """Whether the context can call ``write`` methods that accept no value."""
        return self.storage is not None and not self.has_value


def panic_generic() -> bytes:
    """Revert data of a generic ``Panic(uint256)`` error."""
    return function_selector("Panic", uint(256)) + PANIC_GENERIC.to_bytes(32, "big")


class CallError(Exception):
    """A call to another contract failed."""

    def to_bytes(self) -> bytes:
        """The data to revert with when this error is passed on."""
        raise NotImplementedError

    def __bytes__(self) -> bytes:
        return self.to_bytes()


class Revert(CallError):
    """The called contract reverted with ``data``."""

    def __init__(self, data: bytes = b"") -> None:
        self.data = bytes(data)
        super().__init__(self.data)

    def to_bytes(self) -> bytes:
        return self.data

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Revert):
            return self.data == other.data
        return NotImplemented

    def __hash__(self) -> int:
        return hash((Revert, self.data))


class AbiDecodingFailed(CallError):
    """The called contract's return data could not be decoded."""

    def __init__(self, error: object) -> None:
        self.error = error
        super().__init__(error)

    def to_bytes(self) -> bytes:
        log.debug("failed to decode return data from external call: %s", self.error)
        return panic_generic()

    def __eq__(self, other: object) -> bool:
        if isinstance(other, AbiDecodingFailed):
            return str(self.error) == str(other.error)
        return NotImplemented

    def __hash__(self) -> int:
        return hash((AbiDecodingFailed, str(self.error)))