"""Printing Solidity interfaces for contracts."""

from __future__ import annotations

import re
import sys
from abc import ABC, abstractmethod
from typing import TextIO

_UINT = re.compile(r"^uint(\d+)$")
_INT = re.compile(r"^int(\d+)$")
_BYTES = re.compile(r"^bytes(\d+)$")

_RESERVED = frozenset(
    {
        # other types
        "address", "bool", "int", "uint",
        # other words
        "is", "contract", "interface",
        # reserved keywords
        "after", "alias", "apply", "auto", "byte", "case", "copyof", "default",
        "define", "final", "implements", "in", "inline", "let", "macro", "match",
        "mutable", "null", "of", "partial", "promise", "reference", "relocatable",
        "sealed", "sizeof", "static", "supports", "switch", "typedef", "typeof", "var",
    }
)

_HEADER = (
    "/**\n"
    " * This file was automatically generated and represents a Stylus program.\n"
    " */\n"
    "\n"
)


class GenerateAbi(ABC):
    """A contract able to describe itself as a Solidity interface."""

    NAME: str = ""

    @abstractmethod
    def fmt_abi(self) -> str:
        """Return the Solidity interface text."""

    def __str__(self) -> str:
        return self.fmt_abi()


def _is_sol_word(name: str) -> bool:
    if (match := _UINT.match(name) or _INT.match(name)) and int(match.group(1)) % 8 == 0:
        return True
    if (match := _BYTES.match(name)) and int(match.group(1)) <= 32:
        return True
    return name in _RESERVED


def underscore_if_sol(name: str) -> str:
    """Prefix ``name`` with a space, plus an underscore if it is a Solidity keyword.

    The empty string stays empty.
    """
    if not name:
        return ""
    if _is_sol_word(name):
        return f" _{name}"
    return f" {name}"


def print_abi(contract: GenerateAbi, out: TextIO | None = None) -> None:
    """Write the contract's full interface, preceded by a header comment."""
    stream = sys.stdout if out is None else out
    stream.write(_HEADER)
    stream.write(contract.fmt_abi())