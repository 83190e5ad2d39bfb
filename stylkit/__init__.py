"""Solidity ABI names, selectors, storage layout and method routing."""

__version__ = "0.1.2"