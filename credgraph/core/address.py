"""Hierarchical addresses for nodes and edges.

An address is an ordered sequence of string parts. It is stored as a plain
``str``: a one-character nonce naming the address space, followed by every
part terminated by ``"\\0"``. With that encoding

- string ordering equals lexicographic ordering over the parts,
- prefix matching over parts is ``str.startswith``,
- node and edge addresses can never collide (different nonce).

Addresses are hashable and cheap to compare, so they are used directly as
dictionary keys throughout the package.
"""

from __future__ import annotations

import json
from collections.abc import Iterable

__all__ = [
    "AddressModule",
    "EdgeAddress",
    "NodeAddress",
    "SEPARATOR",
]

SEPARATOR = "\0"


class AddressModule:
    """Operations for one address space.

    Parameters
    ----------
    name : str
        Human-readable name of the address kind, e.g. ``"NodeAddress"``.
    nonce : str
        Single character that prefixes every address of this kind.
    other_nonces : dict[str, str], optional
        ``nonce -> name`` of sibling spaces, used to produce friendlier
        error messages when an address of the wrong kind is passed in.
    """

    def __init__(self, name: str, nonce: str, other_nonces: dict[str, str] | None = None):
        if len(nonce) != 1 or nonce == SEPARATOR:
            raise ValueError(f"invalid nonce: {nonce!r}")
        self.name = name
        self.nonce = nonce
        self._other_nonces = dict(other_nonces or {})
        self.empty = nonce + SEPARATOR

    def __repr__(self) -> str:
        return f"<AddressModule {self.name}>"

    # Validation

    def is_valid(self, address) -> bool:
        return (
            isinstance(address, str)
            and address.startswith(self.empty)
            and address.endswith(SEPARATOR)
        )

    def assert_valid(self, address, what: str | None = None) -> None:
        """Raise if ``address`` is not an address of this space.

        Raises
        ------
        TypeError
            If ``address`` is not a string.
        ValueError
            If it belongs to another space or is malformed.
        """
        prefix = f"{what}: " if what else ""
        if not isinstance(address, str):
            raise TypeError(f"{prefix}expected {self.name}, got {type(address).__name__}")
        if address.startswith(self.empty) and address.endswith(SEPARATOR):
            return
        if address[:1] in self._other_nonces and address[1:2] == SEPARATOR:
            raise ValueError(
                f"{prefix}expected {self.name}, got {self._other_nonces[address[:1]]}: "
                f"{address!r}"
            )
        raise ValueError(f"{prefix}expected {self.name}, got: {address!r}")

    def assert_valid_parts(self, parts: Iterable[str]) -> None:
        for part in parts:
            if not isinstance(part, str):
                raise TypeError(f"{self.name} parts must be strings, got {type(part).__name__}")
            if SEPARATOR in part:
                raise ValueError(f"{self.name} part contains NUL character: {part!r}")

    # Construction / inspection

    def from_parts(self, parts: Iterable[str]) -> str:
        parts = list(parts)
        self.assert_valid_parts(parts)
        return self.empty + "".join(part + SEPARATOR for part in parts)

    def to_parts(self, address: str) -> list[str]:
        self.assert_valid(address)
        body = address[len(self.empty):]
        if not body:
            return []
        return body[:-1].split(SEPARATOR)

    def to_string(self, address: str) -> str:
        return f"{self.name}{json.dumps(self.to_parts(address))}"

    def append(self, address: str, *parts: str) -> str:
        self.assert_valid(address)
        self.assert_valid_parts(parts)
        return address + "".join(part + SEPARATOR for part in parts)

    def has_prefix(self, address: str, prefix: str) -> bool:
        self.assert_valid(address)
        self.assert_valid(prefix, what="prefix")
        return address.startswith(prefix)


NodeAddress = AddressModule("NodeAddress", "N", other_nonces={"E": "EdgeAddress"})
EdgeAddress = AddressModule("EdgeAddress", "E", other_nonces={"N": "NodeAddress"})
