"""Mailbox address parsing (RFC 2822 section 3.4, pragmatic subset).

Two forms are recognised::

    hi@example.org
    Liu Song <hi@example.org>
"""

from __future__ import annotations

import email.utils
import re
from dataclasses import dataclass
from typing import Any

from .errors import AddressSyntaxError, AddressTypeError

_MAILBOX_RE = re.compile(r"(.+)@(.+)", re.DOTALL)
_NAME_ADDR_RE = re.compile(r"([^<]+)?<(.+)@(.+)>", re.DOTALL)


@dataclass(frozen=True)
class Address:
    """A parsed mailbox: display name, local part and domain."""

    user: str
    host: str
    name: str = ""

    @property
    def address(self) -> str:
        return f"{self.user}@{self.host}"

    def __str__(self) -> str:
        if self.name:
            return f'"{self.name}" {angle_addr(self.address)}'
        return angle_addr(self.address)


def angle_addr(address: str) -> str:
    """Wrap a bare mailbox in angle brackets."""
    return f"<{address}>"


def parse_address(address: Any) -> Address:
    """Parse ``user@host`` or ``Name <user@host>`` into an :class:`Address`.

    Raises :class:`AddressTypeError` for non-text input and
    :class:`AddressSyntaxError` when no ``@``-qualified mailbox is present.
    """
    if not isinstance(address, str):
        raise AddressTypeError(f"address must be a string, but got {address!r}")
    text = address.strip()
    if not _MAILBOX_RE.search(text):
        raise AddressSyntaxError(f"address syntax error: {address!r}", address)

    match = _NAME_ADDR_RE.fullmatch(text)
    if match:
        name, user, host = match.group(1) or "", match.group(2), match.group(3)
    else:
        match = _MAILBOX_RE.fullmatch(text)
        name = ""
        user, host = match.group(1), match.group(2)

    name = name.strip()
    if len(name) >= 2 and name[0] == name[-1] == '"':
        name = name[1:-1].strip()
    return Address(user=user.strip(), host=host.strip(), name=name)


def parse_address_list(value: str | None) -> list[Address]:
    """Parse an RFC 2822 address list into a list of :class:`Address`.

    Every entry must carry an ``@``-qualified mailbox.
    """
    if not value or not value.strip():
        return []

    addresses: list[Address] = []
    for name, addr in email.utils.getaddresses([value]):
        parsed = parse_address(addr)
        addresses.append(Address(user=parsed.user, host=parsed.host, name=name.strip()))
    return addresses
