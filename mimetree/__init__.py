"""mimetree: incremental MIME message parser and serializer.

Public API re-exported here for convenience::

    from mimetree import Entity, Header, parse_address, lookup
"""

from .address import Address, angle_addr, parse_address, parse_address_list
from .config import MimeSettings, get_settings
from .entity import Entity, EntityEvent, ParseState, make_boundary
from .errors import (
    AddressSyntaxError,
    AddressTypeError,
    HeaderSyntaxError,
    MimeError,
    MimeSyntaxError,
    UnknownTypeError,
)
from .header import CRLF, Header, parse_headers
from .logging import setup_logging
from .types import TypeRecord, TypeRegistry, extension, lookup

__all__ = [
    "CRLF",
    "Address",
    "AddressSyntaxError",
    "AddressTypeError",
    "Entity",
    "EntityEvent",
    "Header",
    "HeaderSyntaxError",
    "MimeError",
    "MimeSettings",
    "MimeSyntaxError",
    "ParseState",
    "TypeRecord",
    "TypeRegistry",
    "UnknownTypeError",
    "angle_addr",
    "extension",
    "get_settings",
    "lookup",
    "make_boundary",
    "parse_address",
    "parse_address_list",
    "parse_headers",
    "setup_logging",
]
