"""Exception hierarchy for MIME parsing and type lookups."""

from __future__ import annotations


class MimeError(Exception):
    """Base class for every error raised by mimetree."""


class MimeSyntaxError(MimeError, ValueError):
    """Input text does not follow the expected wire syntax."""

    def __init__(self, message: str, text: str = "") -> None:
        super().__init__(message)
        self.text = text


class HeaderSyntaxError(MimeSyntaxError):
    """A header line without a ``name: value`` separator."""


class AddressSyntaxError(MimeSyntaxError):
    """An address without an ``@``-qualified mailbox."""


class AddressTypeError(MimeError, TypeError):
    """The address parser was handed something other than text."""


class UnknownTypeError(MimeError, LookupError):
    """A MIME type that is not declared in the type table."""
