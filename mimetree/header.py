"""Structured header lines: ``Name: value[; key=value]*``."""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from .errors import HeaderSyntaxError

CRLF = "\r\n"

HeaderValue = str | tuple[str, ...] | None

_FOLD_RE = re.compile(r"\r\n[ \t]+")
_PARAM_RE = re.compile(r"^(.+?)=(.*)$", re.DOTALL)
_NEEDS_QUOTES_RE = re.compile(r'[\s;"]')
_ESCAPE_RE = re.compile(r"\\(.)", re.DOTALL)


def _split_segments(text: str) -> Iterator[str]:
    """Split on ``;`` outside double quotes, yielding stripped non-empty segments."""
    start = 0
    quoted = False
    escaped = False
    for i, char in enumerate(text):
        if escaped:
            escaped = False
        elif char == "\\" and quoted:
            escaped = True
        elif char == '"':
            quoted = not quoted
        elif char == ";" and not quoted:
            segment = text[start:i].strip()
            if segment:
                yield segment
            start = i + 1
    segment = text[start:].strip()
    if segment:
        yield segment


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return _ESCAPE_RE.sub(r"\1", value[1:-1])
    if value.startswith('"'):
        value = value[1:]
    if value.endswith('"'):
        value = value[:-1]
    return value


def _quote(value: str) -> str:
    if value and not _NEEDS_QUOTES_RE.search(value):
        return value
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


@dataclass(frozen=True)
class Header:
    """One header line.

    ``value`` holds the unnamed tokens of the line: a single string, a tuple
    when several appear, or ``None`` when the line only carries parameters.
    ``options`` is a read-only mapping of parameter keys to unquoted values.
    """

    name: str
    value: HeaderValue = None
    options: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise HeaderSyntaxError("header name must not be empty", self.name or "")
        if isinstance(self.value, list):
            object.__setattr__(self, "value", tuple(self.value))
        object.__setattr__(self, "options", MappingProxyType(dict(self.options or {})))

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def parse(cls, line: str) -> Header:
        """Parse a single unfolded header line.

        Raises :class:`HeaderSyntaxError` when the line has no ``:``.
        """
        name, sep, rest = line.partition(":")
        if not sep:
            raise HeaderSyntaxError(f"header syntax error: {line!r}", line)
        name = name.strip()
        if not name:
            raise HeaderSyntaxError(f"header syntax error: {line!r}", line)

        tokens: list[str] = []
        options: dict[str, str] = {}
        for segment in _split_segments(rest.strip()):
            match = _PARAM_RE.match(segment)
            if match:
                options[match.group(1).strip()] = _unquote(match.group(2).strip())
            else:
                tokens.append(segment)

        value: HeaderValue
        if not tokens:
            value = None
        elif len(tokens) == 1:
            value = tokens[0]
        else:
            value = tuple(tokens)
        return cls(name, value, options)

    @classmethod
    def coerce(cls, init: Any) -> Header:
        """Build a header from a ``Header``, a raw line, or a ``(name, value[, options])`` tuple."""
        if isinstance(init, Header):
            return init
        if isinstance(init, str):
            return cls.parse(init)
        return cls(*init)

    def replace(self, **changes: Any) -> Header:
        values = {"name": self.name, "value": self.value, "options": self.options}
        values.update(changes)
        return Header(**values)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def primary(self) -> str | None:
        """First unnamed token of the line."""
        if isinstance(self.value, tuple):
            return self.value[0] if self.value else None
        return self.value

    def matches(self, name: str) -> bool:
        return self.name.lower() == name.lower()

    def __str__(self) -> str:
        parts: list[str] = []
        if isinstance(self.value, tuple):
            parts.extend(self.value)
        elif self.value is not None:
            parts.append(str(self.value))
        parts.extend(f"{key}={_quote(val)}" for key, val in self.options.items())
        return f"{self.name}: " + "; ".join(parts)


def parse_headers(block: str) -> list[Header]:
    """Parse a CRLF-delimited header block.

    Continuation lines are joined to the previous line and blank lines are
    dropped.  A malformed line aborts the whole block.
    """
    unfolded = _FOLD_RE.sub(" ", block)
    return [Header.parse(line) for line in unfolded.split(CRLF) if line.strip()]


def coerce_headers(init: Iterable[Any] | Mapping[str, Any] | None) -> list[Header]:
    """Normalize a headers initializer into a list of :class:`Header`."""
    if init is None:
        return []
    if isinstance(init, Mapping):
        return [Header(name, value) for name, value in init.items()]
    return [Header.coerce(item) for item in init]
