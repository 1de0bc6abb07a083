"""MIME entity: the incremental parser, the tree node and the serializer.

An :class:`Entity` is fed raw text through :meth:`Entity.write` and
finalized with :meth:`Entity.end`.  Every write re-evaluates the whole
accumulated buffer, so the resulting tree does not depend on how the
input was chunked.
"""

from __future__ import annotations

import secrets
import time
from collections.abc import Callable, Iterable, Iterator, Mapping
from enum import Enum
from typing import Any

from .config import get_settings
from .header import CRLF, Header, HeaderValue, coerce_headers, parse_headers
from .logging import get_logger

logger = get_logger(__name__)

Body = str | list["Entity"] | None
Listener = Callable[..., Any]

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


class ParseState(str, Enum):
    """Where the parser is in the entity. Transitions only HEADER -> BODY."""

    HEADER = "header"
    BODY = "body"


class EntityEvent(str, Enum):
    """Notifications emitted during an entity's lifecycle.

    Callback signatures:

    * ``HEADERS`` -- ``callback(headers)``
    * ``BODY`` -- ``callback(body)``
    * ``END`` -- ``callback(headers, body, entity)``
    """

    HEADERS = "headers"
    BODY = "body"
    END = "end"


def _base36(number: int) -> str:
    digits = []
    while True:
        number, rem = divmod(number, 36)
        digits.append(_BASE36[rem])
        if not number:
            return "".join(reversed(digits))


def make_boundary() -> str:
    """Return a boundary token built from the clock and a random value."""
    return _base36(time.time_ns()) + _base36(secrets.randbits(40))


def normalize_newlines(text: str) -> str:
    return text.replace(CRLF, "\n").replace("\n", CRLF)


class Entity:
    """A node in a MIME tree.

    ``body`` is text for a leaf entity and a list of child entities for a
    multipart one; which of the two applies follows from the
    ``Content-Type`` header seen while parsing.
    """

    def __init__(
        self,
        headers: Iterable[Any] | Mapping[str, HeaderValue] | None = None,
        body: Body = None,
    ) -> None:
        self.headers: list[Header] = coerce_headers(headers)
        self.body: Body = body
        self.state = ParseState.HEADER if body is None else ParseState.BODY
        self._buffer = ""
        self._closed = False
        self._listeners: dict[EntityEvent, list[Listener]] = {event: [] for event in EntityEvent}

    @classmethod
    def parse(cls, text: str) -> Entity:
        """Parse a complete message in one call."""
        return cls().end(text)

    def __repr__(self) -> str:
        if isinstance(self.body, list):
            body = f"parts={len(self.body)}"
        else:
            body = f"body_length={len(self.body or '')}"
        return f"<Entity state={self.state.value} headers={len(self.headers)} {body}>"

    def __str__(self) -> str:
        return self.to_string()

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def subscribe(self, event: EntityEvent | str, callback: Listener) -> Listener:
        """Register *callback* for *event*; returns the callback."""
        self._listeners[EntityEvent(event)].append(callback)
        return callback

    def unsubscribe(self, event: EntityEvent | str, callback: Listener) -> None:
        self._listeners[EntityEvent(event)].remove(callback)

    def _emit(self, event: EntityEvent, *args: Any) -> None:
        for callback in list(self._listeners[event]):
            callback(*args)

    # ------------------------------------------------------------------
    # Headers
    # ------------------------------------------------------------------

    def add_header(
        self,
        header: Header | str,
        value: HeaderValue = None,
        options: Mapping[str, str] | None = None,
    ) -> Entity:
        if not isinstance(header, Header):
            header = Header(header, value, options or {})
        self.headers.append(header)
        return self

    def get_header(self, name: str) -> Header | None:
        """Return the first header called *name* (case-insensitive)."""
        for header in self.headers:
            if header.matches(name):
                return header
        return None

    @property
    def boundary(self) -> str | None:
        """The multipart boundary declared by ``Content-Type``, if any."""
        content_type = self.get_header("content-type")
        if content_type is None:
            return None
        primary = content_type.primary or ""
        if not primary.lower().startswith("multipart/"):
            return None
        for key, value in content_type.options.items():
            if key.lower() == "boundary" and value:
                return value
        return None

    @property
    def is_multipart(self) -> bool:
        return self.boundary is not None

    @property
    def complete(self) -> bool:
        """Whether the body is fully delimited.

        A leaf is complete once its headers are parsed; a multipart body
        needs its closing delimiter.
        """
        if self.state is ParseState.HEADER:
            return False
        if isinstance(self.body, list) and self.is_multipart:
            return self._closed
        return True

    def walk(self) -> Iterator[Entity]:
        """Yield this entity and all descendants, depth first."""
        yield self
        if isinstance(self.body, list):
            for part in self.body:
                yield from part.walk()

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    def write(self, chunk: str) -> Entity:
        """Append *chunk* and re-evaluate the accumulated text."""
        self._buffer = normalize_newlines(self._buffer + chunk)

        if self.state is ParseState.HEADER:
            separator = self._find_separator()
            if separator < 0:
                return self
            self.headers = parse_headers(self._buffer[:separator])
            self.state = ParseState.BODY
            self._buffer = self._buffer[separator:]
            self._emit(EntityEvent.HEADERS, self.headers)

        boundary = self.boundary
        if boundary is None:
            self.body = self._buffer.strip()
        else:
            self.body, self._closed = self._split_parts(boundary)
        return self

    def end(self, chunk: str | None = None) -> Entity:
        """Optionally write a final *chunk*, then notify listeners.

        Safe to call repeatedly; later calls re-notify with the current
        state and change nothing.
        """
        if chunk:
            self.write(chunk)
        self._finish()
        logger.debug(
            "entity_finalized",
            state=self.state.value,
            headers=len(self.headers),
            parts=len(self.body) if isinstance(self.body, list) else 0,
            complete=self.complete,
        )
        return self

    def _finish(self) -> Entity:
        # Notification only; child parts are finalized through here.
        self._emit(EntityEvent.BODY, self.body)
        self._emit(EntityEvent.END, self.headers, self.body, self)
        return self

    def _find_separator(self) -> int:
        # An entity whose text opens with the blank line has no headers.
        if self._buffer.startswith(CRLF):
            return 0
        return self._buffer.find(CRLF + CRLF)

    def _split_parts(self, boundary: str) -> tuple[list[Entity], bool]:
        delimiter = f"--{boundary}"
        terminator = f"--{boundary}--"
        parts: list[Entity] = []
        current: Entity | None = None

        for line in self._buffer.split(CRLF):
            if line == terminator:
                if current is not None:
                    parts.append(current._finish())
                return parts, True
            if line == delimiter:
                if current is not None:
                    parts.append(current._finish())
                current = Entity()
            elif current is not None:
                current.write(line + CRLF)

        # No closing delimiter yet: expose what has arrived so far.
        if current is not None:
            parts.append(current._finish())
        return parts, False

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_string(self, *, subtype: str | None = None) -> str:
        """Render the entity to wire format.

        A multipart body gets a fresh boundary.  The boundary header is
        rendered into the output only; ``self.headers`` is left untouched.
        """
        if not isinstance(self.body, list):
            out = [str(header) + CRLF for header in self.headers]
            out.append(CRLF)
            out.append(self.body or "")
            out.append(CRLF)
            return "".join(out)

        rendered = [part.to_string(subtype=subtype) for part in self.body]
        boundary = make_boundary()
        while any(f"--{boundary}" in part for part in rendered):
            boundary = make_boundary()

        out = [str(header) + CRLF for header in self._output_headers(boundary, subtype)]
        out.append(CRLF)
        for part in rendered:
            out.append(f"--{boundary}{CRLF}")
            out.append(part)
        out.append(f"--{boundary}--{CRLF}")
        return "".join(out)

    def _output_headers(self, boundary: str, subtype: str | None) -> list[Header]:
        content_type = self.get_header("content-type")
        if content_type is None:
            subtype = subtype or get_settings().multipart_subtype
            return [
                *self.headers,
                Header("Content-Type", f"multipart/{subtype}", {"boundary": boundary}),
            ]

        primary = content_type.primary or ""
        if primary.lower().startswith("multipart/"):
            options = {k: v for k, v in content_type.options.items() if k.lower() != "boundary"}
            replacement = content_type.replace(options={**options, "boundary": boundary})
        else:
            subtype = subtype or get_settings().multipart_subtype
            replacement = content_type.replace(
                value=f"multipart/{subtype}",
                options={"boundary": boundary},
            )
        return [replacement if header is content_type else header for header in self.headers]
