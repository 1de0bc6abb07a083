"""Shared test fixtures for the mimetree test suite."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
import structlog

from mimetree.config import get_settings
from mimetree.types import TypeRegistry, _default_registry

CRLF = "\r\n"


@pytest.fixture(autouse=True)
def _reset_cached_settings():
    get_settings.cache_clear()
    _default_registry.cache_clear()
    yield
    get_settings.cache_clear()
    _default_registry.cache_clear()


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    structlog.reset_defaults()
    logger = logging.getLogger("mimetree")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


# ------------------------------------------------------------------
# Sample message builders
# ------------------------------------------------------------------


def _build_plain_message(
    *,
    headers: list[str] | None = None,
    body: str = "Hello",
) -> str:
    """Build a single-part message as CRLF text."""
    lines = headers if headers is not None else ["A: 1", "B: 2"]
    return CRLF.join(lines) + CRLF + CRLF + body


def _build_multipart_message(
    *,
    boundary: str = "X",
    subtype: str = "mixed",
    parts: list[tuple[str, str]] | None = None,
    preamble: str = "",
    epilogue: str = "",
) -> str:
    """Build a multipart message; each part is ``(header_line, body)``."""
    parts = parts if parts is not None else [("C: 1", "Part1"), ("C: 2", "Part2")]
    out = [f"Content-Type: multipart/{subtype}; boundary={boundary}", ""]
    if preamble:
        out.append(preamble)
    for header_line, body in parts:
        out.append(f"--{boundary}")
        out.append(header_line)
        out.append("")
        out.append(body)
    out.append(f"--{boundary}--")
    if epilogue:
        out.append(epilogue)
    return CRLF.join(out)


@pytest.fixture
def plain_message() -> str:
    return _build_plain_message()


@pytest.fixture
def multipart_message() -> str:
    return _build_multipart_message()


@pytest.fixture
def nested_message() -> str:
    inner = _build_multipart_message(
        boundary="inner",
        subtype="alternative",
        parts=[("Content-Type: text/plain", "plain"), ("Content-Type: text/html", "<p>html</p>")],
    )
    inner_headers, _, inner_body = inner.partition(CRLF + CRLF)
    return CRLF.join(
        [
            "Subject: nested",
            "Content-Type: multipart/mixed; boundary=outer",
            "",
            "--outer",
            inner_headers,
            "",
            inner_body,
            "--outer",
            "Content-Type: text/csv; name=data.csv",
            "",
            "a,b",
            "--outer--",
        ]
    )


@pytest.fixture
def small_table() -> dict:
    return {
        "text/plain": {"extensions": ["txt", "text"]},
        "image/jpeg": {"source": "iana", "extensions": ["jpeg", "jpg"]},
        "image/x-jpeg": {"extensions": ["jpg"]},
        "multipart/mixed": {"source": "iana"},
    }


@pytest.fixture
def small_registry(small_table: dict) -> TypeRegistry:
    return TypeRegistry(small_table)


@pytest.fixture
def table_file(tmp_path: Path, small_table: dict) -> Path:
    path = tmp_path / "types.json"
    path.write_text(json.dumps(small_table))
    return path
