"""Tests for mimetree.entity serialization."""

from __future__ import annotations

import re

import pytest

from mimetree.entity import Entity, make_boundary

CRLF = "\r\n"


def _two_part_entity(**headers: str) -> Entity:
    return Entity(
        headers or {"Subject": "hi"},
        body=[
            Entity({"C": "1"}, body="Part1"),
            Entity({"C": "2"}, body="Part2"),
        ],
    )


def _boundary_of(text: str) -> str:
    match = re.search(r"^Content-Type: multipart/[\w-]+; boundary=(\S+)\r$", text, re.MULTILINE)
    assert match, text
    return match.group(1)


class TestLeafSerialization:
    def test_headers_blank_line_body(self):
        entity = Entity({"A": "1", "B": "2"}, body="Hello")
        assert str(entity) == "A: 1\r\nB: 2\r\n\r\nHello\r\n"

    def test_parameters_rendered(self):
        entity = Entity([("Content-Type", "text/plain", {"charset": "utf-8"})], body="x")
        assert entity.to_string().startswith("Content-Type: text/plain; charset=utf-8\r\n")

    def test_round_trip(self, plain_message: str):
        entity = Entity.parse(plain_message)
        again = Entity.parse(str(entity))
        assert again.headers == entity.headers
        assert again.body == entity.body


class TestMultipartSerialization:
    def test_boundary_consistent(self):
        text = _two_part_entity().to_string()
        token = _boundary_of(text)
        assert text.count(f"--{token}{CRLF}") == 2
        assert text.count(f"--{token}--{CRLF}") == 1
        assert text.endswith(f"--{token}--{CRLF}")

    def test_layout(self):
        text = _two_part_entity().to_string()
        token = _boundary_of(text)
        assert text == (
            "Subject: hi\r\n"
            f"Content-Type: multipart/alternative; boundary={token}\r\n"
            "\r\n"
            f"--{token}\r\n"
            "C: 1\r\n\r\nPart1\r\n"
            f"--{token}\r\n"
            "C: 2\r\n\r\nPart2\r\n"
            f"--{token}--\r\n"
        )

    def test_does_not_mutate_headers(self):
        entity = _two_part_entity()
        entity.to_string()
        entity.to_string()
        assert [str(h) for h in entity.headers] == ["Subject: hi"]

    def test_reparse(self):
        entity = Entity.parse(_two_part_entity().to_string())
        assert entity.is_multipart
        assert [p.body for p in entity.body] == ["Part1", "Part2"]
        assert [str(p.headers[0]) for p in entity.body] == ["C: 1", "C: 2"]

    def test_existing_multipart_header_rendered_in_place(self, multipart_message: str):
        entity = Entity.parse(multipart_message)
        text = entity.to_string()
        token = _boundary_of(text)
        assert token != "X"
        assert text.startswith(f"Content-Type: multipart/mixed; boundary={token}\r\n")
        assert text.count("Content-Type:") == 1
        assert entity.boundary == "X"

    def test_non_multipart_content_type_replaced(self):
        entity = Entity(
            [("Content-Type", "text/plain", {"charset": "utf-8"})],
            body=[Entity({"C": "1"}, body="x")],
        )
        text = entity.to_string()
        assert re.match(r"Content-Type: multipart/alternative; boundary=\S+\r\n", text)
        assert "charset" not in text

    def test_subtype_argument(self):
        text = _two_part_entity().to_string(subtype="mixed")
        assert "Content-Type: multipart/mixed; boundary=" in text

    def test_subtype_from_settings(self, monkeypatch):
        monkeypatch.setenv("MIME_MULTIPART_SUBTYPE", "related")
        text = _two_part_entity().to_string()
        assert "Content-Type: multipart/related; boundary=" in text

    def test_nested_round_trip(self, nested_message: str):
        entity = Entity.parse(nested_message)
        again = Entity.parse(entity.to_string())
        assert [e.body for e in again.walk() if isinstance(e.body, str)] == [
            "plain",
            "<p>html</p>",
            "a,b",
        ]
        assert again.body[0].boundary is not None

    def test_boundary_regenerated_on_collision(self, monkeypatch):
        tokens = iter(["clash", "fresh"])
        monkeypatch.setattr("mimetree.entity.make_boundary", lambda: next(tokens))
        entity = Entity({"Subject": "hi"}, body=[Entity({"C": "1"}, body="--clash")])
        text = entity.to_string()
        assert "boundary=fresh" in text
        assert text.endswith("--fresh--\r\n")


class TestMakeBoundary:
    def test_base36_token(self):
        token = make_boundary()
        assert re.fullmatch(r"[0-9a-z]+", token)

    @pytest.mark.parametrize("_", range(3))
    def test_tokens_differ(self, _):
        assert make_boundary() != make_boundary()
