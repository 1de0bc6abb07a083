"""Filename-extension <-> MIME type lookups over a static type table.

The table maps a MIME type name to a record carrying at least an
``extensions`` list, in the layout used by the ``mime-db`` project.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, TypeAdapter

from .config import get_settings
from .errors import UnknownTypeError
from .logging import get_logger

logger = get_logger(__name__)

_EXTENSION_RE = re.compile(r".*[./\\]", re.DOTALL)


class TypeRecord(BaseModel):
    """One entry of the type table."""

    model_config = {"extra": "allow"}

    extensions: list[str] = Field(default_factory=list, description="Lowercase file extensions")
    source: str | None = Field(default=None, description="Where the type is registered (iana, apache, nginx)")
    charset: str | None = Field(default=None, description="Default charset for the type")
    compressible: bool | None = Field(default=None, description="Whether the type compresses well")


_TABLE_ADAPTER = TypeAdapter(dict[str, TypeRecord])


class TypeRegistry:
    """Read-only view over a type table, preserving its declared order."""

    def __init__(self, table: Mapping[str, TypeRecord | Mapping[str, Any]]) -> None:
        self._table: dict[str, TypeRecord] = {
            name: TypeRecord.model_validate(record) for name, record in table.items()
        }

    @classmethod
    def from_json(cls, path: str | Path) -> TypeRegistry:
        registry = cls(_TABLE_ADAPTER.validate_json(Path(path).read_bytes()))
        logger.info("type_table_loaded", source=str(path), types=len(registry))
        return registry

    @classmethod
    def default(cls) -> TypeRegistry:
        """The registry for ``MIME_TYPES_PATH``, or the bundled table."""
        return _default_registry()

    def __len__(self) -> int:
        return len(self._table)

    def __contains__(self, mime_type: object) -> bool:
        return mime_type in self._table

    @property
    def types(self) -> list[str]:
        return list(self._table)

    def get(self, mime_type: str) -> TypeRecord | None:
        return self._table.get(mime_type)

    def extension(self, mime_type: str) -> list[str] | None:
        """Extensions declared for *mime_type*, or ``None`` if it is unknown."""
        record = self._table.get(mime_type)
        if record is None:
            return None
        return list(record.extensions)

    def require_extensions(self, mime_type: str) -> list[str]:
        extensions = self.extension(mime_type)
        if extensions is None:
            raise UnknownTypeError(f"unknown MIME type: {mime_type}")
        return extensions

    def lookup(self, filename: str) -> str | None:
        """First type (in table order) whose extensions contain *filename*'s extension.

        The extension is whatever follows the last ``.``, ``/`` or ``\\``,
        compared case-insensitively.
        """
        ext = _EXTENSION_RE.sub("", filename).lower()
        if not ext:
            return None
        for mime_type, record in self._table.items():
            if ext in record.extensions:
                return mime_type
        return None


@lru_cache(maxsize=1)
def _default_registry() -> TypeRegistry:
    path = get_settings().types_path
    if path:
        return TypeRegistry.from_json(path)
    bundled = resources.files("mimetree").joinpath("data/types.json")
    with resources.as_file(bundled) as table_path:
        return TypeRegistry.from_json(table_path)


def extension(mime_type: str) -> list[str] | None:
    return TypeRegistry.default().extension(mime_type)


def lookup(filename: str) -> str | None:
    return TypeRegistry.default().lookup(filename)
