"""Validated view of a webpack stats document.

Stats documents come from many webpack versions, plugins and frameworks, so
any field may be missing, null or hold an unexpected value. The models here
absorb those differences: once ``StatsDocument.from_raw`` returns, the
extractor only deals with lists, dicts, strings and numbers.

Rules applied while loading:

- null or non-object entries inside ``assets``/``chunks``/``modules`` become ``None``
- null entrypoints become ``None``; any other non-object entrypoint is empty
- a missing or null section becomes empty
- ``assets`` and ``entrypoints`` of the wrong type are treated as empty
- ``chunks`` and ``modules`` of the wrong type raise ``StatsDocumentError``
- booleans, non-finite and non-numeric sizes count as absent
"""

from __future__ import annotations

import math
from typing import Any, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from .exceptions import StatsDocumentError

Number = Union[int, float]


def as_number(value: Any) -> Optional[Number]:
    """Return ``value`` if it is a finite int or float (bools excluded), else None."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def as_identifier(value: Any) -> Optional[str]:
    """Normalize a chunk id (webpack emits both ints and strings) to a string."""
    if isinstance(value, str):
        return value
    if as_number(value) is not None:
        return str(value)
    return None


class StatsModule(BaseModel):
    name: Optional[str] = None
    size: Number = 0

    @field_validator("name", mode="before")
    @classmethod
    def _name(cls, value: Any) -> Optional[str]:
        return value if isinstance(value, str) else None

    @field_validator("size", mode="before")
    @classmethod
    def _size(cls, value: Any) -> Number:
        return as_number(value) or 0


class StatsAsset(BaseModel):
    name: Optional[str] = None
    size: Number = 0
    chunks: list[str] = Field(default_factory=list)

    @field_validator("name", mode="before")
    @classmethod
    def _name(cls, value: Any) -> Optional[str]:
        return value if isinstance(value, str) else None

    @field_validator("size", mode="before")
    @classmethod
    def _size(cls, value: Any) -> Number:
        return as_number(value) or 0

    @field_validator("chunks", mode="before")
    @classmethod
    def _chunks(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        ids = (as_identifier(item) for item in value)
        return [chunk_id for chunk_id in ids if chunk_id is not None]


class StatsChunk(BaseModel):
    id: Optional[str] = None
    names: list[str] = Field(default_factory=list)
    name: Optional[str] = None
    size: Optional[Number] = None
    # None means the chunk carries no module listing at all
    modules: Optional[list[Optional[StatsModule]]] = None

    @field_validator("id", mode="before")
    @classmethod
    def _id(cls, value: Any) -> Optional[str]:
        return as_identifier(value)

    @field_validator("names", mode="before")
    @classmethod
    def _names(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, str)]

    @field_validator("name", mode="before")
    @classmethod
    def _name(cls, value: Any) -> Optional[str]:
        return value if isinstance(value, str) else None

    @field_validator("size", mode="before")
    @classmethod
    def _size(cls, value: Any) -> Optional[Number]:
        return as_number(value)

    @field_validator("modules", mode="before")
    @classmethod
    def _modules(cls, value: Any) -> Optional[list[Any]]:
        if not isinstance(value, list):
            return None
        return [item if isinstance(item, dict) else None for item in value]

    @property
    def primary_name(self) -> Optional[str]:
        """First entry of ``names``, falling back to ``name``."""
        if self.names:
            return self.names[0]
        return self.name


class StatsEntrypoint(BaseModel):
    # Raw ``chunks`` value, passed through as-is; ``[]`` when absent
    chunks: Any = Field(default_factory=list)
    # Sizes of the object-shaped entries of the raw ``assets`` list; bare
    # asset names (webpack 4) carry no size and are dropped.
    asset_sizes: list[Number] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            data = {}
        chunks = data.get("chunks")
        assets = data.get("assets")
        if not isinstance(assets, list):
            assets = []
        return {
            "chunks": chunks if chunks is not None else [],
            "asset_sizes": [
                as_number(asset.get("size")) or 0
                for asset in assets
                if isinstance(asset, dict)
            ],
        }

    @property
    def size(self) -> Number:
        return sum(self.asset_sizes)


class StatsDocument(BaseModel):
    assets: list[Optional[StatsAsset]] = Field(default_factory=list)
    chunks: list[Optional[StatsChunk]] = Field(default_factory=list)
    modules: list[Optional[StatsModule]] = Field(default_factory=list)
    entrypoints: dict[str, Optional[StatsEntrypoint]] = Field(default_factory=dict)
    time: Number = 0

    @classmethod
    def from_raw(cls, raw: Any) -> "StatsDocument":
        """Validate a parsed stats JSON object.

        Raises:
            StatsDocumentError: if ``raw`` is not an object, or ``chunks`` /
                ``modules`` hold something other than a list.
        """
        if not isinstance(raw, dict):
            raise StatsDocumentError(
                "Stats document must be a JSON object",
                {"type": type(raw).__name__},
            )

        entrypoints = raw.get("entrypoints")
        if not isinstance(entrypoints, dict):
            entrypoints = {}

        return cls(
            assets=_entries(raw, "assets", strict=False),
            chunks=_entries(raw, "chunks", strict=True),
            modules=_entries(raw, "modules", strict=True),
            entrypoints={
                str(name): None if entry is None else StatsEntrypoint.model_validate(entry)
                for name, entry in entrypoints.items()
            },
            time=as_number(raw.get("time")) or 0,
        )


def _entries(raw: dict, key: str, strict: bool) -> list[Optional[dict]]:
    value = raw.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        if strict:
            raise StatsDocumentError(
                f"'{key}' must be a list",
                {"type": type(value).__name__},
            )
        return []
    return [item if isinstance(item, dict) else None for item in value]
