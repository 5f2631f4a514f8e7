"""
Entity contract and query parameters.

Defines the capability set every persisted type exposes (BaseModel), the
concrete BaseEntity dataclass domain models extend, and QueryParams for
paginated listing.
"""

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING

from ..constants import (
    CREATED_AT_FIELD,
    DEFAULT_PAGE_SIZE,
    DELETED_AT_FIELD,
    ID_FIELD,
    MAX_PAGE_SIZE,
    UPDATED_AT_FIELD,
)

BSON_KEY = "bson"
"""Dataclass field metadata key naming the persisted field."""


@runtime_checkable
class BaseModel(Protocol):
    """Capabilities the unit of work needs from a persisted type."""

    id: ObjectId | None
    slug: str
    name: str
    created_at: datetime | None
    updated_at: datetime | None
    deleted_at: datetime | None

    def is_deleted(self) -> bool: ...

    def to_document(self, include_id: bool = True) -> dict[str, Any]: ...

    def to_filter(self) -> dict[str, Any]: ...


def _default_of(f: dataclasses.Field) -> Any:
    if f.default is not dataclasses.MISSING:
        return f.default
    if f.default_factory is not dataclasses.MISSING:
        return f.default_factory()
    return dataclasses.MISSING


@dataclass
class BaseEntity:
    """
    Base class for domain entities.

    Carries identity, slug, name and the creation/update/deletion
    timestamps. A present ``deleted_at`` marks the entity as soft-deleted.

    Attributes map to persisted field names through ``field(metadata=
    {"bson": "<name>"})``; without metadata the attribute name is used
    verbatim.

    Example:
        @dataclass
        class User(BaseEntity):
            email: str = ""
            age: int = 0
            active: bool = False
    """

    id: ObjectId | None = field(default=None, metadata={BSON_KEY: ID_FIELD})
    slug: str = ""
    name: str = ""
    created_at: datetime | None = field(default=None, metadata={BSON_KEY: CREATED_AT_FIELD})
    updated_at: datetime | None = field(default=None, metadata={BSON_KEY: UPDATED_AT_FIELD})
    deleted_at: datetime | None = field(default=None, metadata={BSON_KEY: DELETED_AT_FIELD})

    @classmethod
    def collection_name(cls) -> str:
        """Lowercased class name plus "s" (``User`` -> ``users``)."""
        return cls.__name__.lower() + "s"

    @classmethod
    def field_names(cls) -> dict[str, str]:
        """Mapping of attribute name to persisted field name."""
        return {f.name: f.metadata.get(BSON_KEY, f.name) for f in dataclasses.fields(cls)}

    @classmethod
    def persisted_name(cls, attribute: str) -> str:
        return cls.field_names().get(attribute, attribute)

    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def stamp_created(self, now: datetime) -> None:
        """Set creation and update timestamps for a new entity."""
        self.created_at = now
        self.updated_at = now

    def touch(self, now: datetime) -> None:
        self.updated_at = now

    def to_document(self, include_id: bool = True) -> dict[str, Any]:
        """Convert entity to a MongoDB document, omitting None values."""
        doc: dict[str, Any] = {}
        for f in dataclasses.fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            key = f.metadata.get(BSON_KEY, f.name)
            if key == ID_FIELD and not include_id:
                continue
            doc[key] = value
        return doc

    def to_filter(self) -> dict[str, Any]:
        """
        Sparse equality filter built from every field that differs from its default.

        A field explicitly set to its default value cannot be expressed
        through this path; use an Identifier instead.
        """
        result: dict[str, Any] = {}
        for f in dataclasses.fields(self):
            value = getattr(self, f.name)
            if value is None or value == _default_of(f):
                continue
            result[f.metadata.get(BSON_KEY, f.name)] = value
        return result

    @classmethod
    def from_document(cls, doc: dict[str, Any]):
        """Create an entity from a MongoDB document; unknown keys are ignored."""
        by_key = {v: k for k, v in cls.field_names().items()}
        values = {by_key[key]: value for key, value in doc.items() if key in by_key}
        return cls(**values)


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


T = TypeVar("T", bound=BaseEntity)


@dataclass
class QueryParams(Generic[T]):
    """
    Filter, sort and pagination for listing queries.

    Attributes:
        filter: Partially populated entity used as a sparse equality filter
            (None means no filter)
        sort: Ordered mapping of persisted field name to direction
        limit: Page size; 0 means no limit
        offset: Number of documents to skip
    """

    filter: T | None = None
    sort: dict[str, SortDirection] = field(default_factory=dict)
    limit: int = DEFAULT_PAGE_SIZE
    offset: int = 0

    def validate(self) -> "QueryParams[T]":
        """Clamp limit to [0, 1000] (negative becomes the default) and offset to >= 0."""
        if self.limit < 0:
            self.limit = DEFAULT_PAGE_SIZE
        if self.limit > MAX_PAGE_SIZE:
            self.limit = MAX_PAGE_SIZE
        if self.offset < 0:
            self.offset = 0
        return self

    def page_info(self) -> tuple[int, int]:
        """Return ``(page, size)``; page is 1-based."""
        size = self.limit or DEFAULT_PAGE_SIZE
        return self.offset // size + 1, size

    def sort_spec(self) -> list[tuple[str, int]]:
        """Sort specification in pymongo form."""
        return [
            (name, ASCENDING if SortDirection(direction) is SortDirection.ASC else DESCENDING)
            for name, direction in self.sort.items()
        ]
