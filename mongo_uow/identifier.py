"""
Identifier / filter builder.

An Identifier accumulates field-operator-value conditions in insertion order
and translates them into a MongoDB filter document. Keys are either a plain
field name (equality) or a field name followed by an operator suffix, e.g.
``"age >"`` or ``"email LIKE"``.

Usage:
    from mongo_uow.identifier import Identifier

    ident = Identifier().equal("name", "x").greater_than("age", 18)
    ident.to_filter()
    # {"name": "x", "age": {"$gt": 18}}
"""

import re
from collections.abc import Iterable, Sequence
from typing import Any

from bson import ObjectId

from .constants import DELETED_AT_FIELD, ID_FIELD, SLUG_FIELD
from .exceptions import EntityNotFoundError, ObjectIdCoercionError, ValidationError

GT = " >"
LT = " <"
IN = " IN"
LIKE = " LIKE"
BETWEEN = " BETWEEN"
IS_NULL = " IS NULL"
IS_NOT_NULL = " IS NOT NULL"

# Longest suffixes first so " IS NOT NULL" is not read as " IS NULL".
_SUFFIXES = (IS_NOT_NULL, IS_NULL, BETWEEN, LIKE, IN, GT, LT)

_MISSING = object()


def split_key(key: str) -> tuple[str, str | None]:
    """Split a composite key into ``(field, suffix)``; suffix is None for equality."""
    for suffix in _SUFFIXES:
        if key.endswith(suffix) and len(key) > len(suffix):
            return key[: -len(suffix)], suffix
    return key, None


def _as_list(values: Any) -> list[Any]:
    if isinstance(values, (str, bytes)):
        return [values]
    return list(values)


def _translate(field: str, suffix: str | None, value: Any, literal_like: bool) -> Any:
    """
    Operator document for one condition.

    Raises:
        ValidationError: If a BETWEEN value is not a pair
    """
    if suffix is None:
        return value
    if suffix == GT:
        return {"$gt": value}
    if suffix == LT:
        return {"$lt": value}
    if suffix == IN:
        return {"$in": _as_list(value)}
    if suffix == LIKE:
        pattern = re.escape(value) if literal_like else value
        return {"$regex": pattern, "$options": "i"}
    if suffix == BETWEEN:
        if isinstance(value, Sequence) and not isinstance(value, (str, bytes)) and len(value) == 2:
            return {"$gte": value[0], "$lte": value[1]}
        raise ValidationError(
            f"BETWEEN on {field} needs a (start, end) pair, got {value!r}", field=field
        )
    if suffix == IS_NULL:
        return {"$exists": False}
    if suffix == IS_NOT_NULL:
        return {"$exists": True}
    raise ValueError(f"unknown operator suffix {suffix!r}")


def _is_operator_doc(value: Any) -> bool:
    return isinstance(value, dict) and bool(value) and all(k.startswith("$") for k in value)


class Identifier:
    """
    Fluent builder of query conditions.

    Every builder method returns the identifier itself so calls can be
    chained. Conditions on the same field with different operators are kept
    as independent keys and all apply; contradictory combinations are not
    detected.
    """

    def __init__(self, conditions: dict[str, Any] | None = None) -> None:
        self._query: dict[str, Any] = dict(conditions or {})
        self._literal_like: dict[str, bool] = {}

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------

    def equal(self, field: str, value: Any) -> "Identifier":
        self._query[field] = value
        return self

    def in_(self, field: str, values: Iterable[Any]) -> "Identifier":
        """Field is one of ``values``; a single string or bytes value counts as one value."""
        self._query[field + IN] = _as_list(values)
        return self

    def like(self, field: str, pattern: str, regex: bool = False) -> "Identifier":
        """
        Case-insensitive substring match.

        The pattern is matched as literal text; regular-expression
        metacharacters are escaped. Pass ``regex=True`` to use the pattern
        as a raw regular expression.
        """
        key = field + LIKE
        self._query[key] = pattern
        self._literal_like[key] = not regex
        return self

    def greater_than(self, field: str, value: Any) -> "Identifier":
        self._query[field + GT] = value
        return self

    def less_than(self, field: str, value: Any) -> "Identifier":
        self._query[field + LT] = value
        return self

    def between(self, field: str, start: Any, end: Any) -> "Identifier":
        """Inclusive range: ``start <= field <= end``."""
        self._query[field + BETWEEN] = [start, end]
        return self

    def is_null(self, field: str) -> "Identifier":
        """Field is absent from the document."""
        self._query[field + IS_NULL] = True
        return self

    def is_not_null(self, field: str) -> "Identifier":
        """Field is present in the document."""
        self._query[field + IS_NOT_NULL] = True
        return self

    def add(self, key: str, value: Any) -> "Identifier":
        """Add a raw condition; ``key`` may carry an operator suffix."""
        self._query[key] = value
        return self

    def add_if(self, condition: bool, key: str, value: Any) -> "Identifier":
        if condition:
            self._query[key] = value
        return self

    # ------------------------------------------------------------------
    # Translation
    # ------------------------------------------------------------------

    def to_filter(self) -> dict[str, Any]:
        """
        Translate the conditions into a MongoDB filter document.

        Operator documents targeting the same field are merged. An equality
        and an operator on the same field are combined with ``$and``.

        Raises:
            ValidationError: If a BETWEEN condition does not hold a pair
        """
        result: dict[str, Any] = {}
        extra: list[dict[str, Any]] = []

        for key, value in self._query.items():
            field, suffix = split_key(key)
            predicate = _translate(field, suffix, value, self._literal_like.get(key, True))

            if field not in result:
                result[field] = predicate
            elif _is_operator_doc(result[field]) and _is_operator_doc(predicate):
                result[field] = {**result[field], **predicate}
            else:
                extra.append({field: predicate})

        if extra:
            result.setdefault("$and", []).extend(extra)
        return result

    def to_object_id(self, field: str = ID_FIELD) -> ObjectId:
        """
        Resolve the value stored under ``field`` to an ObjectId.

        Raises:
            EntityNotFoundError: If the field is not part of the identifier
            ObjectIdCoercionError: If the value cannot be converted
        """
        value = self._query.get(field, _MISSING)
        if value is _MISSING:
            raise EntityNotFoundError(f"field {field} not found", context={"field": field})

        if isinstance(value, ObjectId):
            return value
        if isinstance(value, str):
            if ObjectId.is_valid(value):
                return ObjectId(value)
            raise ObjectIdCoercionError(
                f"cannot convert {value!r} to ObjectId", context={"field": field}
            )
        raise ObjectIdCoercionError(
            f"cannot convert {type(value).__name__} to ObjectId", context={"field": field}
        )

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Copy of the raw conditions keyed by composite key."""
        return dict(self._query)

    def has(self, key: str) -> bool:
        return key in self._query

    def get(self, key: str, default: Any = None) -> Any:
        return self._query.get(key, default)

    def references(self, field: str) -> bool:
        """True when any condition, whatever its operator, targets ``field``."""
        return any(split_key(key)[0] == field for key in self._query)

    def __len__(self) -> int:
        return len(self._query)

    def __bool__(self) -> bool:
        return bool(self._query)

    def __str__(self) -> str:
        if not self._query:
            return "{}"
        return "{" + ", ".join(f"{k}: {v}" for k, v in self._query.items()) + "}"

    def __repr__(self) -> str:
        return f"Identifier({self._query!r})"


def by_id(id: Any) -> Identifier:
    return Identifier().equal(ID_FIELD, id)


def by_slug(slug: str) -> Identifier:
    return Identifier().equal(SLUG_FIELD, slug)


def by_email(email: str) -> Identifier:
    return Identifier().equal("email", email)


def active() -> Identifier:
    return Identifier().equal("active", True)


def inactive() -> Identifier:
    return Identifier().equal("active", False)


def not_deleted() -> Identifier:
    return Identifier().is_null(DELETED_AT_FIELD)


def deleted() -> Identifier:
    return Identifier().is_not_null(DELETED_AT_FIELD)
