"""
MongoDB utility functions for MONGO_UOW.

Helpers for BSON-compatible timestamps, identifier coercion and
JSON-friendly rendering of documents.
"""

from datetime import datetime, timezone
from typing import Any

from bson import ObjectId

from ..exceptions import ObjectIdCoercionError


def utcnow() -> datetime:
    """
    Current UTC time, timezone-aware, truncated to milliseconds.

    BSON datetimes carry millisecond precision, so a truncated value
    compares equal to the one read back from the server.
    """
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def coerce_object_id(value: Any) -> ObjectId:
    """
    Convert an ObjectId or 24-character hex string to an ObjectId.

    Raises:
        ObjectIdCoercionError: If the value cannot be converted
    """
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    raise ObjectIdCoercionError(f"cannot convert {value!r} to ObjectId")


def clean_mongo_doc(doc: Any) -> Any:
    """
    Convert a MongoDB document to JSON-serializable form.

    Recursively converts:
    - ObjectId -> str
    - datetime -> ISO format string
    - Nested dictionaries and lists are processed recursively

    Example:
        clean_mongo_doc({"_id": ObjectId("507f1f77bcf86cd799439011"), "n": 1})
        # {"_id": "507f1f77bcf86cd799439011", "n": 1}
    """
    if isinstance(doc, ObjectId):
        return str(doc)
    if isinstance(doc, datetime):
        return doc.isoformat()
    if isinstance(doc, dict):
        return {key: clean_mongo_doc(value) for key, value in doc.items()}
    if isinstance(doc, (list, tuple)):
        return [clean_mongo_doc(item) for item in doc]
    return doc
