"""
Utility functions and helpers for MONGO_UOW.
"""

from .mongo import clean_mongo_doc, coerce_object_id, utcnow

__all__ = ["clean_mongo_doc", "coerce_object_id", "utcnow"]
