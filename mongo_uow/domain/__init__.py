"""
Domain layer: the entity contract, query parameters and example entities.
"""

from .base import BaseEntity, BaseModel, QueryParams, SortDirection
from .models import Product, ProductStats, User, UserStats

__all__ = [
    "BaseModel",
    "BaseEntity",
    "QueryParams",
    "SortDirection",
    "User",
    "Product",
    "UserStats",
    "ProductStats",
]
