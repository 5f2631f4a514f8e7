"""
Example domain entities and statistics.
"""

from dataclasses import dataclass, field

from .base import BSON_KEY, BaseEntity


@dataclass
class User(BaseEntity):
    email: str = ""
    age: int = 0
    active: bool = False


@dataclass
class Product(BaseEntity):
    price: float = 0.0
    category: str = ""
    in_stock: bool = field(default=False, metadata={BSON_KEY: "inStock"})


@dataclass
class UserStats:
    total_users: int = 0
    active_users: int = 0
    average_age: float = 0.0


@dataclass
class ProductStats:
    total_products: int = 0
    in_stock_products: int = 0
    average_price: float = 0.0
    categories: list[str] = field(default_factory=list)
