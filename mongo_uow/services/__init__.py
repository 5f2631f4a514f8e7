"""
Service layer: business validation on top of the repositories.
"""

from .products import ProductService
from .users import UserService

__all__ = ["UserService", "ProductService"]
