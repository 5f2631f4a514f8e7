"""
Product repository.
"""

from ..domain.models import Product, ProductStats
from ..identifier import Identifier
from .base import BaseRepository


class ProductRepository(BaseRepository[Product]):
    """Product-specific finders and statistics on top of BaseRepository."""

    async def find_by_category(self, category: str) -> list[Product]:
        return await self.find_all(Identifier().equal("category", category))

    async def find_in_stock_products(self) -> list[Product]:
        return await self.find_all(Identifier().equal("inStock", True))

    async def find_products_by_price_range(
        self, min_price: float, max_price: float
    ) -> list[Product]:
        """Products with ``min_price <= price <= max_price``."""
        return await self.find_all(Identifier().between("price", min_price, max_price))

    async def get_product_stats(self) -> ProductStats:
        products = await self.find_all()
        in_stock = await self.count(Identifier().equal("inStock", True))

        average_price = (
            sum(product.price for product in products) / len(products) if products else 0.0
        )
        return ProductStats(
            total_products=len(products),
            in_stock_products=in_stock,
            average_price=average_price,
            categories=sorted({product.category for product in products}),
        )
