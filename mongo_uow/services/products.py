"""
Product service.
"""

import logging
from collections.abc import Sequence

from bson import ObjectId

from ..domain.models import Product, ProductStats
from ..exceptions import ValidationError
from ..identifier import by_id
from ..repositories.products import ProductRepository
from ..utils.mongo import coerce_object_id

logger = logging.getLogger(__name__)


def _check_price(price: float) -> None:
    if price < 0:
        raise ValidationError("price must be non-negative", field="price")


class ProductService:
    """Product use cases: catalogue entries, stock flags and price queries."""

    def __init__(self, repository: ProductRepository):
        self._repository = repository

    @property
    def repository(self) -> ProductRepository:
        return self._repository

    async def create_product(self, name: str, category: str, price: float) -> Product:
        """
        Create an in-stock product with slug ``<category>-<name>``.

        Raises:
            ValidationError: If name or category is empty, or price is negative
        """
        if not name:
            raise ValidationError("product name is required", field="name")
        if not category:
            raise ValidationError("product category is required", field="category")
        _check_price(price)

        product = Product(
            name=name,
            slug=f"{category}-{name}",
            price=price,
            category=category,
            in_stock=True,
        )
        product = await self._repository.insert(product)
        logger.info(f"Created product {product.id} ({product.slug})")
        return product

    async def get_product_by_id(self, id: ObjectId | str) -> Product:
        return await self._repository.find_one_by_id(id)

    async def update_product(self, product: Product) -> Product:
        _check_price(product.price)
        return await self._repository.update(by_id(product.id), product)

    async def set_product_stock(self, id: ObjectId | str, in_stock: bool) -> Product:
        product = await self._repository.find_one_by_id(id)
        product.in_stock = in_stock
        return await self._repository.update(by_id(product.id), product)

    async def delete_product(self, id: ObjectId | str) -> None:
        await self._repository.delete(by_id(coerce_object_id(id)))

    async def get_products_by_category(self, category: str) -> list[Product]:
        if not category:
            raise ValidationError("category is required", field="category")
        return await self._repository.find_by_category(category)

    async def get_in_stock_products(self) -> list[Product]:
        return await self._repository.find_in_stock_products()

    async def get_products_by_price_range(
        self, min_price: float, max_price: float
    ) -> list[Product]:
        if min_price < 0 or max_price < 0 or min_price > max_price:
            raise ValidationError("invalid price range", field="price")
        return await self._repository.find_products_by_price_range(min_price, max_price)

    async def get_product_statistics(self) -> ProductStats:
        return await self._repository.get_product_stats()

    async def create_products(self, products: Sequence[Product]) -> list[Product]:
        """Validate every product, then insert them in one batch."""
        for i, product in enumerate(products):
            if not product.name:
                raise ValidationError(f"product {i}: name is required", field="name")
            if not product.category:
                raise ValidationError(f"product {i}: category is required", field="category")
            if product.price < 0:
                raise ValidationError(f"product {i}: price must be non-negative", field="price")

        return await self._repository.bulk_insert(products)

    async def bulk_update_stock(self, ids: Sequence[ObjectId | str], in_stock: bool) -> None:
        """Set the stock flag one product at a time, stopping at the first failure."""
        for id in ids:
            try:
                await self.set_product_stock(id, in_stock)
            except Exception:
                logger.warning(f"Failed to update stock for product {id}")
                raise
