"""
Unit tests for the entity contract and query parameters.
"""

from dataclasses import dataclass

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING

from mongo_uow.domain import BaseEntity, BaseModel, Product, QueryParams, SortDirection, User
from mongo_uow.utils import utcnow


class TestBaseEntity:
    """Test BaseEntity behaviour."""

    def test_collection_name(self):
        """Test that collection names are lowercased plurals."""
        assert User.collection_name() == "users"
        assert Product.collection_name() == "products"

    def test_satisfies_protocol(self):
        """Test that entities expose the BaseModel capabilities."""
        assert isinstance(User(), BaseModel)

    def test_is_deleted(self):
        """Test that only a set deletion time marks an entity deleted."""
        user = User()
        assert not user.is_deleted()
        user.deleted_at = utcnow()
        assert user.is_deleted()

    def test_to_document_uses_persisted_names(self):
        """Test attribute-to-field mapping and None omission."""
        oid = ObjectId()
        now = utcnow()
        product = Product(id=oid, name="Laptop", price=10.0, in_stock=True, created_at=now)

        doc = product.to_document()

        assert doc["_id"] == oid
        assert doc["createdAt"] == now
        assert doc["inStock"] is True
        assert "updatedAt" not in doc
        assert "deletedAt" not in doc

    def test_to_document_without_id(self):
        """Test that identity can be left out."""
        assert "_id" not in User(id=ObjectId()).to_document(include_id=False)

    def test_from_document_ignores_unknown_keys(self):
        """Test document-to-entity mapping."""
        oid = ObjectId()
        product = Product.from_document(
            {"_id": oid, "name": "Chair", "inStock": True, "legacy": 1}
        )
        assert product.id == oid
        assert product.name == "Chair"
        assert product.in_stock is True

    def test_to_filter_skips_defaults(self):
        """Test the sparse equality filter."""
        assert User(email="a@example.com").to_filter() == {"email": "a@example.com"}
        assert User().to_filter() == {}
        assert Product(in_stock=True, price=5.0).to_filter() == {"inStock": True, "price": 5.0}

    def test_stamp_and_touch(self):
        """Test timestamp helpers."""
        user = User()
        created = utcnow()
        user.stamp_created(created)
        assert user.created_at == created == user.updated_at

        later = utcnow()
        user.touch(later)
        assert user.created_at == created
        assert user.updated_at == later

    def test_custom_entity(self):
        """Test that new entity types get the same behaviour."""

        @dataclass
        class Invoice(BaseEntity):
            total: float = 0.0

        assert Invoice.collection_name() == "invoices"
        assert Invoice.persisted_name("created_at") == "createdAt"
        assert Invoice.persisted_name("total") == "total"


class TestQueryParams:
    """Test pagination parameters."""

    def test_defaults(self):
        params = QueryParams()
        assert params.limit == 10
        assert params.offset == 0
        assert params.filter is None
        assert params.sort == {}

    def test_validate_clamps(self):
        """Test limit and offset normalization."""
        assert QueryParams(limit=-5).validate().limit == 10
        assert QueryParams(limit=5000).validate().limit == 1000
        assert QueryParams(limit=0).validate().limit == 0
        assert QueryParams(offset=-1).validate().offset == 0

    def test_page_info(self):
        """Test page number derivation."""
        assert QueryParams(limit=10, offset=20).page_info() == (3, 10)
        assert QueryParams(limit=0, offset=0).page_info() == (1, 10)

    def test_sort_spec(self):
        """Test conversion to pymongo sort form, keeping order."""
        params = QueryParams(sort={"age": SortDirection.DESC, "name": "asc"})
        assert params.sort_spec() == [("age", DESCENDING), ("name", ASCENDING)]
