"""Integration tests for units of work, repositories and services with real MongoDB.

These tests require a running MongoDB instance (via Docker/testcontainers).
The Atlas Local image runs as a single-node replica set, so transactions work.
"""

from datetime import timezone

import pytest

from mongo_uow.domain import Product, QueryParams, SortDirection, User
from mongo_uow.exceptions import (
    BulkWriteMismatchError,
    DuplicateEntityError,
    EntityNotFoundError,
    NotFoundInTrashError,
    ValidationError,
)
from mongo_uow.identifier import by_id
from mongo_uow.repositories import ProductRepository, UserRepository
from mongo_uow.services import ProductService, UserService


class _Rollback(Exception):
    pass


@pytest.mark.integration
@pytest.mark.asyncio
class TestUnitOfWorkIntegration:
    """Unit of work behaviour against a real collection."""

    async def test_insert_stamps_timestamps(self, user_factory):
        """Test that stored timestamps are timezone-aware and equal on insert."""
        uow = await user_factory.create()
        user = await uow.insert(User(email="ts@example.com", age=20))

        stored = await uow.find_one_by_id(user.id)

        assert stored.created_at == user.created_at
        assert stored.created_at == stored.updated_at
        assert stored.created_at.tzinfo is not None
        assert stored.created_at.utcoffset() == timezone.utc.utcoffset(None)
        assert stored.deleted_at is None

    async def test_soft_delete_and_restore(self, user_factory):
        """Test the trash lifecycle."""
        uow = await user_factory.create()
        user = await uow.insert(User(email="trash@example.com", age=20))

        deleted = await uow.soft_delete(by_id(user.id))
        assert deleted.is_deleted()

        with pytest.raises(EntityNotFoundError):
            await uow.find_one_by_id(user.id)
        with pytest.raises(EntityNotFoundError):
            await uow.soft_delete(by_id(user.id))
        assert await uow.count() == 0
        assert [u.id for u in await uow.get_trashed()] == [user.id]

        restored = await uow.restore(by_id(user.id))
        assert not restored.is_deleted()
        assert (await uow.find_one_by_id(user.id)).email == "trash@example.com"

        with pytest.raises(NotFoundInTrashError):
            await uow.restore(by_id(user.id))

    async def test_update_skips_soft_deleted(self, user_factory):
        uow = await user_factory.create()
        user = await uow.insert(User(email="gone@example.com", age=20))
        await uow.soft_delete(by_id(user.id))

        user.age = 21
        with pytest.raises(EntityNotFoundError):
            await uow.update(by_id(user.id), user)

    async def test_hard_delete_finds_trashed(self, user_factory):
        """Test that hard delete removes a document regardless of state."""
        uow = await user_factory.create()
        user = await uow.insert(User(email="hard@example.com", age=20))
        await uow.soft_delete(by_id(user.id))

        removed = await uow.hard_delete(by_id(user.id))

        assert removed.id == user.id
        assert await uow.get_trashed() == []

    async def test_restore_all(self, user_factory):
        uow = await user_factory.create()
        users = await uow.bulk_insert(
            [User(email=f"r{i}@example.com", age=20 + i) for i in range(3)]
        )
        assert await uow.bulk_soft_delete([by_id(u.id) for u in users]) == 3

        assert await uow.restore_all() == 3
        assert await uow.count() == 3

    async def test_bulk_update_mismatch(self, user_factory):
        """Test that a soft-deleted target is reported while the others apply."""
        uow = await user_factory.create()
        users = await uow.bulk_insert(
            [User(email=f"b{i}@example.com", age=20) for i in range(3)]
        )
        await uow.soft_delete(by_id(users[1].id))
        for user in users:
            user.age = 50

        with pytest.raises(BulkWriteMismatchError) as exc_info:
            await uow.bulk_update(users)

        assert exc_info.value.modified == 2
        assert exc_info.value.requested == 3
        assert (await uow.find_one_by_id(users[0].id)).age == 50
        assert (await uow.find_one_by_id(users[2].id)).age == 50

    async def test_unique_index_rejects_duplicates(self, user_factory):
        """Test duplicate key translation for single and batch inserts."""
        await UserRepository(user_factory).ensure_indexes()
        uow = await user_factory.create()
        await uow.insert(User(email="dup@example.com", age=20))

        with pytest.raises(DuplicateEntityError) as exc_info:
            await uow.insert(User(email="dup@example.com", age=30))
        assert exc_info.value.field == "email"

        with pytest.raises(DuplicateEntityError):
            await uow.bulk_insert([User(email="dup@example.com", age=40)])

    async def test_pagination(self, user_factory):
        """Test page slicing, total count and sort order."""
        uow = await user_factory.create()
        await uow.bulk_insert([User(email=f"p{i}@example.com", age=i) for i in range(5)])

        params = QueryParams(limit=2, offset=2, sort={"age": SortDirection.DESC})
        page, total = await uow.find_all_with_pagination(params)

        assert total == 5
        assert [u.age for u in page] == [2, 1]

        params = QueryParams(limit=10, filter=User(email="p3@example.com"))
        page, total = await uow.find_all_with_pagination(params)
        assert total == 1
        assert page[0].age == 3

    async def test_transaction_commit_and_rollback(self, user_factory):
        """Test that transactional writes are visible only after commit."""
        repo = UserRepository(user_factory)

        async with repo.transaction() as tx:
            await tx.insert(User(email="committed@example.com", age=20))
        assert (await repo.find_by_email("committed@example.com")).age == 20

        with pytest.raises(_Rollback):
            async with repo.transaction() as tx:
                await tx.insert(User(email="rolled-back@example.com", age=20))
                raise _Rollback()

        with pytest.raises(EntityNotFoundError):
            await repo.find_by_email("rolled-back@example.com")

    async def test_units_of_work_are_isolated(self, user_factory):
        """Test that an uncommitted insert is invisible to another unit of work."""
        tx = await user_factory.create_with_transaction()
        other = await user_factory.create()
        try:
            await tx.insert(User(email="pending@example.com", age=20))
            assert await other.count() == 0
            assert await tx.count() == 1
            await tx.commit_transaction()
        finally:
            await tx.close()

        assert await other.count() == 1


@pytest.mark.integration
@pytest.mark.asyncio
class TestServicesIntegration:
    """Service layer end to end."""

    async def test_user_service(self, user_factory):
        service = UserService(UserRepository(user_factory))
        await service.repository.ensure_indexes()

        alice = await service.create_user("alice@example.com", 30)
        await service.create_user("bob@example.com", 45)

        with pytest.raises(DuplicateEntityError):
            await service.create_user("alice@example.com", 31)
        with pytest.raises(ValidationError):
            await service.create_user("", 20)

        await service.deactivate_user(str(alice.id))
        assert not (await service.get_user_by_email("alice@example.com")).active

        in_range = await service.get_users_by_age_range(40, 50)
        assert [u.email for u in in_range] == ["bob@example.com"]

        stats = await service.get_user_statistics()
        assert stats.total_users == 2
        assert stats.active_users == 1
        assert stats.average_age == 37.5

    async def test_product_service(self, product_factory):
        service = ProductService(ProductRepository(product_factory))

        laptop = await service.create_product("Laptop", "electronics", 999.99)
        mouse = await service.create_product("Mouse", "electronics", 25.0)
        await service.create_products([Product(name="Chair", category="furniture", price=150)])

        await service.bulk_update_stock([laptop.id, mouse.id], False)

        in_stock = await service.get_in_stock_products()
        assert [p.name for p in in_stock] == ["Chair"]

        cheap = await service.get_products_by_price_range(0, 500)
        assert sorted(p.name for p in cheap) == ["Chair", "Mouse"]

        stats = await service.get_product_statistics()
        assert stats.total_products == 3
        assert stats.in_stock_products == 1
        assert stats.categories == ["electronics", "furniture"]
