"""
Demo command for CLI.

Walks through the layers end to end against a live MongoDB:
service -> repository -> unit of work -> MongoDB.
"""

import sys
import uuid

import click

from ...config import MongoConfig
from ...database import ConnectionManager
from ...domain import Product, QueryParams, SortDirection, User
from ...exceptions import EntityNotFoundError, UnitOfWorkError, ValidationError
from ...identifier import by_id
from ...observability import clear_uow_context, set_correlation_id, set_uow_context
from ...repositories import ProductRepository, UnitOfWorkFactory, UserRepository
from ...services import ProductService, UserService
from ..utils import (
    build_config,
    echo_failure,
    echo_section,
    echo_success,
    format_entity,
    run_async,
)


class _AbortDemoTransaction(Exception):
    pass


def _section(title: str, collection: str) -> None:
    echo_section(title)
    set_uow_context(collection=collection, step=title)


async def _user_demo(users: UserService, tag: str) -> list[User]:
    _section("Users", "users")
    alice = await users.create_user(f"alice+{tag}@example.com", 30)
    bob = await users.create_user(f"bob+{tag}@example.com", 45)
    click.echo(f"Created {format_entity(alice)}")
    click.echo(f"Created {format_entity(bob)}")

    try:
        await users.create_user(f"alice+{tag}@example.com", 31)
    except UnitOfWorkError as e:
        click.echo(f"Duplicate rejected: {e.message}")

    try:
        await users.create_user("", 20)
    except ValidationError as e:
        click.echo(f"Validation rejected: {e.message}")

    alice.age = 31
    alice = await users.update_user(alice)
    click.echo(f"Updated age of {alice.email} to {alice.age}")

    in_range = await users.get_users_by_age_range(25, 40)
    click.echo(f"Users aged 25-40: {len(in_range)}")

    extra = await users.create_users(
        [
            User(
                name=f"User_carol+{tag}",
                slug=f"user-carol-{tag}",
                email=f"carol+{tag}@example.com",
                age=28,
                active=True,
            ),
            User(
                name=f"User_dave+{tag}",
                slug=f"user-dave-{tag}",
                email=f"dave+{tag}@example.com",
                age=52,
                active=True,
            ),
        ]
    )
    click.echo(f"Bulk created {len(extra)} users")

    await users.bulk_deactivate_users([user.id for user in extra])
    active = await users.get_all_active_users()
    click.echo(f"Active users after bulk deactivation: {len(active)}")

    stats = await users.get_user_statistics()
    click.echo(
        f"Stats: total={stats.total_users} active={stats.active_users} "
        f"average_age={stats.average_age:.1f}"
    )
    return [alice, bob, *extra]


async def _soft_delete_demo(repository: UserRepository, user: User) -> None:
    _section("Soft delete and restore", "users")
    await repository.soft_delete(by_id(user.id))
    click.echo(f"Soft deleted {user.email}")

    try:
        await repository.find_one_by_id(user.id)
    except EntityNotFoundError:
        click.echo("Not visible to normal reads")

    trashed = await repository.get_trashed()
    click.echo(f"Trash holds {len(trashed)} user(s)")

    restored = await repository.restore(by_id(user.id))
    click.echo(f"Restored {restored.email}")


async def _pagination_demo(repository: UserRepository) -> None:
    _section("Pagination", "users")
    page, total = await repository.find_all_with_pagination(
        QueryParams(sort={"createdAt": SortDirection.DESC}, limit=2, offset=0)
    )
    click.echo(f"First page: {len(page)} of {total} users")


async def _transaction_demo(repository: UserRepository, tag: str) -> None:
    _section("Transaction", "users")
    email = f"rollback+{tag}@example.com"
    try:
        async with repository.transaction() as uow:
            await uow.insert(User(name="Rollback", slug=f"rollback-{tag}", email=email, age=40))
            raise _AbortDemoTransaction
    except _AbortDemoTransaction:
        pass

    try:
        await repository.find_by_email(email)
        click.echo("Transaction was NOT rolled back")
    except EntityNotFoundError:
        click.echo("Rolled back: user was never stored")


async def _product_demo(products: ProductService, tag: str) -> list[Product]:
    _section("Products", "products")
    laptop = await products.create_product(f"laptop-{tag}", "electronics", 1299.0)
    mouse = await products.create_product(f"mouse-{tag}", "electronics", 25.5)
    chair = await products.create_product(f"chair-{tag}", "furniture", 199.0)
    for product in (laptop, mouse, chair):
        click.echo(f"Created {format_entity(product)}")

    await products.bulk_update_stock([mouse.id, chair.id], False)
    in_stock = await products.get_in_stock_products()
    click.echo(f"In stock: {len(in_stock)}")

    affordable = await products.get_products_by_price_range(0, 500)
    click.echo(f"Priced 0-500: {len(affordable)}")

    stats = await products.get_product_statistics()
    click.echo(
        f"Stats: total={stats.total_products} in_stock={stats.in_stock_products} "
        f"average_price={stats.average_price:.2f} categories={', '.join(stats.categories)}"
    )
    return [laptop, mouse, chair]


async def _run_demo(cfg: MongoConfig) -> None:
    connection = ConnectionManager(cfg)
    user_repository = UserRepository(UnitOfWorkFactory(User, connection=connection))
    product_repository = ProductRepository(UnitOfWorkFactory(Product, connection=connection))
    users = UserService(user_repository)
    products = ProductService(product_repository)
    tag = uuid.uuid4().hex[:8]
    correlation_id = set_correlation_id()
    click.echo(f"Correlation id: {correlation_id}")

    created_users: list[User] = []
    created_products: list[Product] = []
    try:
        await user_repository.ensure_indexes()
        created_users = await _user_demo(users, tag)
        await _soft_delete_demo(user_repository, created_users[0])
        await _pagination_demo(user_repository)
        await _transaction_demo(user_repository, tag)
        created_products = await _product_demo(products, tag)
    finally:
        try:
            if created_users or created_products:
                echo_section("Cleanup")
                removed = await user_repository.bulk_delete([by_id(u.id) for u in created_users])
                removed += await product_repository.bulk_delete(
                    [by_id(p.id) for p in created_products]
                )
                click.echo(f"Removed {removed} document(s)")
        finally:
            clear_uow_context()
            await connection.shutdown()


@click.command()
@click.option("--host", default=None, help="MongoDB host (overrides MONGO_HOST)")
@click.option("--port", type=int, default=None, help="MongoDB port (overrides MONGO_PORT)")
@click.option("--database", default=None, help="Database name (overrides MONGO_DATABASE)")
def demo(host: str | None, port: int | None, database: str | None) -> None:
    """
    Run the layered demo against a live MongoDB.

    The transaction step needs a replica set (a single-node one is enough).

    Examples:
        mongo-uow demo
        mongo-uow demo --database unit_of_work_demo
    """
    cfg = build_config(host, port, database)
    click.echo(f"Running demo against {cfg.redacted_connection_string()}")
    try:
        cfg.validate()
        run_async(_run_demo(cfg))
    except UnitOfWorkError as e:
        echo_failure(f"Demo failed: {e}")
        sys.exit(1)
    echo_success("\nDemo completed")
