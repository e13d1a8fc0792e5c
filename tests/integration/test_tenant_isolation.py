"""Isolation guarantees of the scoped executor against PostgreSQL."""

import asyncio
from decimal import Decimal

import pytest
from sqlalchemy import func, select, text

from mercato.core.database import Database
from mercato.core.tenancy import (
    SchemaContextError,
    ScopedTransactionExecutor,
    TenantSession,
)
from mercato.modules.products.models import Product
from tests.integration.conftest import TEST_DATABASE_URL


pytestmark = pytest.mark.integration


class RollbackRequested(Exception):
    pass


async def product_skus(db: TenantSession) -> list[str]:
    return list(await db.scalars(select(Product.sku).order_by(Product.sku)))


class TestTenantIsolation:
    """Each scope reads and writes only its own tenant's tables."""

    async def test_same_model_hits_different_schemas(self, executor, acme, globex) -> None:
        async with executor.scope(acme.id) as db:
            db.add(Product(sku="COFFEE", name="Acme coffee", price=Decimal("3.50")))
        async with executor.scope(globex.id) as db:
            db.add(Product(sku="COFFEE", name="Globex coffee", price=Decimal("2.75")))

        async with executor.scope(acme.id) as db:
            names = list(await db.scalars(select(Product.name)))

        assert names == ["Acme coffee"]

    async def test_concurrent_scopes_do_not_cross(self, executor, acme, globex) -> None:
        async def add_and_read(tenant_id: str, sku: str) -> list[str]:
            async with executor.scope(tenant_id) as db:
                db.add(Product(sku=sku, name=sku, price=Decimal("1.00")))
                await db.flush()
                await asyncio.sleep(0.05)
                return await product_skus(db)

        results = await asyncio.gather(
            *(
                add_and_read(tenant_id, f"{tenant_id}-{n}")
                for n in range(5)
                for tenant_id in (acme.id, globex.id)
            )
        )

        for skus in results:
            prefixes = {sku.split("-")[0] for sku in skus}
            assert len(prefixes) == 1

        assert len(await executor.run(acme.id, product_skus)) == 5
        assert len(await executor.run(globex.id, product_skus)) == 5

    async def test_shared_tables_are_visible_unqualified(self, executor, acme, globex) -> None:
        async with executor.scope(acme.id) as db:
            count = await db.scalar(text("SELECT count(*) FROM tenants"))

        assert count == 2


class TestTransactionOutcome:
    """Commit and rollback end the scope together with the transaction."""

    async def test_error_rolls_back(self, executor, acme) -> None:
        with pytest.raises(RollbackRequested):
            async with executor.scope(acme.id) as db:
                db.add(Product(sku="TEA", name="Tea", price=Decimal("2.00")))
                await db.flush()
                raise RollbackRequested()

        assert await executor.run(acme.id, product_skus) == []

    async def test_normal_exit_commits(self, executor, acme) -> None:
        async with executor.scope(acme.id) as db:
            db.add(Product(sku="TEA", name="Tea", price=Decimal("2.00")))

        assert await executor.run(acme.id, product_skus) == ["TEA"]

    async def test_count_matches_own_rows(self, executor, acme, globex) -> None:
        async with executor.scope(globex.id) as db:
            db.add(Product(sku="PIE", name="Pie", price=Decimal("4.00")))

        async with executor.scope(acme.id) as db:
            total = await db.scalar(select(func.count()).select_from(Product))

        assert total == 0


class TestPooledConnections:
    """A connection returns to the pool with its original lookup scope."""

    async def test_search_path_does_not_outlive_transaction(self, settings, acme) -> None:
        database = Database.from_url(TEST_DATABASE_URL, pool_size=1, max_overflow=0)
        try:
            async with database.engine.connect() as conn:
                before = await conn.scalar(text("SHOW search_path"))

            executor = ScopedTransactionExecutor.from_settings(
                database.session_factory, settings
            )
            async with executor.scope(acme.id) as db:
                inside = await db.scalar(text("SELECT current_schema()"))

            with pytest.raises(RuntimeError):
                async with executor.scope(acme.id):
                    raise RuntimeError("boom")

            async with database.engine.connect() as conn:
                after = await conn.scalar(text("SHOW search_path"))
                leaked = await conn.scalar(text("SELECT to_regclass('products')"))
        finally:
            await database.dispose()

        assert inside == "tenant_abc123"
        assert after == before
        assert leaked is None


class TestSchemaContextFailure:
    """A tenant whose schema is gone is refused before any query runs."""

    async def test_missing_schema(self, executor, database) -> None:
        with pytest.raises(SchemaContextError):
            async with executor.scope("ghost"):
                pytest.fail("scope body must not run")
