"""Tenant provisioning and schema maintenance.

Creating schemas and tables is DDL, which lives outside the request path.
Tenant tables are created from ``TenantBase.metadata`` (which carries no
schema) by translating the blank schema to the tenant's schema name.
"""

from dataclasses import dataclass, field

import structlog
from sqlalchemy import Select, delete, func, select, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncConnection
from sqlalchemy.schema import CreateSchema

import mercato.models  # noqa: F401
from mercato.config import Settings
from mercato.core.auth.backend import hash_password
from mercato.core.database import Database, SharedBase, TenantBase
from mercato.core.errors import ConflictError, NotFoundError
from mercato.core.permissions.models import Permission, Role
from mercato.core.tenancy import (
    ScopedTransactionExecutor,
    SharedSchemaExecutor,
    TenantDirectory,
    TenantRecord,
    TenantSession,
    schema_name_for,
    validate_tenant_id,
)
from mercato.core.tenancy.models import Tenant
from mercato.modules.admins.models import PlatformAdmin
from mercato.modules.admins.repos import PlatformAdminRepository
from mercato.modules.users.models import User
from mercato.modules.users.repos import UserRepository
from mercato_maintenance import legacy


logger = structlog.get_logger()

# Role name -> permissions seeded into every new tenant
DEFAULT_ROLES: dict[str, list[tuple[str, str]]] = {
    "owner": [("*", "*")],
    "manager": [("products", "read"), ("products", "write")],
    "cashier": [("products", "read")],
}


@dataclass
class SchemaReport:
    """Result of checking one tenant schema."""

    tenant_id: str
    schema: str
    exists: bool
    missing_tables: list[str] = field(default_factory=list)

    @property
    def healthy(self) -> bool:
        return self.exists and not self.missing_tables


async def create_shared_tables(database: Database) -> None:
    """Create the shared-schema tables (tenant directory, platform admins)."""
    async with database.engine.begin() as conn:
        await conn.run_sync(SharedBase.metadata.create_all)
    logger.info("shared_tables_created")


async def create_tenant_tables(conn: AsyncConnection, schema: str) -> None:
    """Create a tenant schema and any missing tenant tables inside it.

    Idempotent: existing schema and tables are left alone.
    """
    await conn.execute(CreateSchema(schema, if_not_exists=True))
    scoped = await conn.execution_options(schema_translate_map={None: schema})
    await scoped.run_sync(TenantBase.metadata.create_all)


async def _seed_tenant(
    db: TenantSession,
    admin_username: str | None,
    admin_password: str | None,
) -> None:
    permissions: dict[tuple[str, str], Permission] = {}
    roles: dict[str, Role] = {}

    for role_name, grants in DEFAULT_ROLES.items():
        role = Role(name=role_name, is_default=role_name == "cashier", permissions=[])
        for resource, action in grants:
            key = (resource, action)
            if key not in permissions:
                permissions[key] = Permission(resource=resource, action=action)
            role.permissions.append(permissions[key])
        roles[role_name] = role
        db.add(role)
    await db.flush()

    if admin_username and admin_password:
        repo = UserRepository(db)
        user = await repo.create(
            User(
                username=admin_username,
                password_hash=hash_password(admin_password),
                full_name="Administrator",
            )
        )
        await repo.assign_role(user, roles["owner"])


async def provision_tenant(
    database: Database,
    settings: Settings,
    *,
    tenant_id: str,
    slug: str,
    name: str,
    admin_username: str | None = None,
    admin_password: str | None = None,
) -> TenantRecord:
    """Register a tenant, create its schema and tables, and seed its roles.

    The directory row is written inactive first, which reserves the ID and
    slug, and is activated only once the schema is created and seeded. If
    any step fails the reservation is removed again.

    Args:
        database: The shared database
        settings: Application settings (schema prefix, shared schema)
        tenant_id: Internal ID; the schema name is derived from it
        slug: Login slug
        name: Display name
        admin_username: Optional first user, given the owner role
        admin_password: Password for the first user

    Raises:
        MalformedTenantIdError: If the ID fails the allow-list
        ConflictError: If the ID (in any letter case) or slug is taken
    """
    validate_tenant_id(tenant_id)
    schema = schema_name_for(tenant_id, settings.tenant_schema_prefix)
    shared = SharedSchemaExecutor.from_settings(database.session_factory, settings)
    conflict = ConflictError(
        "A tenant with this ID or slug already exists",
        error_code="tenant_exists",
        details={"tenant_id": tenant_id, "slug": slug},
    )

    try:
        async with shared.scope() as session:
            if (await session.execute(tenant_conflict_query(tenant_id, slug))).first():
                raise conflict
            session.add(
                Tenant(id=tenant_id, slug=slug, name=name, is_active=False, database_url=None)
            )
    except IntegrityError as exc:
        # Lost a race with a concurrent provisioning of the same ID or slug
        raise conflict from exc

    try:
        async with database.engine.begin() as conn:
            await create_tenant_tables(conn, schema)

        executor = ScopedTransactionExecutor.from_settings(
            database.session_factory, settings
        )
        async with executor.scope(tenant_id) as db:
            await _seed_tenant(db, admin_username, admin_password)
    except Exception:
        logger.exception("tenant_provisioning_failed", tenant_id=tenant_id, schema=schema)
        async with shared.scope() as session:
            await session.execute(delete(Tenant).where(Tenant.id == tenant_id))
        raise

    async with shared.scope() as session:
        tenant = await session.get(Tenant, tenant_id)
        if tenant is None:
            raise NotFoundError("Tenant not found", resource="tenant", resource_id=tenant_id)
        tenant.is_active = True

    logger.info("tenant_provisioned", tenant_id=tenant_id, slug=slug, schema=schema)
    return TenantRecord.model_validate(tenant)


def tenant_conflict_query(tenant_id: str, slug: str) -> Select[tuple[Tenant]]:
    """Select tenants whose ID (ignoring case) or slug is already taken."""
    return select(Tenant).where(
        (func.lower(Tenant.id) == tenant_id.lower()) | (Tenant.slug == slug)
    )


async def verify_tenant_schema(
    database: Database,
    settings: Settings,
    tenant_id: str,
) -> SchemaReport:
    """Check that a tenant's schema and every tenant table exist."""
    schema = schema_name_for(tenant_id, settings.tenant_schema_prefix)
    expected = {table.name for table in TenantBase.metadata.sorted_tables}

    async with database.engine.connect() as conn:
        exists = (
            await conn.execute(
                text(
                    "SELECT 1 FROM information_schema.schemata "
                    "WHERE schema_name = :schema"
                ),
                {"schema": schema},
            )
        ).first() is not None
        if not exists:
            return SchemaReport(tenant_id, schema, exists=False, missing_tables=sorted(expected))

        result = await conn.execute(
            text(
                "SELECT table_name FROM information_schema.tables "
                "WHERE table_schema = :schema"
            ),
            {"schema": schema},
        )
        present = {row[0] for row in result}

    return SchemaReport(
        tenant_id,
        schema,
        exists=True,
        missing_tables=sorted(expected - present),
    )


async def repair_schemas(database: Database, settings: Settings) -> list[SchemaReport]:
    """Create missing schemas and tables for every active tenant.

    Goes through the legacy engine entry point because it runs DDL across
    many schemas on one connection, which a scoped transaction forbids.

    Returns:
        The post-repair report for each tenant
    """
    shared = SharedSchemaExecutor.from_settings(database.session_factory, settings)
    tenants = await TenantDirectory(shared).list_tenants()
    reports: list[SchemaReport] = []

    for tenant in tenants:
        schema = schema_name_for(tenant.id, settings.tenant_schema_prefix)
        engine = legacy.get_tenant_engine(database, tenant.database_url)
        async with engine.begin() as conn:
            await create_tenant_tables(conn, schema)
        report = await verify_tenant_schema(database, settings, tenant.id)
        logger.info(
            "tenant_schema_repaired",
            tenant_id=tenant.id,
            healthy=report.healthy,
            missing_tables=report.missing_tables,
        )
        reports.append(report)

    return reports


async def set_tenant_active(
    database: Database,
    settings: Settings,
    tenant_id: str,
    active: bool,
) -> TenantRecord:
    """Activate or deactivate a tenant.

    A deactivated tenant's sessions are rejected on their next request.
    Its schema and data are left untouched.

    Raises:
        NotFoundError: If no tenant has this ID
    """
    validate_tenant_id(tenant_id)
    shared = SharedSchemaExecutor.from_settings(database.session_factory, settings)

    async with shared.scope() as session:
        tenant = await session.get(Tenant, tenant_id)
        if tenant is None:
            raise NotFoundError("Tenant not found", resource="tenant", resource_id=tenant_id)
        tenant.is_active = active

    logger.info("tenant_status_changed", tenant_id=tenant_id, is_active=active)
    return TenantRecord.model_validate(tenant)


async def create_platform_admin(
    database: Database,
    settings: Settings,
    *,
    email: str,
    password: str,
    full_name: str,
) -> PlatformAdmin:
    """Create a superadmin account in the shared schema.

    Raises:
        ConflictError: If the email is already registered
    """
    shared = SharedSchemaExecutor.from_settings(database.session_factory, settings)

    async with shared.scope() as session:
        repo = PlatformAdminRepository(session)
        if await repo.get_by_email(email):
            raise ConflictError(
                "A platform admin with this email already exists",
                error_code="admin_exists",
            )
        admin = await repo.create(
            PlatformAdmin(
                email=email,
                password_hash=hash_password(password),
                full_name=full_name,
            )
        )

    logger.info("platform_admin_created", user_id=str(admin.id))
    return admin
