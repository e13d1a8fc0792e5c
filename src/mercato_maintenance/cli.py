"""mercato-admin: tenant maintenance commands."""

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TypeVar

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

import mercato
from mercato.config import Settings, get_settings
from mercato.core.database import Database
from mercato.core.errors import AppException
from mercato.core.logging import configure_logging
from mercato_maintenance import __version__, provisioning
from mercato_maintenance.scoping_lint import find_violations


console = Console()

app = typer.Typer(
    name="mercato-admin",
    help="Provision and maintain Mercato tenants.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

T = TypeVar("T")


def _run(operation: Callable[[Database, Settings], Awaitable[T]]) -> T:
    """Run an async maintenance operation against a fresh database pool."""
    settings = get_settings()
    configure_logging(settings)

    async def runner() -> T:
        database = Database.from_settings(settings)
        try:
            return await operation(database, settings)
        finally:
            await database.dispose()

    try:
        return asyncio.run(runner())
    except AppException as exc:
        console.print(f"[red]Error:[/red] {exc.message}")
        raise typer.Exit(1) from None


@app.command(name="init-db")
def init_db() -> None:
    """Create the shared-schema tables."""
    _run(lambda db, _settings: provisioning.create_shared_tables(db))
    console.print("[green]✓[/green] Shared tables ready")


@app.command()
def provision(
    tenant_id: str = typer.Argument(..., help="Internal tenant ID (letters, digits, - and _)"),
    slug: str = typer.Option(..., "--slug", "-s", help="Login slug"),
    name: str = typer.Option(..., "--name", "-n", help="Display name"),
    admin_username: str | None = typer.Option(
        None, "--admin-username", help="Create a first user with the owner role"
    ),
    admin_password: str | None = typer.Option(
        None, "--admin-password", help="Password for the first user", hide_input=True
    ),
) -> None:
    """Register a tenant and create its schema."""
    if bool(admin_username) != bool(admin_password):
        console.print("[red]Error:[/red] --admin-username and --admin-password go together")
        raise typer.Exit(1)

    tenant = _run(
        lambda db, settings: provisioning.provision_tenant(
            db,
            settings,
            tenant_id=tenant_id,
            slug=slug,
            name=name,
            admin_username=admin_username,
            admin_password=admin_password,
        )
    )
    console.print(f"[green]✓[/green] Provisioned tenant [bold]{tenant.slug}[/bold] ({tenant.id})")


@app.command()
def verify(
    tenant_id: str = typer.Argument(..., help="Internal tenant ID"),
) -> None:
    """Check that a tenant's schema and tables exist."""
    report = _run(
        lambda db, settings: provisioning.verify_tenant_schema(db, settings, tenant_id)
    )
    if report.healthy:
        console.print(f"[green]✓[/green] {report.schema} is complete")
        return

    if not report.exists:
        console.print(f"[red]✗[/red] {report.schema} does not exist")
    else:
        console.print(
            f"[red]✗[/red] {report.schema} is missing: {', '.join(report.missing_tables)}"
        )
    raise typer.Exit(1)


@app.command(name="repair-schemas")
def repair_schemas() -> None:
    """Create missing schemas and tables for every active tenant."""
    reports = _run(provisioning.repair_schemas)

    table = Table(title="Tenant schemas")
    table.add_column("Tenant")
    table.add_column("Schema")
    table.add_column("Status")
    for report in reports:
        status = "[green]ok[/green]" if report.healthy else "[red]incomplete[/red]"
        table.add_row(report.tenant_id, report.schema, status)
    console.print(table)

    if not all(report.healthy for report in reports):
        raise typer.Exit(1)


@app.command()
def deactivate(
    tenant_id: str = typer.Argument(..., help="Internal tenant ID"),
) -> None:
    """Deactivate a tenant. Its sessions stop working immediately."""
    _run(lambda db, settings: provisioning.set_tenant_active(db, settings, tenant_id, False))
    console.print(f"[yellow]Deactivated[/yellow] {tenant_id}")


@app.command()
def activate(
    tenant_id: str = typer.Argument(..., help="Internal tenant ID"),
) -> None:
    """Reactivate a tenant."""
    _run(lambda db, settings: provisioning.set_tenant_active(db, settings, tenant_id, True))
    console.print(f"[green]Activated[/green] {tenant_id}")


@app.command(name="create-admin")
def create_admin(
    email: str = typer.Argument(..., help="Admin email"),
    full_name: str = typer.Option(..., "--full-name", help="Admin's full name"),
    password: str = typer.Option(
        ..., prompt=True, confirmation_prompt=True, hide_input=True
    ),
) -> None:
    """Create a platform superadmin."""
    _run(
        lambda db, settings: provisioning.create_platform_admin(
            db, settings, email=email, password=password, full_name=full_name
        )
    )
    console.print(f"[green]✓[/green] Created platform admin {email}")


@app.command(name="check-scoping")
def check_scoping(
    package_root: Path = typer.Option(
        Path(mercato.__file__).parent,
        "--root",
        help="Directory of the mercato package",
    ),
) -> None:
    """Lint request-serving code for tenant scope bypasses."""
    violations = find_violations(package_root)
    for violation in violations:
        console.print(f"[red]✗[/red] {escape(str(violation))}")
    if violations:
        raise typer.Exit(1)
    console.print("[green]✓[/green] No tenant scoping violations")


@app.callback(invoke_without_command=True)
def version_callback(
    version: bool = typer.Option(
        False, "--version", "-v", help="Show version and exit."
    ),
) -> None:
    """Mercato maintenance CLI."""
    if version:
        console.print(f"[bold cyan]mercato-admin[/bold cyan] version {__version__}")
        raise typer.Exit()


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
