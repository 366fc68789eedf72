"""Typer CLI for ScholarFund."""

import asyncio

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(name="scholarfund", help="ScholarFund: scholarship fund administration")
console = Console()


async def _open_db():
    from scholarfund.deps import get_db

    db = get_db()
    await db.init()
    await db.create_all()
    return db


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind host"),
    port: int = typer.Option(8080, help="Bind port"),
):
    """Start the ScholarFund API server."""
    import uvicorn
    from scholarfund.app import create_app

    console.print(f"[bold green]Starting ScholarFund on {host}:{port}[/bold green]")
    uvicorn.run(create_app(), host=host, port=port)


@app.command("init-db")
def init_db():
    """Create all tables in the configured database."""
    from scholarfund.common.config import get_settings

    async def _run():
        db = await _open_db()
        await db.close()

    asyncio.run(_run())
    console.print(f"[bold green]Database ready[/bold green] — {get_settings().db_url}")


@app.command("create-user")
def create_user(
    email: str = typer.Argument(..., help="Staff e-mail known to the identity provider"),
    name: str = typer.Argument(..., help="Full name"),
    role: str = typer.Option("admin", help="admin or super_admin"),
):
    """Add a staff account directly (bootstrap for the first Super Admins)."""
    from scholarfund.common.exceptions import ScholarFundError
    from scholarfund.deps import get_user_service

    async def _run():
        db = await _open_db()
        try:
            async with db.get_session() as session:
                user = await get_user_service().create_user(
                    session, None, full_name=name, email=email, role=role,
                )
                return user.id
        finally:
            await db.close()

    try:
        user_id = asyncio.run(_run())
    except ScholarFundError as e:
        console.print(f"[bold red]{e.code}[/bold red] — {e.message}")
        raise typer.Exit(1)
    console.print(f"[bold green]Created[/bold green] {email} ({role}) id={user_id}")


@app.command()
def summary():
    """Print the current fund position."""
    from scholarfund.deps import get_ledger_service

    async def _run():
        db = await _open_db()
        try:
            async with db.get_session() as session:
                return await get_ledger_service().get_financial_summary(session)
        finally:
            await db.close()

    figures = asyncio.run(_run())
    table = Table(title="Financial Summary")
    table.add_column("Figure")
    table.add_column("Amount", justify="right")
    for label, value in figures.items():
        table.add_row(label.replace("_", " ").title(), f"${value:,.2f}")
    console.print(table)


@app.command()
def health(
    url: str = typer.Option("http://localhost:8080", help="Server URL"),
):
    """Check ScholarFund server health."""
    import httpx

    try:
        resp = httpx.get(f"{url}/health", timeout=5)
        data = resp.json()
        console.print(f"[bold green]{data['status']}[/bold green] — v{data['version']}")
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
