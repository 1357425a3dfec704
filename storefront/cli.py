"""Console inspection of the favorites manager.

Usage:
    storefront-favorites list
    storefront-favorites check VARIANT_ID
    storefront-favorites toggle VARIANT_ID [--product-id]
    storefront-favorites refresh
    storefront-favorites login TOKEN
    storefront-favorites logout
    storefront-favorites remote-check VARIANT_ID
"""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Awaitable, Callable
from typing import TypeVar

import click
from rich.console import Console
from rich.table import Table

from storefront.app import StorefrontContext, configure_logging, validate_environment
from storefront.errors import StorefrontError
from storefront.settings import get_settings

console = Console()

T = TypeVar("T")


async def _create_context() -> StorefrontContext:
    return await StorefrontContext.create(get_settings())


async def _with_context(
    action: Callable[[StorefrontContext], Awaitable[T]], *, start: bool = True
) -> T:
    context = await _create_context()
    try:
        if start:
            await context.start()
        return await action(context)
    finally:
        await context.aclose()


def _run(action: Callable[[StorefrontContext], Awaitable[T]], *, start: bool = True) -> T:
    try:
        return asyncio.run(_with_context(action, start=start))
    except StorefrontError as exc:
        console.print(f"[red]{type(exc).__name__}: {exc}[/red]")
        sys.exit(1)


def _render_favorites(favorite_ids: list[str]) -> None:
    if not favorite_ids:
        console.print("[yellow]No favorites stored for the current identity[/yellow]")
        return

    table = Table(title=f"Favorites ({len(favorite_ids)})")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Identifier", style="cyan")
    for index, favorite_id in enumerate(favorite_ids, 1):
        table.add_row(str(index), favorite_id)
    console.print(table)


@click.group()
@click.option("--verbose", is_flag=True, help="Log at DEBUG level.")
def cli(verbose: bool) -> None:
    """Inspect and mutate the signed-in user's favorites."""

    active_settings = get_settings()
    if verbose:
        active_settings.log_level = "DEBUG"
    configure_logging(active_settings)
    validate_environment(active_settings)


@cli.command("list")
def list_favorites() -> None:
    """Print every favorited identifier."""

    async def action(context: StorefrontContext) -> list[str]:
        return context.favorites.get_all_favorites()

    _render_favorites(_run(action))


@cli.command()
@click.argument("product_id")
def check(product_id: str) -> None:
    """Report whether PRODUCT_ID is a favorite."""

    async def action(context: StorefrontContext) -> bool:
        return context.favorites.is_favorite(product_id)

    if _run(action):
        console.print(f"[green]♥ {product_id} is a favorite[/green]")
    else:
        console.print(f"[dim]♡ {product_id} is not a favorite[/dim]")


@cli.command()
@click.argument("product_id")
@click.option(
    "--product-id/--variant-id",
    "use_product_id",
    default=None,
    help="Send the identifier as product_id instead of product_variant_id.",
)
def toggle(product_id: str, use_product_id: bool | None) -> None:
    """Toggle PRODUCT_ID and report the resulting state."""

    async def action(context: StorefrontContext) -> bool:
        await context.favorites.toggle_favorite(product_id, use_product_id)
        return context.favorites.is_favorite(product_id)

    if _run(action):
        console.print(f"[green]Added {product_id} to favorites[/green]")
    else:
        console.print(f"[green]Removed {product_id} from favorites[/green]")


@cli.command()
def refresh() -> None:
    """Re-initialize favorites from the API."""

    async def action(context: StorefrontContext) -> list[str]:
        await context.favorites.force_reinitialize()
        return context.favorites.get_all_favorites()

    _render_favorites(_run(action, start=False))


@cli.command()
@click.argument("token")
def login(token: str) -> None:
    """Store TOKEN as the access token and reload favorites."""

    async def action(context: StorefrontContext) -> list[str]:
        await context.login(token)
        return context.favorites.get_all_favorites()

    favorites = _run(action, start=False)
    console.print("[green]Access token stored[/green]")
    _render_favorites(favorites)


@cli.command()
def logout() -> None:
    """Forget the access token and the local favorites snapshot."""

    async def action(context: StorefrontContext) -> None:
        await context.logout()

    _run(action, start=False)
    console.print("[green]Signed out[/green]")


@cli.command("remote-check")
@click.argument("product_variant_id")
def remote_check(product_variant_id: str) -> None:
    """Ask the API directly whether PRODUCT_VARIANT_ID is favorited."""

    async def action(context: StorefrontContext) -> bool:
        return await context.favorites_service.check_favorite_status(product_variant_id)

    favorited = _run(action, start=False)
    console.print(f"Server reports is_favorited={favorited}")


if __name__ == "__main__":
    cli()
