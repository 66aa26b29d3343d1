"""CLI entry-point: python -m eventsaround [search|details|suggest|favorites|history]."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

import typer

from eventsaround.app import App, open_app
from eventsaround.models import Event
from eventsaround.query import Category, RawSearchInput
from eventsaround.results import Failure, StorageError
from eventsaround.settings import Settings

T = TypeVar("T")

app = typer.Typer(help="EventsAround – event search and favorites")
favorites_app = typer.Typer(help="Manage favorited events")
app.add_typer(favorites_app, name="favorites")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
) -> None:
    settings = Settings.from_env()
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, settings.log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _run(func: Callable[[App], Awaitable[T]]) -> T:
    async def runner() -> T:
        async with open_app() as application:
            return await func(application)

    try:
        return asyncio.run(runner())
    except StorageError as exc:
        typer.echo(f"Storage error: {exc}", err=True)
        raise typer.Exit(1)


def _fail(failure: Failure) -> None:
    typer.echo(f"Error: {failure.message}", err=True)
    raise typer.Exit(1)


def _event_line(event: Event, favorite: bool = False) -> str:
    start = event.start_time
    when = start.strftime("%Y-%m-%d %H:%M") if start else "TBA"
    venue = event.venue.name if event.venue else ""
    star = "*" if favorite else " "
    return f"{star} {event.id:<20} {when:<16} {event.name}  @ {venue}".rstrip(" @")


@app.command()
def search(
    keyword: str = typer.Argument(help="Search keyword"),
    radius: int = typer.Option(10, "--radius", "-r", help="Distance in miles."),
    category: str = typer.Option("All", "--category", "-c", help=", ".join(c.value for c in Category)),
    location: str = typer.Option("", "--location", "-l", help="Place name to search around."),
    here: bool = typer.Option(False, "--here", help="Search around the current position."),
) -> None:
    """Search events and list them (favorites are starred)."""
    raw = RawSearchInput(
        keyword=keyword,
        radius=radius,
        category=category,
        location=location,
        use_current_location=here,
    )

    async def go(application: App):
        coordinator = application.search_coordinator()
        return coordinator, await coordinator.search(raw)

    coordinator, result = _run(go)
    if isinstance(result, Failure):
        _fail(result)
    if not coordinator.results:
        typer.echo("No events found.")
        return
    for event in coordinator.results:
        typer.echo(_event_line(event, coordinator.favorite_states.get(event.id, False)))


@app.command()
def details(event_id: str = typer.Argument(help="Event identifier")) -> None:
    """Show event details with artist and venue info when available."""

    async def go(application: App):
        coordinator = application.details_coordinator()
        await coordinator.load(event_id)
        return coordinator

    coordinator = _run(go)
    if coordinator.failure:
        _fail(coordinator.failure)
    event = coordinator.details
    typer.echo(_event_line(event, coordinator.is_favorite))
    if event.category_path:
        typer.echo(f"  Genres: {' | '.join(event.category_path)}")
    if event.price:
        typer.echo(f"  Price:  {event.price}")
    if event.url:
        typer.echo(f"  Tickets: {event.url}")
    if coordinator.artist:
        artist = coordinator.artist
        typer.echo(f"  Artist: {artist.name} ({artist.followers.total} followers)")
        for album in coordinator.albums[:3]:
            typer.echo(f"    {album.release_date}  {album.name}")
    if coordinator.venue:
        typer.echo(f"  Venue:  {coordinator.venue.name}, {coordinator.venue.full_address() or ''}".rstrip(", "))


@app.command()
def suggest(text: str = typer.Argument(help="Partial keyword")) -> None:
    """Print autocomplete suggestions for TEXT."""

    async def go(application: App) -> list[str]:
        coordinator = application.search_coordinator()
        coordinator.on_keyword_changed(text)
        await coordinator.wait_for_suggestions()
        return coordinator.suggestions

    for name in _run(go):
        typer.echo(name)


@app.command()
def history(clear: bool = typer.Option(False, "--clear", help="Forget past searches.")) -> None:
    """List recent search keywords."""

    async def go(application: App):
        if clear:
            return await application.history.clear()
        return await application.history.entries()

    result = _run(go)
    if isinstance(result, Failure):
        _fail(result)
    if clear:
        typer.echo("Search history cleared.")
        return
    for keyword in result:
        typer.echo(f"  {keyword}")


@favorites_app.command(name="list")
def list_favorites() -> None:
    """List favorited events."""

    async def go(application: App) -> list[Event]:
        return application.favorites.all()

    events = _run(go)
    if not events:
        typer.echo("No favorites.")
        raise typer.Exit()
    for event in events:
        typer.echo(_event_line(event, True))


@favorites_app.command(name="add")
def add_favorite(event_id: str = typer.Argument(help="Event identifier")) -> None:
    """Fetch an event and add it to favorites."""

    async def go(application: App):
        fetched = await application.gateway.get_event_details(event_id)
        if isinstance(fetched, Failure):
            return fetched
        return await application.favorites.add(fetched.value.to_event())

    result = _run(go)
    if isinstance(result, Failure):
        _fail(result)
    typer.echo(f"Added {event_id} to favorites.")


@favorites_app.command(name="remove")
def remove_favorite(event_id: str = typer.Argument(help="Event identifier")) -> None:
    """Remove an event from favorites."""

    async def go(application: App):
        return await application.favorites.remove(event_id)

    result = _run(go)
    if isinstance(result, Failure):
        _fail(result)
    typer.echo(f"Removed {event_id} from favorites.")


@favorites_app.command(name="clear")
def clear_favorites() -> None:
    """Remove every favorite."""

    async def go(application: App):
        return await application.favorites.clear()

    result = _run(go)
    if isinstance(result, Failure):
        _fail(result)
    typer.echo("Favorites cleared.")


if __name__ == "__main__":
    app()
