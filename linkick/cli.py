"""Command line interface: watch a channel, classify URLs, run the API."""
import asyncio
from typing import List, Optional
import typer

from linkick.core.config import settings
from linkick.core.errors import ChannelNotFound
from linkick.core.timezone import display_strftime
from linkick.services.batch_open import BatchOpener
from linkick.services.categorizer import categorize, display_label
from linkick.services.link_store import LinkRecord, SessionView
from linkick.services.session import SessionController

app = typer.Typer(help="Kick live chat link catcher")


def format_link(link: LinkRecord) -> str:
    return (
        f"[{display_strftime('%H:%M')}] {display_label(link.category):<18} "
        f"{link.sender}: {link.url}"
    )


def format_stats(view: SessionView) -> str:
    stats = view.stats
    top = display_label(stats.top_category) if stats.top_category != "none" else "-"
    return (
        f"{stats.total_links} links ({len(view.active_links)} active, "
        f"{len(view.archived_links)} archived), top category: {top}"
    )


def _echo_link(link: LinkRecord):
    typer.echo(format_link(link))


async def _watch(
    slug: str,
    duration: Optional[float],
    open_all: bool,
    yes: bool,
    views: List[SessionView],
):
    """Run one session; the final view is appended to `views` even on Ctrl+C."""
    controller = SessionController()
    try:
        session = await controller.connect(slug, on_link_found=_echo_link)
    except ChannelNotFound:
        await controller.stop()
        raise

    typer.echo(session.summary)
    try:
        if duration is not None:
            await asyncio.sleep(duration)
        else:
            await asyncio.Event().wait()
    finally:
        try:
            if open_all:
                opener = BatchOpener()
                active = controller.snapshot().active_links
                confirm = (lambda n: True) if yes else (
                    lambda n: typer.confirm(f"{n} tabs will be opened. Continue?")
                )
                await opener.open(active, controller.mark_visited_batch, confirm=confirm)
        finally:
            views.append(controller.snapshot())
            await controller.stop()


@app.command()
def watch(
    slug: str = typer.Argument(..., help="Kick channel name"),
    duration: Optional[float] = typer.Option(None, "--duration", "-d", help="Stop after N seconds"),
    open_all: bool = typer.Option(False, "--open-all", help="Open all active links on exit"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the batch-open confirmation"),
):
    """Listen to a channel's live chat and print links as they appear."""
    views: List[SessionView] = []
    try:
        asyncio.run(_watch(slug, duration, open_all, yes, views))
    except ChannelNotFound as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1)
    except KeyboardInterrupt:
        typer.echo("Stopped.")
    if views:
        typer.echo(format_stats(views[-1]))


@app.command(name="categorize")
def categorize_urls(urls: List[str] = typer.Argument(..., help="URLs to classify")):
    """Print the category of each URL."""
    for url in urls:
        category = categorize(url)
        typer.echo(f"{category.value}\t{display_label(category.value)}\t{url}")


@app.command()
def serve(
    host: str = typer.Option(settings.API_HOST, "--host", help="Bind address"),
    port: int = typer.Option(settings.API_PORT, "--port", "-p", help="Bind port"),
):
    """Run the HTTP API."""
    import uvicorn
    uvicorn.run("linkick.main:app", host=host, port=port)


if __name__ == "__main__":
    app()
