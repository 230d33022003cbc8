"""CLI for channel video ingestion."""

import asyncio

import typer
from rich import print as rprint
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from channel_ingest.channel.schemas import ChannelDocument, SyncOptions, SyncResult
from channel_ingest.core.config import get_settings_with_yaml
from channel_ingest.core.exceptions import ChannelSyncError
from channel_ingest.core.logging_config import setup_logging

app = typer.Typer(help="Channel Ingest - Sync YouTube channel videos into MongoDB")
channel_app = typer.Typer(help="Channel tracking commands")
app.add_typer(channel_app, name="channel")
console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Enable debug logging"),
):
    """Configure logging from settings (config.yaml / environment)."""
    settings = get_settings_with_yaml()
    setup_logging("DEBUG" if verbose else settings.log_level, settings.log_file)


@app.command()
def sync(
    channel_id: str = typer.Argument(..., help="Internal channel id (see `channel list`)"),
    max_videos: int | None = typer.Option(None, "--max-videos", help="Maximum videos to ingest (default: 50)"),
    all_videos: bool = typer.Option(False, "--all", help="Ingest every available video"),
    include_shorts: bool = typer.Option(False, "--include-shorts/--no-shorts", help="Keep short-form videos"),
    transcripts: bool = typer.Option(False, "--transcripts/--no-transcripts", help="Fetch captions"),
    mode: str = typer.Option("incremental", "--mode", help="Sync policy: full or incremental"),
):
    """Run one ingestion pass for a tracked channel."""
    from channel_ingest.channel.sync import sync_channel
    from channel_ingest.core.http_session import close_all_clients
    from channel_ingest.database import get_db_manager_context

    if mode not in ("full", "incremental"):
        rprint(f"[red]✗ Invalid mode: {escape(mode)} (expected full or incremental)[/red]")
        raise typer.Exit(2)

    settings = get_settings_with_yaml()
    options = SyncOptions(
        max_videos=settings.all_videos_sentinel if all_videos else max_videos,
        include_shorts=include_shorts,
        include_transcripts=transcripts,
        sync_mode=mode,  # type: ignore[arg-type]
    )

    async def _run() -> SyncResult:
        try:
            async with get_db_manager_context() as db:
                return await sync_channel(channel_id, options, db_manager=db, settings=settings)
        finally:
            await close_all_clients()

    try:
        rprint(f"\n[bold blue]Syncing channel {escape(channel_id)} (mode: {mode})[/bold blue]\n")
        result = asyncio.run(_run())
    except ChannelSyncError as e:
        failure = e.failure
        rprint(f"[red]✗ Sync failed ({failure.kind}): {escape(failure.message)}[/red]")
        rprint(f"   [dim]Run: {failure.run_id}, {failure.duration_ms}ms[/dim]")
        raise typer.Exit(1) from e
    except Exception as e:
        rprint(f"[red]✗ Error: {escape(str(e))}[/red]")
        raise typer.Exit(1) from e

    _display_sync_result(result)


def _display_sync_result(result: SyncResult) -> None:
    rprint(f"\n[green]✓ {escape(result.message)}[/green]")

    table = Table(show_header=False, box=None)
    table.add_column("Field", style="cyan", width=20)
    table.add_column("Value", style="white")
    table.add_row("Run", result.run_id)
    table.add_row("Mode", result.sync_mode)
    table.add_row("Listed", str(result.videos_listed))
    table.add_row("With details", str(result.videos_fetched))
    table.add_row("After filter", str(result.videos_filtered))
    table.add_row("Inserted", str(result.videos_inserted))
    if result.degraded_insert:
        table.add_row("Insert path", "minimal (recompute queued)")
    table.add_row("Duration", f"{result.duration_ms}ms")
    console.print(table)


@channel_app.command("add")
def channel_add(
    reference: str = typer.Argument(..., help="Channel handle, id or URL (e.g., @GoogleDevelopers)"),
):
    """Add a YouTube channel to tracking."""
    from channel_ingest.channel.resolver import resolve_channel
    from channel_ingest.channel.youtube_client import YouTubeDataClient
    from channel_ingest.core.http_session import close_all_clients
    from channel_ingest.database import get_db_manager_context

    async def _add() -> str:
        try:
            client = YouTubeDataClient(settings=get_settings_with_yaml())
            info = await resolve_channel(reference, client)
        finally:
            await close_all_clients()

        channel_doc = ChannelDocument(
            id=ChannelDocument.new_id(),
            channel_id=info.channel_id,
            channel_name=info.name,
            channel_handle=reference if reference.startswith("@") else None,
            subscriber_count=info.subscriber_count,
            video_count=info.video_count,
            avatar_url=info.avatar_url,
        )
        async with get_db_manager_context() as db:
            return await db.save_channel(channel_doc)

    try:
        rprint(f"\n[bold blue]Adding channel: {escape(reference)}[/bold blue]\n")
        doc_id = asyncio.run(_add())
    except Exception as e:
        rprint(f"[red]✗ Error: {escape(str(e))}[/red]")
        raise typer.Exit(1) from e

    rprint("[green]✓ Channel added successfully![/green]")
    rprint(f"   Database ID: {doc_id}\n")


@channel_app.command("list")
def channel_list():
    """List all tracked channels."""
    from channel_ingest.database import get_db_manager_context

    async def _fetch() -> list[ChannelDocument]:
        async with get_db_manager_context() as db:
            return await db.list_channels()

    try:
        channels = asyncio.run(_fetch())
    except Exception as e:
        rprint(f"[red]✗ Error: {escape(str(e))}[/red]")
        raise typer.Exit(1) from e

    if not channels:
        rprint("\n[yellow]No channels being tracked yet.[/yellow]\n")
        rprint("Use [bold]channel-ingest channel add @Handle[/bold] to add a channel.\n")
        return

    table = Table(title="Tracked Channels")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="white", width=30)
    table.add_column("YouTube ID", style="cyan")
    table.add_column("Status", style="yellow")
    table.add_column("Last Sync", style="dim", width=12)

    for ch in channels:
        status = ch.scraping_status
        if ch.scraping_error:
            status = f"{status}: {ch.scraping_error[:30]}"
        table.add_row(
            ch.id,
            ch.channel_name[:28],
            ch.channel_id,
            escape(status),
            ch.last_scraped_at.date().isoformat() if ch.last_scraped_at else "Never",
        )

    console.print(table)
    rprint(f"\n[green]Total: {len(channels)} channel(s)[/green]\n")


@app.command()
def videos(
    channel_id: str = typer.Argument(..., help="Internal channel id"),
    page: int = typer.Option(1, "--page", min=1, help="Page number"),
    limit: int = typer.Option(20, "-l", "--limit", min=1, help="Videos per page"),
):
    """List stored videos of a channel, newest first."""
    from channel_ingest.database import get_db_manager_context

    async def _fetch():
        async with get_db_manager_context() as db:
            channel = await db.get_channel(channel_id)
            if channel is None:
                return None, [], 0
            rows = await db.list_videos(channel_id, page=page, limit=limit)
            return channel, rows, await db.count_videos(channel_id)

    try:
        channel, rows, total = asyncio.run(_fetch())
    except Exception as e:
        rprint(f"[red]✗ Error: {escape(str(e))}[/red]")
        raise typer.Exit(1) from e

    if channel is None:
        rprint(f"[red]Channel not found: {escape(channel_id)}[/red]")
        raise typer.Exit(1)

    if not rows:
        rprint(f"\n[yellow]No videos stored for {escape(channel.channel_name)}[/yellow]\n")
        return

    table = Table(title=f"Videos from {channel.channel_name}")
    table.add_column("Type", style="cyan", width=8)
    table.add_column("Title", style="white", width=55)
    table.add_column("Published", style="dim", width=12)
    table.add_column("Duration", style="green", justify="right")
    table.add_column("Views", justify="right")
    table.add_column("Tier", style="yellow")

    for video in rows:
        title = video.get("title", "Unknown")
        if len(title) > 53:
            title = title[:50] + "..."
        table.add_row(
            video.get("video_type", "regular"),
            escape(title),
            (video.get("published_at") or "N/A")[:10],
            video.get("duration", "0:00"),
            f"{video.get('view_count', 0):,}",
            video.get("absolute_tier", "-"),
        )

    console.print(table)
    rprint(f"\n[green]Page {page}: {len(rows)} of {total} video(s)[/green]\n")


if __name__ == "__main__":
    app()
