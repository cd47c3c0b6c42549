import json
from pathlib import Path

import typer
from rich import print
from rich.console import Console
from rich.table import Table

from retrocast.platform.logging_config import configure_logging

app = typer.Typer(help="RetroCast: retro-style video processing with matched ad breaks.")


@app.callback()
def main(
    log_level: str = typer.Option(None, "--log-level", help="Override LOG_LEVEL for this run"),
):
    configure_logging(level=log_level)


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", "-p", help="Port to listen on"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
):
    """Run the HTTP API (job submission, status and worker endpoints)."""
    import uvicorn

    uvicorn.run("retrocast.api:app", host=host, port=port, reload=reload)


@app.command()
def styles():
    """List the built-in style profiles and their filter chains."""
    from retrocast.features.pipeline.styles import STYLE_FILTERS, audio_filter_chain

    console = Console()
    table = Table(title="Style profiles")
    table.add_column("Style", style="cyan")
    table.add_column("Video filters", style="green")
    for style, filters in STYLE_FILTERS.items():
        table.add_row(style.value, "\n".join(filters))
    console.print(table)
    console.print(f"[dim]Audio chain (all styles): {audio_filter_chain()}[/dim]")


@app.command()
def match(
    file: Path = typer.Argument(..., exists=True, readable=True, help="JSON file with video, ads and maxAds"),
):
    """Rank ads against a video profile and print the resulting schedule."""
    from retrocast.features.matching import logic
    from retrocast.features.matching.models import ScheduleRequest

    request = ScheduleRequest.model_validate(json.loads(file.read_text(encoding="utf-8")))
    matches = logic.rank(request.ads, request.video)
    schedule = logic.build_schedule(matches, request.video.break_points, request.max_ads)

    console = Console()
    ranking = Table(title=f"Ad ranking for {request.video.video_id}")
    ranking.add_column("No", style="dim")
    ranking.add_column("Ad", style="cyan")
    ranking.add_column("Score", style="magenta")
    ranking.add_column("Reason", style="green")
    for idx, m in enumerate(matches, 1):
        ranking.add_row(str(idx), m.ad_id, f"{m.overall_score:.3f}", m.reason)
    console.print(ranking)

    if not schedule:
        console.print("[yellow]No valid ad placements.[/yellow]")
        return

    placement = Table(title=f"Schedule ({len(schedule)} ads)")
    placement.add_column("At (s)", style="cyan")
    placement.add_column("Ad", style="magenta")
    placement.add_column("Duration (s)", style="yellow")
    for item in schedule:
        placement.add_row(
            f"{item.insert_at_seconds:.1f}", item.ad_id, f"{item.duration_seconds:g}"
        )
    console.print(placement)


@app.command("add-video")
def add_video(
    video_id: str,
    user_id: str,
    blob_ref: str,
    title: str = typer.Option("", "--title", "-t", help="Display title"),
):
    """Register a source video in the catalog."""
    from retrocast.platform.storage_factory import get_catalog

    get_catalog().add_video(
        {"id": video_id, "user_id": user_id, "blob_ref": blob_ref, "title": title}
    )
    print(f"[green]Registered video[/green] {video_id} for {user_id}")


@app.command("add-ad")
def add_ad(
    ad_id: str,
    user_id: str,
    blob_ref: str,
    category: list[str] = typer.Option([], "--category", "-c", help="Ad category (repeatable)"),
    tone: str = typer.Option(None, "--tone", help="humorous, serious, nostalgic, exciting, calm or informative"),
    era: str = typer.Option(None, "--era", help="e.g. 1980s, 1990s, modern-retro"),
    energy: int = typer.Option(None, "--energy", min=1, max=10, help="Energy level 1-10"),
    duration: float = typer.Option(None, "--duration", help="Ad length in seconds"),
    analyze: bool = typer.Option(
        True, "--analyze/--no-analyze", help="Fill missing metadata with Gemini ad analysis"
    ),
):
    """Register an ad asset and its matching metadata in the catalog."""
    from retrocast.features.catalog.logic import register_ad
    from retrocast.platform.errors import ExternalServiceError
    from retrocast.platform.storage_factory import get_catalog

    record = {
        "id": ad_id,
        "user_id": user_id,
        "blob_ref": blob_ref,
        "categories": [c.lower() for c in category],
        "tone": tone,
        "era_style": era,
        "energy_level": energy,
        "duration_seconds": duration,
    }

    if not analyze:
        register_ad(get_catalog(), record)
        print(f"[green]Registered ad[/green] {ad_id} for {user_id}")
        return

    from retrocast.features.analysis.gemini_adapter import GeminiAdAnalyzer
    from retrocast.platform.config import get_settings
    from retrocast.platform.storage_factory import get_blob_store

    print(f"[bold green]Analyzing ad {ad_id}...[/bold green]")
    try:
        ad = register_ad(
            get_catalog(),
            record,
            blob_store=get_blob_store(),
            analyzer=GeminiAdAnalyzer(),
            temp_dir=get_settings().temp_dir,
        )
    except ExternalServiceError as exc:
        print(f"[red]Ad analysis failed:[/red] {exc}")
        raise typer.Exit(code=1)

    print(f"[green]Registered ad[/green] {ad_id} for {user_id}")
    print(
        f"  categories={', '.join(ad['categories']) or '-'} tone={ad['tone']} "
        f"era={ad['era_style']} energy={ad['energy_level']}"
    )


@app.command()
def token(user_id: str, name: str = typer.Option("", "--name", help="Display name")):
    """Print a signed bearer token for USER_ID (development helper)."""
    from retrocast.features.auth.jwt import create_access_token

    typer.echo(create_access_token(user_id, name))


if __name__ == "__main__":
    app()
