"""Supacrawl CLI: entry-point for scraping, crawling and speech.

Usage:
    supacrawl --help
    python supacrawl_cli/main.py --help

Commands:
    scrape  → scrape one page
    crawl   → crawl a site and wait for the job to finish
    speak   → scrape (or crawl) a URL and write its description as audio
    serve   → run the web page and its JSON API
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from supacrawl.xxx import ...`
# works when the CLI is invoked as `python supacrawl_cli/main.py`.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import logging

import typer

from supacrawl.config import settings
from supacrawl.extraction.models import CrawlStatus
from supacrawl.extraction.poller import PollPolicy, PollState
from supacrawl.session import SessionController, build_controller
from supacrawl.speech import AudioPlayer, FilePlayer
from supacrawl_cli.rendering import render_json, render_summary

app = typer.Typer(
    name="supacrawl",
    help="Scrape or crawl websites through the extraction API.",
    no_args_is_help=True,
)


@app.callback()
def main() -> None:
    """Configure logging for every command."""
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _make_controller(player: AudioPlayer | None = None) -> SessionController:
    return build_controller(settings, player=player)


def _fail(prefix: str, message: str) -> None:
    typer.echo(f"[{prefix}] Error: {message}", err=True)
    raise typer.Exit(1)


def _echo_progress(status: CrawlStatus) -> None:
    typer.echo(f"[crawl] {status.status} … {status.completed}/{status.total} pages")


# ---------------------------------------------------------------------------
# Scrape
# ---------------------------------------------------------------------------
@app.command("scrape")
def scrape(
    url: str = typer.Option(..., help="URL to scrape."),
    json_output: bool = typer.Option(False, "--json", help="Print the raw JSON result."),
) -> None:
    """Scrape a single URL and print the extracted content."""
    controller = _make_controller()
    try:
        typer.echo(f"[scrape] Scraping {url!r} …", err=json_output)
        state = controller.run_scrape(url)
    finally:
        controller.close()

    if state.error:
        _fail("scrape", state.error)
    typer.echo(render_json(state.result) if json_output else render_summary(state.result))


# ---------------------------------------------------------------------------
# Crawl
# ---------------------------------------------------------------------------
@app.command("crawl")
def crawl(
    url: str = typer.Option(..., help="Site URL to crawl."),
    json_output: bool = typer.Option(False, "--json", help="Print the raw JSON result."),
    unbounded: bool = typer.Option(
        False, "--unbounded", help="Poll until the job ends, with no time limit."
    ),
) -> None:
    """Crawl a website and wait for the crawl job to finish."""
    controller = _make_controller()
    if unbounded:
        controller.poll_policy = PollPolicy.unbounded(settings.crawl_poll_interval)

    try:
        typer.echo(f"[crawl] Starting crawl of {url!r} …", err=json_output)
        outcome = controller.run_crawl(url, on_progress=_echo_progress)
    except KeyboardInterrupt:
        controller.cancel_crawl()
        typer.echo("[crawl] Cancelled.", err=True)
        raise typer.Exit(130)
    finally:
        controller.close()

    state = controller.snapshot()
    if state.error:
        _fail("crawl", state.error)
    if outcome is None or outcome.state is not PollState.COMPLETED:
        _fail("crawl", "Crawl did not complete")
    typer.echo(render_json(state.result) if json_output else render_summary(state.result))


# ---------------------------------------------------------------------------
# Speech
# ---------------------------------------------------------------------------
@app.command("speak")
def speak(
    url: str = typer.Option(..., help="URL whose description should be read aloud."),
    output: Path = typer.Option(Path("speech.mp3"), help="Where to write the audio."),
    use_crawl: bool = typer.Option(
        False, "--crawl", help="Crawl the site and read the first page's description."
    ),
) -> None:
    """Scrape (or crawl) a URL and write its description as spoken audio."""
    controller = _make_controller(player=FilePlayer(output))
    try:
        if use_crawl:
            typer.echo(f"[speak] Crawling {url!r} …")
            controller.run_crawl(url, on_progress=_echo_progress)
        else:
            typer.echo(f"[speak] Scraping {url!r} …")
            controller.run_scrape(url)

        state = controller.snapshot()
        if state.error:
            _fail("speak", state.error)

        typer.echo("[speak] Synthesizing speech …")
        handle = controller.speak()
        state = controller.snapshot()
    finally:
        controller.close()

    if handle is None or state.error:
        _fail("speak", state.error or "Nothing to read")
    typer.echo(f"[speak] Audio written to {output}")


# ---------------------------------------------------------------------------
# Web surface
# ---------------------------------------------------------------------------
@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", help="Interface to bind."),
    port: int = typer.Option(8000, help="Port to listen on."),
    reload: bool = typer.Option(False, help="Reload on code changes."),
) -> None:
    """Run the Supacrawl web page and its JSON API."""
    import uvicorn

    typer.echo(f"[serve] Supacrawl on http://{host}:{port}")
    uvicorn.run("supacrawl.api.app:app", host=host, port=port, reload=reload)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
