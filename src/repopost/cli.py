"""CLI entry point for repopost."""

from __future__ import annotations

import asyncio
import json
import logging
import mimetypes
from pathlib import Path
from typing import Annotated
from urllib.parse import urlparse

import typer
import yaml
from rich import print as rprint
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from repopost.config import RepoPostConfig, load_config
from repopost.config.loader import DEFAULT_CONFIG_TEMPLATE
from repopost.errors import RepoPostError
from repopost.llm.rate_limiter import RateLimiter
from repopost.pipeline import DraftResult, PublicPage, create_draft_generator
from repopost.publish import LinkedInPublisher
from repopost.screenshots import (
    PageScreenshot,
    ScreenshotClient,
    ScreenshotOrchestrator,
    normalize_url,
)
from repopost.state import PostStore, RepoInfo, screenshot_from_upload

app = typer.Typer(
    name="repopost",
    help="Draft and publish LinkedIn posts about your GitHub repositories.",
)

config_app = typer.Typer(help="Manage repopost configuration.")
app.add_typer(config_app, name="config")

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

# Global state
_config: RepoPostConfig | None = None


def _get_config() -> RepoPostConfig:
    if _config is None:
        return load_config()
    return _config


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=_LOG_LEVELS.get(level, logging.INFO),
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to repopost.yaml")
    ] = None,
) -> None:
    """Global options."""
    global _config
    try:
        _config = load_config(config)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    _configure_logging(_config.log_level)


def _validate_repo_id(repo_id: str) -> tuple[str, str]:
    """Validate and split a repo identifier into (owner, repo_name).

    Raises ValueError if format is invalid.
    """
    parts = repo_id.split("/")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise ValueError(f"Invalid repo identifier '{repo_id}': expected 'owner/repo'")
    return parts[0], parts[1]


def _display_draft(store: PostStore, result: DraftResult) -> None:
    state = store.state
    repo = state.selected_repo
    title = f"Draft for {repo.owner}/{repo.name}" if repo else "Draft"
    rprint(Panel(state.draft_post, title=title, border_style="blue"))
    rprint(f"[dim]{len(state.draft_post)} characters, {len(result.analyzed_files)} files analyzed[/dim]")

    if result.public_pages:
        table = Table(title=f"Public pages ({len(result.public_pages)})")
        table.add_column("Path", style="cyan")
        table.add_column("Description", style="green")
        table.add_column("URL")
        for page in result.public_pages:
            table.add_row(page.path, page.description, page.url)
        rprint(table)

    if state.screenshots:
        _display_screenshots(state.screenshots)


def _display_screenshots(shots: list[PageScreenshot]) -> None:
    table = Table(title=f"Screenshots ({len(shots)})")
    table.add_column("#", justify="right")
    table.add_column("Page", style="cyan")
    table.add_column("Screenshot")
    for i, shot in enumerate(shots, start=1):
        status = shot.screenshot_url or ("uploaded" if shot.is_user_uploaded else "[red]failed[/red]")
        table.add_row(str(i), shot.url or shot.description, status)
    rprint(table)


async def _run_generate(
    cfg: RepoPostConfig,
    owner: str,
    name: str,
    capture: bool,
    token: str | None,
) -> tuple[DraftResult, list[PageScreenshot]]:
    limiter = RateLimiter.from_config(cfg.rate_limit)
    generator = create_draft_generator(cfg, limiter, user_token=token)
    result = await generator.generate(owner, name)

    shots: list[PageScreenshot] = []
    if capture and result.public_pages:
        orchestrator = ScreenshotOrchestrator(
            ScreenshotClient(cfg.screenshots), max_pages=cfg.screenshots.max_pages
        )
        shots = await orchestrator.capture_all(result.public_pages)
    return result, shots


@app.command()
def generate(
    repo: str = typer.Argument(..., help="Repository as owner/repo"),
    screenshots: bool = typer.Option(
        False, "--screenshots", help="Capture screenshots of the detected public pages"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
    token: str | None = typer.Option(
        None, "--token", help="GitHub token to use instead of the configured fallback"
    ),
) -> None:
    """Draft a LinkedIn post about a repository."""
    cfg = _get_config()
    try:
        owner, name = _validate_repo_id(repo)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    store = PostStore()
    store.open_modal()
    store.set_generating(True)
    try:
        result, shots = asyncio.run(_run_generate(cfg, owner, name, screenshots, token))
    except (RepoPostError, ValueError) as e:
        rprint(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    finally:
        store.set_generating(False)

    store.set_selected_repo(
        RepoInfo(name=name, owner=owner, url=result.repo_url, homepage=result.homepage)
    )
    store.set_draft_post(result.draft)
    store.set_screenshots(shots)
    if store.valid_screenshots():
        store.set_post_type("image")

    if as_json:
        payload = {
            **result.model_dump(),
            "screenshots": [s.model_dump() for s in store.state.screenshots],
        }
        typer.echo(json.dumps(payload, indent=2))
        return
    _display_draft(store, result)


@app.command()
def capture(
    urls: list[str] = typer.Argument(..., help="Page URLs to capture (scheme optional)"),
) -> None:
    """Capture screenshots of arbitrary pages."""
    cfg = _get_config()
    pages = []
    for url in urls:
        normalized = normalize_url(url)
        pages.append(
            PublicPage(path=urlparse(normalized).path or "/", url=normalized, description=url)
        )
    orchestrator = ScreenshotOrchestrator(
        ScreenshotClient(cfg.screenshots), max_pages=cfg.screenshots.max_pages
    )
    shots = asyncio.run(orchestrator.capture_all(pages))
    _display_screenshots(shots)
    if not any(s.screenshot_url for s in shots):
        raise typer.Exit(1)


@app.command()
def publish(
    text_file: Path = typer.Option(..., "--text-file", "-t", help="File with the post text"),
    images: list[str] = typer.Option(
        [], "--image", "-i", help="Screenshot URL to attach (repeatable)"
    ),
    uploads: list[Path] = typer.Option(
        [], "--upload", "-u", help="Local image file to attach (repeatable)"
    ),
) -> None:
    """Publish a post to LinkedIn, as text or as an image carousel."""
    cfg = _get_config()
    if not text_file.exists():
        rprint(f"[red]Error:[/red] {text_file} not found")
        raise typer.Exit(1)

    store = PostStore()
    try:
        store.set_draft_post(text_file.read_text())
        for url in images:
            store.add_screenshot(PageScreenshot(url=url, description=url, screenshot_url=url))
        for path in uploads:
            content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
            store.add_screenshot(
                screenshot_from_upload(
                    path.read_bytes(),
                    content_type,
                    description=path.name,
                    max_bytes=cfg.linkedin.max_upload_bytes,
                )
            )
        if store.state.screenshots:
            store.set_post_type("image")

        publisher = LinkedInPublisher.from_env(cfg.linkedin)
        store.set_posting(True)
        result = asyncio.run(
            publisher.publish(
                store.state.draft_post,
                store.state.post_type,
                store.valid_screenshots(),
            )
        )
    except (RepoPostError, ValueError) as e:
        rprint(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    finally:
        store.set_posting(False)

    store.reset()
    rprint(f"[green]Published:[/green] {result.post_id}")


# ---------------------------------------------------------------------------
# config subcommands
# ---------------------------------------------------------------------------


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
) -> None:
    """Write a default repopost.yaml in the current directory."""
    path = Path("repopost.yaml")
    if path.exists() and not force:
        rprint(f"[yellow]{path} already exists[/yellow] (use --force to overwrite)")
        raise typer.Exit(1)
    path.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {path}")


@config_app.command("show")
def config_show() -> None:
    """Print the effective configuration."""
    cfg = _get_config()
    typer.echo(yaml.safe_dump(cfg.model_dump(), sort_keys=False))
