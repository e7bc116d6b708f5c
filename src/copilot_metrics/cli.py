"""CLI entry point for copilot-metrics.

Commands:
- serve: Run the dashboard API server
- activity: Print activity metrics for a token's user
- full: Dump the full profile document as JSON
"""

import asyncio
import json
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.table import Table

from copilot_metrics import __version__
from copilot_metrics.collect import collect_full_data, get_activity_metrics
from copilot_metrics.config import Config, load_config
from copilot_metrics.github.auth import AuthenticationError, Credential, Identity
from copilot_metrics.github.http import GitHubClient, GitHubHTTPError
from copilot_metrics.github.ratelimit import RateLimiter
from copilot_metrics.github.rest import RestClient
from copilot_metrics.logging import setup_logging
from copilot_metrics.models import ActivityMetrics, FullData

console = Console()

config_option = click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to config.yaml file (defaults apply if omitted)",
)
token_option = click.option(
    "--token",
    envvar="GITHUB_TOKEN",
    default=None,
    help="GitHub token (defaults to GITHUB_TOKEN)",
)


@click.group()
@click.version_option(version=__version__, prog_name="copilot-metrics")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable verbose output")
@click.option("--json-logs", is_flag=True, default=False, help="Emit logs as JSON lines")
@click.pass_context
def main(ctx: click.Context, verbose: bool, json_logs: bool) -> None:
    """Copilot metrics dashboard backend.

    \b
    Quick Start:
        1. Export GITHUB_CLIENT_ID and GITHUB_CLIENT_SECRET
        2. Start the API: copilot-metrics serve
        3. Or inspect a token's activity: copilot-metrics activity --token ...
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    setup_logging(verbose=verbose, json_format=json_logs)


@main.command()
@config_option
@click.option("--host", default=None, help="Bind address (overrides config)")
@click.option("--port", type=int, default=None, help="Port (overrides config)")
def serve(config: Path | None, host: str | None, port: int | None) -> None:
    """Run the dashboard API server."""
    import uvicorn

    from copilot_metrics.api import create_app

    cfg = load_config(config)
    bind_host = host or cfg.server.host
    bind_port = port or cfg.server.port

    console.print(f"[bold]Server running at http://{bind_host}:{bind_port}[/bold]")
    if not cfg.github.oauth.is_configured:
        console.print(
            "[yellow]Warning: GitHub OAuth credentials not configured. "
            f"Set {cfg.github.oauth.client_id_env} and {cfg.github.oauth.client_secret_env}.[/yellow]"
        )

    uvicorn.run(create_app(cfg), host=bind_host, port=bind_port, log_config=None)


def _credential_or_abort(token: str | None) -> Credential:
    try:
        return Credential(token)
    except AuthenticationError as e:
        console.print(f"[bold red]Error:[/bold red] {e}. Pass --token or set GITHUB_TOKEN.")
        raise click.Abort() from e


def _client(credential: Credential, cfg: Config) -> GitHubClient:
    limiter = RateLimiter(cfg.rate_limit) if cfg.rate_limit.enabled else None
    return GitHubClient(
        credential,
        timeout=cfg.github.timeout_seconds,
        base_url=cfg.github.api_url,
        rate_limiter=limiter,
    )


async def _run_activity(credential: Credential, cfg: Config) -> tuple[dict[str, Any], ActivityMetrics]:
    async with _client(credential, cfg) as http_client:
        rest = RestClient(http_client, cfg.pagination)
        user = await rest.get_user()
        metrics = await get_activity_metrics(rest, Identity.from_user(user), cfg.activity)
    return user, metrics


async def _run_full(credential: Credential, cfg: Config) -> FullData:
    async with _client(credential, cfg) as http_client:
        return await collect_full_data(RestClient(http_client, cfg.pagination), config=cfg)


@main.command()
@config_option
@token_option
def activity(config: Path | None, token: str | None) -> None:
    """Print activity metrics for the token's user."""
    cfg = load_config(config)
    credential = _credential_or_abort(token)

    try:
        with console.status("Collecting commit activity..."):
            user, metrics = asyncio.run(_run_activity(credential, cfg))
    except GitHubHTTPError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise click.Abort() from e

    table = Table(title=f"Activity for {user.get('login')}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Commits", str(metrics.total_commits))
    table.add_row("Lines added (sampled)", f"{metrics.estimated_lines_added:,}")
    table.add_row("Time saved (minutes)", str(metrics.time_saved_minutes))
    table.add_row("Time saved (hours)", metrics.time_saved_hours)
    table.add_row("Repositories with commits", str(metrics.push_events))
    table.add_row("Last activity", metrics.last_activity or "-")
    console.print(table)

    if metrics.recent_repos:
        repos = Table(title="Recent repositories")
        repos.add_column("Name")
        repos.add_column("Language")
        repos.add_column("Pushed")
        for repo in metrics.recent_repos:
            repos.add_row(repo.name, repo.language or "-", repo.updated or "-")
        console.print(repos)


@main.command()
@config_option
@token_option
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write JSON here instead of stdout",
)
def full(config: Path | None, token: str | None, output: Path | None) -> None:
    """Dump the full profile document (repos, details, events) as JSON."""
    cfg = load_config(config)
    credential = _credential_or_abort(token)

    try:
        with console.status("Collecting full profile..."):
            data = asyncio.run(_run_full(credential, cfg))
    except GitHubHTTPError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise click.Abort() from e

    document = json.dumps(data.model_dump(mode="json", by_alias=True), indent=2)
    if output is None:
        click.echo(document)
        return

    output.write_text(document + "\n")
    console.print(
        f"[bold green]Wrote {len(data.repo_details)} repository records to {output}[/bold green]"
    )
