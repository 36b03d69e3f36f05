"""Command line interface for mrblame."""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .config import (
    GITHUB_PROVIDER_ID,
    GITLAB_PROVIDER_ID,
    Config,
    ConfigManager,
    ConfigurationError,
)
from .credentials import CredentialStore
from .models import ChangeRequest, LineAttribution, ResolutionOutcome
from .providers import (
    ProviderClient,
    ProviderError,
    ProviderRegistry,
    close_registry,
    create_default_registry,
)
from .resolution import RepositoryEvents, ResolutionCache, ResolutionEngine
from .resolution.notifications import format_error, guidance_for
from .services.git_service import GitService

logger = logging.getLogger(__name__)

console = Console()


class ConsoleNotificationSink:
    """Prints actionable provider failures once; everything else goes to the log."""

    def __init__(self, output: Console):
        self.output = output

    def notify(self, error: ProviderError, provider: ProviderClient) -> None:
        message = format_error(error, provider, "Lookup failed")
        if not error.should_notify_user:
            logger.debug(message)
            return
        self.output.print(f"⚠️  {message}", style="yellow")
        guidance = guidance_for(error, provider)
        if guidance:
            self.output.print(f"   {guidance}", style="yellow")


class Runtime:
    """Objects wired together for one CLI invocation."""

    def __init__(self, config: Config, environ: Optional[Dict[str, str]] = None):
        self.config = config
        self.credentials = CredentialStore()
        self.credentials.load_from_environment(config, environ)
        self.events = RepositoryEvents()
        self.git = GitService(remote_name=config.remote_name, events=self.events)
        self.registry: ProviderRegistry = create_default_registry(
            config, self.credentials
        )
        self.cache = ResolutionCache(ttl_seconds=config.cache.ttl_seconds)
        self.cache.attach(self.events)
        self.engine = ResolutionEngine(
            self.registry,
            self.cache,
            self.git.get_remote_url,
            notifier=ConsoleNotificationSink(console),
        )

    def provider_for(self, file_path: str) -> Optional[ProviderClient]:
        return self.registry.detect_provider(self.git.get_remote_url(file_path))

    async def close(self) -> None:
        await close_registry(self.registry)


def format_reference(provider: Optional[ProviderClient], number: int) -> str:
    # GitLab writes merge requests as !123, GitHub pull requests as #123
    if provider is not None and provider.provider_id == GITLAB_PROVIDER_ID:
        return f"!{number}"
    return f"#{number}"


def describe_outcome(
    outcome: ResolutionOutcome, provider: Optional[ProviderClient]
) -> str:
    if outcome.loading:
        return "[dim]loading…[/dim]"
    if not outcome.checked:
        return "[dim]unresolved[/dim]"
    if outcome.change_request is None:
        return "[dim]no change request[/dim]"
    cr = outcome.change_request
    return f"{format_reference(provider, cr.number)} {escape(cr.title)} ({cr.state.value})"


def _load_runtime(ctx: click.Context) -> Runtime:
    try:
        config = ctx.obj["config_manager"].load()
    except ConfigurationError as e:
        console.print(f"❌ {escape(str(e))}", style="red")
        sys.exit(1)
    return Runtime(config)


def _require_file(file_path: str) -> str:
    path = Path(file_path)
    if not path.is_file():
        console.print(f"❌ Not a file: {escape(file_path)}", style="red")
        sys.exit(1)
    return str(path.resolve())


@click.group()
@click.version_option(__version__, prog_name="mrblame")
@click.option(
    "--config",
    "-c",
    type=click.Path(dir_okay=False),
    help="Path to config file (default: .mrblame/config.json)",
)
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.pass_context
def cli(ctx: click.Context, config: Optional[str], verbose: bool):
    """Show which merge request or pull request introduced each line of a file.

    Tokens are read from the environment (GITLAB_TOKEN, GITHUB_TOKEN by
    default; see the config file to change the variable names).
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s:%(name)s:%(message)s",
    )
    if not verbose:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)

    ctx.obj["config_manager"] = ConfigManager(Path(config) if config else None)


@cli.command()
@click.option("--force", "-f", is_flag=True, help="Overwrite an existing config file")
@click.pass_context
def init(ctx: click.Context, force: bool):
    """Write a default configuration file."""
    config_manager: ConfigManager = ctx.obj["config_manager"]
    if config_manager.config_path.exists() and not force:
        console.print(
            f"❌ {escape(str(config_manager.config_path))} already exists (use --force to overwrite)",
            style="red",
        )
        sys.exit(1)
    config_manager.save(Config())
    console.print(f"✅ Wrote {escape(str(config_manager.config_path))}", style="green")


@cli.command()
@click.pass_context
def status(ctx: click.Context):
    """Show configured providers and credential status."""
    runtime = _load_runtime(ctx)
    table = Table(title="mrblame providers")
    table.add_column("Provider", style="cyan")
    table.add_column("Base URL", style="green")
    table.add_column("Token", style="magenta")

    provider_configs = {
        GITLAB_PROVIDER_ID: runtime.config.gitlab,
        GITHUB_PROVIDER_ID: runtime.config.github,
    }
    for provider_id, provider_config in provider_configs.items():
        provider = runtime.registry.get(provider_id)
        if provider is None:
            table.add_row(provider_id, provider_config.base_url, "[dim]disabled[/dim]")
            continue
        token_state = (
            "✅ set" if provider.has_credential()
            else f"❌ ${provider_config.token_env_var} not set"
        )
        table.add_row(provider.display_name, provider_config.base_url, token_state)

    console.print(table)
    ttl = runtime.config.cache.ttl_seconds
    console.print(
        f"Cache TTL: {ttl}s" if ttl > 0 else "Cache: disabled", style="dim"
    )


@cli.command()
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--line", "-l", "line_number", type=int, help="Only show this line")
@click.pass_context
def blame(ctx: click.Context, file_path: str, line_number: Optional[int]):
    """Show the commit that last changed each committed line."""
    runtime = _load_runtime(ctx)
    path = _require_file(file_path)

    if line_number is not None:
        attribution = runtime.git.get_blame_for_line(path, line_number)
        attributions = {line_number: attribution} if attribution else {}
    else:
        attributions = runtime.git.get_blame(path)

    if not attributions:
        console.print("No committed lines to show.", style="yellow")
        return

    table = Table(show_header=True)
    table.add_column("Line", justify="right", style="cyan")
    table.add_column("Commit", style="yellow")
    table.add_column("Author", style="green")
    table.add_column("Date", style="blue")
    table.add_column("Summary")
    for number in sorted(attributions):
        a = attributions[number]
        table.add_row(
            str(number),
            a.short_id,
            escape(a.author),
            a.timestamp.strftime("%Y-%m-%d"),
            escape(a.summary),
        )
    console.print(table)


async def _resolve_line(
    runtime: Runtime, path: str, attribution: LineAttribution, with_stats: bool
) -> ResolutionOutcome:
    try:
        outcome = await runtime.engine.resolve(path, attribution, join_pending=True)
        if with_stats and outcome.change_request is not None:
            enriched = await runtime.engine.resolve_stats(
                path, attribution, outcome.change_request
            )
            outcome = ResolutionOutcome.resolved(enriched)
        return outcome
    finally:
        await runtime.close()


def _warn_if_head_moved(runtime: Runtime, path: str) -> None:
    # Blame was taken against the HEAD recorded before resolving
    if runtime.git.detect_head_change(path):
        console.print(
            "⚠️  HEAD moved while resolving; results may be stale.", style="yellow"
        )


def _print_change_request(cr: ChangeRequest, provider: Optional[ProviderClient]):
    console.print(
        f"{format_reference(provider, cr.number)} {escape(cr.title)}", style="bold green"
    )
    console.print(f"   State:  {cr.state.value}")
    if cr.merged_at is not None:
        console.print(f"   Merged: {cr.merged_at.isoformat()}")
    console.print(f"   URL:    {cr.url}")
    if cr.stats is not None:
        stats = cr.stats
        if stats.changes_count is not None:
            console.print(f"   Changes: {stats.changes_count}")
        if stats.additions is not None or stats.deletions is not None:
            console.print(
                f"   Diff:   +{stats.additions or 0} -{stats.deletions or 0}"
                f" in {stats.changed_files or 0} file(s)"
            )


@cli.command()
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False))
@click.argument("line_number", type=int)
@click.option("--stats", "with_stats", is_flag=True, help="Also load change statistics")
@click.pass_context
def resolve(ctx: click.Context, file_path: str, line_number: int, with_stats: bool):
    """Find the merge/pull request that introduced LINE_NUMBER of FILE_PATH."""
    runtime = _load_runtime(ctx)
    path = _require_file(file_path)
    runtime.git.detect_head_change(path)

    attribution = runtime.git.get_blame_for_line(path, line_number)
    if attribution is None:
        console.print(
            f"Line {line_number} is not committed (or not in the file).",
            style="yellow",
        )
        return

    provider = runtime.provider_for(path)
    console.print(
        f"{attribution.short_id} {escape(attribution.author)} "
        f"{attribution.timestamp:%Y-%m-%d} {escape(attribution.summary)}",
        style="dim",
    )
    outcome = asyncio.run(_resolve_line(runtime, path, attribution, with_stats))
    _warn_if_head_moved(runtime, path)

    if outcome.change_request is not None:
        _print_change_request(outcome.change_request, provider)
    elif outcome.checked:
        console.print("No merge/pull request found for this commit.", style="yellow")
    else:
        if provider is None:
            console.print(
                "Could not resolve: no supported remote for this repository.",
                style="yellow",
            )
        else:
            console.print("Could not resolve this commit.", style="yellow")
        sys.exit(1)


async def _resolve_all(
    runtime: Runtime, path: str, attributions: Dict[int, LineAttribution]
) -> Dict[str, ResolutionOutcome]:
    # One lookup per distinct commit; duplicates join the in-flight request
    first_lines: Dict[str, LineAttribution] = {}
    for number in sorted(attributions):
        first_lines.setdefault(attributions[number].commit_id, attributions[number])

    try:
        commits: List[Tuple[str, LineAttribution]] = list(first_lines.items())
        outcomes = await asyncio.gather(
            *(
                runtime.engine.resolve(path, attribution, join_pending=True)
                for _, attribution in commits
            )
        )
        return {commit_id: o for (commit_id, _), o in zip(commits, outcomes)}
    finally:
        await runtime.close()


@cli.command()
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def annotate(ctx: click.Context, file_path: str):
    """Show every committed line with the merge/pull request that introduced it."""
    runtime = _load_runtime(ctx)
    path = _require_file(file_path)
    runtime.git.detect_head_change(path)

    attributions = runtime.git.get_blame(path)
    if not attributions:
        console.print("No committed lines to show.", style="yellow")
        return

    provider = runtime.provider_for(path)
    outcomes = asyncio.run(_resolve_all(runtime, path, attributions))
    _warn_if_head_moved(runtime, path)

    table = Table(show_header=True)
    table.add_column("Line", justify="right", style="cyan")
    table.add_column("Commit", style="yellow")
    table.add_column("Author", style="green")
    table.add_column("Change request")
    for number in sorted(attributions):
        a = attributions[number]
        table.add_row(
            str(number),
            a.short_id,
            escape(a.author),
            describe_outcome(outcomes[a.commit_id], provider),
        )
    console.print(table)


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
