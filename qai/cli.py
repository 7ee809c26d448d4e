"""
Command-line interface for qai.

Subcommands:
- query: natural language to shell command(s), printed to stdout
- select: record the command the user accepted (called by the zsh widget)
- shell-init: print the shell integration script
- validate-api: check the API key without using tokens
- history: recent queries, learned patterns, statistics, or clear
- tools: manage the tool availability cache
"""

import functools
import logging
import shutil
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import click
from rich.markup import escape
from rich.table import Table

from . import __version__
from .api import OpenAIClient
from .config import QaiSettings, is_api_key_configured, load_config
from .console import ConsoleHelper, get_console
from .errors import ConfigError, HistoryError, QaiError
from .history import HistoryStore, QueryRecord
from .log import get_log_file, setup_logging
from .prompt import PromptContext, load_system_prompt, render_prompt
from .shell import generate_init_script
from .tools import DualCommandList, ToolCache
from .xdg import APP_NAME

logger = logging.getLogger(__name__)


@dataclass
class CliState:
    """Global options shared with subcommands."""
    config_path: Optional[Path] = None
    verbose: bool = False

    def load_settings(self) -> QaiSettings:
        settings = load_config(self.config_path)
        if settings.debug and not self.verbose:
            logging.getLogger(APP_NAME).setLevel(logging.DEBUG)
        return settings


def create_client(settings: QaiSettings) -> OpenAIClient:
    """Create the model client for a command."""
    return OpenAIClient.from_config(settings)


def report_errors(f):
    """Print QaiError as a single "Error: ..." line and exit 1."""
    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except QaiError as e:
            logger.error(f"{e.code}: {e.message}")
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)
    return wrapper


def status_lines(config_path: Optional[Path] = None) -> List[str]:
    """Status shown below the help text."""
    fzf = shutil.which("fzf")
    fzf_status = f"installed ({fzf})" if fzf else "not found (single-result mode)"

    try:
        configured = is_api_key_configured(load_config(config_path))
        key_status = "configured" if configured else "not configured (set QAI_API_KEY)"
    except ConfigError:
        key_status = "unknown (config file invalid)"

    return [
        f"Logs are written to: {get_log_file()}",
        "",
        "Status:",
        f"  fzf: {fzf_status}",
        f"  API key: {key_status}",
    ]


class QaiGroup(click.Group):
    """Command group whose help ends with a status footer."""

    def format_epilog(self, ctx, formatter):
        super().format_epilog(ctx, formatter)
        formatter.write_paragraph()
        for line in status_lines(ctx.params.get("config_path")):
            formatter.write(f"{line}\n")


def _warn(message: str) -> None:
    logger.warning(message)
    ConsoleHelper.warning(get_console(stderr=True), f"Warning: {escape(message)}")


def _open_history(settings: QaiSettings) -> Optional[HistoryStore]:
    """Open the learning store, or None if disabled or unavailable."""
    if not settings.history_enabled:
        return None
    try:
        return HistoryStore(settings.get_history_dir())
    except HistoryError as e:
        _warn(f"history unavailable: {e}")
        return None


def _save_tool_cache(cache: ToolCache) -> None:
    try:
        cache.save()
    except OSError as e:
        _warn(f"failed to save tool cache: {e}")


# ─────────────────────────────────────────────────────────────────────────────
# CLI Group and Commands
# ─────────────────────────────────────────────────────────────────────────────


@click.group(cls=QaiGroup, invoke_without_command=True)
@click.option("-c", "--config", "config_path",
              type=click.Path(dir_okay=False, path_type=Path),
              help="Path to config file")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose (debug) logging")
@click.version_option(version=__version__, prog_name=APP_NAME)
@click.pass_context
def cli(ctx, config_path: Optional[Path], verbose: bool):
    """Natural language to shell commands via LLM."""
    try:
        setup_logging(debug=verbose)
    except OSError as e:
        click.echo(f"Warning: Failed to setup logging: {e}", err=True)

    ctx.obj = CliState(config_path=config_path, verbose=verbose)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.option("-m", "--multi", is_flag=True, help="Return multiple command options")
@click.option("-n", "--count", type=click.IntRange(min=1), default=5, show_default=True,
              help="Number of results (with --multi)")
@click.argument("words", nargs=-1, required=True, metavar="QUERY...")
@click.pass_obj
@report_errors
def query(state: CliState, multi: bool, count: int, words):
    """Send a query to the LLM and print shell command(s)."""
    settings = state.load_settings()
    query_text = " ".join(words)
    logger.info(f"Processing query: {query_text}")

    tool_cache = ToolCache.load()
    context = PromptContext.detect(available_tools=tool_cache.available_tools_for_prompt())
    system_prompt = render_prompt(load_system_prompt(), context, multi=multi, count=count)

    with create_client(settings) as client:
        if multi:
            response = client.query_multi(system_prompt, query_text, count)
        else:
            response = client.query(system_prompt, query_text)

    if multi:
        commands = tool_cache.process_response(DualCommandList.parse(response))[:count]
        _save_tool_cache(tool_cache)
    else:
        commands = [response] if response else []

    store = _open_history(settings)
    if store is not None and multi:
        commands = store.personalize_results(query_text, commands)

    # stdout is captured by the shell widget
    for command in commands:
        click.echo(command)
    logger.info(f"Query successful, {len(commands)} command(s)")

    if store is not None:
        try:
            store.record_query(QueryRecord.create(query_text, commands, settings.model))
        except HistoryError as e:
            _warn(f"query not recorded: {e}")


@cli.command()
@click.argument("query_text", metavar="QUERY")
@click.argument("command")
@click.pass_obj
@report_errors
def select(state: CliState, query_text: str, command: str):
    """Record that COMMAND was chosen for QUERY."""
    settings = state.load_settings()
    if not settings.history_enabled:
        logger.info("History disabled, selection not recorded")
        return

    store = HistoryStore(settings.get_history_dir())
    pattern = store.record_selection(query_text, command)
    ConsoleHelper.dim(
        get_console(),
        f"Recorded '{escape(command)}' for '{escape(pattern.normalized_query)}'",
    )


@cli.command("shell-init")
@click.argument("shell", default="zsh")
@click.pass_obj
@report_errors
def shell_init(state: CliState, shell: str):
    """Print shell initialization script (eval "$(qai shell-init zsh)")."""
    settings = state.load_settings()
    click.echo(generate_init_script(shell, settings), nl=False)


@cli.command("validate-api")
@click.pass_obj
@report_errors
def validate_api(state: CliState):
    """Validate the API key (lists models, no token usage)."""
    settings = state.load_settings()
    console = get_console()

    if settings.get_api_key() is None and settings.allow_no_api_key:
        ConsoleHelper.success(console, "No API key required (allow_no_api_key)")
        return

    with create_client(settings) as client:
        client.validate_api_key()
    ConsoleHelper.success(console, "API key is valid")


@cli.command()
@click.option("-n", "--limit", type=click.IntRange(min=0), default=10, show_default=True,
              help="Number of recent queries to show")
@click.option("-p", "--patterns", is_flag=True, help="Show learned patterns")
@click.option("-s", "--stats", "show_stats", is_flag=True, help="Show statistics")
@click.option("--clear", is_flag=True, help="Clear all history")
@click.pass_obj
@report_errors
def history(state: CliState, limit: int, patterns: bool, show_stats: bool, clear: bool):
    """Show query history and learned patterns."""
    settings = state.load_settings()
    store = HistoryStore(settings.get_history_dir())
    console = get_console()

    if clear:
        store.clear()
        ConsoleHelper.success(console, "History cleared")
        return

    if show_stats:
        stats = store.stats()
        table = Table(title="History Statistics")
        table.add_column("field", style="cyan")
        table.add_column("value")
        table.add_row("Total queries", str(stats.total_queries))
        table.add_row("Unique patterns", str(stats.unique_patterns))
        table.add_row("Patterns with preference", str(stats.patterns_with_preference))
        table.add_row("Location", escape(str(store.data_dir)))
        console.print(table)
        return

    if patterns:
        learned = store.get_patterns_by_usage()
        if not learned:
            ConsoleHelper.dim(console, "No patterns learned yet")
            return
        table = Table(title="Learned Patterns")
        table.add_column("Query", style="cyan")
        table.add_column("Count", justify="right")
        table.add_column("Preferred")
        table.add_column("Last used", style="dim")
        for pattern in learned:
            table.add_row(
                escape(pattern.normalized_query),
                str(pattern.query_count),
                escape(pattern.preferred_command or "-"),
                pattern.last_used.strftime("%Y-%m-%d %H:%M"),
            )
        console.print(table)
        return

    records = store.get_recent_queries(limit)
    if not records:
        ConsoleHelper.dim(console, "No history yet")
        return
    table = Table(title="Recent Queries")
    table.add_column("Time", style="dim")
    table.add_column("Query", style="cyan")
    table.add_column("Command")
    for record in records:
        command = record.final_command() or (record.results[0] if record.results else "-")
        table.add_row(
            record.timestamp.strftime("%Y-%m-%d %H:%M"),
            escape(record.query),
            escape(command),
        )
    console.print(table)


@cli.command()
@click.option("-r", "--refresh", is_flag=True, help="Probe for common modern tools")
@click.option("--clear", is_flag=True, help="Clear the tool cache")
@click.pass_obj
@report_errors
def tools(state: CliState, refresh: bool, clear: bool):
    """Manage the tool cache used to filter suggestions."""
    console = get_console()
    cache = ToolCache.load()

    if clear:
        cache.clear()
        _save_tool_cache(cache)
        ConsoleHelper.success(console, "Tool cache cleared")
        return

    if refresh:
        found = cache.refresh()
        _save_tool_cache(cache)
        ConsoleHelper.success(console, f"Found {len(found)} modern tools")
        if found:
            ConsoleHelper.dim(console, ", ".join(found))
        return

    stats = cache.stats()
    table = Table(title="Tool Cache")
    table.add_column("field", style="cyan")
    table.add_column("value")
    table.add_row("Available", str(stats.available_count))
    table.add_row("Unavailable", str(stats.unavailable_count))
    table.add_row("Modern tools", str(stats.modern_tools_count))
    console.print(table)


def main():
    """Entry point for the qai command."""
    cli(prog_name=APP_NAME)


if __name__ == "__main__":
    main()
