"""CLI entry point for test-sentinel."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

import sentinel_agent
from sentinel_agent.core.config import CONFIG_KEYS, SentinelConfig, load_config_file, save_config_value
from sentinel_agent.core.errors import ConfigError

app = typer.Typer(
    name="test-sentinel",
    help="Diagnoses and remediates unexpected browser-test conditions.",
    no_args_is_help=True,
)
patterns_app = typer.Typer(help="Manage knowledge-base patterns.", no_args_is_help=True)
unknown_app = typer.Typer(help="Review unrecognised conditions.", no_args_is_help=True)
app.add_typer(patterns_app, name="patterns")
app.add_typer(unknown_app, name="unknown")

console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Test Sentinel command line."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, rich_tracebacks=True)],
        )


def _load_config(**explicit: Any) -> SentinelConfig:
    try:
        return SentinelConfig.load(**explicit)
    except ConfigError as e:
        console.print(f"[red]Config error: {escape(str(e))}[/]")
        raise typer.Exit(1)


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        console.print(f"[red]Could not read {path}: {escape(str(e))}[/]")
        raise typer.Exit(1)


def _require_api_key(model: str) -> None:
    from sentinel_agent.core.providers import detect_provider, get_provider_class

    try:
        provider_class = get_provider_class(detect_provider(model))
    except ImportError as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)

    has_key, key_name = provider_class.check_api_key()
    if not has_key:
        console.print(
            f"[red]Error: {key_name} environment variable not set.[/]\n"
            f"Set it with: export {key_name}='your-key-here'\n"
            "Or run with --offline to use the knowledge base only.",
        )
        raise typer.Exit(1)


# ── analyze ──────────────────────────────────────────────


@app.command()
def analyze(
    event_json: Path = typer.Argument(..., help="ConditionEvent JSON file"),
    offline: bool = typer.Option(
        False, "--offline", help="Knowledge base only; record unmatched conditions"
    ),
    model: Optional[str] = typer.Option(
        None, "--model", "-m", help="LLM model to use"
    ),
    execute: bool = typer.Option(
        False, "--execute/--dry-run", help="Run plan steps instead of describing them"
    ),
    max_depth: Optional[int] = typer.Option(
        None, "--max-depth", help="Maximum cascade rounds"
    ),
) -> None:
    """Run the diagnosis cascade against a captured condition event."""
    from sentinel_agent.checkers.registry import CheckerChain
    from sentinel_agent.core.advisor import ActionPlanAdvisor
    from sentinel_agent.core.client import SentinelClient
    from sentinel_agent.core.executor import ActionPlanExecutor
    from sentinel_agent.core.models import ConditionEvent
    from sentinel_agent.core.orchestrator import CascadeOrchestrator
    from sentinel_agent.drivers.null_driver import NullLiveState

    data = _read_json(event_json)
    try:
        event = ConditionEvent.from_dict(data)
    except (AttributeError, TypeError, ValueError) as e:
        console.print(f"[red]Invalid condition event: {escape(str(e))}[/]")
        raise typer.Exit(1)

    config = _load_config(
        model=model,
        offline_mode=True if offline else None,
        dry_run=False if execute else True,
        max_depth=max_depth,
    )
    if not config.offline_mode and config.api_enabled:
        _require_api_key(config.model)

    client = SentinelClient(config)
    executor = ActionPlanExecutor(max_risk=config.max_risk_level, dry_run=config.dry_run)
    orchestrator = CascadeOrchestrator(
        CheckerChain(),
        client,
        executor,
        max_depth=config.max_depth,
        console=console,
    )
    result = orchestrator.run(NullLiveState.from_event(event), event)

    final = result.final_insight
    if final is not None and final.has_plan:
        console.print(ActionPlanAdvisor(config.max_risk_level).build_table(final))
    status = "[green]resolved[/]" if result.resolved else "[yellow]unresolved[/]"
    console.print(f"\nCascade finished after {result.depth} round(s): {status}")


# ── patterns ─────────────────────────────────────────────


def _knowledge():
    from sentinel_agent.data.knowledge import KnowledgeStore

    return KnowledgeStore(_load_config().knowledge_base_path)


@patterns_app.command("list")
def patterns_list() -> None:
    """List active patterns, most used first."""
    store = _knowledge()
    patterns = store.find_all()
    if not patterns:
        console.print("[yellow]Knowledge base is empty.[/]")
        raise typer.Exit(0)

    table = Table(title="Known Patterns")
    table.add_column("ID", style="cyan")
    table.add_column("Category", style="green")
    table.add_column("Signals")
    table.add_column("Hits", justify="right")
    table.add_column("Last hit")
    table.add_column("Description")
    for p in patterns:
        table.add_row(
            p.id,
            p.category.value,
            f"{p.min_match_signals}/{p.signal_count()}",
            str(p.hit_count),
            p.last_hit.strftime("%Y-%m-%d %H:%M") if p.last_hit else "-",
            escape(p.description),
        )
    console.print(table)


@patterns_app.command("add")
def patterns_add(
    pattern_json: Path = typer.Argument(..., help="JSON file with one pattern or an array"),
    added_by: Optional[str] = typer.Option(None, "--by", help="Who is adding the pattern"),
) -> None:
    """Add (or replace) patterns from a JSON file."""
    from sentinel_agent.data.models import KnownPattern

    data = _read_json(pattern_json)
    records = data if isinstance(data, list) else [data]
    store = _knowledge()
    for record in records:
        try:
            pattern = KnownPattern.from_dict(record)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            console.print(f"[red]Invalid pattern: {escape(str(e))}[/]")
            raise typer.Exit(1)
        if added_by and not pattern.added_by:
            pattern.added_by = added_by
        store.add(pattern)
        console.print(f"[green]Added pattern {pattern.id}[/]")


@patterns_app.command("disable")
def patterns_disable(pattern_id: str = typer.Argument(..., help="Pattern id")) -> None:
    """Stop matching a pattern. Its record stays on disk."""
    if not _knowledge().disable(pattern_id):
        console.print(f"[red]No active pattern {pattern_id}[/]")
        raise typer.Exit(1)
    console.print(f"[green]Disabled pattern {pattern_id}[/]")


# ── unknown ──────────────────────────────────────────────


def _recorder():
    from sentinel_agent.data.unknown import UnknownConditionRecorder

    return UnknownConditionRecorder(_load_config().unknown_log_path)


@unknown_app.command("list")
def unknown_list(
    status: Optional[str] = typer.Option(
        None, "--status", "-s", help="NEW, REVIEWED, PATTERN_CREATED or IGNORED"
    ),
) -> None:
    """List recorded unknown conditions."""
    from sentinel_agent.data.models import RecordStatus

    recorder = _recorder()
    if status:
        try:
            wanted = RecordStatus(status.strip().upper())
        except ValueError:
            console.print(f"[red]Unknown status: {status}[/]")
            raise typer.Exit(1)
        records = recorder.find_by_status(wanted)
    else:
        records = recorder.find_all()
    if not records:
        console.print("[yellow]No unknown conditions recorded.[/]")
        raise typer.Exit(0)

    table = Table(title="Unknown Conditions")
    table.add_column("ID", style="cyan")
    table.add_column("Status")
    table.add_column("Type", style="green")
    table.add_column("Hits", justify="right")
    table.add_column("URL")
    table.add_column("Message")
    for r in records:
        table.add_row(
            r.id[:8],
            r.status.value,
            r.condition_type,
            str(r.hit_count),
            escape(r.current_url),
            escape(r.message[:80]),
        )
    console.print(table)


@unknown_app.command("review")
def unknown_review(
    record_id: str = typer.Argument(..., help="Record id, or a unique prefix of 8+ characters"),
    reviewed_by: Optional[str] = typer.Option(None, "--by", help="Reviewer"),
    notes: Optional[str] = typer.Option(None, "--notes", help="Review notes"),
) -> None:
    """Mark a record as reviewed."""
    _update_record(_recorder().mark_reviewed(record_id, reviewed_by, notes), record_id)


@unknown_app.command("ignore")
def unknown_ignore(
    record_id: str = typer.Argument(..., help="Record id, or a unique prefix of 8+ characters"),
    reviewed_by: Optional[str] = typer.Option(None, "--by", help="Reviewer"),
    notes: Optional[str] = typer.Option(None, "--notes", help="Why it is ignored"),
) -> None:
    """Mark a record as ignored."""
    _update_record(_recorder().mark_ignored(record_id, reviewed_by, notes), record_id)


@unknown_app.command("link")
def unknown_link(
    record_id: str = typer.Argument(..., help="Record id, or a unique prefix of 8+ characters"),
    pattern_id: str = typer.Argument(..., help="Pattern created for this condition"),
    reviewed_by: Optional[str] = typer.Option(None, "--by", help="Reviewer"),
) -> None:
    """Link a record to the pattern that now covers it."""
    _update_record(
        _recorder().mark_pattern_created(record_id, pattern_id, reviewed_by), record_id
    )


def _update_record(record, record_id: str) -> None:
    if record is None:
        console.print(f"[red]No unknown-condition record {record_id}[/]")
        raise typer.Exit(1)
    console.print(f"[green]{record.id[:8]} -> {record.status.value}[/]")


# ── config / version ─────────────────────────────────────


@app.command()
def config(
    action: str = typer.Argument(
        "get", help="Action: get or set"
    ),
    key: Optional[str] = typer.Argument(
        None, help="Config key"
    ),
    value: Optional[str] = typer.Argument(
        None, help="Value to set"
    ),
) -> None:
    """View or modify configuration."""
    if action == "get":
        effective = _load_config().to_dict()
        stored = load_config_file()
        keys = [key] if key else list(CONFIG_KEYS)
        for k in keys:
            if k not in effective:
                console.print(f"[red]Unknown config key: {k}[/]")
                raise typer.Exit(1)
            source = "" if k in stored else " [dim](default)[/]"
            console.print(f"{k} = {effective[k]}{source}")
    elif action == "set":
        if not key or value is None:
            console.print("[red]Usage: test-sentinel config set <key> <value>[/]")
            raise typer.Exit(1)
        try:
            save_config_value(key, value)
        except ConfigError as e:
            console.print(f"[red]{escape(str(e))}[/]")
            raise typer.Exit(1)
        console.print(f"[green]Set {key} = {value}[/]")
    else:
        console.print("[red]Unknown action. Use 'get' or 'set'.[/]")
        raise typer.Exit(1)


@app.command()
def version() -> None:
    """Print version."""
    console.print(f"test-sentinel {sentinel_agent.__version__}")


if __name__ == "__main__":
    app()
