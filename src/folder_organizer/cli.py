"""Command line interface for folder organizer."""

import asyncio
import functools
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.prompt import Confirm
from rich.table import Table

from . import __version__
from .core.executor import ExecutionEngine
from .core.history import HistoryStore
from .core.planner import Planner
from .core.reconciliation import Reconciler
from .core.rule_schema import load_rules_file, validate_rule_file
from .core.scan_bridge import ScanBridge
from .core.scanner import TreeScanner
from .core.trash import TrashBin
from .core.undo import UndoEngine
from .exceptions import FolderOrganizerError
from .models.config import OrganizerConfig, load_config
from .models.execution import ExecutionLog, ExecutionOutcome, UndoOutcome
from .models.file_record import ScanResult
from .models.history import HistorySession, UndoItemResult
from .models.plan import ActionPlan, ActionType
from .models.rules import Rule

console = Console()

_OUTCOME_STYLES = {
    ExecutionOutcome.SUCCESS: "green",
    ExecutionOutcome.SKIPPED: "yellow",
    ExecutionOutcome.FAILED: "red",
    UndoOutcome.RESTORED: "green",
    UndoOutcome.SKIPPED: "yellow",
    UndoOutcome.FAILED: "red",
}


@dataclass
class Components:
    """Every core component, wired once from the configuration."""
    config: OrganizerConfig
    trash: TrashBin
    reconciler: Reconciler
    engine: ExecutionEngine
    undo: UndoEngine
    history: HistoryStore
    scan_bridge: ScanBridge

    @classmethod
    def from_config(cls, config: OrganizerConfig) -> "Components":
        trash = TrashBin(config.trash_dir)
        reconciler = Reconciler(trash)
        return cls(
            config=config,
            trash=trash,
            reconciler=reconciler,
            engine=ExecutionEngine(trash),
            undo=UndoEngine(reconciler),
            history=HistoryStore(config.history_file, reconciler),
            scan_bridge=ScanBridge()
        )

    def new_scanner(self) -> TreeScanner:
        return TreeScanner(progress_interval=self.config.progress_interval)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True
    )


def handle_errors(func):
    """Report library errors in red and exit with status 1."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except FolderOrganizerError as e:
            console.print(f"\n[red]Error: {e}[/red]")
            for message in getattr(e, "errors", [])[:10]:
                console.print(f"  • {message}")
            sys.exit(1)
    return wrapper


@click.group()
@click.version_option(version=__version__, prog_name="folder-organizer")
@click.option(
    '--config',
    'config_path',
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Configuration file path'
)
@click.option(
    '--verbose',
    is_flag=True,
    help='Verbose output'
)
@click.pass_context
@handle_errors
def cli(ctx: click.Context, config_path: Optional[Path], verbose: bool):
    """Organize folders with declarative rules, reviewable plans and undo."""
    _setup_logging(verbose)
    config = load_config(config_path) if config_path else OrganizerConfig.default()
    ctx.obj = Components.from_config(config)


def _scan_tree(components: Components, root: Path) -> ScanResult:
    scanner = components.new_scanner()
    components.scan_bridge.register_root(root)
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True
        ) as progress:
            task = progress.add_task(f"Scanning {root}...", total=None)

            def on_progress(count: int, current: Path) -> None:
                progress.update(task, description=f"Scanning... {count} items ({current.name})")

            result = asyncio.run(scanner.scan(root, on_progress))
    finally:
        scanner.close()

    if not result.cancelled:
        components.scan_bridge.mark_scan_completed(root)
    return result


def _load_rules(components: Components, rules_path: Optional[Path]) -> List[Rule]:
    rules_path = rules_path or components.config.rules_file
    if rules_path is None:
        raise click.UsageError("No rule file given; use --rules or set rules_file in the config")
    return load_rules_file(rules_path)


def _display_path(path: Optional[Path], root: Path) -> str:
    if path is None:
        return ""
    try:
        return str(path.relative_to(root))
    except ValueError:
        return str(path)


def _print_scan_errors(result: ScanResult) -> None:
    if not result.errors:
        return
    console.print(f"\n[red]{len(result.errors)} entries could not be read:[/red]")
    for error in result.errors[:10]:
        console.print(f"  • {error.path}: {error.message}")
    if len(result.errors) > 10:
        console.print(f"  ... and {len(result.errors) - 10} more errors")


def _plan_table(plan: ActionPlan, root: Path) -> Table:
    table = Table(title="Organization Plan")
    table.add_column("Action", style="cyan")
    table.add_column("File")
    table.add_column("Result")
    table.add_column("Reason", style="dim")

    for action in plan:
        if action.action_type in (ActionType.MOVE, ActionType.COPY):
            target = _display_path(action.destination, root)
        elif action.action_type == ActionType.RENAME:
            target = action.new_name or ""
        elif action.action_type == ActionType.DELETE:
            target = "trash"
        else:
            target = ""
        table.add_row(action.action_type.value, _display_path(action.source, root), target, action.reason)
    return table


def _execution_table(log: ExecutionLog, root: Path) -> Table:
    table = Table(title="Results")
    table.add_column("Outcome")
    table.add_column("File")
    table.add_column("Details")

    for entry in log.entries:
        style = _OUTCOME_STYLES[entry.outcome]
        details = entry.message or _display_path(entry.destination_path, root)
        table.add_row(f"[{style}]{entry.outcome.value}[/{style}]",
                      _display_path(entry.source_path, root), details)
    return table


def _undo_table(details: List[UndoItemResult]) -> Table:
    table = Table(title="Undo")
    table.add_column("Outcome")
    table.add_column("File")
    table.add_column("Details")

    for detail in details:
        style = _OUTCOME_STYLES[detail.outcome]
        table.add_row(f"[{style}]{detail.outcome.value}[/{style}]", detail.file_name, detail.message)
    return table


@cli.command()
@click.argument('root', type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.pass_obj
@handle_errors
def scan(components: Components, root: Path):
    """Scan ROOT and report what was found."""
    root = root.resolve()
    result = _scan_tree(components, root)

    directories = sum(1 for f in result.files if f.is_directory)
    table = Table(title=f"Scan of {root}")
    table.add_column("Kind", style="cyan")
    table.add_column("Count", justify="right")
    table.add_row("Files", str(result.count - directories))
    table.add_row("Directories", str(directories))
    table.add_row("Errors", str(len(result.errors)))
    console.print(table)

    _print_scan_errors(result)


@cli.command()
@click.argument('root', type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option(
    '--rules',
    'rules_path',
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Rule-set JSON file'
)
@click.pass_obj
@handle_errors
def plan(components: Components, root: Path, rules_path: Optional[Path]):
    """Show what the rules would do to ROOT without changing anything."""
    root = root.resolve()
    rules = _load_rules(components, rules_path)
    result = _scan_tree(components, root)
    action_plan = Planner(base_dir=root).plan(result.files, rules)

    if not action_plan.actions:
        console.print("[yellow]No files matched any rule.[/yellow]")
        return

    console.print(_plan_table(action_plan, root))
    console.print(action_plan.summary())
    _print_scan_errors(result)


@cli.command()
@click.argument('root', type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option(
    '--rules',
    'rules_path',
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Rule-set JSON file'
)
@click.option(
    '--yes',
    is_flag=True,
    help='Apply the plan without asking'
)
@click.pass_obj
@handle_errors
def run(components: Components, root: Path, rules_path: Optional[Path], yes: bool):
    """Plan, approve and apply the rules to ROOT."""
    root = root.resolve()
    rules = _load_rules(components, rules_path)
    result = _scan_tree(components, root)
    action_plan = Planner(base_dir=root).plan(result.files, rules)

    if not action_plan.actions:
        console.print("[yellow]No files matched any rule.[/yellow]")
        return

    console.print(_plan_table(action_plan, root))
    console.print(action_plan.summary())

    if not yes and not Confirm.ask("\nApply this plan?", console=console):
        console.print("[yellow]Cancelled[/yellow]")
        return

    log = components.engine.execute(action_plan)
    session = components.history.record_session(log, root, action_plan)

    console.print(_execution_table(log, root))
    console.print(
        f"\n[green]{log.count(ExecutionOutcome.SUCCESS)} succeeded[/green], "
        f"[yellow]{log.count(ExecutionOutcome.SKIPPED)} skipped[/yellow], "
        f"[red]{log.count(ExecutionOutcome.FAILED)} failed[/red]"
    )
    console.print(f"Session: {session.id} (undo with: folder-organizer undo {session.id})")


@cli.command()
@click.argument('session_id')
@click.option(
    '--item',
    'item_id',
    help='Undo only this item of the session'
)
@click.option(
    '--yes',
    is_flag=True,
    help='Skip confirmation prompt'
)
@click.pass_obj
@handle_errors
def undo(components: Components, session_id: str, item_id: Optional[str], yes: bool):
    """Undo a recorded session (or one of its items)."""
    session = components.history.get_session(session_id)
    if session is None:
        console.print(f"[red]Session {session_id} not found[/red]")
        sys.exit(1)

    console.print(f"Session {session.id} from {session.timestamp.astimezone().strftime('%Y-%m-%d %H:%M:%S')}")
    console.print("[yellow]Files will be moved back where possible; occupied paths are left alone.[/yellow]")
    if not yes and not Confirm.ask("Proceed with undo?", console=console):
        console.print("[yellow]Cancelled[/yellow]")
        return

    if item_id:
        result = components.history.undo_item(session_id, item_id)
        if result.is_failure():
            console.print(f"[red]{result.error()}[/red]")
            sys.exit(1)
        console.print(_undo_table([result.value()]))
        return

    result = components.history.undo_session(session_id)
    if result.is_failure():
        console.print(f"[red]{result.error()}[/red]")
        sys.exit(1)

    undo_result = result.value()
    console.print(_undo_table(undo_result.details))
    style = "green" if undo_result.failed_count == 0 else "red"
    console.print(f"\n[{style}]{undo_result.summary}[/{style}]")


@cli.group()
def history():
    """Inspect and manage recorded sessions."""
    pass


def _session_row(session: HistorySession) -> List[str]:
    status = "undone" if session.is_undone else ""
    return [
        session.id,
        session.timestamp.astimezone().strftime('%Y-%m-%d %H:%M:%S'),
        str(session.folder_path),
        str(len(session.items)),
        f"{session.success_count}/{session.skipped_count}/{session.failed_count}",
        status
    ]


@history.command(name='list')
@click.option(
    '--format',
    'output_format',
    type=click.Choice(['table', 'json']),
    default='table',
    help='Output format'
)
@click.pass_obj
@handle_errors
def list_sessions(components: Components, output_format: str):
    """List recorded sessions, newest first."""
    sessions = components.history.list_sessions()

    if output_format == 'json':
        click.echo(json.dumps([s.to_dict() for s in sessions], indent=2))
        return

    if not sessions:
        console.print("No sessions found")
        return

    table = Table(title=f"{len(sessions)} Sessions")
    for column in ("Session ID", "Time", "Folder", "Items", "OK/Skip/Fail", "Status"):
        table.add_column(column)
    for session in sessions:
        table.add_row(*_session_row(session))
    console.print(table)


@history.command(name='show')
@click.argument('session_id')
@click.pass_obj
@handle_errors
def show_session(components: Components, session_id: str):
    """Show the items of one session."""
    session = components.history.get_session(session_id)
    if session is None:
        console.print(f"[red]Session {session_id} not found[/red]")
        sys.exit(1)

    console.print(f"[bold]Session: {session.id}[/bold]")
    console.print(f"Time: {session.timestamp.astimezone().strftime('%Y-%m-%d %H:%M:%S')}")
    console.print(f"Folder: {session.folder_path}")

    restored = session.restored_item_ids()
    table = Table()
    for column in ("Item ID", "Action", "File", "Outcome", "Current Path", "Rule"):
        table.add_column(column)
    for item in session.current_items():
        current = str(item.current_path) if item.current_path else ""
        if item.id in restored:
            current = f"{current} (restored)"
        table.add_row(item.id, item.action_type.value, item.file_name, item.outcome.value,
                      current, item.rule_name or "")
    console.print(table)


@history.command(name='delete')
@click.argument('session_id')
@click.pass_obj
@handle_errors
def delete_session(components: Components, session_id: str):
    """Forget a session (files are not touched)."""
    result = components.history.delete_session(session_id)
    if result.is_failure():
        console.print(f"[red]{result.error()}[/red]")
        sys.exit(1)
    console.print(f"Deleted session {session_id}")


@history.command(name='clear')
@click.option(
    '--yes',
    is_flag=True,
    help='Skip confirmation prompt'
)
@click.pass_obj
@handle_errors
def clear_history(components: Components, yes: bool):
    """Forget every recorded session."""
    if not yes and not Confirm.ask("Clear the entire history?", console=console):
        console.print("[yellow]Cancelled[/yellow]")
        return
    components.history.clear()
    console.print("History cleared")


@cli.group()
def rules():
    """Work with rule-set files."""
    pass


@rules.command(name='validate')
@click.argument('rules_path', type=click.Path(exists=True, dir_okay=False, path_type=Path))
def validate_rules(rules_path: Path):
    """Check a rule-set file against the rule schema."""
    errors = validate_rule_file(rules_path)
    if errors:
        console.print(f"[red]{rules_path} is invalid:[/red]")
        for error in errors:
            console.print(f"  • {error}")
        sys.exit(1)

    loaded = load_rules_file(rules_path)
    enabled = sum(1 for rule in loaded if rule.enabled)
    console.print(f"[green]{rules_path} is valid[/green]: {len(loaded)} rules ({enabled} enabled)")


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == '__main__':
    main()
