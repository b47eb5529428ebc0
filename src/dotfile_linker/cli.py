from __future__ import annotations

from dataclasses import replace
from importlib.metadata import version
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from dotfile_linker.core.linker import Confirm, SymlinkManager
from dotfile_linker.core.manifest import (
    DEFAULT_REPO,
    Manifest,
    ManifestError,
    default_manifest,
    default_manifest_path,
    load_manifest,
    save_manifest,
)
from dotfile_linker.core.models import ApplyReport, LinkRequest, LinkStatus
from dotfile_linker.logging_utils import configure_logging


def _version_callback(value: bool) -> None:
    if value:
        print(f"dotfile-linker {version('dotfile-linker')}")
        raise typer.Exit()


app = typer.Typer(
    name="dotfile-linker",
    help="Symlink dotfiles into place, backing up whatever was there first.",
    invoke_without_command=True,
)
console = Console()

_STATUS_STYLES = {
    LinkStatus.LINKED: "green",
    LinkStatus.ALREADY_LINKED: "dim green",
    LinkStatus.BACKED_UP_AND_LINKED: "cyan",
    LinkStatus.SKIPPED_BY_USER: "yellow",
    LinkStatus.FAILED: "red",
}


def _load_manifest(manifest_path: Path | None, dotfiles_dir: Path | None) -> Manifest:
    """Load the manifest (explicit path, then the default location, then built-in)."""
    try:
        if manifest_path is not None:
            manifest = load_manifest(manifest_path)
        elif default_manifest_path().is_file():
            manifest = load_manifest(default_manifest_path())
        else:
            manifest = default_manifest()
    except ManifestError as e:
        console.print(f"[red]{e}[/red]", soft_wrap=True)
        raise typer.Exit(code=1)

    if dotfiles_dir is not None:
        manifest = replace(manifest, dotfiles_dir=dotfiles_dir)
    return manifest


def _resolve_requests(manifest: Manifest) -> list[LinkRequest]:
    dotfiles_dir = Path(manifest.dotfiles_dir).expanduser()
    if not dotfiles_dir.is_dir():
        console.print(
            f"[yellow]Dotfiles directory not found: {dotfiles_dir}. "
            "Run 'dotfile-linker sync' first.[/yellow]",
            soft_wrap=True,
        )
        raise typer.Exit(code=1)
    return manifest.resolve()


def _prompt_confirm(dest: Path) -> bool:
    return typer.confirm(
        f"Configuration already exists at {dest}. Overwrite and back up the original?",
        default=False,
    )


def _print_report(report: ApplyReport) -> None:
    table = Table(title=f"Link Results ({len(report.outcomes)} links)")
    table.add_column("Destination", style="white")
    table.add_column("Outcome", no_wrap=True)
    table.add_column("Detail", style="dim")

    for outcome in report.outcomes:
        style = _STATUS_STYLES[outcome.status]
        label = outcome.label
        detail = outcome.detail
        if outcome.severe:
            style = "bold red"
            label = f"ATTENTION {label}"
            detail = f"original moved to {outcome.backup_path}; {detail}"
        elif outcome.backup_path is not None:
            detail = f"backup: {outcome.backup_path}"
        table.add_row(str(outcome.request.dest), f"[{style}]{label}[/{style}]", detail)

    console.print(table)
    console.print(f"\n{report.summary}.")

    if report.backup_dir is not None:
        console.print(
            f"All original files were backed up to: [bold]{report.backup_dir}[/bold]"
        )
    for outcome in report.severe:
        console.print(
            f"[bold red]{outcome.request.dest} is not linked and its original is "
            f"in {outcome.backup_path}. Restore or link it by hand.[/bold red]"
        )


def _finish(report: ApplyReport, as_json: bool) -> None:
    if as_json:
        from dotfile_linker.core.report import report_to_json

        typer.echo(report_to_json(report).decode())
    else:
        _print_report(report)
    if not report.ok:
        raise typer.Exit(code=1)


@app.command("link")
def link(
    manifest_path: Path = typer.Option(
        None,
        "--manifest",
        "-m",
        help="YAML manifest listing the links (default: ~/.config/dotfile-linker/manifest.yaml, else built-in list)",
    ),
    dotfiles_dir: Path = typer.Option(
        None,
        "--dotfiles-dir",
        "-d",
        help="Override the dotfiles directory from the manifest",
    ),
    backup_root: Path = typer.Option(
        None,
        "--backup-root",
        help="Directory that receives the timestamped backup directory (default: home)",
    ),
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        is_flag=True,
        help="Back up and replace existing configurations without asking",
    ),
    no_input: bool = typer.Option(
        False,
        "--no-input",
        is_flag=True,
        help="Never prompt; leave existing configurations untouched",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print the results as JSON",
    ),
    log_file: Path = typer.Option(
        None,
        "--log-file",
        help="Append the operation log here (default: ~/dotfile-linker.log)",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        is_flag=True,
        help="Show every log line on the console",
    ),
):
    """Link every manifest entry, backing up existing configurations first."""
    if yes and no_input:
        console.print("[red]--yes and --no-input are mutually exclusive.[/red]")
        raise typer.Exit(code=2)
    if as_json and not (yes or no_input):
        console.print("[red]--json needs --yes or --no-input, it never prompts.[/red]")
        raise typer.Exit(code=2)

    # Keep stdout parseable in JSON mode
    configure_logging(Console(stderr=True) if as_json else console, log_file, verbose)
    requests = _resolve_requests(_load_manifest(manifest_path, dotfiles_dir))

    confirm: Confirm
    if yes:
        confirm = lambda dest: True  # noqa: E731
    elif no_input:
        confirm = lambda dest: False  # noqa: E731
    else:
        confirm = _prompt_confirm

    if not as_json:
        console.print(f"Checking {len(requests)} configurations to link...")
    report = SymlinkManager(backup_root=backup_root).apply(requests, confirm)
    _finish(report, as_json)


@app.command("status")
def status(
    manifest_path: Path = typer.Option(
        None,
        "--manifest",
        "-m",
        help="YAML manifest listing the links",
    ),
    dotfiles_dir: Path = typer.Option(
        None,
        "--dotfiles-dir",
        "-d",
        help="Override the dotfiles directory from the manifest",
    ),
):
    """Show what 'link' would do for each entry, without changing anything."""
    from dotfile_linker.tui.review_screen import build_rows

    rows = build_rows(_resolve_requests(_load_manifest(manifest_path, dotfiles_dir)))

    table = Table(title=f"Link Status ({len(rows)} links)")
    table.add_column("State", no_wrap=True)
    table.add_column("Destination", style="white")
    table.add_column("Source", style="cyan")

    styles = {
        "linked": "green",
        "will link": "cyan",
        "back up & link": "yellow",
        "no permission": "red",
        "source missing": "red",
    }
    for row in rows:
        label = row.state_label
        style = styles[label]
        table.add_row(f"[{style}]{label}[/{style}]", str(row.request.dest), str(row.request.source))

    console.print(table)
    pending = sum(1 for r in rows if r.state_label != "linked")
    console.print(f"\n[bold]{pending}[/bold] of {len(rows)} links need attention.")


@app.command("init-manifest")
def init_manifest(
    output: Path = typer.Option(
        None,
        "--output",
        "-o",
        help="Where to write the manifest (default: ~/.config/dotfile-linker/manifest.yaml)",
    ),
    dotfiles_dir: Path = typer.Option(
        None,
        "--dotfiles-dir",
        "-d",
        help="Dotfiles directory to record in the manifest",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        is_flag=True,
        help="Overwrite an existing manifest",
    ),
):
    """Write the built-in link list as an editable YAML manifest."""
    output = output or default_manifest_path()
    if output.exists() and not force:
        console.print(f"[red]{output} already exists. Use --force to overwrite.[/red]")
        raise typer.Exit(code=1)

    manifest = default_manifest(dotfiles_dir)
    save_manifest(manifest, output)
    console.print(f"Manifest with {len(manifest.links)} links written to [bold]{output}[/bold]")


@app.command("sync")
def sync(
    manifest_path: Path = typer.Option(
        None,
        "--manifest",
        "-m",
        help="YAML manifest naming the dotfiles directory and repository",
    ),
    dotfiles_dir: Path = typer.Option(
        None,
        "--dotfiles-dir",
        "-d",
        help="Override the dotfiles directory from the manifest",
    ),
    repo: str = typer.Option(
        None,
        "--repo",
        "-r",
        help="Repository URL to clone (default: the manifest's repo)",
    ),
    log_file: Path = typer.Option(
        None,
        "--log-file",
        help="Append the operation log here (default: ~/dotfile-linker.log)",
    ),
):
    """Clone the dotfiles repository, or pull if it is already present."""
    from dotfile_linker.core.repo import RepoSyncError, SyncAction, sync_repo

    configure_logging(console, log_file)
    manifest = _load_manifest(manifest_path, dotfiles_dir)
    target = Path(manifest.dotfiles_dir).expanduser()
    repo_url = repo or manifest.repo or DEFAULT_REPO

    try:
        action = sync_repo(repo_url, target)
    except RepoSyncError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)

    if action is SyncAction.CLONED:
        console.print(f"[green]Repository cloned into {target}.[/green]")
    else:
        console.print(f"[green]Repository updated in {target}.[/green]")


@app.command("backups")
def backups(
    backup_root: Path = typer.Option(
        None,
        "--backup-root",
        help="Directory holding the backup directories (default: home)",
    ),
):
    """List backup directories left by earlier runs, newest first."""
    from dotfile_linker.core.backup import list_backups
    from dotfile_linker.core.timestamps import format_local

    root = backup_root or Path.home()
    entries = list_backups(root)
    if not entries:
        console.print(f"[yellow]No backups found in {root}.[/yellow]")
        raise typer.Exit()

    table = Table(title=f"Backups ({len(entries)})")
    table.add_column("Created", style="cyan", no_wrap=True)
    table.add_column("Entries", justify="right", style="green")
    table.add_column("Path", style="white")
    for entry in entries:
        table.add_row(format_local(entry.created_at), str(entry.entry_count), str(entry.path))
    console.print(table)


@app.callback(invoke_without_command=True)
def default(
    ctx: typer.Context,
    version_flag: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
        is_eager=True,
        callback=_version_callback,
        is_flag=True,
    ),
):
    """Default command: open the review screen."""
    if ctx.invoked_subcommand is None:
        _review_impl(None, None, None, None)


@app.command("review")
def review(
    manifest_path: Path = typer.Option(
        None,
        "--manifest",
        "-m",
        help="YAML manifest listing the links",
    ),
    dotfiles_dir: Path = typer.Option(
        None,
        "--dotfiles-dir",
        "-d",
        help="Override the dotfiles directory from the manifest",
    ),
    backup_root: Path = typer.Option(
        None,
        "--backup-root",
        help="Directory that receives the timestamped backup directory (default: home)",
    ),
    log_file: Path = typer.Option(
        None,
        "--log-file",
        help="Append the operation log here (default: ~/dotfile-linker.log)",
    ),
):
    """Review the links in an interactive screen, then apply the approved ones."""
    _review_impl(manifest_path, dotfiles_dir, backup_root, log_file)


def _review_impl(
    manifest_path: Path | None,
    dotfiles_dir: Path | None,
    backup_root: Path | None,
    log_file: Path | None,
):
    """Run the Textual review screen, then apply with its approvals."""
    configure_logging(console, log_file)
    requests = _resolve_requests(_load_manifest(manifest_path, dotfiles_dir))

    from dotfile_linker.tui.app import LinkReviewApp
    from dotfile_linker.tui.review_screen import build_rows

    approved = LinkReviewApp(build_rows(requests)).run()
    if approved is None:
        console.print("[yellow]Aborted, nothing changed.[/yellow]")
        raise typer.Exit()

    report = SymlinkManager(backup_root=backup_root).apply(
        requests, lambda dest: dest in approved
    )
    _finish(report, as_json=False)
