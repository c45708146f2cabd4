"""CLI module for online SQLite backups.

Provides commands to copy a live database file page by page, list
configured backup profiles, and verify a finished backup against its
source.

Usage:
    db-hotbackup run --src data/app.db --dest backups/app.db --pages 100
    db-hotbackup run --src data/app.db --dest backups/old.db --attach old=data/old.db --src-name old
    db-hotbackup run --profile nightly
    db-hotbackup profiles
    db-hotbackup verify data/app.db backups/app.db

Commands:
    run       - Back up a database file (ad hoc or from a profile)
    profiles  - List profiles from hotbackup.toml
    verify    - Compare a backup with its source
"""

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn
from rich.table import Table

from db_hotbackup.backup.models import BackupProgress, BackupResult
from db_hotbackup.backup.runner import backup_file
from db_hotbackup.config.loader import get_profile, load_backup_config
from db_hotbackup.config.models import BackupProfile
from db_hotbackup.errors import BackupError, ProfileNotFoundError
from db_hotbackup.schema.introspector import verify_backup
from db_hotbackup.schema.models import VerificationResult

console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


# ============================================================================
# Output helpers
# ============================================================================


def _print_result(result: BackupResult) -> None:
    """Print a backup summary table."""
    table = Table(title="Backup Summary", show_header=False)
    table.add_column("Key", style="dim")
    table.add_column("Value")

    table.add_row("Source", result.source)
    table.add_row("Destination", result.destination)
    table.add_row("Pages", str(result.total_pages))
    table.add_row("Steps", str(result.steps))
    if result.busy_count:
        table.add_row("Busy retries", f"[yellow]{result.busy_count}[/yellow]")
    table.add_row("Elapsed", f"{result.elapsed_seconds:.2f}s")

    console.print(table)


def _print_verification(result: VerificationResult) -> None:
    if result.valid:
        console.print("[bold green]v[/bold green] Backup matches source")
    else:
        console.print("[bold red]x[/bold red] Backup does not match source")
        console.print(result.format_report())


# ============================================================================
# Command implementations
# ============================================================================


def _parse_attach(values: list[str] | None) -> dict[str, str]:
    """Parse repeated ``--attach ALIAS=PATH`` options."""
    attach: dict[str, str] = {}
    for value in values or []:
        alias, sep, path = value.partition("=")
        if not (sep and alias and path):
            raise ValueError(f"--attach expects ALIAS=PATH, got '{value}'")
        attach[alias] = path
    return attach


def _resolve_run_profile(args: argparse.Namespace) -> BackupProfile:
    """Build the profile for ``run`` from --profile or --src/--dest."""
    if args.src or args.dest:
        if not (args.src and args.dest):
            raise ValueError("--src and --dest must be given together")
        return BackupProfile(
            source=args.src,
            destination=args.dest,
            source_schema=args.src_name,
            attach=_parse_attach(args.attach),
            pages_per_step=args.pages,
            busy_retries=args.busy_retries,
            busy_sleep=args.busy_sleep,
            verify=args.verify,
        )

    config = load_backup_config(Path(args.config) if args.config else None)
    name, profile = get_profile(config, args.profile)
    console.print(f"Using profile: [bold cyan]{name}[/bold cyan]")
    if args.verify:
        # Validated again: verify is rejected for the temp schema
        profile = BackupProfile.model_validate({**profile.model_dump(), "verify": True})
    return profile


def cmd_run(args: argparse.Namespace) -> int:
    """Back up a database file.

    Args:
        args: Parsed CLI arguments.

    Returns:
        0 on success, 1 on failure.
    """
    try:
        profile = _resolve_run_profile(args)
    except (FileNotFoundError, ValueError, ProfileNotFoundError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    console.print(
        f"Backing up [bold]{profile.source}[/bold] "
        f"-> [bold cyan]{profile.destination}[/bold cyan]"
    )

    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
        transient=True,
    ) as bar:
        task = bar.add_task("Copying pages", total=None)

        def on_progress(progress: BackupProgress) -> None:
            bar.update(task, total=progress.total, completed=progress.copied)

        try:
            result = backup_file(
                profile.source,
                profile.destination,
                attach=profile.attach,
                src_name=profile.source_schema,
                pages_per_step=profile.pages_per_step,
                busy_retries=profile.busy_retries,
                busy_sleep=profile.busy_sleep,
                progress=on_progress,
            )
        except (FileNotFoundError, BackupError) as e:
            console.print(f"[red]Error: {e}[/red]")
            return 1

    if not result.success:
        console.print(f"[bold red]x[/bold red] Backup failed: {result.error}")
        return 1

    console.print("[bold green]v[/bold green] Backup complete")
    _print_result(result)

    if profile.verify:
        verification = verify_backup(profile.source_file, profile.destination)
        _print_verification(verification)
        if not verification.valid:
            return 1

    return 0


def cmd_profiles(args: argparse.Namespace) -> int:
    """List available profiles from hotbackup.toml.

    Args:
        args: Parsed CLI arguments.

    Returns:
        0 on success, 1 if the config file is missing or invalid.
    """
    try:
        config = load_backup_config(Path(args.config) if args.config else None)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    table = Table(title="Backup Profiles", show_header=True, header_style="bold")
    table.add_column("Profile")
    table.add_column("Source")
    table.add_column("Destination")
    table.add_column("Pages/step", justify="right")
    table.add_column("Description")

    for name, profile in config.profiles.items():
        table.add_row(
            f"[bold cyan]{name}[/bold cyan]",
            f"{profile.source_file} ({profile.source_schema})",
            profile.destination,
            "all" if profile.pages_per_step < 0 else str(profile.pages_per_step),
            profile.description or "",
        )

    console.print(table)
    return 0


def cmd_verify(args: argparse.Namespace) -> int:
    """Compare a backup file with its source.

    Args:
        args: Parsed CLI arguments.

    Returns:
        0 when the backup matches, 1 otherwise.
    """
    try:
        result = verify_backup(args.source, args.destination)
    except FileNotFoundError as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    _print_verification(result)
    return 0 if result.valid else 1


# ============================================================================
# Main entry point
# ============================================================================


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Parses command line arguments and dispatches to appropriate handler.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = argparse.ArgumentParser(
        prog="db-hotbackup",
        description="Online page-by-page SQLite backups",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log every backup step",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # run command
    p_run = subparsers.add_parser("run", help="Back up a database file")
    p_run.add_argument("--src", help="Source database file")
    p_run.add_argument("--dest", help="Destination database file")
    p_run.add_argument(
        "--src-name",
        default="main",
        help="Source schema name (main, temp, or an --attach alias)",
    )
    p_run.add_argument(
        "--attach",
        action="append",
        metavar="ALIAS=PATH",
        help="Attach a database file to the source (repeatable; with --src/--dest)",
    )
    p_run.add_argument(
        "--pages",
        type=int,
        default=-1,
        help="Pages per step (default: -1, copy everything in one step)",
    )
    p_run.add_argument(
        "--busy-retries",
        type=int,
        default=0,
        help="Consecutive busy/locked retries before giving up",
    )
    p_run.add_argument(
        "--busy-sleep",
        type=float,
        default=0.25,
        help="Seconds to wait before retrying a busy step",
    )
    p_run.add_argument("--profile", "-p", help="Profile name from hotbackup.toml")
    p_run.add_argument("--config", "-c", help="Path to hotbackup.toml")
    p_run.add_argument(
        "--verify",
        action="store_true",
        help="Compare the backup with its source afterwards",
    )
    p_run.set_defaults(func=cmd_run)

    # profiles command
    p_profiles = subparsers.add_parser("profiles", help="List backup profiles")
    p_profiles.add_argument("--config", "-c", help="Path to hotbackup.toml")
    p_profiles.set_defaults(func=cmd_profiles)

    # verify command
    p_verify = subparsers.add_parser("verify", help="Compare a backup with its source")
    p_verify.add_argument("source", help="Source database file")
    p_verify.add_argument("destination", help="Backup database file")
    p_verify.set_defaults(func=cmd_verify)

    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
