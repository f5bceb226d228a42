"""CLI entry point — the `cert-manage` command."""

from __future__ import annotations

import json
import logging
import sys
import tomllib
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import click
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from cert_manage.core.base import TrustStore
from cert_manage.core.config import Settings, load_settings
from cert_manage.core.errors import CertManageError, PartialRestoreError
from cert_manage.core.orchestrator import (
    OperationResult,
    apply_whitelist,
    backup_store,
    count_certificates,
    list_certificates,
    restore_store,
)
from cert_manage.core.registry import create_store, default_store_name, get_all_store_classes

T = TypeVar("T")

console = Console()
err_console = Console(stderr=True)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _load_settings(ctx: click.Context) -> Settings:
    config_path: Path | None = ctx.obj.get("config")
    try:
        return load_settings(config_path)
    except (tomllib.TOMLDecodeError, ValidationError, OSError) as e:
        err_console.print(f"[red]Invalid configuration: {escape(str(e))}[/red]")
        sys.exit(1)


def _open_store(ctx: click.Context) -> TrustStore:
    name = ctx.obj.get("store") or default_store_name()
    return _guarded(create_store, name, _load_settings(ctx))


def _report_error(err: CertManageError) -> None:
    err_console.print(f"[red bold]{err.category}:[/red bold] [red]{escape(str(err))}[/red]")
    if isinstance(err, PartialRestoreError):
        err_console.print(
            "[yellow]The remaining certificates were restored; re-import the listed "
            "entries manually or re-run restore after fixing the cause.[/yellow]"
        )


def _guarded(func: Callable[..., T], *args: Any) -> T:
    """Run an engine call, turning taxonomy errors into a message and exit code."""
    try:
        return func(*args)
    except CertManageError as e:
        _report_error(e)
        sys.exit(e.exit_code)


def _render_result(result: OperationResult) -> None:
    if result.operation == "backup" and result.backup is not None:
        console.print(
            f"[green]Backed up {result.backup.certificate_count} certificates "
            f"from {result.store_id}.[/green]"
        )
    elif result.operation == "whitelist":
        if result.removed:
            console.print(f"[bold]Removed {len(result.removed)} certificate(s):[/bold]")
            for label in result.removed:
                console.print(f"  [yellow]- {escape(label)}[/yellow]")
        else:
            console.print("[green]Every trusted certificate is whitelisted. Nothing removed.[/green]")
        console.print(f"{result.certificates} certificate(s) remain trusted in {result.store_id}.")
    elif result.operation == "restore":
        console.print(
            f"[green]Restored {result.store_id} from backup "
            f"({result.certificates} certificates trusted).[/green]"
        )


@click.group()
@click.version_option(package_name="cert-manage")
@click.option("--store", "-s", default=None, help="Trust store to operate on (default: this platform's).")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to a TOML config file.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, store: str | None, config_path: Path | None, verbose: bool) -> None:
    """cert-manage — back up, whitelist, and restore trusted certificate authorities."""
    _configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["store"] = store
    ctx.obj["config"] = config_path


@cli.command("list")
@click.option("--count", "count_only", is_flag=True, help="Only print the number of trusted certificates.")
@click.option("--format", "output_format", type=click.Choice(["rich", "json"]), default="rich")
@click.pass_context
def list_command(ctx: click.Context, count_only: bool, output_format: str) -> None:
    """List the certificates currently trusted by the store."""
    store = _open_store(ctx)

    if count_only:
        click.echo(_guarded(count_certificates, store))
        return

    records = _guarded(list_certificates, store)

    if output_format == "json":
        data = [r.model_dump(mode="json", exclude={"raw"}) for r in records]
        click.echo(json.dumps(data, indent=2))
        return

    table = Table(title=f"{store.display_name} ({len(records)} certificates)")
    table.add_column("Subject", style="bold")
    table.add_column("Issuer")
    table.add_column("SHA-256", style="dim")
    table.add_column("Location", style="dim")
    for record in sorted(records, key=lambda r: (r.subject_cn.lower(), r.fingerprint)):
        table.add_row(
            escape(record.subject_cn),
            escape(record.issuer_cn),
            record.fingerprint[:16],
            escape(record.location),
        )
    console.print(table)


@cli.command()
@click.pass_context
def backup(ctx: click.Context) -> None:
    """Create (or overwrite) the backup of the store."""
    store = _open_store(ctx)
    _render_result(_guarded(backup_store, store))


@cli.command()
@click.option(
    "--file",
    "-f",
    "whitelist_path",
    required=True,
    type=str,
    help="Path to the JSON whitelist file.",
)
@click.pass_context
def whitelist(ctx: click.Context, whitelist_path: str) -> None:
    """Back up the store, then remove every certificate the whitelist does not match."""
    store = _open_store(ctx)
    _render_result(_guarded(apply_whitelist, store, whitelist_path))


@cli.command()
@click.pass_context
def restore(ctx: click.Context) -> None:
    """Revert the store to its last backup."""
    store = _open_store(ctx)
    _render_result(_guarded(restore_store, store))


@cli.command()
@click.pass_context
def stores(ctx: click.Context) -> None:
    """Show known trust stores, their availability and backup status."""
    settings = _load_settings(ctx)
    default = default_store_name()

    table = Table(title="Trust Stores")
    table.add_column("Store", style="bold")
    table.add_column("Description")
    table.add_column("Kind")
    table.add_column("Available", justify="center")
    table.add_column("Backup")

    for name, cls in sorted(get_all_store_classes().items()):
        store = cls(settings)
        available = "[green]yes[/green]" if store.is_available() else "[red]no[/red]"
        try:
            manifest = store.backup_manifest()
        except CertManageError:
            backup_info = "[red]unreadable[/red]"
        else:
            backup_info = (
                f"{manifest.created_at:%Y-%m-%d %H:%M} UTC ({manifest.certificate_count} certs)"
                if manifest
                else "[dim]-[/dim]"
            )
        label = f"{name} [dim](default)[/dim]" if name == default else name
        table.add_row(label, store.description, cls.kind, available, backup_info)

    console.print(Panel(f"[bold]Backups are kept under {settings.backup_dir}[/bold]", style="blue"))
    console.print(table)
