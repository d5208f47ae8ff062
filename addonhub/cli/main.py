"""CLI main entry point"""

import logging
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from addonhub import __version__
from addonhub.config.settings import AddonHubSettings, load_settings
from addonhub.core.addons import (
    ArchiveAddonHandler,
    ArchiveDownloader,
    HandlerRegistry,
    JsonCatalogFetcher,
    RemoteAddonService,
    SettingsPolicySource,
    SQLiteRecordStore,
)
from addonhub.core.events import Event, EventBus, EventNotifier, EventType
from addonhub.core.storage.paths import archive_cache_dir, records_db_path

console = Console()


def build_service(
    settings: AddonHubSettings,
    settings_path: Optional[Path] = None,
    bus: Optional[EventBus] = None,
) -> RemoteAddonService:
    """Wire a catalog service from settings"""
    timeout = (10, settings.request_timeout_seconds)
    registry = HandlerRegistry()
    handler = ArchiveAddonHandler(
        archive_cache_dir(settings.data_dir),
        downloader=ArchiveDownloader(timeout=timeout),
        registry=registry,
    )
    registry.register(handler)

    fetcher = None
    if settings.catalog_url:
        fetcher = JsonCatalogFetcher(
            settings.catalog_url,
            service_id=settings.service_id,
            core_version=settings.core_version,
            timeout=timeout,
        )

    service = RemoteAddonService(
        service_id=settings.service_id,
        record_store=SQLiteRecordStore(records_db_path(settings.data_dir), settings.service_id),
        registry=registry,
        notifier=EventNotifier(bus),
        policy_source=SettingsPolicySource(lambda: load_settings(settings_path)),
        remote_fetch=fetcher,
        remote_lookup=fetcher.lookup if fetcher else None,
        cache_ttl_seconds=settings.cache_ttl_seconds,
    )
    handler.restore()
    return service


def _print_event(event: Event) -> None:
    if event.type == EventType.ADDON_FAILED:
        console.print(f"[red]✗ {event.uid}: {escape(event.message or '')}[/red]")
    elif event.type == EventType.ADDON_INSTALLED:
        console.print(f"[green]✓ Installed {event.uid}[/green]")
    elif event.type == EventType.ADDON_UNINSTALLED:
        console.print(f"[green]✓ Uninstalled {event.uid}[/green]")


def _service(ctx: click.Context) -> RemoteAddonService:
    obj = ctx.ensure_object(dict)
    if "service" not in obj:
        bus = obj.setdefault("bus", EventBus())
        settings_path = obj.get("settings_path")
        obj["service"] = build_service(load_settings(settings_path), settings_path, bus=bus)
        ctx.call_on_close(obj["service"].close)
    return obj["service"]


def _bus(ctx: click.Context, service: RemoteAddonService) -> EventBus:
    return ctx.obj.get("bus") or service.notifier.bus


@click.group()
@click.version_option(version=__version__, prog_name="addonhub")
@click.option("--settings", "settings_path", type=click.Path(dir_okay=False, path_type=Path),
              help="Path to settings.json")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, settings_path, verbose):
    """AddonHub - addon catalog and installer"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(levelname)s: %(name)s: %(message)s'
    )
    obj = ctx.ensure_object(dict)
    if settings_path:
        obj["settings_path"] = settings_path


@cli.command(name="list")
@click.option("--installed", "installed_only", is_flag=True, help="Only show installed addons")
@click.pass_context
def list_cmd(ctx, installed_only: bool):
    """List addons from the reconciled catalog."""
    addons = _service(ctx).get_addons()
    if installed_only:
        addons = [a for a in addons if a.installed]

    if not addons:
        console.print("[yellow]No addons found.[/yellow]")
        return

    table = Table(title=f"Addons ({len(addons)})")
    table.add_column("UID", style="cyan")
    table.add_column("Type", style="magenta")
    table.add_column("Version")
    table.add_column("Installed", style="bold")
    table.add_column("Compatible")

    for addon in addons:
        table.add_row(
            addon.uid,
            addon.type.value,
            addon.version or "-",
            "[green]yes[/green]" if addon.installed else "no",
            "yes" if addon.compatible else "[red]no[/red]",
        )
    console.print(table)


@cli.command(name="show")
@click.argument("uid")
@click.pass_context
def show_cmd(ctx, uid: str):
    """Show details of a single addon."""
    addon = _service(ctx).get_addon(uid)
    if addon is None:
        console.print(f"[red]Addon not found: {uid}[/red]")
        ctx.exit(1)

    console.print(f"[bold cyan]{escape(addon.label or addon.id)}[/bold cyan]")
    console.print(f"  UID:          {addon.uid}")
    console.print(f"  Type:         {addon.type.label}")
    console.print(f"  Version:      {addon.version or '-'}")
    console.print(f"  Content type: {addon.content_type or '-'}")
    console.print(f"  Installed:    {'yes' if addon.installed else 'no'}")
    console.print(f"  Compatible:   {'yes' if addon.compatible else 'no'}")
    if addon.author:
        console.print(f"  Author:       {addon.author}")
    if addon.link:
        console.print(f"  Link:         {addon.link}")
    if addon.description:
        console.print(f"\n{escape(addon.description)}")


def _run_write(ctx: click.Context, uid: str, action: str) -> None:
    service = _service(ctx)
    bus = _bus(ctx, service)
    bus.subscribe(_print_event)
    try:
        event = getattr(service, action)(uid)
    finally:
        bus.unsubscribe(_print_event)
    if event.type == EventType.ADDON_FAILED:
        ctx.exit(1)


@cli.command(name="install")
@click.argument("uid")
@click.pass_context
def install_cmd(ctx, uid: str):
    """Install an addon by uid."""
    _run_write(ctx, uid, "install")


@cli.command(name="uninstall")
@click.argument("uid")
@click.pass_context
def uninstall_cmd(ctx, uid: str):
    """Uninstall an addon by uid."""
    _run_write(ctx, uid, "uninstall")


@cli.command(name="types")
@click.pass_context
def types_cmd(ctx):
    """List addon types."""
    table = Table(title="Addon Types")
    table.add_column("Type", style="cyan")
    table.add_column("Label")
    for addon_type in _service(ctx).get_types():
        table.add_row(addon_type.value, addon_type.label)
    console.print(table)


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
