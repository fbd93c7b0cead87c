"""The `config` command group: manage ~/.sourcetables/config.toml."""

from __future__ import annotations

from dataclasses import asdict

import click

from sourcetables.settings import (
    KEYS,
    ConfigFileError,
    SettingsError,
    config_path,
    list_settings,
    load_settings,
    set_setting,
    unset_setting,
)


@click.group()
def config() -> None:
    """Manage settings (~/.sourcetables/config.toml)."""


@config.command("show")
def config_show() -> None:
    """Show effective settings and where each value comes from."""
    try:
        stored = list_settings()
    except ConfigFileError as e:
        raise click.ClickException(str(e)) from e
    effective = asdict(load_settings())
    click.echo(f"# {config_path()}")
    for key, (field_name, _) in KEYS.items():
        origin = "file" if key in stored else "default"
        value = effective[field_name]
        if isinstance(value, bool):
            value = str(value).lower()
        click.echo(f"  {key} = {value} ({origin})")


@config.command("set")
@click.argument("key", type=click.Choice(list(KEYS)))
@click.argument("value")
def config_set(key: str, value: str) -> None:
    """Set a value.

    \b
    Examples:
      sourcetables config set extract.engine sqlglot
      sourcetables config set extract.separator comma
      sourcetables config set log.enabled false
    """
    try:
        path = set_setting(key, value)
    except ConfigFileError as e:
        raise click.ClickException(str(e)) from e
    except SettingsError as e:
        raise click.BadParameter(str(e), param_hint="'VALUE'") from e
    click.echo(f"Saved {key} = {value} to {path}")


@config.command("unset")
@click.argument("key", type=click.Choice(list(KEYS)))
def config_unset(key: str) -> None:
    """Remove a value, restoring its default."""
    try:
        removed = unset_setting(key)
    except ConfigFileError as e:
        raise click.ClickException(str(e)) from e
    if not removed:
        click.echo(f"Setting '{key}' is not set.", err=True)
        raise SystemExit(1)
    click.echo(f"Removed {key}.")
