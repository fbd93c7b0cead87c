"""CLI entry point. Both `sourcetables` and `srct` resolve here."""

from __future__ import annotations

import click

from sourcetables.cli.config import config
from sourcetables.cli.extract import extract


@click.group()
@click.version_option(package_name="sourcetables")
def main() -> None:
    """sourcetables: list the tables a SQL script reads from or writes to."""


main.add_command(extract)
main.add_command(config)
