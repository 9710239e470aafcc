#!/usr/bin/env python3
"""
Office Resolver CLI
Main entry point for office resolution and analysis merges.
"""

import logging

import click
from dotenv import load_dotenv

from officeresolver.utils.logging import setup_logger

# Load environment variables
load_dotenv()


@click.group()
@click.version_option(package_name="officeresolver")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option("--dry-run", is_flag=True, help="Run without writing merged output")
@click.option("--log-file", type=click.Path(), help="Also write logs to this file")
@click.pass_context
def cli(ctx, verbose, dry_run, log_file):
    """
    Office Resolver CLI

    Merge re-scraped office listings and new office analyses into what is
    already on file, and apply user edits to offices.
    """
    ctx.ensure_object(dict)

    ctx.obj["verbose"] = verbose
    ctx.obj["dry_run"] = dry_run

    if log_file:
        setup_logger(
            "officeresolver",
            level=logging.DEBUG if verbose else None,
            add_console_handler=False,
            add_file_handler=True,
            log_file=log_file,
        )

    if verbose:
        from officeresolver.pipeline.resolver import merge_logger

        merge_logger.logger.setLevel(logging.DEBUG)


@cli.group()
def edit():
    """Explicit user edits of offices"""
    pass


# Import command modules
from .commands import edit_commands, merge_commands  # noqa: E402

cli.add_command(merge_commands.offices)
cli.add_command(merge_commands.analysis)

edit.add_command(edit_commands.rename)
edit.add_command(edit_commands.custom_data)


if __name__ == "__main__":
    cli()
