"""
Common utilities for CLI commands
"""

import json
from typing import Any, Optional

import click

from officeresolver.config.merge_config import MergeConfig, load_merge_config


def read_json(path: Optional[str], default: Any = None) -> Any:
    """
    Read a JSON document from disk.

    Args:
        path: File path; None returns ``default``
        default: Value used when no path is given

    Returns:
        The parsed document
    """
    if path is None:
        return default

    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except OSError as e:
        raise click.ClickException(f"Cannot read {path}: {e}")
    except ValueError as e:
        raise click.ClickException(f"Invalid JSON in {path}: {e}")


def write_json(path: str, data: Any) -> None:
    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False, default=str)
    except OSError as e:
        raise click.ClickException(f"Cannot write {path}: {e}")


def echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, ensure_ascii=False, default=str))


def expect_list(data: Any, path: Optional[str]) -> list:
    if not isinstance(data, list):
        raise click.ClickException(f"Expected a JSON array in {path}")
    return data


def build_config(config_path: Optional[str], version_policy: Optional[str]) -> MergeConfig:
    """Load the merge config and apply command-line overrides."""
    try:
        config = load_merge_config(config_path)
        if version_policy:
            config = MergeConfig.from_dict(
                {**config.to_dict(), "version_policy": version_policy}
            )
    except (TypeError, ValueError) as e:
        raise click.ClickException(f"Invalid merge configuration: {e}")
    return config


def success_message(message: str) -> None:
    click.echo(f"✅ {message}", err=True)


def warning_message(message: str) -> None:
    click.echo(f"⚠️  {message}", err=True)
