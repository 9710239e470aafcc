"""User edit command implementations"""

from typing import Callable, Optional

import click

from officeresolver.cli.utils import expect_list, read_json, success_message, write_json
from officeresolver.pipeline.models import Office
from officeresolver.pipeline.user_edits import (
    find_office,
    update_office_custom_data,
    update_office_name,
)


def _edit_offices(
    offices_path: str, office_id: str, output: Optional[str], edit: Callable[[Office], Office]
) -> None:
    offices = [
        Office.from_dict(o) for o in expect_list(read_json(offices_path), offices_path) if isinstance(o, dict)
    ]
    office = find_office(offices, office_id)
    if office is None:
        raise click.ClickException(f"Office {office_id} not found")

    try:
        edited = edit(office)
    except ValueError as e:
        raise click.ClickException(str(e))

    offices = [edited if o is office else o for o in offices]
    write_json(output or offices_path, [o.to_dict() for o in offices])
    success_message(f"Updated office {office_id}")


@click.command()
@click.option("--offices", "offices_path", type=click.Path(), required=True, help="JSON array of offices")
@click.option("--office-id", required=True, help="uniqueId of the office")
@click.option("--name", "modified_name", required=True, help="New display name")
@click.option("--output", type=click.Path(), help="Write here instead of editing in place")
def rename(offices_path: str, office_id: str, modified_name: str, output: Optional[str]):
    """Set the user's display name of an office"""
    _edit_offices(
        offices_path, office_id, output, lambda office: update_office_name(office, modified_name)
    )


@click.command("custom-data")
@click.option("--offices", "offices_path", type=click.Path(), required=True, help="JSON array of offices")
@click.option("--office-id", required=True, help="uniqueId of the office")
@click.option("--data", "data_path", type=click.Path(), required=True, help="JSON object of custom fields")
@click.option("--output", type=click.Path(), help="Write here instead of editing in place")
def custom_data(offices_path: str, office_id: str, data_path: str, output: Optional[str]):
    """Replace the custom data of an office"""
    data = read_json(data_path)
    _edit_offices(
        offices_path, office_id, output, lambda office: update_office_custom_data(office, data)
    )
