"""Merge command implementations"""

from typing import Optional

import click

from officeresolver.cli.utils import (
    build_config,
    echo_json,
    expect_list,
    read_json,
    success_message,
    write_json,
)
from officeresolver.pipeline.input_cleaning import clean_analysis_input
from officeresolver.pipeline.models import AnalysisDocument, AnalysisInput, Office
from officeresolver.pipeline.resolver import (
    OfficeResolver,
    merge_logger,
    resolve_and_merge_analysis,
)
from officeresolver.utils.logging import LogContext

VERSION_POLICY_CHOICE = click.Choice(["rescrape", "change"])


@click.command()
@click.option("--existing", type=click.Path(), help="JSON array of offices on file")
@click.option("--incoming", type=click.Path(), required=True, help="JSON array of scraped offices")
@click.option("--output", type=click.Path(), help="Write the merged offices here")
@click.option("--config", "config_path", type=click.Path(), help="Merge config JSON file")
@click.option("--version-policy", type=VERSION_POLICY_CHOICE, help="When to bump dataVersion")
@click.pass_context
def offices(
    ctx,
    existing: Optional[str],
    incoming: str,
    output: Optional[str],
    config_path: Optional[str],
    version_policy: Optional[str],
):
    """Merge re-scraped offices into the offices on file"""
    config = build_config(config_path, version_policy)
    existing_offices = [
        Office.from_dict(o) for o in expect_list(read_json(existing, []), existing) if isinstance(o, dict)
    ]
    incoming_offices = [
        Office.from_dict(o) for o in expect_list(read_json(incoming), incoming) if isinstance(o, dict)
    ]

    resolution = OfficeResolver(config, merge_logger).resolve(existing_offices, incoming_offices)

    echo_json({"summary": resolution.summary.to_dict(), "statuses": resolution.statuses})

    if ctx.obj["dry_run"]:
        click.echo("DRY RUN: merged offices not written", err=True)
        return

    if output:
        write_json(output, [office.to_dict() for office in resolution.merged])
        success_message(f"Wrote {len(resolution.merged)} offices to {output}")


@click.command()
@click.option("--existing", type=click.Path(), help="Analysis document on file")
@click.option("--incoming", type=click.Path(), required=True, help="New analysis JSON")
@click.option("--analysis-id", required=True, help="Identifier of the new analysis")
@click.option("--clean/--no-clean", default=True, help="Validate and clean the new analysis first")
@click.option("--output", type=click.Path(), help="Write the merged document here")
@click.option("--config", "config_path", type=click.Path(), help="Merge config JSON file")
@click.pass_context
def analysis(
    ctx,
    existing: Optional[str],
    incoming: str,
    analysis_id: str,
    clean: bool,
    output: Optional[str],
    config_path: Optional[str],
):
    """Merge a new office analysis into the analysis document on file"""
    config = build_config(config_path, None)

    existing_data = read_json(existing)
    if existing_data is not None and not isinstance(existing_data, dict):
        raise click.ClickException(f"Expected a JSON object in {existing}")
    existing_doc = AnalysisDocument.from_dict(existing_data) if existing_data else None

    raw = read_json(incoming)
    incoming_analysis = clean_analysis_input(raw) if clean else AnalysisInput.from_dict(
        raw if isinstance(raw, dict) else {}
    )

    with LogContext(merge_logger.logger, analysis_id=analysis_id):
        merged, feedback = resolve_and_merge_analysis(
            existing_doc, incoming_analysis, analysis_id, config=config
        )

    echo_json(feedback.to_dict())

    if ctx.obj["dry_run"]:
        click.echo("DRY RUN: merged analysis not written", err=True)
        return

    if output:
        write_json(output, merged.to_dict())
        success_message(f"Wrote merged analysis {analysis_id} to {output}")
