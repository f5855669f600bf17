from __future__ import annotations

import sys

import click
from rich.table import Table

from eksblueprint.cli.shared import get_settings
from eksblueprint.CustomLogging import console
from eksblueprint.errors import ScanReportError
from eksblueprint.manifests import render_manifests, to_yaml
from eksblueprint.scanning import ScanGate, Severity, load_trivy_report


@click.group(help="Steps called from the CI/CD pipeline")
def pipeline():
    pass


@pipeline.command("scan-gate", help="Fail when a Trivy JSON report has findings at or above a severity")
@click.argument("report", type=click.Path(dir_okay=False))
@click.option("--severity", type=click.Choice([s.name for s in Severity], case_sensitive=False), default=None,
              help="Threshold (defaults to SCAN_SEVERITY_THRESHOLD, HIGH)")
def scan_gate(report: str, severity: str | None):
    settings = get_settings()
    try:
        findings = load_trivy_report(report)
    except ScanReportError as e:
        raise click.ClickException(str(e))

    result = ScanGate(severity or settings.scan_severity_threshold).evaluate(findings)

    if result.blocking:
        table = Table(title=f"Findings at or above {result.threshold.name}")
        table.add_column("Severity")
        table.add_column("ID")
        table.add_column("Package")
        table.add_column("Target")
        for finding in result.blocking:
            table.add_row(finding.severity.name, finding.vulnerability_id, finding.package, finding.target)
        console.print(table)

    click.echo(result.summary())
    if not result.passed:
        sys.exit(1)


@pipeline.command("manifests", help="Render the Kubernetes Deployment and Service as YAML")
@click.option("--image", required=True, help="Image reference, e.g. 123456789012.dkr.ecr.us-west-2.amazonaws.com/hello-eks-dev:abc123")
@click.option("--replicas", type=int, default=None, help="Replica count (defaults to APP_REPLICAS)")
@click.option("--output", "output_path", type=click.Path(dir_okay=False, writable=True), default=None,
              help="Write to a file instead of stdout")
def manifests(image: str, replicas: int | None, output_path: str | None):
    if replicas is not None and replicas < 1:
        raise click.BadParameter("must be at least 1", param_hint="--replicas")
    settings = get_settings()
    rendered = to_yaml(render_manifests(settings, image, replicas))

    if output_path:
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(rendered)
        click.echo(f"Wrote manifests to {output_path}", err=True)
    else:
        click.echo(rendered, nl=False)
