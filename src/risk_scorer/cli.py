"""CLI for the Risk Scoring Engine.

Provides command-line interface for scoring solution environments stored
in a JSON document store and inspecting their snapshot history.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import find_config_file, load_config
from .engine import ScoringEngine, validate_store
from .explainer import component_marker
from .schema import CATEGORY_ORDER, CollectionType, ScoringSnapshot
from .store import JsonDocumentStore

console = Console()

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

RISK_COLORS = {
    "Low": "green",
    "Medium": "yellow",
    "High": "red",
    "Critical": "bold red",
}


def configure_logging(level: str) -> None:
    """Send risk_scorer logs to stderr at the given level."""
    logger = logging.getLogger("risk_scorer")
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)


@click.group()
@click.version_option(version="1.0.0", prog_name="risk-scorer")
@click.option(
    "--log-level",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging level (logs go to stderr)"
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True),
    help="Path to a risk-scorer.yaml configuration file"
)
def main(log_level: str, config_path: Optional[str]):
    """Risk Scoring Engine for third-party solutions.

    Scores the technical health of solution environments (security,
    resilience, observability, architecture, compliance) and records
    explainable, immutable scoring snapshots.
    """
    configure_logging(log_level)

    path = Path(config_path) if config_path else find_config_file()
    if path:
        try:
            load_config(path)
        except Exception as e:
            console.print(f"[red]Error: {e}[/red]")
            sys.exit(1)


def _collection_type_option(func):
    return click.option(
        "--collection-type", "-t",
        type=click.Choice(["snapshot", "DD"]),
        default="snapshot",
        help="Snapshot kind: periodic 'snapshot' or due-diligence 'DD'"
    )(func)


def _data_option(func):
    return click.option(
        "--data", "-d",
        required=True,
        type=click.Path(exists=True),
        help="Path to the JSON document store"
    )(func)


@main.command("score")
@_data_option
@click.option("--solution", "-s", required=True, help="Solution identifier")
@click.option("--environment", "-e", required=True, help="Environment identifier")
@_collection_type_option
@click.option(
    "--dry-run",
    is_flag=True,
    help="Compute the score without recording a snapshot"
)
@click.option(
    "--out", "-o",
    type=click.Path(),
    help="Output file for the snapshot JSON"
)
@click.option(
    "--json-output", "-j",
    is_flag=True,
    help="Output raw JSON instead of formatted text"
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Show the full calculation report"
)
def score_cmd(
    data: str,
    solution: str,
    environment: str,
    collection_type: str,
    dry_run: bool,
    out: Optional[str],
    json_output: bool,
    verbose: bool,
):
    """Score one environment and record a snapshot.

    Examples:
        risk-scorer score -d store.json -s sol-1 -e env-1
        risk-scorer score -d store.json -s sol-1 -e env-1 --dry-run -v
        risk-scorer score -d store.json -s sol-1 -e env-1 -t DD -j
    """
    try:
        engine = ScoringEngine(JsonDocumentStore(Path(data)))
        snapshot = engine.compute_score(
            solution,
            environment,
            collection_type=CollectionType.from_string(collection_type),
            persist=not dry_run,
        )
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    if snapshot is None:
        console.print(
            f"[yellow]⚠ Insufficient data to score environment {environment}; "
            f"scoring deferred.[/yellow]"
        )
        sys.exit(2)

    if json_output:
        output_json(snapshot, out)
        return

    display_snapshot(snapshot, verbose)
    if dry_run:
        console.print("\n[dim]Dry run: snapshot not recorded[/dim]")
    if out:
        output_json(snapshot, out)
        console.print(f"\n[green]Snapshot saved to {out}[/green]")


@main.command("score-solution")
@_data_option
@click.option(
    "--solution", "-s",
    "solutions",
    required=True,
    multiple=True,
    help="Solution identifier (repeat for several solutions)"
)
@_collection_type_option
@click.option(
    "--dry-run",
    is_flag=True,
    help="Compute scores without recording snapshots"
)
def score_solution_cmd(data: str, solutions: tuple, collection_type: str, dry_run: bool):
    """Score the main environment of one or more solutions.

    The production environment is preferred, then test, then the first
    available environment.

    Example:
        risk-scorer score-solution -d store.json -s sol-1 -s sol-2
    """
    try:
        engine = ScoringEngine(JsonDocumentStore(Path(data)))
        results = engine.score_solutions(
            solutions,
            collection_type=CollectionType.from_string(collection_type),
            persist=not dry_run,
        )
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    table = Table(title="Solution Scores")
    table.add_column("Solution", style="cyan")
    table.add_column("Environment")
    table.add_column("Snapshot")
    table.add_column("Score", justify="right")
    table.add_column("Risk")

    scored = 0
    for solution_id, snapshot in results.items():
        if snapshot is None:
            table.add_row(solution_id, "-", "-", "-", "[yellow]insufficient data[/yellow]")
            continue
        scored += 1
        color = RISK_COLORS.get(snapshot.risk_level.value, "white")
        table.add_row(
            solution_id,
            snapshot.env_id or "-",
            snapshot.score_id,
            str(snapshot.global_score),
            f"[{color}]{snapshot.risk_level.value}[/{color}]",
        )

    console.print(table)
    console.print(f"\n{scored}/{len(results)} solutions scored")
    if scored < len(results):
        sys.exit(2)


@main.command("history")
@_data_option
@click.option("--environment", "-e", help="Filter by environment identifier")
@click.option("--solution", "-s", help="Filter by solution identifier")
def history_cmd(data: str, environment: Optional[str], solution: Optional[str]):
    """List recorded snapshots, oldest first.

    Example:
        risk-scorer history -d store.json -e env-1
    """
    try:
        engine = ScoringEngine(JsonDocumentStore(Path(data), autosave=False))
        snapshots = engine.history(environment_id=environment, solution_id=solution)
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    if not snapshots:
        console.print("[yellow]No snapshots found.[/yellow]")
        return

    table = Table(title="Scoring History")
    table.add_column("Snapshot", style="cyan")
    table.add_column("Date")
    table.add_column("Type")
    table.add_column("Solution")
    table.add_column("Environment")
    for category in CATEGORY_ORDER:
        table.add_column(category.value[:5] + ".", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Risk")

    for snapshot in snapshots:
        color = RISK_COLORS.get(snapshot.risk_level.value, "white")
        table.add_row(
            snapshot.score_id,
            snapshot.date.strftime("%Y-%m-%d %H:%M"),
            snapshot.collection_type.value,
            snapshot.solution_id,
            snapshot.env_id or "-",
            *[f"{snapshot.scores.get(c):.0f}" for c in CATEGORY_ORDER],
            str(snapshot.global_score),
            f"[{color}]{snapshot.risk_level.value}[/{color}]",
        )

    console.print(table)
    console.print(f"\n{len(snapshots)} snapshots")


@main.command("report")
@_data_option
@click.option("--id", "score_id", required=True, help="Snapshot identifier (score-NNNNNN)")
def report_cmd(data: str, score_id: str):
    """Print the calculation report of a recorded snapshot.

    Example:
        risk-scorer report -d store.json --id score-000001
    """
    try:
        engine = ScoringEngine(JsonDocumentStore(Path(data), autosave=False))
        snapshot = engine.get_snapshot(score_id)
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    if snapshot is None:
        console.print(f"[red]Error: snapshot not found: {score_id}[/red]")
        sys.exit(1)

    if not snapshot.calculation_report:
        console.print(f"[yellow]Snapshot {score_id} has no calculation report.[/yellow]")
        return

    console.print(snapshot.calculation_report, markup=False, highlight=False)


@main.command("validate")
@_data_option
def validate_cmd(data: str):
    """Validate every record of a JSON document store.

    Example:
        risk-scorer validate -d store.json
    """
    is_valid, issues = validate_store(data)
    if is_valid:
        console.print(f"[green]✓ Store valid: {data}[/green]")
    else:
        console.print(f"[red]✗ Store invalid: {data}[/red]")
        for issue in issues:
            console.print(f"  - {issue}", markup=False)

    sys.exit(0 if is_valid else 1)


def display_snapshot(snapshot: ScoringSnapshot, verbose: bool):
    """Display a snapshot summary and, if verbose, its full report."""
    color = RISK_COLORS.get(snapshot.risk_level.value, "white")

    console.print(Panel(
        f"[bold]Solution {snapshot.solution_id}[/bold] / Environment {snapshot.env_id}\n\n"
        f"Global Score: [bold]{snapshot.global_score}/100[/bold]\n"
        f"Risk Level: [{color}]{snapshot.risk_level.value}[/{color}]\n"
        f"Snapshot: {snapshot.score_id} ({snapshot.collection_type.value})",
        title="Scoring Summary",
    ))

    if snapshot.calculation_details:
        table = Table(title="Categories")
        table.add_column("Category", style="cyan")
        table.add_column("Weight", justify="right")
        table.add_column("Points", justify="right")
        table.add_column("Percentage", justify="right")
        table.add_column("Contribution", justify="right")

        for detail in snapshot.calculation_details.categories:
            table.add_row(
                detail.category.value,
                f"{detail.weight * 100:.0f}%",
                f"{detail.raw_score:g}/{detail.max_raw_score:g}",
                f"{detail.percentage:.1f}%",
                f"{detail.contribution:.2f}",
            )
        console.print(table)

        if verbose:
            for detail in snapshot.calculation_details.categories:
                console.print(f"\n[bold]{detail.category.value}[/bold]")
                for component in detail.components:
                    console.print(
                        f"  {component_marker(component)} {component.name}: "
                        f"{component.value:g}/{component.max:g} - {component.reason}",
                        markup=False,
                    )

    if snapshot.notes:
        console.print("\n[bold]Recommendations:[/bold]")
        console.print(f"  {snapshot.notes}", markup=False)

    if verbose and snapshot.calculation_report:
        console.print()
        console.print(snapshot.calculation_report, markup=False, highlight=False)


def output_json(snapshot: ScoringSnapshot, out_path: Optional[str]):
    """Output snapshot as JSON."""
    json_str = snapshot.model_dump_json(indent=2)

    if out_path:
        with open(out_path, "w", encoding="utf-8") as f:
            f.write(json_str)
    else:
        print(json_str)


@main.command("init-config")
@click.option(
    "--out", "-o",
    type=click.Path(),
    default="risk-scorer.yaml",
    help="Output path for the configuration file"
)
@click.option(
    "--force", "-f",
    is_flag=True,
    help="Overwrite existing config file"
)
def init_config_cmd(out: str, force: bool):
    """Generate a default scorer configuration file.

    Example:
        risk-scorer init-config --out my-config.yaml
    """
    from .config import save_default_config

    out_path = Path(out)
    if out_path.exists() and not force:
        console.print(f"[red]Error:[/red] Config file already exists: {out}")
        console.print("Use --force to overwrite")
        sys.exit(1)

    try:
        save_default_config(out_path)
        console.print(f"[green]✓[/green] Config file created: {out}")
        console.print("\nThis file configures:")
        console.print("  • scoring_weights - Weight of each category in the global score")
        console.print("  • risk_thresholds - Global score bounds of each risk level")
        console.print("  • resilience - RTO/RPO and SLA thresholds")
        console.print("  • observability - Recognized monitoring tools")
        console.print("  • report - Strength and weakness thresholds")
        console.print("\nThe scorer will look for config in this order:")
        console.print("  1. RISK_SCORER_CONFIG environment variable")
        console.print("  2. ./risk-scorer.yaml (current directory)")
        console.print("  3. ~/.config/risk-scorer/config.yaml")
    except Exception as e:
        console.print(f"[red]Error creating config:[/red] {e}")
        sys.exit(1)


@main.command("generate-sample")
@click.option(
    "--out", "-o",
    type=click.Path(),
    default="sample-store.json",
    help="Output path for the sample store"
)
def generate_sample_cmd(out: str):
    """Generate a sample JSON document store for testing.

    Example:
        risk-scorer generate-sample -o store.json
        risk-scorer score -d store.json -s sol-demo -e env-demo-prod
    """
    sample = {
        "environments": [
            {
                "env_id": "env-demo-prod",
                "solution_id": "sol-demo",
                "hosting_id": "host-demo",
                "env_type": "production",
                "redundancy": "minimal",
                "backup": {"exists": True, "rto": 12, "rpo": 8},
                "deployment_type": "microservices",
                "virtualization": "k8s",
                "db_scaling_mechanism": "Horizontale",
                "sla_offered": "99,5% monthly",
                "data_types": ["Personal", "Health"],
            }
        ],
        "securityprofiles": [
            {
                "sec_id": "sec-demo",
                "env_id": "env-demo-prod",
                "auth": "MFA",
                "encryption": {"in_transit": True, "at_rest": False},
                "patching": "scheduled",
                "pentest_freq": "annual",
                "access_control": "RBAC with PAM for administrators",
                "centralized_monitoring": False,
            }
        ],
        "monitoringobservabilities": [
            {
                "mon_id": "mon-demo",
                "env_id": "env-demo-prod",
                "perf_monitoring": "Yes",
                "log_centralization": "Partial",
                "tools": ["Grafana", "Custom scripts"],
            }
        ],
        "codebases": [
            {
                "codebase_id": "code-demo",
                "solution_id": "sol-demo",
                "documentation_level": "Medium",
                "technical_debt_known": "Low",
            }
        ],
        "developmentmetrics": [
            {
                "metrics_id": "metrics-demo",
                "solution_id": "sol-demo",
                "sdlc_process": "Scrum",
                "devops_automation_level": "Full CI/CD",
                "mttr_hours": 2,
            }
        ],
        "hostings": [
            {
                "hosting_id": "host-demo",
                "provider": "OVH",
                "region": "France",
                "tier": "cloud",
                "certifications": ["ISO 27001", "HDS"],
            }
        ],
        "scoringsnapshots": [],
    }

    with open(out, "w", encoding="utf-8") as f:
        json.dump(sample, f, indent=2)

    console.print(f"[green]✓[/green] Sample store saved to: {out}")
    console.print(f"\nTry: risk-scorer score -d {out} -s sol-demo -e env-demo-prod -v")


if __name__ == "__main__":
    main()
