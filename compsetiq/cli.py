"""CLI interface for CompSetIQ."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from compsetiq.config import load_config
from compsetiq.errors import CompSetError
from compsetiq.models import AnalysisMode, FilteredAnalysis, Range

app = typer.Typer(
    name="compsetiq",
    help="Competitive set analysis for rental properties.",
    no_args_is_help=True,
)
console = Console()


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _services(config_path: Path | None):
    from compsetiq.db.repository import Repository
    from compsetiq.relationships.store import RelationshipStore

    cfg = load_config(config_path)
    repo = Repository(cfg.database.url)
    store = RelationshipStore(repo.session_factory)
    return cfg, repo, store


@app.command()
def analyze(
    subject_id: str = typer.Argument(..., help="Subject property id"),
    bedrooms: list[str] = typer.Option(None, "--bedrooms", "-b", help="Studio, 1BR, 2BR, 3BR+"),
    min_price: float = typer.Option(None, "--min-price"),
    max_price: float = typer.Option(None, "--max-price"),
    availability: str = typer.Option(None, "--availability", "-a", help="now, 30days, 60days"),
    mode: AnalysisMode = typer.Option(AnalysisMode.EXTERNAL, "--mode", "-m"),
    config_path: Path = typer.Option(None, "--config", "-c", help="Path to config TOML file"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """Compare a subject property with its active competitors."""
    setup_logging(verbose)
    cfg, repo, store = _services(config_path)

    from compsetiq.analysis.comparative import ComparativeAnalyzer
    from compsetiq.analysis.filters import FilterEngine

    filters = FilterEngine(cfg.filters)
    criteria = filters.default_criteria()
    if bedrooms:
        criteria.bedroom_types = bedrooms
    if min_price is not None or max_price is not None:
        criteria.price_range = Range(
            min=min_price if min_price is not None else criteria.price_range.min,
            max=max_price if max_price is not None else criteria.price_range.max,
        )
    if availability:
        criteria.availability = availability

    analyzer = ComparativeAnalyzer(repo, store, filters, cfg.analysis)
    try:
        result = analyzer.analyze(subject_id, criteria, mode)
    except CompSetError as e:
        console.print(f"[red]Unable to compute analysis: {e}[/red]")
        raise typer.Exit(code=1)

    _display_analysis(result)


def _display_analysis(result: FilteredAnalysis) -> None:
    """Display subject vs competitor metrics in a rich table."""
    table = Table(title="Rent & Vacancy by Unit Type", show_lines=True)
    table.add_column("Property", style="bold")
    table.add_column("Type", style="cyan")
    table.add_column("Units", justify="right")
    table.add_column("Available", justify="right")
    table.add_column("Vacancy", justify="right", style="yellow")
    table.add_column("Avg Rent", justify="right", style="green")
    table.add_column("Rent Range", justify="right")

    for prop, is_subject in [(result.subject_property, True)] + [
        (c, False) for c in result.competitors
    ]:
        name = f"[bold green]{prop.name}[/bold green]" if is_subject else prop.name
        for m in prop.unit_types:
            if m.total_units == 0:
                continue
            rent_range = (
                f"${m.rent_range.min:,.0f} - ${m.rent_range.max:,.0f}" if m.avg_rent else "-"
            )
            table.add_row(
                name,
                m.type,
                str(m.total_units),
                str(m.available_units),
                f"{m.vacancy_rate:.1f}%",
                f"${m.avg_rent:,.0f}" if m.avg_rent else "no data",
                rent_range,
            )

    console.print(table)

    insights = result.market_insights
    edges = result.competitive_edges
    console.print(
        Panel(
            f"Position: {insights.subject_vs_market} ({edges.market_position})\n"
            f"Strongest unit type: {insights.strongest_unit_type or '-'}\n"
            f"Vacancies: {insights.total_vacancies} "
            f"(competitor avg {insights.competitor_avg_vacancies:.1f})\n"
            f"Pricing: {edges.pricing.label} | Size: {edges.size.label}\n"
            f"Recommendations:\n  - " + "\n  - ".join(edges.recommendations),
            title=f"{result.subject_property.name} vs {len(result.competitors)} competitor(s)",
        )
    )


@app.command()
def relationships(
    portfolio_id: str = typer.Argument(..., help="Portfolio id"),
    active_only: bool = typer.Option(False, "--active-only"),
    config_path: Path = typer.Option(None, "--config", "-c"),
):
    """List competitive relationships in a portfolio."""
    _, repo, store = _services(config_path)
    rels = store.list_active(portfolio_id) if active_only else store.list_for_portfolio(portfolio_id)
    if not rels:
        console.print("[yellow]No relationships defined for this portfolio.[/yellow]")
        return

    names = {p.id: p.name for p in repo.list_properties(portfolio_id)}
    table = Table(title="Competitive Relationships")
    table.add_column("ID", style="dim")
    table.add_column("Property A")
    table.add_column("Property B")
    table.add_column("Type", style="cyan")
    table.add_column("Active")
    for rel in rels:
        table.add_row(
            rel.id,
            names.get(rel.property_a_id, rel.property_a_id),
            names.get(rel.property_b_id, rel.property_b_id),
            rel.relationship_type.value,
            "[green]yes[/green]" if rel.is_active else "[dim]no[/dim]",
        )
    console.print(table)


@app.command()
def toggle(
    property_a: str = typer.Argument(..., help="First property id"),
    property_b: str = typer.Argument(..., help="Second property id"),
    config_path: Path = typer.Option(None, "--config", "-c"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """Toggle the relationship between two properties, creating it if needed."""
    setup_logging(verbose)
    _, _, store = _services(config_path)
    try:
        rel = store.toggle_or_create(property_a, property_b)
    except CompSetError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)
    state = "[green]active[/green]" if rel.is_active else "[dim]inactive[/dim]"
    console.print(f"Relationship {rel.id} is now {state}")


@app.command()
def preset(goal: str = typer.Argument(..., help="Optimization goal")):
    """Show the occupancy and risk parameters for an optimization goal."""
    from compsetiq.optimization.presets import OptimizationPresetMapper, risk_label

    try:
        params = OptimizationPresetMapper().parameters_for(goal)
    except CompSetError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)
    if params is None:
        console.print("[yellow]Custom goal: parameters are set by hand.[/yellow]")
        return
    console.print(f"Target occupancy: {params.occupancy}%  Risk: {risk_label(params.risk)}")


@app.command()
def config_show(
    config_path: Path = typer.Option(None, "--config", "-c"),
):
    """Display current configuration."""
    cfg = load_config(config_path)
    console.print_json(json.dumps(cfg.model_dump(), indent=2, default=str))


@app.command()
def serve(
    config_path: Path = typer.Option(None, "--config", "-c"),
    host: str = typer.Option(None, "--host"),
    port: int = typer.Option(None, "--port"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """Start the API server."""
    import uvicorn

    setup_logging(verbose)
    cfg = load_config(config_path)

    from compsetiq.api.server import create_app

    web_app = create_app(cfg)
    host = host or cfg.api.host
    port = port or cfg.api.port
    console.print(f"[bold]Starting CompSetIQ API at http://{host}:{port}[/bold]")
    uvicorn.run(web_app, host=host, port=port)


if __name__ == "__main__":
    app()
