# pyright: reportMissingImports=false, reportMissingModuleSource=false
import asyncio
from pathlib import Path
from typing import Dict, List, Optional

import orjson
import typer
from dotenv import load_dotenv

from .config import CalculatorConfig, load_calculator_config
from .errors import NoGamesLoadedError
from .logging_setup import bind_run, configure_logging, log_run_event, new_run_id
from .seasons import SeasonCache, SeasonIndex, build_source
from .state import decode, encode

app = typer.Typer(no_args_is_help=True, add_completion=False)


def _parse_years_arg(years: str) -> List[int]:
    years = years.strip()
    if "-" in years:
        start, end = years.split("-")
        return list(range(int(start), int(end) + 1))
    return [int(x) for x in years.split(",") if x.strip()]


def _decode_or_exit(query: str):
    config = decode(query)
    if config is None:
        typer.echo(f"Could not decode calculator state: {query}", err=True)
        raise typer.Exit(code=2)
    return config


async def _load_years(cfg: CalculatorConfig, years: List[int]) -> Dict[int, SeasonIndex]:
    source = build_source(cfg)
    try:
        cache = SeasonCache(source)
        # load_range covers contiguous spans; comma lists may have gaps
        partials = await asyncio.gather(*(cache.load_range(year, year) for year in years))
        seasons: Dict[int, SeasonIndex] = {}
        for partial in partials:
            seasons.update(partial)
        return seasons
    finally:
        await source.aclose()


async def _render(cfg: CalculatorConfig, query: str):
    # Lazy import to keep --help fast (altair, polars)
    from .orchestration import CalculatorController

    source = build_source(cfg)
    try:
        controller = CalculatorController(SeasonCache(source))
        return await controller.calculate_from_query(query)
    finally:
        await source.aclose()


@app.callback()
def main() -> None:
    load_dotenv()
    configure_logging()


@app.command("decode")
def decode_cmd(query: str = typer.Argument(..., help="Query string, e.g. 'p=0-24&s=2017-2024-B'")) -> None:
    """Print the calculator state a query string decodes to."""
    config = _decode_or_exit(query)
    typer.echo(orjson.dumps(config.to_dict(), option=orjson.OPT_INDENT_2).decode())


@app.command("encode")
def encode_cmd(query: str = typer.Argument(..., help="Query string to canonicalize")) -> None:
    """Decode then re-encode a query string into its canonical form."""
    typer.echo(encode(_decode_or_exit(query)))


@app.command()
def load(
    years: str = typer.Option("2017-2024", help="Year range, e.g. 2017-2024 or comma list"),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to calculator.yml"),
) -> None:
    """Load seasons and print per-year game counts."""
    cfg = load_calculator_config(config_path)
    run_id = new_run_id()
    bind_run(run_id, "load")
    year_list = _parse_years_arg(years)
    log_run_event(run_id, "load_started", years=year_list, season_base=cfg.season_base)
    seasons = asyncio.run(_load_years(cfg, year_list))
    for year, season in sorted(seasons.items()):
        status = "ok" if not season.is_empty else "unavailable"
        typer.echo(f"{year}: games={season.game_count} teams={season.team_count} {status}")
    total = SeasonCache.total_games(seasons)
    log_run_event(run_id, "load_completed", total_games=total)
    typer.echo(f"total games: {total}")


@app.command()
def render(
    query: str = typer.Argument(..., help="Calculator query string"),
    out: Optional[Path] = typer.Option(None, help="Output HTML path (default: <chart_dir>/chart.html)"),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to calculator.yml"),
) -> None:
    """Render the chart for a calculator query string to standalone HTML."""
    from .charts import save_chart_html

    cfg = load_calculator_config(config_path)
    run_id = new_run_id()
    bind_run(run_id, "render")
    log_run_event(run_id, "render_started", query=query, season_base=cfg.season_base)
    try:
        result = asyncio.run(_render(cfg, query))
    except NoGamesLoadedError as exc:
        log_run_event(run_id, "render_failed", error=str(exc))
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1)
    except ValueError as exc:
        log_run_event(run_id, "render_failed", error=str(exc))
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2)

    path = save_chart_html(
        result.rendered,
        out or Path(cfg.chart_dir) / "chart.html",
        title=result.config.plot_type.label,
        query=result.query,
    )
    log_run_event(run_id, "render_completed", path=str(path), total_games=result.total_games, query=result.query)
    typer.echo(f"rendered: {path} games={result.total_games} state={result.query}")


if __name__ == "__main__":
    app()
