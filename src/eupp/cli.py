"""Command-line entry point for eupp."""

from __future__ import annotations

import functools
import logging
from pathlib import Path
from typing import Callable

import click
import pandas as pd

from eupp.backends.cfgrib_helpers import interpolate_grib
from eupp.config import get_cache_dir, get_log_level, parse_steps
from eupp.errors import EuppError
from eupp.inventory import get_inventory
from eupp.runner import download_gridded
from eupp.selection import EnsembleType, Level, Product, Selection


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(levelname)s:%(name)s:%(message)s",
    )
    logging.getLogger("cfgrib").setLevel(logging.ERROR)
    logging.getLogger("cfgrib.messages").setLevel(logging.ERROR)


def _int_list(ctx: click.Context, param: click.Parameter, value: str | None):
    if value is None:
        return None
    try:
        return parse_steps(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc


def selection_options(func: Callable) -> Callable:
    """Attach the options shared by every selection-based command."""

    options = [
        click.option("--product", type=click.Choice([p.value for p in Product]), required=True),
        click.option("--level", type=click.Choice([lv.value for lv in Level]), default="surface", show_default=True),
        click.option("--type", "type_", type=click.Choice([t.value for t in EnsembleType]), default=None),
        click.option("--date", "dates", multiple=True, required=True, help="Date as YYYY-MM-DD; repeatable."),
        click.option("--steps", callback=_int_list, default=None, help='Steps, e.g. "0,6,12" or "72-120".'),
        click.option("--members", callback=_int_list, default=None, help='Members, e.g. "0-10".'),
        click.option("--param", "parameters", multiple=True, help="Parameter short name; repeatable."),
        click.option(
            "--cache-dir",
            type=click.Path(file_okay=False, path_type=Path),
            default=None,
            help="Index cache directory (defaults to $EUPP_CACHE_DIR).",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _build_selection(
    product: str,
    level: str,
    type_: str | None,
    dates: tuple[str, ...],
    steps,
    members,
    parameters: tuple[str, ...],
    cache_dir: Path | None,
) -> Selection:
    return Selection(
        product=product,
        level=level,
        type=type_,
        dates=dates,
        steps=steps,
        members=members,
        parameters=parameters or None,
        cache_dir=cache_dir or get_cache_dir(),
    )


def _report_errors(func: Callable) -> Callable:
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (EuppError, OSError) as exc:
            raise click.ClickException(str(exc)) from exc

    return wrapper


@click.group()
@click.option("--log-level", default=None, help="Logging level (defaults to $EUPP_LOG_LEVEL or WARNING).")
def main(log_level: str | None) -> None:
    """
    Retrieve subsets of the EUPP benchmark GRIB archives.
    """

    _configure_logging(log_level or get_log_level())


@main.command()
@selection_options
@_report_errors
def inventory(product, level, type_, dates, steps, members, parameters, cache_dir) -> None:
    """Print the fields matching a selection as CSV."""

    selection = _build_selection(product, level, type_, dates, steps, members, parameters, cache_dir)
    inv = get_inventory(selection)
    click.echo(inv.to_csv(index=False, date_format="%Y-%m-%dT%H:%M:%S"), nl=False)


@main.command()
@selection_options
@click.argument("output", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--format", "output_format", type=click.Choice(["grib", "nc"]), default="grib", show_default=True)
@click.option("--overwrite", is_flag=True, help="Replace OUTPUT if it exists.")
@click.option("--netcdf-kind", type=click.IntRange(1, 4), default=3, show_default=True)
@_report_errors
def download(
    product,
    level,
    type_,
    dates,
    steps,
    members,
    parameters,
    cache_dir,
    output: Path,
    output_format: str,
    overwrite: bool,
    netcdf_kind: int,
) -> None:
    """Download the fields matching a selection into OUTPUT."""

    selection = _build_selection(product, level, type_, dates, steps, members, parameters, cache_dir)
    inv = download_gridded(selection, output, output_format, overwrite=overwrite, netcdf_kind=netcdf_kind)
    click.echo(f"Wrote {len(inv)} fields to {output}")


@main.command()
@click.argument("grib", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--lat", type=float, required=True, help="Latitude of the point.")
@click.option("--lon", type=float, required=True, help="Longitude of the point.")
@click.option("--nearest", is_flag=True, help="Nearest neighbour instead of bilinear interpolation.")
@click.option("--long", "long_format", is_flag=True, help="Print one row per field.")
@click.option("--ignore-init", is_flag=True, help="Identify rows by valid time only.")
@_report_errors
def extract(grib: Path, lat: float, lon: float, nearest: bool, long_format: bool, ignore_init: bool) -> None:
    """Interpolate the fields of GRIB to a single point and print CSV."""

    points = pd.DataFrame({"lat": [lat], "lon": [lon]})
    result = interpolate_grib(
        grib,
        points,
        bilinear=not nearest,
        wide=not long_format,
        ignore_init=ignore_init,
    )
    click.echo(result.to_csv(index=False, date_format="%Y-%m-%dT%H:%M:%S"), nl=False)
