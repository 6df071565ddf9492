"""Helper utilities for locating remote index and data resources."""

from __future__ import annotations

from datetime import date
from typing import Mapping

from eupp.config import get_base_url
from eupp.errors import ConfigurationError
from eupp.selection import DatasetKind, Selection

DATA_SUFFIX = ".grb"
INDEX_SUFFIX = ".index"

CONTROL_BUCKET = "cf"
PERTURBED_BUCKET = "pf"

# Analysis archives are monthly; forecast archives are per initialization date.
SOURCE_TEMPLATES: dict[DatasetKind, str] = {
    DatasetKind.ANALYSIS_SURFACE: "data/ana/surf/EU_analysis_surf_params_{year}-{month}.grb",
    DatasetKind.ANALYSIS_PRESSURE: "data/ana/pressure/EU_analysis_pressure_params_{year}-{month}.grb",
    DatasetKind.FORECAST_SURFACE_HR: "data/fcs/surf/EU_forecast_hr_surf_params_{date}.grb",
    DatasetKind.FORECAST_SURFACE_ENS: "data/fcs/surf/EU_forecast_ens_surf_params_{date}_{bucket}.grb",
    DatasetKind.FORECAST_PRESSURE_HR: "data/fcs/pressure/EU_forecast_hr_pressure_params_{date}.grb",
    DatasetKind.FORECAST_PRESSURE_ENS: "data/fcs/pressure/EU_forecast_ens_pressure_params_{date}_{bucket}.grb",
    DatasetKind.FORECAST_EFI: "data/fcs/efi/EU_forecast_efi_params_{date}.grb",
    DatasetKind.REFORECAST_SURFACE_ENS: "data/rfcs/surf/EU_reforecast_ens_surf_params_{date}_{bucket}.grb",
    DatasetKind.REFORECAST_PRESSURE_ENS: "data/rfcs/pressure/EU_reforecast_ens_pressure_params_{date}_{bucket}.grb",
}


def member_buckets(selection: Selection) -> tuple[str | None, ...]:
    """Return the member buckets (control / perturbed) a selection touches."""

    if not selection.is_ensemble:
        return (None,)
    members = selection.members
    if members is None:
        return (CONTROL_BUCKET, PERTURBED_BUCKET)
    if set(members) == {0}:
        return (CONTROL_BUCKET,)
    if 0 not in members:
        return (PERTURBED_BUCKET,)
    return (CONTROL_BUCKET, PERTURBED_BUCKET)


def index_identifier(data_identifier: str) -> str:
    """Map a data-file identifier onto its index-file identifier."""

    if not data_identifier.endswith(DATA_SUFFIX):
        raise ValueError(f"Not a data identifier: {data_identifier}")
    return data_identifier[: -len(DATA_SUFFIX)] + INDEX_SUFFIX


def data_identifier(index_identifier: str) -> str:
    """Map an index-file identifier onto the data file it describes."""

    if not index_identifier.endswith(INDEX_SUFFIX):
        raise ValueError(f"Not an index identifier: {index_identifier}")
    return index_identifier[: -len(INDEX_SUFFIX)] + DATA_SUFFIX


class SourceLocator:
    """Resolve selections into remote resource identifiers."""

    def __init__(
        self,
        base_url: str | None = None,
        templates: Mapping[DatasetKind, str] | None = None,
    ) -> None:
        self.base_url = (base_url or get_base_url()).rstrip("/")
        self.templates = dict(SOURCE_TEMPLATES if templates is None else templates)

    def resolve(self, selection: Selection, want_index: bool = False) -> tuple[str, ...]:
        """
        Return the ordered, duplicate-free identifiers needed for a selection.
        """

        template = self.templates.get(selection.kind)
        if template is None:
            raise ConfigurationError(f"No source template for {selection.kind.name}")
        identifiers: dict[str, None] = {}
        for day in selection.dates:
            for bucket in member_buckets(selection):
                identifier = _render(template, day, bucket)
                if want_index:
                    identifier = index_identifier(identifier)
                identifiers[identifier] = None
        return tuple(identifiers)

    def url(self, identifier: str) -> str:
        """Return the absolute URL of a resource identifier."""

        return f"{self.base_url}/{identifier.lstrip('/')}"


def _render(template: str, day: date, bucket: str | None) -> str:
    fields = {
        "year": f"{day:%Y}",
        "month": f"{day:%m}",
        "date": day.isoformat(),
        "bucket": bucket or "",
    }
    return template.format(**fields)
