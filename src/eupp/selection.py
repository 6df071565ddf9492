"""Selection descriptors describing which fields to retrieve."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Iterable, Mapping, NamedTuple

from eupp.errors import ConfigurationError

# Reforecasts are only initialized on Mondays and Thursdays.
REFORECAST_WEEKDAYS = (0, 3)


class Product(str, Enum):
    ANALYSIS = "analysis"
    FORECAST = "forecast"
    REFORECAST = "reforecast"


class Level(str, Enum):
    SURFACE = "surface"
    PRESSURE = "pressure"
    EFI = "efi"


class EnsembleType(str, Enum):
    HIGH_RES = "hr"
    ENSEMBLE = "ens"


_ALIASES: dict[type[Enum], dict[str, str]] = {
    Level: {"surf": "surface", "sfc": "surface", "pl": "pressure"},
    EnsembleType: {"highres": "hr", "control": "hr", "ensemble": "ens"},
}


def _coerce(enum_cls: type[Enum], value: object, field_name: str) -> Enum:
    if isinstance(value, enum_cls):
        return value
    key = str(value).strip().lower()
    key = _ALIASES.get(enum_cls, {}).get(key, key)
    try:
        return enum_cls(key)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ConfigurationError(f"Invalid {field_name} {value!r}; expected one of: {allowed}") from None


class DatasetKind(Enum):
    """Closed set of product/level/type combinations that exist remotely."""

    ANALYSIS_SURFACE = (Product.ANALYSIS, Level.SURFACE, None)
    ANALYSIS_PRESSURE = (Product.ANALYSIS, Level.PRESSURE, None)
    FORECAST_SURFACE_HR = (Product.FORECAST, Level.SURFACE, EnsembleType.HIGH_RES)
    FORECAST_SURFACE_ENS = (Product.FORECAST, Level.SURFACE, EnsembleType.ENSEMBLE)
    FORECAST_PRESSURE_HR = (Product.FORECAST, Level.PRESSURE, EnsembleType.HIGH_RES)
    FORECAST_PRESSURE_ENS = (Product.FORECAST, Level.PRESSURE, EnsembleType.ENSEMBLE)
    FORECAST_EFI = (Product.FORECAST, Level.EFI, None)
    REFORECAST_SURFACE_ENS = (Product.REFORECAST, Level.SURFACE, EnsembleType.ENSEMBLE)
    REFORECAST_PRESSURE_ENS = (Product.REFORECAST, Level.PRESSURE, EnsembleType.ENSEMBLE)

    @property
    def product(self) -> Product:
        return self.value[0]

    @property
    def level(self) -> Level:
        return self.value[1]

    @property
    def type(self) -> EnsembleType | None:
        return self.value[2]

    @classmethod
    def lookup(
        cls,
        product: Product,
        level: Level,
        type_: EnsembleType | None,
    ) -> "DatasetKind":
        """Return the combination matching the arguments or raise ConfigurationError."""

        for kind in cls:
            if kind.value == (product, level, type_):
                return kind
        label = "/".join(part.value for part in (product, level, type_) if part is not None)
        raise ConfigurationError(f"No data set available for {label!r}")


class BoundingBox(NamedTuple):
    """Geographic bounding box in degrees."""

    left: float
    right: float
    top: float
    bottom: float

    @classmethod
    def from_mapping(cls, values: Mapping[str, float]) -> "BoundingBox":
        try:
            box = cls(
                left=float(values["left"]),
                right=float(values["right"]),
                top=float(values["top"]),
                bottom=float(values["bottom"]),
            )
        except KeyError as exc:
            raise ConfigurationError(f"Bounding box is missing {exc.args[0]!r}") from None
        if box.left >= box.right or box.bottom >= box.top:
            raise ConfigurationError(f"Degenerate bounding box {tuple(box)}")
        return box


def _as_date(value: object) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise ConfigurationError(f"Invalid date {value!r}; expected YYYY-MM-DD") from None


def _as_int_tuple(values: Iterable[object] | None, field_name: str) -> tuple[int, ...] | None:
    if values is None:
        return None
    if isinstance(values, (int, str)):
        values = [values]
    result: set[int] = set()
    for value in values:
        try:
            number = int(value)
        except (TypeError, ValueError):
            raise ConfigurationError(f"Invalid {field_name} entry {value!r}") from None
        if number < 0:
            raise ConfigurationError(f"{field_name} must be non-negative, got {number}")
        result.add(number)
    if not result:
        raise ConfigurationError(f"{field_name} must not be empty; use None for all")
    return tuple(sorted(result))


@dataclass(frozen=True)
class Selection:
    """
    Immutable description of the fields a caller wants.

    ``steps``, ``parameters`` and ``members`` set to ``None`` mean "all
    available". For analysis data ``steps`` are hours of the day, for
    forecasts and reforecasts they are lead times in hours.
    """

    product: Product
    level: Level
    dates: tuple[date, ...]
    type: EnsembleType | None = None
    steps: tuple[int, ...] | None = None
    parameters: tuple[str, ...] | None = None
    members: tuple[int, ...] | None = None
    area: BoundingBox | None = None
    cache_dir: Path | None = None

    def __post_init__(self) -> None:
        product = _coerce(Product, self.product, "product")
        level = _coerce(Level, self.level, "level")
        type_ = None if self.type is None else _coerce(EnsembleType, self.type, "type")

        raw_dates = self.dates
        if isinstance(raw_dates, (date, str)):
            raw_dates = [raw_dates]
        dates = tuple(sorted({_as_date(value) for value in raw_dates}))
        if not dates:
            raise ConfigurationError("At least one date is required")

        parameters = self.parameters
        if parameters is not None:
            if isinstance(parameters, str):
                parameters = [parameters]
            parameters = tuple(dict.fromkeys(str(p).strip() for p in parameters if str(p).strip()))
            if not parameters:
                raise ConfigurationError("parameters must not be empty; use None for all")

        area = self.area
        if area is not None and not isinstance(area, BoundingBox):
            area = BoundingBox.from_mapping(area)

        object.__setattr__(self, "product", product)
        object.__setattr__(self, "level", level)
        object.__setattr__(self, "type", type_)
        object.__setattr__(self, "dates", dates)
        object.__setattr__(self, "steps", _as_int_tuple(self.steps, "steps"))
        object.__setattr__(self, "members", _as_int_tuple(self.members, "members"))
        object.__setattr__(self, "parameters", parameters)
        object.__setattr__(self, "area", area)
        if self.cache_dir is not None:
            object.__setattr__(self, "cache_dir", Path(self.cache_dir).expanduser())

        DatasetKind.lookup(product, level, type_)
        if product is Product.REFORECAST:
            invalid = [d for d in dates if d.weekday() not in REFORECAST_WEEKDAYS]
            if invalid:
                listed = ", ".join(d.isoformat() for d in invalid)
                raise ConfigurationError(
                    f"Reforecasts are only available on Mondays and Thursdays, got {listed}"
                )

    @property
    def kind(self) -> DatasetKind:
        return DatasetKind.lookup(self.product, self.level, self.type)

    @property
    def is_ensemble(self) -> bool:
        return self.type is EnsembleType.ENSEMBLE
