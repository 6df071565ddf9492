from datetime import date, datetime

import pytest

from eupp.errors import ConfigurationError
from eupp.selection import BoundingBox, DatasetKind, EnsembleType, Level, Product, Selection


def test_selection_coerces_values():
    selection = Selection(
        product="Forecast",
        level="surf",
        type="ensemble",
        dates=["2017-01-05", datetime(2017, 1, 2, 12), "2017-01-05"],
        steps=[12, 0, 12],
        members=5,
        parameters=["2t", "cp", "2t"],
    )
    assert selection.product is Product.FORECAST
    assert selection.level is Level.SURFACE
    assert selection.type is EnsembleType.ENSEMBLE
    assert selection.dates == (date(2017, 1, 2), date(2017, 1, 5))
    assert selection.steps == (0, 12)
    assert selection.members == (5,)
    assert selection.parameters == ("2t", "cp")
    assert selection.kind is DatasetKind.FORECAST_SURFACE_ENS
    assert selection.is_ensemble


def test_single_date_is_accepted():
    selection = Selection(product="analysis", level="pressure", dates="2017-01-02")
    assert selection.dates == (date(2017, 1, 2),)
    assert selection.kind is DatasetKind.ANALYSIS_PRESSURE
    assert not selection.is_ensemble


@pytest.mark.parametrize(
    "kwargs",
    [
        {"product": "analysis", "level": "surface", "type": "ens"},
        {"product": "reforecast", "level": "surface", "type": "hr"},
        {"product": "forecast", "level": "efi", "type": "ens"},
        {"product": "forecast", "level": "surface"},
        {"product": "nowcast", "level": "surface"},
        {"product": "forecast", "level": "surface", "type": "hr", "steps": [-6]},
        {"product": "forecast", "level": "surface", "type": "hr", "parameters": []},
    ],
)
def test_invalid_selections(kwargs):
    with pytest.raises(ConfigurationError):
        Selection(dates=["2017-01-02"], **kwargs)


def test_invalid_date():
    with pytest.raises(ConfigurationError, match="YYYY-MM-DD"):
        Selection(product="analysis", level="surface", dates=["02/01/2017"])


def test_reforecast_dates_must_be_monday_or_thursday():
    Selection(product="reforecast", level="surface", type="ens", dates=["2017-01-02", "2017-01-05"])
    with pytest.raises(ConfigurationError, match="2017-01-03"):
        Selection(product="reforecast", level="pressure", type="ens", dates=["2017-01-03"])


def test_configuration_error_is_value_error():
    with pytest.raises(ValueError):
        Selection(product="analysis", level="surface", type="hr", dates=["2017-01-02"])


def test_bounding_box_from_mapping():
    box = BoundingBox.from_mapping({"left": "-5", "right": 10, "top": 55, "bottom": 40.5})
    assert box == BoundingBox(-5.0, 10.0, 55.0, 40.5)
    with pytest.raises(ConfigurationError):
        BoundingBox.from_mapping({"left": 0, "right": 10, "top": 50})
    with pytest.raises(ConfigurationError):
        BoundingBox.from_mapping({"left": 10, "right": 0, "top": 50, "bottom": 40})


def test_selection_is_immutable():
    selection = Selection(product="analysis", level="surface", dates=["2017-01-02"])
    with pytest.raises(AttributeError):
        selection.steps = (0,)
