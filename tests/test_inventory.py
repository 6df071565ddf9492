import pandas as pd
import pytest

from eupp.errors import EmptyResultWarning, RetrievalError
from eupp.inventory import IndexResolver, get_inventory, parse_index
from eupp.selection import Selection


def test_parse_index_skips_blank_lines():
    text = '{"param": "2t", "_offset": 0}\n\n  \n{"param": "cp", "_offset": 10}\n'
    records = parse_index(text)
    assert [r["param"] for r in records] == ["2t", "cp"]


@pytest.mark.parametrize("text", ['{"param": "2t"\n', "[1, 2]\n"])
def test_parse_index_rejects_malformed_lines(text):
    with pytest.raises(ValueError):
        parse_index(text)


def test_ensemble_forecast_selection_yields_every_step_member_combination(ensemble_backend, locator):
    selection = Selection(
        product="forecast",
        level="surface",
        type="ens",
        dates=["2017-01-02"],
        steps=range(72, 121),
        members=[0, 1, 2, 3],
        parameters=["cp"],
    )
    inv = get_inventory(selection, locator=locator, backend=ensemble_backend)

    assert len(inv) == 49 * 4
    assert set(inv["param"]) == {"cp"}
    assert sorted(inv["number"].unique().tolist()) == [0, 1, 2, 3]
    assert inv["step"].min() == 72
    assert inv["step"].max() == 120
    assert (inv.loc[inv["type"] == "cf", "number"] == 0).all()
    assert (inv["valid"] == inv["init"] + pd.to_timedelta(inv["step"], unit="h")).all()
    assert inv["path"].str.endswith(".grb").all()
    assert "domain" in inv.columns


def test_control_only_selection_touches_one_index(ensemble_backend, locator):
    selection = Selection(
        product="forecast", level="surface", type="ens", dates=["2017-01-02"], members=[0], steps=[0]
    )
    inv = get_inventory(selection, locator=locator, backend=ensemble_backend)
    assert len(ensemble_backend.index_calls) == 1
    assert ensemble_backend.index_calls[0].endswith("_cf.index")
    assert len(inv) == 2


def test_analysis_is_filtered_on_valid_time(analysis_backend, locator):
    selection = Selection(product="analysis", level="surface", dates=["2017-01-02"])
    inv = get_inventory(selection, locator=locator, backend=analysis_backend)

    assert len(inv) == 5
    assert (inv["valid"].dt.normalize() == pd.Timestamp("2017-01-02")).all()
    # A short-range forecast from the previous day counts towards its valid date.
    assert pd.Timestamp("2017-01-01 18:00") in set(inv["init"])


def test_analysis_steps_are_valid_hours(analysis_backend, locator):
    selection = Selection(product="analysis", level="surface", dates=["2017-01-02"], steps=[0])
    inv = get_inventory(selection, locator=locator, backend=analysis_backend)

    assert len(inv) == 2
    assert (inv["valid"] == pd.Timestamp("2017-01-02 00:00")).all()
    assert sorted(inv["init"].tolist()) == [pd.Timestamp("2017-01-01 18:00"), pd.Timestamp("2017-01-02 00:00")]


def test_index_cache_avoids_second_fetch(ensemble_backend, locator, tmp_path):
    cache_dir = tmp_path / "cache"
    selection = Selection(
        product="forecast", level="surface", type="ens", dates=["2017-01-02"], cache_dir=cache_dir
    )
    resolver = IndexResolver(locator=locator, backend=ensemble_backend)

    first = resolver.fetch(selection)
    assert len(ensemble_backend.index_calls) == 2
    cached = sorted(cache_dir.iterdir())
    assert len(cached) == 2
    assert all(path.name.endswith("-1.index.json") for path in cached)

    second = resolver.fetch(selection)
    assert len(ensemble_backend.index_calls) == 2
    pd.testing.assert_frame_equal(first, second)


def test_empty_result_warns(ensemble_backend, locator):
    selection = Selection(
        product="forecast", level="surface", type="ens", dates=["2017-01-02"], parameters=["tp"]
    )
    with pytest.warns(EmptyResultWarning):
        inv = get_inventory(selection, locator=locator, backend=ensemble_backend)
    assert inv.empty
    assert "valid" in inv.columns


def test_missing_index_propagates_retrieval_error(ensemble_backend, locator):
    selection = Selection(product="forecast", level="surface", type="ens", dates=["2017-01-05"])
    with pytest.raises(RetrievalError) as excinfo:
        get_inventory(selection, locator=locator, backend=ensemble_backend)
    assert excinfo.value.status_code == 404
