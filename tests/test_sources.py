import pytest

from eupp.errors import ConfigurationError
from eupp.selection import Selection
from eupp.sources import SourceLocator, data_identifier, index_identifier, member_buckets

BASE = "https://eupp.test/benchmark"


def _forecast(**kwargs):
    return Selection(product="forecast", level="surface", type="ens", dates=["2017-01-02"], **kwargs)


def test_ensemble_resolves_both_member_buckets():
    locator = SourceLocator(base_url=BASE)
    assert locator.resolve(_forecast()) == (
        "data/fcs/surf/EU_forecast_ens_surf_params_2017-01-02_cf.grb",
        "data/fcs/surf/EU_forecast_ens_surf_params_2017-01-02_pf.grb",
    )
    assert locator.resolve(_forecast(), want_index=True) == (
        "data/fcs/surf/EU_forecast_ens_surf_params_2017-01-02_cf.index",
        "data/fcs/surf/EU_forecast_ens_surf_params_2017-01-02_pf.index",
    )


@pytest.mark.parametrize(
    "members,expected",
    [(None, ("cf", "pf")), ([0], ("cf",)), ([1, 2], ("pf",)), ([0, 7], ("cf", "pf"))],
)
def test_member_buckets(members, expected):
    assert member_buckets(_forecast(members=members)) == expected


def test_high_resolution_has_no_bucket():
    selection = Selection(product="forecast", level="pressure", type="hr", dates=["2017-01-02"])
    assert member_buckets(selection) == (None,)
    assert SourceLocator(base_url=BASE).resolve(selection) == (
        "data/fcs/pressure/EU_forecast_hr_pressure_params_2017-01-02.grb",
    )


def test_analysis_dates_share_monthly_archive():
    locator = SourceLocator(base_url=BASE)
    selection = Selection(product="analysis", level="surface", dates=["2017-01-02", "2017-01-20", "2017-02-01"])
    assert locator.resolve(selection, want_index=True) == (
        "data/ana/surf/EU_analysis_surf_params_2017-01.index",
        "data/ana/surf/EU_analysis_surf_params_2017-02.index",
    )


def test_reforecast_and_efi_templates():
    locator = SourceLocator(base_url=BASE)
    reforecast = Selection(product="reforecast", level="pressure", type="ens", dates=["2017-01-05"], members=[3])
    efi = Selection(product="forecast", level="efi", dates=["2017-01-05"])
    assert locator.resolve(reforecast) == ("data/rfcs/pressure/EU_reforecast_ens_pressure_params_2017-01-05_pf.grb",)
    assert locator.resolve(efi) == ("data/fcs/efi/EU_forecast_efi_params_2017-01-05.grb",)


def test_missing_template_is_configuration_error():
    with pytest.raises(ConfigurationError):
        SourceLocator(base_url=BASE, templates={}).resolve(_forecast())


def test_url_joins_base(monkeypatch):
    assert SourceLocator(base_url=BASE + "/").url("data/a.grb") == f"{BASE}/data/a.grb"
    monkeypatch.setenv("EUPP_BASEURL", "https://mirror.test/eupp/")
    assert SourceLocator().url("/data/a.grb") == "https://mirror.test/eupp/data/a.grb"


def test_identifier_mapping():
    assert index_identifier("x/a.grb") == "x/a.index"
    assert data_identifier("x/a.index") == "x/a.grb"
    with pytest.raises(ValueError):
        index_identifier("x/a.nc")
