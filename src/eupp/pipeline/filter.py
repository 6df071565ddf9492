"""Subset an inventory to the fields a selection asks for."""

from __future__ import annotations

import pandas as pd

from eupp.selection import Product, Selection


def _keep(inventory: pd.DataFrame, mask: pd.Series) -> pd.DataFrame:
    return inventory[mask.fillna(False).astype(bool)]


def filter_inventory(inventory: pd.DataFrame, selection: Selection) -> pd.DataFrame:
    """
    Apply member, time, step and parameter constraints in that order.

    Analysis fields are matched on their valid date (and valid hour for
    ``steps``); forecast and reforecast fields on their exact
    initialization time (and lead time for ``steps``).
    """

    inv = inventory
    if selection.members is not None:
        inv = _keep(inv, inv["number"].isin(selection.members))

    dates = pd.DatetimeIndex([pd.Timestamp(day) for day in selection.dates])
    if selection.product is Product.ANALYSIS:
        inv = _keep(inv, inv["valid"].dt.normalize().isin(dates))
        if selection.steps is not None:
            inv = _keep(inv, inv["valid"].dt.hour.isin(selection.steps))
    else:
        inv = _keep(inv, inv["init"].isin(dates))
        if selection.steps is not None:
            inv = _keep(inv, inv["step"].isin(selection.steps))

    if selection.parameters is not None:
        inv = _keep(inv, inv["param"].isin(selection.parameters))
    return inv.reset_index(drop=True)
