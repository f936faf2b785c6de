"""Read-models behind the dashboard: KPI cards, the inventory table and exports."""

from datetime import date
from typing import Iterable, Optional, Sequence, Union
import pandas as pd

from . import settings
from .classifier import aggregate, classify, days_until_expiry, derive_alerts, Moment
from .errors import InventoryFault
from .schemas import AlertRule, Category, InventoryItem, KpiSummary, StockStatus


SORT_FIELDS = ("name", "quantity", "expiry_date", "facility")


def shortfall(item: InventoryItem) -> int:
    """Units missing to reach the reorder point (0 when at or above it)."""
    return max(item.min_threshold - max(item.quantity, 0), 0)


def summarize_kpis(
    items: Sequence[InventoryItem],
    now: Moment,
    expiry_horizon_days: int = None,
) -> KpiSummary:
    report = aggregate(items)
    run = derive_alerts(items, now, expiry_horizon_days)

    needs_attention = [item for item in items if classify(item) is not StockStatus.ADEQUATE]
    low = report.counts[StockStatus.LOW_STOCK]
    critical = report.counts[StockStatus.CRITICAL]

    return KpiSummary(
        total_items=report.total,
        adequate=report.counts[StockStatus.ADEQUATE],
        low_stock=low,
        critical=critical,
        expiring_soon=sum(1 for a in run.alerts if a.rule is AlertRule.EXPIRING),
        reorder_queue=low + critical,
        total_shortfall=sum(shortfall(item) for item in needs_attention),
        facilities_with_issues=len({item.facility for item in needs_attention}),
        invalid_expiry_dates=len(run.faults),
    )


def _expires_within(item: InventoryItem, days: int, now: Moment) -> bool:
    try:
        days_left = days_until_expiry(item, now)
    except InventoryFault:
        return False
    return 0 <= days_left <= days


def filter_items(
    items: Iterable[InventoryItem],
    search: Optional[str] = None,
    status: Optional[Union[StockStatus, str]] = None,
    category: Optional[Union[Category, str]] = None,
    expiring_within: Optional[int] = None,
    now: Optional[Moment] = None,
) -> list[InventoryItem]:
    """
    Inventory table filters. Search is a case-insensitive substring match on
    name, facility and batch number. Input order is preserved.
    """
    if expiring_within is not None and now is None:
        raise ValueError("Filtering on expiry needs a reference time (now)")

    needle = search.strip().lower() if search else ""
    wanted_status = StockStatus(status) if status else None
    wanted_category = Category(category) if category else None

    filtered = []
    for item in items:
        if needle:
            haystack = [item.name, item.facility, item.batch or ""]
            if not any(needle in text.lower() for text in haystack):
                continue
        if wanted_status and classify(item) is not wanted_status:
            continue
        if wanted_category and item.category is not wanted_category:
            continue
        if expiring_within is not None and not _expires_within(item, expiring_within, now):
            continue
        filtered.append(item)
    return filtered


def _expiry_sort_key(item: InventoryItem):
    try:
        # Any fixed origin works, only the ordering matters
        return (0, days_until_expiry(item, date.min))
    except InventoryFault:
        return (1, 0)


def sort_items(
    items: Iterable[InventoryItem],
    field: str = "name",
    descending: bool = False,
) -> list[InventoryItem]:
    if field not in SORT_FIELDS:
        raise ValueError(f"Cannot sort by '{field}'. Choose one of {', '.join(SORT_FIELDS)}.")

    items = list(items)
    if field == "expiry_date":
        # Undated items stay at the bottom in both directions
        dated = [item for item in items if _expiry_sort_key(item)[0] == 0]
        undated = [item for item in items if _expiry_sort_key(item)[0] == 1]
        dated.sort(key=_expiry_sort_key, reverse=descending)
        return dated + undated

    if field in ("name", "facility"):
        key = lambda item: getattr(item, field).lower()
    else:
        key = lambda item: item.quantity
    return sorted(items, key=key, reverse=descending)


def to_frame(items: Iterable[InventoryItem]) -> pd.DataFrame:
    """
    Flattens items into a DataFrame using the document store column names,
    with the derived status appended and rows ordered by status then name.
    """
    rows = []
    for item in items:
        row = item.model_dump(mode="json", by_alias=True)
        row["status"] = classify(item).value
        rows.append(row)

    columns = [
        field.alias or name for name, field in InventoryItem.model_fields.items()
    ] + ["status"]
    df = pd.DataFrame(rows, columns=columns)
    if df.empty:
        return df

    df["status"] = pd.Categorical(df["status"], categories=settings.STATUS_ORDER, ordered=True)
    df = df.sort_values(["status", "name"], ascending=[False, True]).reset_index(drop=True)
    df["status"] = df["status"].astype(str)
    return df
