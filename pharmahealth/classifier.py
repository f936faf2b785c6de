"""
Inventory health classification.

Turns a snapshot of inventory items into per-item status buckets, an
aggregate report and a list of alerts. Everything here is a pure function of
its arguments: the reference time is always passed in by the caller.

Percentages are rounded per bucket, so a report can show 33/33/33 or
34/33/34. The drift is left as is rather than redistributed.
"""

import logging
from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Union

from . import settings
from .errors import InvalidExpiryDate, InventoryFault
from .schemas import (
    AggregateReport,
    AlertEvent,
    AlertRule,
    AlertRun,
    InventoryItem,
    ItemFault,
    Severity,
    StockStatus,
)

logger = logging.getLogger(__name__)

Moment = Union[date, datetime]

# Alert id prefixes the dashboard resolves alerts by
ALERT_ID_PREFIX = {
    AlertRule.CRITICAL: "critical",
    AlertRule.LOW_STOCK: "low",
    AlertRule.EXPIRING: "expiring",
}


def classify(item: InventoryItem) -> StockStatus:
    """First match wins: empty (or negative) stock, below threshold, otherwise adequate."""
    if item.quantity <= 0:
        return StockStatus.CRITICAL
    if item.quantity < item.min_threshold:
        return StockStatus.LOW_STOCK
    return StockStatus.ADEQUATE


def _percent(count: int, total: int) -> int:
    if total <= 0:
        return 0
    # Half away from zero, like Math.round on the dashboard. round() would bank.
    share = Decimal(count * 100) / Decimal(total)
    return int(share.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def aggregate(items: Iterable[InventoryItem]) -> AggregateReport:
    counts = {status: 0 for status in StockStatus}
    for item in items:
        counts[classify(item)] += 1

    total = sum(counts.values())
    return AggregateReport(
        total=total,
        counts=counts,
        percentages={status: _percent(n, total) for status, n in counts.items()},
    )


def aggregate_by_facility(items: Iterable[InventoryItem]) -> dict[str, AggregateReport]:
    """One report per facility, keyed and ordered by facility name."""
    grouped = defaultdict(list)
    for item in items:
        grouped[item.facility].append(item)
    return {facility: aggregate(grouped[facility]) for facility in sorted(grouped)}


def _as_date(moment: Moment) -> date:
    if isinstance(moment, datetime):
        return moment.date()
    return moment


def _as_datetime(moment: Moment) -> datetime:
    if isinstance(moment, datetime):
        return moment
    return datetime.combine(moment, datetime.min.time())


def days_until_expiry(item: InventoryItem, today: Moment) -> int:
    """
    Whole days from `today` to the item's expiry date (negative once expired).
    The whole stored string must be an ISO date or datetime; only its date
    part counts.
    """
    value = item.expiry_date
    if not value:
        raise InvalidExpiryDate("Missing expiry date", item_id=item.id)
    try:
        if len(value) > 10:
            # fromisoformat takes any separator on 3.11+, so a glued-on "99" would read as a time
            if value[10] not in "T ":
                raise ValueError(value)
            expires_on = datetime.fromisoformat(value).date()
        else:
            expires_on = date.fromisoformat(value)
    except ValueError:
        raise InvalidExpiryDate(
            f"Malformed expiry date '{value}'", item_id=item.id
        )
    return (expires_on - _as_date(today)).days


def _stock_alert(item: InventoryItem, status: StockStatus, generated_at: datetime) -> AlertEvent:
    if status is StockStatus.CRITICAL:
        rule, severity = AlertRule.CRITICAL, Severity.CRITICAL
        message = f"Stock depleted - {max(item.quantity, 0)} units remaining"
    else:
        rule, severity = AlertRule.LOW_STOCK, Severity.WARNING
        message = f"Below threshold - {item.quantity} units remaining"

    return AlertEvent(
        id=f"{ALERT_ID_PREFIX[rule]}-{item.id}",
        item_id=item.id,
        item_name=item.name,
        facility=item.facility,
        rule=rule,
        severity=severity,
        message=message,
        quantity=item.quantity,
        generated_at=generated_at,
    )


def _expiry_alert(item: InventoryItem, days_left: int, generated_at: datetime) -> AlertEvent:
    if days_left == 0:
        message = "Batch expires today"
    elif days_left == 1:
        message = "Batch expires in 1 day"
    else:
        message = f"Batch expires in {days_left} days"

    return AlertEvent(
        id=f"{ALERT_ID_PREFIX[AlertRule.EXPIRING]}-{item.id}",
        item_id=item.id,
        item_name=item.name,
        facility=item.facility,
        rule=AlertRule.EXPIRING,
        severity=Severity.EXPIRING,
        message=message,
        quantity=item.quantity,
        days_to_expiry=days_left,
        generated_at=generated_at,
    )


def derive_alerts(
    items: Iterable[InventoryItem],
    now: Moment,
    expiry_horizon_days: int = None,
) -> AlertRun:
    """
    Builds the alert list for a snapshot, in input order.

    Each item yields at most one stock alert (critical or low stock) and,
    independently, one expiry alert when it expires between `now` and
    `now + expiry_horizon_days` inclusive. Items whose expiry date is missing
    or malformed are reported in `faults` and do not stop the pass.
    """
    if expiry_horizon_days is None:
        expiry_horizon_days = settings.EXPIRY_HORIZON_DAYS
    if expiry_horizon_days < 0:
        raise ValueError(f"expiry_horizon_days must be >= 0, got {expiry_horizon_days}")

    generated_at = _as_datetime(now)
    run = AlertRun()

    for item in items:
        status = classify(item)
        if status is not StockStatus.ADEQUATE:
            run.alerts.append(_stock_alert(item, status, generated_at))

        try:
            days_left = days_until_expiry(item, now)
        except InventoryFault as e:
            logger.debug(f"Item {item.id}: {e}")
            run.faults.append(ItemFault.from_exception(e))
            continue

        if 0 <= days_left <= expiry_horizon_days:
            run.alerts.append(_expiry_alert(item, days_left, generated_at))

    return run
