"""
Insight generators for the dashboard panel.

Any callable taking the item snapshot and returning a list of strings can be
plugged into the pipeline. Randomness, when wanted, comes from an injected
random.Random so runs can be reproduced.
"""

import random
from typing import Callable, Optional, Sequence

from . import settings
from .classifier import classify, derive_alerts, Moment
from .schemas import AlertRule, InventoryItem, StockStatus
from .views import shortfall

InsightGenerator = Callable[[Sequence[InventoryItem]], list[str]]

CANNED_INSIGHTS = [
    "Critical shortage of Amoxicillin detected across 3 facilities - recommend immediate redistribution",
    "Paracetamol expiry approaching in 2 weeks at Central Medical Store - 500 units at risk",
    "Low stock trend for Insulin Glargine increasing - consider bulk reorder",
    "High demand for Metformin observed in urban areas - monitor closely",
    "Batch expiry risk: 15% of current stock expires within 30 days",
]


def _pick_count(rng: random.Random) -> int:
    # The panel always showed between three and five entries
    return rng.randint(3, 5)


class RuleBasedInsights:
    """Plain-language statements derived from the current snapshot."""

    def __init__(
        self,
        now: Moment,
        expiry_horizon_days: int = None,
        rng: Optional[random.Random] = None,
        limit: Optional[int] = None,
    ):
        self.now = now
        self.expiry_horizon_days = (
            settings.EXPIRY_HORIZON_DAYS if expiry_horizon_days is None else expiry_horizon_days
        )
        self.rng = rng
        self.limit = limit

    def __call__(self, items: Sequence[InventoryItem]) -> list[str]:
        statuses = [(item, classify(item)) for item in items]
        critical = [item for item, status in statuses if status is StockStatus.CRITICAL]
        low = [item for item, status in statuses if status is StockStatus.LOW_STOCK]
        run = derive_alerts(items, self.now, self.expiry_horizon_days)
        expiring = [a for a in run.alerts if a.rule is AlertRule.EXPIRING]
        troubled_facilities = {
            item.facility for item, status in statuses if status is not StockStatus.ADEQUATE
        }

        insights = []
        if critical:
            insights.append(
                f"{len(critical)} medicines are completely out of stock and need immediate redistribution"
            )
        if low:
            total_shortage = sum(shortfall(item) for item in low)
            insights.append(
                f"{len(low)} medicines are below threshold by {total_shortage} units total"
            )
        if expiring:
            insights.append(
                f"{len(expiring)} batches will expire within {self.expiry_horizon_days} days"
                " - consider priority usage"
            )
        if troubled_facilities:
            insights.append(
                f"{len(troubled_facilities)} facilities have inventory issues requiring attention"
            )

        if self.rng is not None:
            self.rng.shuffle(insights)
            insights = insights[: _pick_count(self.rng)]
        if self.limit is not None:
            insights = insights[: self.limit]
        return insights


class CannedInsights:
    """The mock panel: a random slice of fixed statements, ignoring the data."""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def __call__(self, items: Sequence[InventoryItem]) -> list[str]:
        return CANNED_INSIGHTS[: _pick_count(self.rng)]
