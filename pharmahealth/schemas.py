import math
from datetime import date, datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from .errors import InventoryFault


class Category(str, Enum):
    OTC = "OTC"
    PRESCRIPTION = "Prescription"


class StockStatus(str, Enum):
    ADEQUATE = "Adequate"
    LOW_STOCK = "Low Stock"
    CRITICAL = "Critical"


class AlertRule(str, Enum):
    CRITICAL = "critical"
    LOW_STOCK = "low_stock"
    EXPIRING = "expiring"


class Severity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    EXPIRING = "expiring"


def _is_missing(value) -> bool:
    # pandas hands us NaN for empty CSV cells
    return value is None or (isinstance(value, float) and math.isnan(value))


class InventoryItem(BaseModel):
    """
    Defines the data contract for a single medicine batch held by a facility.
    Field aliases follow the document store spelling (camelCase).
    """

    id: str
    name: str
    category: Category
    quantity: int
    min_threshold: int = Field(..., alias="minThreshold")
    # Kept as the raw ISO string: a malformed date must surface as a fault
    # when the expiry rule runs, not reject the whole record.
    expiry_date: Optional[str] = Field(default=None, alias="expiryDate")
    facility: str = "Unassigned"
    batch: Optional[str] = Field(default=None, alias="batchNumber")

    class Config:
        # Accept both the document store aliases and the python field names,
        # and export with the aliases.
        populate_by_name = True

    @field_validator("id", "name", "batch", mode="before")
    @classmethod
    def _stringify(cls, value):
        if _is_missing(value):
            return None
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        return str(value).strip() or None

    @field_validator("facility", mode="before")
    @classmethod
    def _default_facility(cls, value):
        if _is_missing(value) or not str(value).strip():
            return "Unassigned"
        return str(value).strip()

    @field_validator("category", mode="before")
    @classmethod
    def _match_category(cls, value):
        if isinstance(value, str):
            for category in Category:
                if value.strip().lower() == category.value.lower():
                    return category
        return value

    @field_validator("expiry_date", mode="before")
    @classmethod
    def _expiry_to_iso(cls, value):
        if _is_missing(value):
            return None
        if isinstance(value, (date, datetime)):
            return value.isoformat()
        value = str(value).strip()
        return value or None


class AggregateReport(BaseModel):
    """Counts and rounded percentages per status bucket for one snapshot."""

    total: int = 0
    counts: dict[StockStatus, int]
    percentages: dict[StockStatus, int]


class AlertEvent(BaseModel):
    id: str
    item_id: str = Field(..., alias="itemId")
    item_name: str = Field(..., alias="itemName")
    facility: str
    rule: AlertRule
    severity: Severity
    message: str
    quantity: int
    days_to_expiry: Optional[int] = Field(default=None, alias="daysToExpiry")
    generated_at: datetime = Field(..., alias="generatedAt")

    class Config:
        populate_by_name = True


class ItemFault(BaseModel):
    """A per-item problem reported next to the valid results."""

    item_id: Optional[str] = Field(default=None, alias="itemId")
    tag: str
    detail: str

    class Config:
        populate_by_name = True

    @classmethod
    def from_exception(cls, exc: InventoryFault) -> "ItemFault":
        return cls(item_id=exc.item_id, tag=exc.tag, detail=exc.detail)


class AlertRun(BaseModel):
    alerts: list[AlertEvent] = Field(default_factory=list)
    faults: list[ItemFault] = Field(default_factory=list)


class KpiSummary(BaseModel):
    total_items: int = Field(default=0, alias="totalItems")
    adequate: int = 0
    low_stock: int = Field(default=0, alias="lowStock")
    critical: int = 0
    expiring_soon: int = Field(default=0, alias="expiringSoon")
    reorder_queue: int = Field(default=0, alias="reorderQueue")
    total_shortfall: int = Field(default=0, alias="totalShortfall")
    facilities_with_issues: int = Field(default=0, alias="facilitiesWithIssues")
    invalid_expiry_dates: int = Field(default=0, alias="invalidExpiryDates")

    class Config:
        populate_by_name = True


class HealthReport(BaseModel):
    """Everything one pipeline run produces for a snapshot."""

    as_of: date = Field(..., alias="asOf")
    snapshot_date: Optional[date] = Field(default=None, alias="snapshotDate")
    summary: AggregateReport
    by_facility: dict[str, AggregateReport] = Field(default_factory=dict, alias="byFacility")
    kpis: KpiSummary
    alerts: list[AlertEvent] = Field(default_factory=list)
    faults: list[ItemFault] = Field(default_factory=list)
    insights: list[str] = Field(default_factory=list)

    class Config:
        populate_by_name = True
