from datetime import date

import pytest
from pharmahealth.schemas import InventoryItem

NOW = date(2026, 1, 1)


def make_item(
    item_id: str = "med-001",
    name: str = "Amoxicillin 250mg",
    quantity: int = 50,
    min_threshold: int = 10,
    expiry_date="2026-12-31",
    facility: str = "City General Hospital",
    category: str = "Prescription",
    batch: str = "BT-1001",
) -> InventoryItem:
    return InventoryItem(
        id=item_id,
        name=name,
        category=category,
        quantity=quantity,
        min_threshold=min_threshold,
        expiry_date=expiry_date,
        facility=facility,
        batch=batch,
    )


@pytest.fixture
def mixed_items():
    """One item per bucket, plus one expiring soon and one without a date."""
    return [
        make_item("med-001", "Omeprazole 20mg", quantity=0, min_threshold=10),
        make_item("med-002", "Metformin 500mg", quantity=5, min_threshold=10,
                  facility="HealthPlus Pharmacy", category="OTC"),
        make_item("med-003", "Insulin Glargine", quantity=20, min_threshold=10,
                  expiry_date="2026-01-15", facility="HealthPlus Pharmacy"),
        make_item("med-004", "Lisinopril 10mg", quantity=80, min_threshold=10,
                  expiry_date=None, facility="Regional Hospital"),
    ]
