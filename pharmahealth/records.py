import logging
from typing import Any, Iterable, Mapping, Optional
from pydantic import ValidationError

from . import settings
from .errors import InvalidExpiryDate, InvalidQuantity, InvalidRecord, InventoryFault
from .schemas import InventoryItem, ItemFault

logger = logging.getLogger(__name__)

# Validation error locations -> fault type. Anything else is an InvalidRecord.
_FAULT_BY_FIELD = {
    "quantity": InvalidQuantity,
    "minThreshold": InvalidQuantity,
    "min_threshold": InvalidQuantity,
    "expiryDate": InvalidExpiryDate,
    "expiry_date": InvalidExpiryDate,
}


def normalize_record(record: Mapping[str, Any]) -> dict[str, Any]:
    """
    Renames the field spellings used by the dashboard, CSV exports and the
    document store to the InventoryItem aliases. Unknown keys pass through
    and are ignored by the model.
    """
    normalized = {}
    for key, value in record.items():
        target = settings.FIELD_ALIASES.get(key, key)
        # The canonical spelling wins when a record carries both
        if target in normalized and target != key:
            continue
        normalized[target] = value
    return normalized


def _fault_from_validation(error: ValidationError, item_id: Optional[str]) -> InventoryFault:
    first = error.errors()[0]
    field = str(first["loc"][0]) if first["loc"] else ""
    fault_cls = _FAULT_BY_FIELD.get(field, InvalidRecord)
    detail = f"{field or 'record'}: {first['msg']}"
    if first["type"] != "missing" and field:
        detail += f" (got {first['input']!r})"
    return fault_cls(detail, item_id=item_id)


def _raw_id(record: Mapping[str, Any]) -> Optional[str]:
    value = record.get("id")
    if value is None or value != value:  # NaN
        return None
    return str(value)


def parse_records(
    records: Iterable[Mapping[str, Any]],
) -> tuple[list[InventoryItem], list[ItemFault]]:
    """
    Validates raw Record Store documents (or snapshot rows) one by one.
    Invalid records become faults; they never abort the batch.
    """
    items: list[InventoryItem] = []
    faults: list[ItemFault] = []

    for record in records:
        normalized = normalize_record(record)
        try:
            items.append(InventoryItem.model_validate(normalized))
        except ValidationError as e:
            fault = _fault_from_validation(e, _raw_id(normalized))
            logger.warning(f"⚠️ Skipping record {fault.item_id or '<no id>'}: {fault}")
            faults.append(ItemFault.from_exception(fault))

    logger.info(f"Parsed {len(items)} items ({len(faults)} rejected).")
    return items, faults
