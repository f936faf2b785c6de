from typing import Optional


class InventoryFault(Exception):
    """
    A data problem on a single inventory record.
    Faults are per-item: they are collected next to the valid results and
    never abort evaluation of the rest of the snapshot.
    """

    tag = "InventoryFault"

    def __init__(self, message: str, item_id: Optional[str] = None):
        super().__init__(message)
        self.item_id = item_id
        self.detail = message


class InvalidExpiryDate(InventoryFault):
    """Missing or malformed expiry date on an item evaluated for expiry."""

    tag = "InvalidExpiryDate"


class InvalidQuantity(InventoryFault):
    """Quantity or threshold that is not a whole number."""

    tag = "InvalidQuantity"


class InvalidRecord(InventoryFault):
    """Any other record that cannot be turned into an InventoryItem."""

    tag = "InvalidRecord"
