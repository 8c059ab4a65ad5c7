from .item import InventoryItem
from .stock import InventoryStock

__all__ = [
    "InventoryItem",
    "InventoryStock",
]
