from .store import InventoryDocument
from .auth import SessionToken

__all__ = [
    'InventoryDocument',
    'SessionToken',
]
