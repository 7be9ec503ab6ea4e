from .tenancy import Company
from .auth import User, SessionToken, USER_ROLES
from .catalog import Vendor, Brand, ProductCategory, ItemCategory, SubCategory, SKU
from .incoming import IncomingInventory, IncomingInventoryItem, INCOMING_STATUSES
from .outgoing import OutgoingInventory, OutgoingInventoryItem, OUTGOING_STATUSES
from .reports import RejectedItemReport, PriceHistory, PRICE_HISTORY_TYPES

__all__ = [
    'Company',
    'User', 'SessionToken', 'USER_ROLES',
    'Vendor', 'Brand', 'ProductCategory', 'ItemCategory', 'SubCategory', 'SKU',
    'IncomingInventory', 'IncomingInventoryItem', 'INCOMING_STATUSES',
    'OutgoingInventory', 'OutgoingInventoryItem', 'OUTGOING_STATUSES',
    'RejectedItemReport', 'PriceHistory', 'PRICE_HISTORY_TYPES',
]
