from .auth import AdminUser, UserRole, StaffUser, SessionToken
from .inventory import InventoryItem, StockMovement, Supplier
from .menu import MenuCategory, MenuItem
from .orders import Order, OrderItem, Payment
from .venues import Bar, BarInventory, CashierBarAssignment, BarToBarTransfer
from .settings import RestaurantSettings
from .audit import AuditEvent

__all__ = [
    'AdminUser', 'UserRole', 'StaffUser', 'SessionToken',
    'InventoryItem', 'StockMovement', 'Supplier',
    'MenuCategory', 'MenuItem',
    'Order', 'OrderItem', 'Payment',
    'Bar', 'BarInventory', 'CashierBarAssignment', 'BarToBarTransfer',
    'RestaurantSettings',
    'AuditEvent',
]
