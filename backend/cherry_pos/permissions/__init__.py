# Overview: Roles and navigation package.
# Re-exports the public APIs used by routes, services and the client.

from .roles import (
    ROLE_DEFINITIONS,
    ALL_ROLES,
    SUPER_ADMIN,
    MANAGER,
    CASHIER,
    BAR_STAFF,
    KITCHEN_STAFF,
    INVENTORY_OFFICER,
    ACCOUNTANT,
    STORE_ADMIN,
    STORE_USER,
    WAITSTAFF,
    STAFF_ADMIN_ROLES,
    MIGRATION_ROLES,
    INVENTORY_WRITE_ROLES,
    BAR_ADMIN_ROLES,
    REPORT_ROLES,
    ORDER_ENTRY_ROLES,
    ORDER_STATUS_ROLES,
    TRANSFER_ROLES,
    STORE_TRANSFER_ROLES,
    MENU_WRITE_ROLES,
    SUPPLIER_WRITE_ROLES,
    SETTINGS_WRITE_ROLES,
    EOD_ROLES,
    DEFAULT_IMPORTED_ROLE,
)
from .navigation import NavEntry, NavGroup, NAVIGATION, filter_navigation, entry_visible, visible_labels
from .helpers import (
    get_all_role_codes,
    get_role_definition,
    validate_role_code,
)

__all__ = [
    "ROLE_DEFINITIONS",
    "ALL_ROLES",
    "SUPER_ADMIN",
    "MANAGER",
    "CASHIER",
    "BAR_STAFF",
    "KITCHEN_STAFF",
    "INVENTORY_OFFICER",
    "ACCOUNTANT",
    "STORE_ADMIN",
    "STORE_USER",
    "WAITSTAFF",
    "STAFF_ADMIN_ROLES",
    "MIGRATION_ROLES",
    "INVENTORY_WRITE_ROLES",
    "BAR_ADMIN_ROLES",
    "REPORT_ROLES",
    "ORDER_ENTRY_ROLES",
    "ORDER_STATUS_ROLES",
    "TRANSFER_ROLES",
    "STORE_TRANSFER_ROLES",
    "MENU_WRITE_ROLES",
    "SUPPLIER_WRITE_ROLES",
    "SETTINGS_WRITE_ROLES",
    "EOD_ROLES",
    "DEFAULT_IMPORTED_ROLE",
    "NavEntry",
    "NavGroup",
    "NAVIGATION",
    "filter_navigation",
    "entry_visible",
    "visible_labels",
    "get_all_role_codes",
    "get_role_definition",
    "validate_role_code",
]
