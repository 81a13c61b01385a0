# Overview: The closed set of application roles and the role groups used by route guards.
# Each role is defined as: (code, name, description)

SUPER_ADMIN = "super_admin"
MANAGER = "manager"
CASHIER = "cashier"
BAR_STAFF = "bar_staff"
KITCHEN_STAFF = "kitchen_staff"
INVENTORY_OFFICER = "inventory_officer"
ACCOUNTANT = "accountant"
STORE_ADMIN = "store_admin"
STORE_USER = "store_user"
WAITSTAFF = "waitstaff"


ROLE_DEFINITIONS = [
    (SUPER_ADMIN, "Super Admin", "Full system access, including legacy migration"),
    (MANAGER, "Manager", "Floor and back-office management, staff administration"),
    (CASHIER, "Cashier", "POS sales, order history and end-of-day report"),
    (BAR_STAFF, "Bar Staff", "Bar display and bar transfers"),
    (KITCHEN_STAFF, "Kitchen Staff", "Kitchen display"),
    (INVENTORY_OFFICER, "Inventory Officer", "Central inventory and suppliers"),
    (ACCOUNTANT, "Accountant", "Reports and end-of-day figures"),
    (STORE_ADMIN, "Store Admin", "Central store management"),
    (STORE_USER, "Store User", "Central store operations"),
    (WAITSTAFF, "Waitstaff", "Order entry and customer service"),
]

ALL_ROLES = frozenset(code for code, _name, _description in ROLE_DEFINITIONS)


# -- ROLE GROUPS (server-side guards) --

STAFF_ADMIN_ROLES = (SUPER_ADMIN, MANAGER)
MIGRATION_ROLES = (SUPER_ADMIN,)
INVENTORY_WRITE_ROLES = (SUPER_ADMIN, MANAGER, INVENTORY_OFFICER, STORE_ADMIN)
BAR_ADMIN_ROLES = (SUPER_ADMIN, MANAGER)
REPORT_ROLES = (SUPER_ADMIN, MANAGER, ACCOUNTANT)
ORDER_ENTRY_ROLES = (SUPER_ADMIN, MANAGER, CASHIER, WAITSTAFF)
ORDER_STATUS_ROLES = (SUPER_ADMIN, MANAGER, CASHIER, BAR_STAFF, KITCHEN_STAFF)
TRANSFER_ROLES = (SUPER_ADMIN, MANAGER, CASHIER, BAR_STAFF, WAITSTAFF)
STORE_TRANSFER_ROLES = (SUPER_ADMIN, MANAGER, STORE_ADMIN, STORE_USER, INVENTORY_OFFICER)
MENU_WRITE_ROLES = (SUPER_ADMIN, MANAGER)
SUPPLIER_WRITE_ROLES = (SUPER_ADMIN, MANAGER, INVENTORY_OFFICER)
SETTINGS_WRITE_ROLES = (SUPER_ADMIN, MANAGER)
# Cashiers see their own end-of-day figures only
EOD_ROLES = REPORT_ROLES + (CASHIER,)

# Role given to accounts created without an explicit role (bulk import, legacy data)
DEFAULT_IMPORTED_ROLE = CASHIER
