# Overview: Static navigation menu and the role filter applied to it.
#
# Each entry is defined as: (label, target, roles) where roles=None means
# unrestricted. Filtering only decides what is shown; every privileged route is
# guarded again server-side by require_role.

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .roles import (
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
)


@dataclass(frozen=True)
class NavEntry:
    label: str
    target: str
    roles: Optional[frozenset[str]] = None

    @property
    def restricted(self) -> bool:
        return self.roles is not None

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "target": self.target,
            "roles": sorted(self.roles) if self.roles is not None else None,
        }


@dataclass(frozen=True)
class NavGroup:
    label: str
    entries: tuple[NavEntry, ...]

    def to_dict(self) -> dict:
        return {"label": self.label, "entries": [e.to_dict() for e in self.entries]}


def _entry(label: str, target: str, roles: tuple[str, ...] | None = None) -> NavEntry:
    return NavEntry(label, target, frozenset(roles) if roles is not None else None)


# -- MENU DEFINITION --

MAIN_NAV = NavGroup("Main", (
    _entry("Dashboard", "/dashboard"),
    _entry("POS", "/pos", (SUPER_ADMIN, MANAGER, CASHIER, WAITSTAFF)),
    _entry("Orders", "/orders", (SUPER_ADMIN, MANAGER, CASHIER, BAR_STAFF, KITCHEN_STAFF)),
    _entry("Order History", "/order-history", (SUPER_ADMIN, MANAGER, CASHIER)),
    _entry("EOD Report", "/eod-report", (SUPER_ADMIN, MANAGER, CASHIER, ACCOUNTANT)),
))

OPERATIONS_NAV = NavGroup("Operations", (
    _entry("Bar", "/bar", (SUPER_ADMIN, MANAGER, BAR_STAFF)),
    _entry("Kitchen", "/kitchen", (SUPER_ADMIN, MANAGER, KITCHEN_STAFF)),
    _entry("Transfers", "/transfers", (SUPER_ADMIN, MANAGER, CASHIER, BAR_STAFF, WAITSTAFF)),
))

STORE_NAV = NavGroup("Store", (
    _entry("Store Management", "/store", (SUPER_ADMIN, MANAGER, STORE_ADMIN, STORE_USER, INVENTORY_OFFICER)),
    _entry("Bars", "/bars", (SUPER_ADMIN, MANAGER)),
))

MANAGEMENT_NAV = NavGroup("Management", (
    _entry("Suppliers", "/inventory", (SUPER_ADMIN, MANAGER, INVENTORY_OFFICER)),
    _entry("Staff", "/staff", (SUPER_ADMIN, MANAGER)),
    _entry("Customers", "/customers", (SUPER_ADMIN, MANAGER, CASHIER, WAITSTAFF)),
    _entry("Reports", "/reports", (SUPER_ADMIN, MANAGER, ACCOUNTANT)),
    _entry("Settings", "/settings", (SUPER_ADMIN, MANAGER)),
    _entry("Migration", "/migration", (SUPER_ADMIN,)),
))

NAVIGATION = (MAIN_NAV, OPERATIONS_NAV, STORE_NAV, MANAGEMENT_NAV)


def entry_visible(entry: NavEntry, role: Optional[str]) -> bool:
    if not entry.restricted:
        return True
    if not role:
        return False
    return role in entry.roles


def filter_navigation(
    role: Optional[str],
    groups: tuple[NavGroup, ...] = NAVIGATION,
    *,
    keep_empty_groups: bool = False,
) -> list[NavGroup]:
    """
    Return the menu with entries the role may not see removed.

    Pure function of (groups, role). An absent role keeps only unrestricted
    entries. Group and entry order are preserved.
    """
    result = []
    for group in groups:
        entries = tuple(e for e in group.entries if entry_visible(e, role))
        if entries or keep_empty_groups:
            result.append(NavGroup(group.label, entries))
    return result


def visible_labels(role: Optional[str], groups: tuple[NavGroup, ...] = NAVIGATION) -> list[str]:
    return [e.label for g in filter_navigation(role, groups) for e in g.entries]
