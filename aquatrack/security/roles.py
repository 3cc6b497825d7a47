"""
ROLE DEFINITIONS

Define console roles and their visibility scopes.

Rules:
- No logic, only declarations
- Roles must be explicit strings
- Used by access_guard.py, role_guard.py and the status normalizer
"""

from typing import Literal

# Role definitions
SUPER_ADMIN: Literal["SUPER_ADMIN"] = "SUPER_ADMIN"
CHANNEL_ADMIN: Literal["CHANNEL_ADMIN"] = "CHANNEL_ADMIN"
DELIVERY_MANAGER: Literal["DELIVERY_MANAGER"] = "DELIVERY_MANAGER"
PARTNER: Literal["PARTNER"] = "PARTNER"
COURIER: Literal["COURIER"] = "COURIER"
SYSTEM: Literal["SYSTEM"] = "SYSTEM"

# Visibility scopes
GLOBAL: Literal["GLOBAL"] = "GLOBAL"
CHANNEL: Literal["CHANNEL"] = "CHANNEL"
MANAGED_STORES: Literal["MANAGED_STORES"] = "MANAGED_STORES"
OWN_STORES: Literal["OWN_STORES"] = "OWN_STORES"
ASSIGNED_ORDERS: Literal["ASSIGNED_ORDERS"] = "ASSIGNED_ORDERS"

# Role to scope mapping
ROLE_SCOPE_MAP: dict[str, str] = {
    SUPER_ADMIN: GLOBAL,
    SYSTEM: GLOBAL,
    CHANNEL_ADMIN: CHANNEL,
    DELIVERY_MANAGER: MANAGED_STORES,
    PARTNER: OWN_STORES,
    COURIER: ASSIGNED_ORDERS,
}

# Human-facing role names
ROLE_TITLES: dict[str, str] = {
    SUPER_ADMIN: "Super Admin",
    CHANNEL_ADMIN: "Channel Admin",
    DELIVERY_MANAGER: "Delivery Manager",
    PARTNER: "Store Partner",
    COURIER: "Delivery Partner",
    SYSTEM: "System",
}

# All roles
ALL_ROLES: list[str] = [
    SUPER_ADMIN,
    CHANNEL_ADMIN,
    DELIVERY_MANAGER,
    PARTNER,
    COURIER,
    SYSTEM,
]

# Roles with a dashboard
DASHBOARD_ROLES: list[str] = [
    SUPER_ADMIN,
    CHANNEL_ADMIN,
    DELIVERY_MANAGER,
    PARTNER,
    COURIER,
]
