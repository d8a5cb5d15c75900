"""
Permission names and checks

A permission is a flat "module_action" string (module lower-cased, hyphens
turned into underscores). A user holding "*" passes every check.
"""
from typing import Iterable, List, Sequence, Tuple

WILDCARD = "*"

ACTIONS = ("read", "create", "update", "delete")

# module key -> display name
MODULES = {
    "dashboard": "Dashboard",
    "company": "Company",
    "user": "User",
    "role": "Role",
    "depot": "Depot",
    "zone": "Zone",
    "outlet": "Outlet",
    "outlet-group": "Outlet Group",
    "asset-type": "Asset Type",
    "asset-master": "Asset Master",
    "warehouse": "Warehouse",
    "vehicle": "Vehicle",
    "product": "Product",
    "pricelist": "Price List",
    "order": "Order",
    "return": "Return",
    "invoice": "Invoice",
    "credit-note": "Credit Note",
    "asset-movement": "Asset Movement",
    "maintenance": "Maintenance",
    "token": "Token",
    "setting": "Setting",
}

ModuleAction = Tuple[str, str]


def build_permission_name(module: str, action: str) -> str:
    """("sales-target-group", "Create") -> "sales_target_group_create" """
    module_key = module.lower().replace("-", "_")
    return f"{module_key}_{action.lower()}"


def is_admin_role(role_name: str) -> bool:
    return "admin" in (role_name or "").lower()


def has_permission(user_permissions: Iterable[str], permission_name: str) -> bool:
    user_permissions = set(user_permissions)
    if WILDCARD in user_permissions:
        return True
    return permission_name in user_permissions


def has_any_module_permissions(user_permissions: Iterable[str], required: Sequence[ModuleAction]) -> bool:
    user_permissions = set(user_permissions)
    if WILDCARD in user_permissions:
        return True
    return any(build_permission_name(m, a) in user_permissions for m, a in required)


def has_all_module_permissions(user_permissions: Iterable[str], required: Sequence[ModuleAction]) -> bool:
    user_permissions = set(user_permissions)
    if WILDCARD in user_permissions:
        return True
    return all(build_permission_name(m, a) in user_permissions for m, a in required)


def format_permission_error_message(required: Sequence[ModuleAction]) -> str:
    if not required:
        return "You don't have permission to access this resource."
    descriptions = [f"{action} {MODULES.get(module, module)}" for module, action in required]
    if len(descriptions) == 1:
        return f"You don't have permission to {descriptions[0]}."
    return f"You don't have permission to {', '.join(descriptions[:-1])} or {descriptions[-1]}."


def all_permission_names() -> List[Tuple[str, str, str]]:
    """(name, module, action) for every known module/action pair, used for seeding"""
    return [
        (build_permission_name(module, action), module, action)
        for module in MODULES
        for action in ACTIONS
    ]
