from dcc_sfa.core.permissions import (
    ACTIONS,
    MODULES,
    WILDCARD,
    all_permission_names,
    build_permission_name,
    format_permission_error_message,
    has_all_module_permissions,
    has_any_module_permissions,
    has_permission,
    is_admin_role,
)


def test_permission_names_are_snake_case():
    assert build_permission_name("asset-master", "Create") == "asset_master_create"
    assert build_permission_name("depot", "read") == "depot_read"


def test_admin_role_detection():
    assert is_admin_role("Admin")
    assert is_admin_role("Super ADMIN")
    assert not is_admin_role("Sales Rep")
    assert not is_admin_role(None)


def test_wildcard_grants_everything():
    assert has_permission([WILDCARD], "invoice_delete")
    assert has_any_module_permissions([WILDCARD], [("invoice", "delete")])
    assert has_all_module_permissions([WILDCARD], [("invoice", "delete"), ("order", "create")])


def test_any_and_all_checks():
    perms = ["credit_note_create", "order_read"]
    assert has_any_module_permissions(perms, [("credit-note", "create"), ("credit-note", "update")])
    assert not has_all_module_permissions(perms, [("credit-note", "create"), ("credit-note", "update")])
    assert has_all_module_permissions(perms, [("credit-note", "create"), ("order", "read")])
    assert not has_any_module_permissions(perms, [("invoice", "read")])


def test_error_message_lists_required_actions():
    assert format_permission_error_message([("depot", "create")]) == \
        "You don't have permission to create Depot."
    assert format_permission_error_message([("credit-note", "create"), ("credit-note", "update")]) == \
        "You don't have permission to create Credit Note or update Credit Note."


def test_seed_catalogue_covers_every_module_action():
    names = all_permission_names()
    assert len(names) == len(MODULES) * len(ACTIONS)
    assert ("outlet_group_read", "outlet-group", "read") in names
