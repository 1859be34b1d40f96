# tests/test_property_grants.py

"""
Tests for the property ACL store.
"""

import pytest

from core.errors import NotFoundError, ValidationError
from core.property_grants import GRANT_PRESETS, resolve_flags
from models.enums import GrantRole
from models.permission import CustomPermissions, OwnerGrant, PropertyGrant


def test_presets():
    caretaker = GRANT_PRESETS[GrantRole.caretaker]
    assert caretaker.can_manage_tenants and caretaker.can_collect_payments and caretaker.can_manage_maintenance
    assert not caretaker.can_view_financials

    agent = GRANT_PRESETS[GrantRole.agent]
    assert agent.can_manage_tenants and agent.can_manage_leases
    assert not agent.can_manage_properties

    assert not any(GRANT_PRESETS[GrantRole.readonly].model_dump().values())


def test_custom_requires_custom_permissions():
    with pytest.raises(ValidationError):
        resolve_flags(GrantRole.custom)


def test_custom_starts_from_nothing():
    flags = resolve_flags("custom", CustomPermissions(can_view_financials=True))
    assert flags.can_view_financials is True
    assert flags.can_manage_tenants is False


def test_override_only_touches_set_fields():
    flags = resolve_flags(GrantRole.caretaker, CustomPermissions(can_view_financials=True, can_manage_tenants=False))
    assert flags.can_view_financials is True
    assert flags.can_manage_tenants is False
    assert flags.can_collect_payments is True
    assert flags.can_manage_maintenance is True


def test_assign_caretaker_with_override(store, make_actor):
    landlord = make_actor("landlord-1", "property_owner")
    grant = store.assign_permission(
        landlord, "prop-1", "caretaker-1", GrantRole.caretaker,
        CustomPermissions(can_view_financials=True),
    )

    assert isinstance(grant, PropertyGrant)
    assert grant.role == GrantRole.caretaker
    assert grant.granted_by == "landlord-1"
    assert grant.can_view_financials is True
    assert grant.can_manage_tenants is True
    assert grant.can_collect_payments is True
    assert grant.can_manage_maintenance is True
    assert grant.can_manage_leases is False


def test_assign_custom_without_permissions_fails(store, grants, make_actor):
    with pytest.raises(ValidationError):
        store.assign_permission(make_actor("landlord-1", "property_owner"), "prop-1", "caretaker-1", "custom")
    assert grants.upserts == 0


def test_assign_twice_keeps_one_row(store, grants, make_actor):
    landlord = make_actor("landlord-1", "property_owner")
    first = store.assign_permission(landlord, "prop-1", "caretaker-1", "caretaker")
    second = store.assign_permission(landlord, "prop-1", "caretaker-1", "caretaker")

    assert len(grants.rows) == 1
    assert len(grants.list_grants_for_property("prop-1")) == 1
    assert first.id == second.id


def test_reassign_replaces_flags(store, grants, make_actor):
    landlord = make_actor("landlord-1", "property_owner")
    store.assign_permission(landlord, "prop-1", "caretaker-1", "caretaker")
    grant = store.assign_permission(landlord, "prop-1", "caretaker-1", "readonly")

    assert grant.role == GrantRole.readonly
    assert not grant.can_manage_tenants
    assert len(grants.rows) == 1


def test_assign_unknown_user_or_property(store, make_actor):
    landlord = make_actor("landlord-1", "property_owner")
    with pytest.raises(NotFoundError):
        store.assign_permission(landlord, "prop-1", "ghost", "agent")
    with pytest.raises(NotFoundError):
        store.assign_permission(landlord, "prop-404", "caretaker-1", "agent")


def test_revoke(store, grants, make_actor):
    store.assign_permission(make_actor("landlord-1", "property_owner"), "prop-1", "caretaker-1", "agent")
    assert store.revoke_permission("prop-1", "caretaker-1") == {"success": True}
    assert grants.rows == {}


def test_revoke_missing_grant(store):
    with pytest.raises(NotFoundError):
        store.revoke_permission("prop-1", "caretaker-1")


def test_permissions_for_user_annotated(store, make_actor):
    store.assign_permission(make_actor("landlord-1", "property_owner"), "prop-1", "caretaker-1", "caretaker")

    result = store.get_permissions_for_user(make_actor("caretaker-1", "caretaker"))
    assert len(result) == 1
    assert result[0].kind == "explicit"
    assert result[0].property_name == "Kilimani Court"
    assert result[0].granted_by_name == "Otieno"


def test_owner_grants_are_synthesized(store, grants, make_actor):
    landlord = make_actor("landlord-1", "property_owner", full_name="Otieno Odhiambo")
    result = store.get_permissions_for_user(landlord)

    assert len(result) == 1
    grant = result[0]
    assert isinstance(grant, OwnerGrant)
    assert grant.id == "owner-prop-1"
    assert grant.role == "owner"
    assert grant.granted_by_name == "Otieno Odhiambo"
    assert all(grant.model_dump(include={
        "can_manage_tenants", "can_manage_leases", "can_collect_payments",
        "can_view_financials", "can_manage_maintenance", "can_manage_properties",
    }).values())
    # nothing was written
    assert grants.upserts == 0


def test_owner_grant_cannot_be_revoked(store, make_actor):
    store.get_permissions_for_user(make_actor("landlord-1", "property_owner"))
    with pytest.raises(NotFoundError):
        store.revoke_permission("prop-1", "landlord-1")


def test_non_owner_roles_get_no_owner_grants(store, properties, make_actor):
    properties.properties["prop-2"] = properties.properties["prop-2"].model_copy(update={"owner_id": "caretaker-1"})
    assert store.get_permissions_for_user(make_actor("caretaker-1", "caretaker")) == []


def test_permissions_for_property(store, make_actor):
    landlord = make_actor("landlord-1", "property_owner")
    store.assign_permission(landlord, "prop-1", "caretaker-1", "caretaker")
    store.assign_permission(landlord, "prop-1", "staff-1", "agent")

    rows = {row.user_id: row for row in store.get_permissions_for_property("prop-1")}
    assert set(rows) == {"caretaker-1", "staff-1"}
    assert rows["staff-1"].user_name == "Brian"
    assert rows["staff-1"].user_role == "agent_staff"
    assert rows["caretaker-1"].user_email == "caretaker@keja.test"
    assert rows["caretaker-1"].granted_by_name == "Otieno"
    assert rows["caretaker-1"].property_name == "Kilimani Court"


def test_permissions_for_missing_property(store):
    with pytest.raises(NotFoundError):
        store.get_permissions_for_property("prop-404")


def test_assignable_users(store):
    result = store.get_assignable_users("org-1")
    assert [user.id for user in result] == ["staff-1", "caretaker-1"]
