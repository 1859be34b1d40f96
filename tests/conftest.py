# tests/conftest.py

"""
Pytest configuration and shared fixtures for testing.

The access engine only talks to its directories, so tests run against
in-memory directories seeded with one small organization layout:

    org-1 (owner-1, trialing)         org-2 (owner-2)
      team-1 -> prop-1                  team-x -> prop-9
      prop-1 (landlord-1)               prop-9
      prop-2
"""

import pytest
from datetime import datetime, timedelta, timezone
from fastapi.testclient import TestClient
from typing import Generator
from unittest.mock import Mock

from core.errors import NotFoundError
from core.permissions import PermissionResolver
from core.property_grants import PropertyGrantStore
from core.subscription_gate import SubscriptionGate
from dependencies.auth import CurrentUser, get_current_user
from dependencies.services import get_grant_store, get_permission_resolver, get_subscription_gate
from main import create_app
from models.enums import TrialStatus
from models.organization import Organization, Property, Team, UserRecord

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


# ============================================================
# In-memory directories
# ============================================================
class FakeOrganizationDirectory:
    def __init__(self, organizations=()):
        self.organizations = {org.id: org for org in organizations}
        self.fail_on = set()

    def add(self, organization: Organization):
        self.organizations[organization.id] = organization

    def get_organization_by_id(self, organization_id):
        if organization_id not in self.organizations:
            raise NotFoundError("Organization", organization_id)
        return self.organizations[organization_id]

    def list_active_trials_expiring_before(self, moment):
        return [
            org for org in self.organizations.values()
            if org.trial_status == TrialStatus.active
            and org.trial_expires_at is not None
            and org.trial_expires_at <= moment
        ]

    def list_active_trials_expiring_between(self, start, end):
        return [
            org for org in self.organizations.values()
            if org.trial_status == TrialStatus.active
            and org.trial_expires_at is not None
            and start <= org.trial_expires_at <= end
        ]

    def mark_trial_expired(self, organization_id, now):
        if organization_id in self.fail_on:
            raise RuntimeError("database unavailable")
        org = self.organizations[organization_id]
        if org.trial_status != TrialStatus.active:
            return False
        self.organizations[organization_id] = org.model_copy(update={"trial_status": TrialStatus.expired})
        return True


class FakeTeamDirectory:
    def __init__(self, teams=(), team_properties=None, team_permissions=None):
        self.teams = {team.id: team for team in teams}
        self.team_properties = team_properties or {}
        self.team_permissions = team_permissions or {}

    def get_team_by_id(self, team_id):
        if team_id not in self.teams:
            raise NotFoundError("Team", team_id)
        return self.teams[team_id]

    def is_property_in_team(self, team_id, property_id):
        return property_id in self.team_properties.get(team_id, set())

    def get_team_property_ids(self, team_id):
        return sorted(self.team_properties.get(team_id, set()))

    def get_team_permissions(self, team_id):
        return self.team_permissions.get(team_id, {})


class FakePropertyDirectory:
    def __init__(self, properties=()):
        self.properties = {prop.id: prop for prop in properties}

    def get_property_by_id(self, property_id):
        if property_id not in self.properties:
            raise NotFoundError("Property", property_id)
        return self.properties[property_id]

    def get_properties_by_ids(self, property_ids):
        return [self.properties[pid] for pid in property_ids if pid in self.properties]

    def get_properties_owned_by(self, user_id):
        return [prop for prop in self.properties.values() if prop.owner_id == user_id]

    def list_organization_properties(self, organization_id):
        return [prop for prop in self.properties.values() if prop.organization_id == organization_id]


class FakeUserDirectory:
    def __init__(self, users=()):
        self.users = {user.id: user for user in users}

    def get_user_by_id(self, user_id):
        if user_id not in self.users:
            raise NotFoundError("User", user_id)
        return self.users[user_id]

    def get_users_by_ids(self, user_ids):
        return [self.users[uid] for uid in set(user_ids) if uid in self.users]

    def list_organization_users(self, organization_id, roles):
        return [
            user for user in self.users.values()
            if user.organization_id == organization_id and user.role in roles
        ]


class FakeGrantRepository:
    """Keyed on (user_id, property_id); ids are generated on first insert only."""

    def __init__(self):
        self.rows = {}
        self.upserts = 0
        self._next_id = 1

    def upsert_grant(self, record):
        self.upserts += 1
        key = (record["user_id"], record["property_id"])
        existing = self.rows.get(key)
        if existing is None:
            row = {"id": f"grant-{self._next_id}", "created_at": record.get("updated_at"), **record}
            self._next_id += 1
        else:
            row = {**existing, **record}
        self.rows[key] = row
        return dict(row)

    def delete_grant(self, property_id, user_id):
        return 1 if self.rows.pop((user_id, property_id), None) else 0

    def list_grants_for_user(self, user_id):
        return [dict(row) for (uid, _), row in self.rows.items() if uid == user_id]

    def list_grants_for_property(self, property_id):
        return [dict(row) for (_, pid), row in self.rows.items() if pid == property_id]


# ============================================================
# Seed data
# ============================================================
@pytest.fixture
def organizations():
    return FakeOrganizationDirectory([
        Organization(
            id="org-1",
            name="Nairobi Lettings",
            agent_owner_id="owner-1",
            subscription_status="trialing",
            trial_status="active",
            trial_started_at=NOW - timedelta(days=10),
            trial_expires_at=NOW + timedelta(days=20),
            max_properties=5,
            max_users=3,
        ),
        Organization(id="org-2", name="Mombasa Homes", agent_owner_id="owner-2"),
    ])


@pytest.fixture
def teams():
    return FakeTeamDirectory(
        teams=[
            Team(id="team-1", organization_id="org-1", name="Westlands"),
            Team(id="team-x", organization_id="org-2", name="Nyali"),
        ],
        team_properties={"team-1": {"prop-1"}, "team-x": {"prop-9"}},
    )


@pytest.fixture
def properties():
    return FakePropertyDirectory([
        Property(id="prop-1", organization_id="org-1", name="Kilimani Court", owner_id="landlord-1"),
        Property(id="prop-2", organization_id="org-1", name="Lavington Flats"),
        Property(id="prop-9", organization_id="org-2", name="Nyali Villas"),
    ])


@pytest.fixture
def users():
    return FakeUserDirectory([
        UserRecord(id="owner-1", email="owner@keja.test", name="Achieng", role="agent_owner", organization_id="org-1"),
        UserRecord(id="landlord-1", email="landlord@keja.test", name="Otieno", role="property_owner", organization_id="org-1"),
        UserRecord(id="caretaker-1", email="caretaker@keja.test", name="Wanjiru", role="caretaker", organization_id="org-1"),
        UserRecord(id="staff-1", email="staff@keja.test", name="Brian", role="agent_staff", organization_id="org-1"),
        UserRecord(id="tenant-1", email="tenant@keja.test", name="Zawadi", role="tenant_user", organization_id="org-1"),
        UserRecord(id="staff-2", email="other@keja.test", name="Amina", role="agent_staff", organization_id="org-2"),
    ])


@pytest.fixture
def grants():
    return FakeGrantRepository()


@pytest.fixture
def resolver(organizations, teams, properties) -> PermissionResolver:
    return PermissionResolver(organizations=organizations, teams=teams, properties=properties)


@pytest.fixture
def store(grants, properties, users) -> PropertyGrantStore:
    return PropertyGrantStore(grants=grants, properties=properties, users=users, now=lambda: NOW)


@pytest.fixture
def gate(organizations) -> SubscriptionGate:
    return SubscriptionGate(organizations=organizations, now=lambda: NOW)


@pytest.fixture
def make_actor():
    """Factory for session actors; org-1 is active unless told otherwise."""

    def factory(user_id, role, organization_id="org-1", team_id=None, full_name=None):
        return CurrentUser(
            user_id=user_id,
            role=role,
            email=f"{user_id}@keja.test",
            full_name=full_name,
            active_organization_id=organization_id,
            active_team_id=team_id,
        )

    return factory


# ============================================================
# App
# ============================================================
@pytest.fixture(scope="function")
def app(resolver, store, gate):
    """Test application wired to the in-memory directories."""
    application = create_app()
    application.dependency_overrides[get_permission_resolver] = lambda: resolver
    application.dependency_overrides[get_grant_store] = lambda: store
    application.dependency_overrides[get_subscription_gate] = lambda: gate
    return application


@pytest.fixture(scope="function")
def client(app) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI application."""
    yield TestClient(app)


@pytest.fixture
def login(app):
    """Make every request in the test run as the given actor."""

    def set_actor(actor):
        app.dependency_overrides[get_current_user] = lambda: actor
        return actor

    yield set_actor
    app.dependency_overrides.pop(get_current_user, None)


@pytest.fixture
def mock_supabase_client():
    """Create a mock Supabase client."""
    mock_client = Mock()
    mock_table = Mock()
    mock_client.table.return_value = mock_table
    return mock_client
