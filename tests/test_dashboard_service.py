"""Tests for dashboard access resolution."""

import pytest

from cockpit.core.errors import NotAuthenticated, PermissionDenied, UpstreamQueryError
from cockpit.schemas.dashboard import ProfileDashboardBinding
from cockpit.services.dashboard_service import authorize_dashboard, resolve_dashboard_access

CALLER = "caller-1"


class FakeStore:
    """Identity store double that records every query it answers."""

    def __init__(self, role=None, bindings=(), session=True, fail_on=None):
        self.role = role
        self.bindings = list(bindings)
        self.session = session
        self.fail_on = fail_on
        self.calls = []

    def has_active_session(self, identity_id):
        self.calls.append(("has_active_session", identity_id))
        return self.session

    def get_role(self, identity_id):
        self.calls.append(("get_role", identity_id))
        if self.fail_on == "get_role":
            raise UpstreamQueryError("Failed to fetch user role")
        return self.role

    def list_dashboard_bindings(self, restrict_to_identity_id=None):
        self.calls.append(("list_dashboard_bindings", restrict_to_identity_id))
        if self.fail_on == "list_dashboard_bindings":
            raise UpstreamQueryError("Failed to fetch profiles")
        if restrict_to_identity_id is None:
            return list(self.bindings)
        return [b for b in self.bindings if b.identity_id == restrict_to_identity_id]


def binding(identity_id, label, dashboard_id):
    return ProfileDashboardBinding(identity_id=identity_id, label=label, dashboard_id=dashboard_id)


def fake_issue_url(dashboard_id):
    return f"https://metabase.example.com/embed/dashboard/token-{dashboard_id}#bordered=true&titled=true"


class TestResolveDashboardAccess:
    def test_sales_caller_sees_own_binding(self):
        store = FakeStore(role="sales", bindings=[binding(CALLER, "Jane Doe", 42)])

        access = resolve_dashboard_access(store, CALLER)

        assert access.is_admin_view is False
        assert [b.model_dump() for b in access.profiles] == [
            {"identity_id": CALLER, "label": "Jane Doe", "dashboard_id": 42}
        ]
        assert access.initial_profile_id == CALLER
        assert access.initial_dashboard_id == 42
        _, _, token_part = access.initial_embed_url.partition("/embed/dashboard/")
        assert token_part.split("#")[0]

    def test_admin_sees_all_bindings_sorted_by_label(self):
        store = FakeStore(
            role="admin",
            bindings=[binding("u1", "Bob", 1), binding("u2", "Ana", 2), binding("u3", "Zed", 3)],
        )

        access = resolve_dashboard_access(store, CALLER, issue_url=fake_issue_url)

        assert [b.label for b in access.profiles] == ["Ana", "Bob", "Zed"]
        assert access.is_admin_view is True

    def test_sorting_ignores_case(self):
        store = FakeStore(
            role="super_admin",
            bindings=[binding("u1", "bob", 1), binding("u2", "Ana", 2), binding("u3", "carl", 3)],
        )

        access = resolve_dashboard_access(store, CALLER, issue_url=fake_issue_url)

        assert [b.label for b in access.profiles] == ["Ana", "bob", "carl"]

    def test_no_session_short_circuits(self):
        store = FakeStore(role="admin", bindings=[binding(CALLER, "Jane", 1)], session=False)

        with pytest.raises(NotAuthenticated):
            resolve_dashboard_access(store, CALLER)

        assert store.calls == [("has_active_session", CALLER)]

    def test_missing_caller_id_is_not_authenticated(self):
        store = FakeStore(role="admin")

        with pytest.raises(NotAuthenticated):
            resolve_dashboard_access(store, None)

        assert store.calls == []

    def test_non_admin_gets_at_most_one_entry(self):
        # A misbehaving store that ignores the restriction
        store = FakeStore(role="sales", bindings=[binding(CALLER, "Me", 5), binding("other", "Other", 6)])
        store.list_dashboard_bindings = lambda restrict_to_identity_id=None: list(store.bindings)

        access = resolve_dashboard_access(store, CALLER, issue_url=fake_issue_url)

        assert [b.identity_id for b in access.profiles] == [CALLER]

    def test_non_admin_without_binding_gets_nothing(self):
        store = FakeStore(role="sales_support", bindings=[binding("other", "Other", 6)])
        issued = []

        access = resolve_dashboard_access(store, CALLER, issue_url=issued.append)

        assert access.profiles == []
        assert access.initial_dashboard_id is None
        assert access.initial_embed_url is None
        assert access.initial_profile_id == CALLER
        assert issued == []

    def test_caller_without_role_is_restricted(self):
        store = FakeStore(role=None, bindings=[binding(CALLER, "Me", 5), binding("other", "Other", 6)])

        access = resolve_dashboard_access(store, CALLER, issue_url=fake_issue_url)

        assert access.is_admin_view is False
        assert ("list_dashboard_bindings", CALLER) in store.calls

    def test_admin_initial_profile_is_own_binding(self):
        store = FakeStore(role="admin", bindings=[binding("u1", "Ana", 1), binding(CALLER, "Zoe", 9)])

        access = resolve_dashboard_access(store, CALLER, issue_url=fake_issue_url)

        assert access.initial_profile_id == CALLER
        assert access.initial_dashboard_id == 9
        assert access.initial_embed_url == fake_issue_url(9)

    def test_admin_without_own_binding_starts_on_first_entry(self):
        store = FakeStore(role="admin", bindings=[binding("u2", "Zed", 3), binding("u1", "Ana", 1)])

        access = resolve_dashboard_access(store, CALLER, issue_url=fake_issue_url)

        assert access.initial_profile_id == "u1"
        assert access.initial_dashboard_id == 1

    def test_role_lookup_failure_propagates(self):
        store = FakeStore(role="admin", bindings=[binding("u1", "Ana", 1)], fail_on="get_role")

        with pytest.raises(UpstreamQueryError):
            resolve_dashboard_access(store, CALLER)

        assert not any(name == "list_dashboard_bindings" for name, _ in store.calls)

    def test_binding_query_failure_propagates(self):
        store = FakeStore(role="sales", fail_on="list_dashboard_bindings")

        with pytest.raises(UpstreamQueryError):
            resolve_dashboard_access(store, CALLER)


class TestAuthorizeDashboard:
    def test_own_dashboard_is_allowed(self):
        store = FakeStore(role="sales", bindings=[binding(CALLER, "Me", 5)])

        matching = authorize_dashboard(store, CALLER, 5)

        assert [b.identity_id for b in matching] == [CALLER]

    def test_other_dashboard_is_denied_for_sales(self):
        store = FakeStore(role="sales", bindings=[binding(CALLER, "Me", 5), binding("other", "Other", 6)])

        with pytest.raises(PermissionDenied):
            authorize_dashboard(store, CALLER, 6)

    def test_admin_may_open_any_bound_dashboard(self):
        store = FakeStore(role="admin", bindings=[binding("other", "Other", 6)])

        assert authorize_dashboard(store, CALLER, 6)

    def test_unbound_dashboard_is_denied_for_admin(self):
        store = FakeStore(role="admin", bindings=[binding("other", "Other", 6)])

        with pytest.raises(PermissionDenied):
            authorize_dashboard(store, CALLER, 99)

    def test_invalid_id_is_rejected_before_any_query(self):
        store = FakeStore(role="admin")

        with pytest.raises(ValueError):
            authorize_dashboard(store, CALLER, 0)

        assert store.calls == []
