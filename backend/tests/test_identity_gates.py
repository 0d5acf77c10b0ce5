"""
Auth Gate and Role Gate decisions.

Requirements:
- Nothing is decided (and nobody is redirected) before hydration.
- Missing token: Auth Gate -> /login, Role Gate -> /login?callbackUrl=<path>.
- Role mismatch is routed by the actual role; unknown roles fail closed.
- Gates navigate at most once per distinct input set.
"""
from __future__ import annotations

from identity_access.gates import (  # type: ignore
    AuthGate,
    RoleGate,
    evaluate_auth,
    evaluate_role,
    login_with_callback,
)


class RecordingNavigator:
    def __init__(self):
        self.urls = []

    def replace(self, url: str) -> None:
        self.urls.append(url)


def test_auth_gate_waits_for_hydration():
    decision = evaluate_auth(hydrated=False, token=None, current_path="/dashboard")
    assert decision.loading is True
    assert decision.redirect is None


def test_auth_gate_redirects_to_login_without_token():
    decision = evaluate_auth(hydrated=True, token=None, current_path="/dashboard")
    assert (decision.loading, decision.authenticated, decision.redirect) == (False, False, "/login")


def test_auth_gate_does_not_loop_on_login_page():
    assert evaluate_auth(hydrated=True, token=None, current_path="/login").redirect is None


def test_auth_gate_passes_with_token():
    decision = evaluate_auth(hydrated=True, token="t", current_path="/dashboard")
    assert decision.authenticated is True
    assert decision.redirect is None


def test_role_gate_keeps_deep_link_for_login():
    decision = evaluate_role(
        hydrated=True, token=None, role=None, required_role="organizer", current_path="/dashboard/org/payout"
    )
    assert decision.redirect == "/login?callbackUrl=%2Fdashboard%2Forg%2Fpayout"
    assert decision.authorized is False


def test_role_gate_comparison_is_case_insensitive():
    decision = evaluate_role(
        hydrated=True, token="t", role="Organizer ", required_role="organizer", current_path="/dashboard/org"
    )
    assert decision.authorized is True
    assert decision.role == "Organizer "


def test_role_gate_routes_mismatch_by_actual_role():
    student = evaluate_role(hydrated=True, token="t", role="student", required_role="organizer", current_path="/dashboard/org")
    organizer = evaluate_role(
        hydrated=True, token="t", role="organizer", required_role="student", current_path="/dashboard/student"
    )
    unknown = evaluate_role(hydrated=True, token="t", role="admin", required_role="organizer", current_path="/dashboard/org")
    assert student.redirect == "/dashboard/student"
    assert organizer.redirect == "/dashboard/org"
    assert unknown.redirect == "/login"


def test_role_gate_loading_before_hydration():
    decision = evaluate_role(hydrated=False, token="t", role="organizer", required_role="organizer", current_path="/x")
    assert decision.loading is True
    assert decision.authorized is False
    assert decision.redirect is None


def test_login_with_callback_encodes_path():
    assert login_with_callback("/dashboard/org?tab=1") == "/login?callbackUrl=%2Fdashboard%2Forg%3Ftab%3D1"


def test_auth_gate_navigates_once_per_input_change():
    nav = RecordingNavigator()
    gate = AuthGate(nav)

    gate.update(hydrated=False, token=None, current_path="/dashboard")
    assert nav.urls == []
    assert gate.state.loading is True

    gate.update(hydrated=True, token=None, current_path="/dashboard")
    gate.update(hydrated=True, token=None, current_path="/dashboard")
    assert nav.urls == ["/login"]

    gate.update(hydrated=True, token="t", current_path="/dashboard")
    assert nav.urls == ["/login"]
    assert gate.state.authenticated is True


def test_role_gate_navigates_once_and_reacts_to_role_change():
    nav = RecordingNavigator()
    gate = RoleGate(nav, "organizer")

    gate.update(hydrated=True, token="t", role="student", current_path="/dashboard/org")
    gate.update(hydrated=True, token="t", role="student", current_path="/dashboard/org")
    assert nav.urls == ["/dashboard/student"]

    state = gate.update(hydrated=True, token="t", role="organizer", current_path="/dashboard/org")
    assert state.authorized is True
    assert nav.urls == ["/dashboard/student"]
