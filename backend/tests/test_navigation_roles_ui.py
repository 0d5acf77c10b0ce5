"""
Sidebar navigation (role based).

Verifies visibility, order and the single active link for organizers and
students, and the public menu for visitors.
"""

import pytest

from components.navigation import Navigation  # type: ignore
from utils.radar_fixtures import app_client, login_session  # type: ignore


pytestmark = pytest.mark.anyio("asyncio")


def _pos(html: str, label: str) -> int:
    """Return the index of a sidebar label within the nav-text span."""
    token = f'nav-text">{label}'
    return html.find(token)


@pytest.mark.anyio
async def test_sidebar_for_organizer_contains_expected_items_in_order():
    _sid, cookies = login_session("organizer")
    async with app_client(cookies) as c:
        r = await c.get("/dashboard/org/my-event")

    html = r.text
    labels = ["Overview", "My Events", "Create Event", "QR Scanner", "Wallet / Payout", "Profile", "Settings", "Log out"]
    positions = [_pos(html, label) for label in labels]
    assert all(p > 0 for p in positions)
    assert positions == sorted(positions)
    assert _pos(html, "My Tickets") == -1
    assert "org@radar.example" in html
    assert "Organizer" in html


@pytest.mark.anyio
async def test_sidebar_for_student_hides_organizer_items():
    _sid, cookies = login_session("student", email="ada@student.oauife.edu.ng")
    async with app_client(cookies) as c:
        r = await c.get("/dashboard/student/my-tickets")

    html = r.text
    for label in ("Overview", "Events", "My Tickets", "Profile", "Settings"):
        assert _pos(html, label) > 0
    for label in ("Create Event", "QR Scanner", "Wallet / Payout"):
        assert _pos(html, label) == -1


def test_single_active_link_uses_best_prefix():
    html = Navigation({"role": "organizer", "email": "o@x.y"}, "/dashboard/org/payout").render()
    assert html.count('aria-current="page"') == 1
    active = html.split('aria-current="page"')[0].rsplit("<a ", 1)[1]
    assert 'href="/dashboard/org/payout"' in active


def test_overview_is_active_for_nested_unknown_page():
    html = Navigation({"role": "student"}, "/dashboard/student/events/42").render()
    active = html.split('aria-current="page"')[0].rsplit("<a ", 1)[1]
    assert 'href="/dashboard/student/events"' in active


def test_visitor_gets_public_menu():
    html = Navigation(None, "/").render()
    assert _pos(html, "Log in") > 0
    assert "/logout" not in html


def test_unknown_role_gets_public_menu_with_logout():
    html = Navigation({"role": "admin", "email": "a@b.c"}, "/").render()
    assert _pos(html, "Overview") == -1
    assert "/logout" in html
    assert "User" in html
