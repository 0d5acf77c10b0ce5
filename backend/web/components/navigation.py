"""
Navigation Component for RADAR

Role-based sidebar that adapts to the user type (organizer/student).
Visibility of a link never grants access; the route gates decide that.
"""

from typing import Optional, Dict, Any, List, Tuple

from identity_access.domain import normalize_role

from .base import Component

NavItem = Tuple[str, str, str]

NAV_CONFIG: Dict[str, List[NavItem]] = {
    "organizer": [
        ("/dashboard/org", "Overview", "📊"),
        ("/dashboard/org/my-event", "My Events", "🎫"),
        ("/dashboard/org/create-event", "Create Event", "➕"),
        ("/dashboard/org/qr-scanner", "QR Scanner", "📷"),
        ("/dashboard/org/payout", "Wallet / Payout", "💰"),
        ("/dashboard/org/profile", "Profile", "👤"),
        ("/dashboard/org/settings", "Settings", "⚙️"),
    ],
    "student": [
        ("/dashboard/student", "Overview", "🏠"),
        ("/dashboard/student/events", "Events", "🎉"),
        ("/dashboard/student/my-tickets", "My Tickets", "🎟️"),
        ("/dashboard/student/profile", "Profile", "👤"),
        ("/dashboard/student/settings", "Settings", "⚙️"),
    ],
}

PUBLIC_MENU: List[NavItem] = [
    ("/", "Home", "🏠"),
    ("/login", "Log in", "🔑"),
]


class Navigation(Component):
    """Navigation component with role-based menu items"""

    def __init__(self, user: Optional[Dict[str, Any]] = None, current_path: str = "/"):
        """
        Args:
            user: Dict with 'role' and optional 'email' (None for visitors)
            current_path: The current URL path for active link highlighting
        """
        self.user = user
        self.current_path = current_path

    def render(self) -> str:
        items = self._get_nav_items()
        active_href = self._determine_active_href(items)
        links = [
            self._create_nav_link(href, text, icon, is_active=(href == active_href))
            for href, text, icon in items
        ]
        footer = ""
        if self.user:
            links.append(self._render_logout())
            email = self.user.get("email", "")
            role = self._role_label(self.user.get("role"))
            footer = f"""
            <div class="sidebar-footer">
                <div class="user-info-compact">
                    <div class="user-name">{self.escape(email)}</div>
                    <div class="user-role">{self.escape(role)}</div>
                </div>
            </div>"""

        return f"""
    <aside class="sidebar" id="sidebar" aria-label="Sidebar">
        <nav class="sidebar-nav" role="navigation" aria-label="Main navigation">
            <div class="sidebar-header">
                <span class="sidebar-title">RADAR</span>
            </div>
            <div class="sidebar-items">
                {''.join(links)}
            </div>{footer}
        </nav>
    </aside>"""

    def _get_nav_items(self) -> List[NavItem]:
        """Menu for the user's role; visitors and unknown roles get the public menu."""
        if not self.user:
            return PUBLIC_MENU
        role = normalize_role(self.user.get("role"))
        if role in ("organizer", "org"):
            return NAV_CONFIG["organizer"]
        if role == "student":
            return NAV_CONFIG["student"]
        return PUBLIC_MENU

    def _determine_active_href(self, items: List[NavItem]) -> str:
        """Pick the single active href using best prefix match."""
        path = self.current_path or "/"
        best = ""
        for href, _text, _icon in items:
            if href == path:
                return href
            if href != "/" and path.startswith(href + "/") and len(href) > len(best):
                best = href
        return best

    def _create_nav_link(self, href: str, text: str, icon: str = "", is_active: bool = False) -> str:
        icon_html = f'<span class="nav-icon" aria-hidden="true">{icon}</span>' if icon else ""
        active_class = " active" if is_active else ""
        aria_attr = ' aria-current="page"' if is_active else ""
        return f"""
        <a href="{href}" class="sidebar-link{active_class}"{aria_attr}>
            {icon_html}
            <span class="nav-text">{self.escape(text)}</span>
        </a>"""

    def _render_logout(self) -> str:
        return """
        <a href="/logout" class="sidebar-link sidebar-logout">
            <span class="nav-icon" aria-hidden="true">🚪</span>
            <span class="nav-text">Log out</span>
        </a>"""

    @staticmethod
    def _role_label(role: Optional[str]) -> str:
        mapping = {
            "organizer": "Organizer",
            "org": "Organizer",
            "student": "Student",
        }
        return mapping.get(normalize_role(role) or "", "User")
