"""
Layout Component for RADAR

Main layout wrapper that combines navigation, toasts and page content into a
complete HTML page.
"""

from typing import Optional, Dict, Any, Sequence

from identity_access.pin_gate import Notice

from .base import Component
from .navigation import Navigation


class Toasts(Component):
    """Transient notifications (success/error) rendered at the top of the page."""

    def __init__(self, notices: Sequence[Notice] = ()):
        self.notices = list(notices)

    def render(self) -> str:
        if not self.notices:
            return '<div id="toasts" class="toasts" role="status" aria-live="polite"></div>'
        items = "".join(
            f'<div class="toast toast--{self.escape(n.level)}">{self.escape(n.text)}</div>'
            for n in self.notices
        )
        return f'<div id="toasts" class="toasts" role="status" aria-live="polite">{items}</div>'


class Layout(Component):
    """Main layout component that assembles the complete page"""

    def __init__(
        self,
        title: str,
        content: str,
        user: Optional[Dict[str, Any]] = None,
        show_nav: bool = True,
        current_path: str = "/",
        overlay: str = "",
        notices: Sequence[Notice] = (),
        refresh_seconds: Optional[int] = None,
    ):
        """
        Args:
            title: Page title (will be escaped)
            content: Main content HTML (pre-rendered components)
            user: Current user dict (optional)
            show_nav: Whether to show the sidebar
            current_path: Current URL path for active navigation highlighting
            overlay: Pre-rendered modal placed above the content (e.g., PIN gate)
            notices: Toast messages for this response
            refresh_seconds: Reload the page after N seconds (hydration wait)
        """
        self.title = title
        self.content = content
        self.user = user
        self.show_nav = show_nav
        self.current_path = current_path
        self.overlay = overlay
        self.notices = notices
        self.refresh_seconds = refresh_seconds

    def render(self) -> str:
        nav_html = Navigation(self.user, self.current_path).render() if self.show_nav else ""
        content_class = self.classes("page-content", gated=bool(self.overlay))
        return f"""<!DOCTYPE html>
<html lang="en">
<head>
    {self._render_head()}
</head>
<body>
    <a href="#main-content" class="skip-link">Skip to main content</a>
    {nav_html}
    {Toasts(self.notices).render()}
    <main id="main-content" class="main-content" role="main">
        <div class="{content_class}">
            {self.content}
        </div>
        {self.overlay}
    </main>
</body>
</html>"""

    def _render_head(self) -> str:
        refresh = ""
        if self.refresh_seconds is not None:
            refresh = f'<meta http-equiv="refresh" content="{int(self.refresh_seconds)}">'
        return f"""
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <meta name="description" content="RADAR - campus event ticketing">
    {refresh}
    <title>{self.escape(self.title)} - RADAR</title>
    <link rel="stylesheet" href="/static/css/radar.css?v=1">
    """
