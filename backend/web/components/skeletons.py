"""
Skeleton placeholders.

Shown while the session is still hydrating and behind the PIN modal, so that
gated pages never send their real content before the gate opened.
"""

from .base import Component


class DashboardSkeleton(Component):
    def __init__(self, cards: int = 3, rows: int = 4):
        self.cards = cards
        self.rows = rows

    def render(self) -> str:
        cards = "".join('<div class="skeleton skeleton-card"></div>' for _ in range(self.cards))
        rows = "".join('<div class="skeleton skeleton-row"></div>' for _ in range(self.rows))
        return f"""
        <div class="dashboard-skeleton" aria-hidden="true">
            <div class="skeleton skeleton-title"></div>
            <div class="skeleton-grid">{cards}</div>
            <div class="skeleton-list">{rows}</div>
        </div>"""


class LoadingScreen(Component):
    """Full-page placeholder while the session store is unavailable."""

    def render(self) -> str:
        return f"""
        <section class="loading-screen" role="status" aria-live="polite">
            <p class="text-muted">Loading your session...</p>
            {DashboardSkeleton().render()}
        </section>"""
