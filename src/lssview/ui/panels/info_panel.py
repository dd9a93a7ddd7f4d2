"""
Info panel component for displaying snapshot status and statistics.

Provides a compact markdown-based display of the load status, vertex and
annotation counts, and file size.
"""

from __future__ import annotations

import logging
from typing import Any

import viser

logger = logging.getLogger(__name__)


class InfoPanel:
    """Compact info panel using markdown for efficient display."""

    def __init__(self, server: viser.ViserServer, title: str = "3D Scan"):
        self._server = server
        self._title = title
        self._markdown = server.gui.add_markdown("")

        self._status: str | None = None
        self._stats: dict[str, Any] | None = None

        self._update_display()

    @property
    def content(self) -> str:
        return self._markdown.content

    def _update_display(self) -> None:
        """Update the markdown display with current values."""
        lines = [f"**{self._stats.get('title', self._title) if self._stats else self._title}**"]

        if self._status:
            lines.append(f"*{self._status}*")

        if self._stats:
            lines.append(
                f"{self._stats['vertex_count_text']} verts · "
                f"{self._stats['annotation_count']} annotations · "
                f"{self._stats['size_text']}"
            )
            hint = self._stats.get("hint")
            if hint:
                lines.append(hint)
        else:
            lines.append("— verts · — annotations · —")

        self._markdown.content = "  \n".join(lines)

    def set_status(self, status: str | None) -> None:
        """Set status message, or None to hide it.

        Parameters
        ----------
        status : str | None
            Status message to display, or None to clear status
        """
        self._status = status
        self._update_display()

    def set_stats(self, stats: dict[str, Any] | None) -> None:
        """Set snapshot statistics, or None to show placeholders."""
        self._stats = dict(stats) if stats else None
        self._update_display()

    def remove(self) -> None:
        self._markdown.remove()


def create_info_panel(server: viser.ViserServer, title: str = "3D Scan") -> InfoPanel:
    """
    Create compact info display panel using markdown.

    Parameters
    ----------
    server : viser.ViserServer
        Viser server instance
    title : str
        Heading shown above the statistics

    Returns
    -------
    InfoPanel
        Info panel object with setter methods
    """
    logger.debug("Created compact info panel")
    return InfoPanel(server, title=title)
