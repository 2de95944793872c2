"""Rich Console factory and theme for cmsctl output.

Consoles render into a StringIO buffer so renderers keep the
``format_result() -> str`` contract. Rich drops color codes by itself when
no terminal is attached (tests, pipes).
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

CMS_THEME = Theme(
    {
        "cms.ok": "bold green",
        "cms.error": "bold red",
        "cms.warning": "bold yellow",
        "cms.op": "bold cyan",
        "cms.key": "dim",
        "cms.id": "bold blue",
        "cms.name": "bold",
        "cms.rule": "magenta",
        "cms.status.draft": "yellow",
        "cms.status.published": "green",
        "cms.status.archived": "dim",
    }
)

_STATUS_STYLES: dict[str, str] = {
    "Draft": "cms.status.draft",
    "InReview": "cms.status.draft",
    "Scheduled": "cms.status.draft",
    "Published": "cms.status.published",
    "Archived": "cms.status.archived",
}


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    return Console(
        file=StringIO(),
        theme=CMS_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_status(status: str) -> str:
    return _STATUS_STYLES.get(status, "")
