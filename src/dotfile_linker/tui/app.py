from __future__ import annotations

from pathlib import Path

from textual.app import App

from dotfile_linker.tui.review_screen import ReviewRow


class LinkReviewApp(App[set[Path] | None]):
    """Dotfile Linker review TUI.

    Exits with the set of destinations approved for backup-and-replace,
    or None if the user quit.
    """

    TITLE = "Dotfile Linker"
    CSS = """
    #review_header {
        background: $primary;
        color: $text;
        text-style: bold;
    }
    #review_explanation {
        padding: 1 0;
        color: $text-muted;
    }
    #review_list {
        height: 1fr;
    }
    #review_status {
        background: $panel;
    }
    """

    def __init__(self, rows: list[ReviewRow]):
        super().__init__()
        self.rows = rows

    def on_mount(self) -> None:
        from dotfile_linker.tui.review_screen import ReviewScreen

        self.push_screen(ReviewScreen())
