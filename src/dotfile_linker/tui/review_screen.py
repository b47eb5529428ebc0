from __future__ import annotations

from dataclasses import dataclass

from textual.app import ComposeResult
from textual.binding import Binding
from textual.screen import Screen
from textual.widgets import Footer, SelectionList, Static
from textual.widgets.selection_list import Selection

from dotfile_linker.core.linker import can_displace, inspect
from dotfile_linker.core.models import DestState, LinkRequest


@dataclass
class ReviewRow:
    """A request as shown on the review screen."""

    request: LinkRequest
    state: DestState | None  # None when the source is missing
    displaceable: bool = False

    @property
    def needs_approval(self) -> bool:
        return self.state is DestState.OCCUPIED and self.displaceable

    @property
    def state_label(self) -> str:
        if self.state is None:
            return "source missing"
        if self.state is DestState.MISSING:
            return "will link"
        if self.state is DestState.LINKED:
            return "linked"
        if not self.displaceable:
            return "no permission"
        return "back up & link"


def build_rows(requests: list[LinkRequest]) -> list[ReviewRow]:
    rows = []
    for request in requests:
        if not request.source.exists():
            rows.append(ReviewRow(request=request, state=None))
            continue
        state = inspect(request)
        displaceable = state is DestState.OCCUPIED and can_displace(request.dest)
        rows.append(ReviewRow(request=request, state=state, displaceable=displaceable))
    return rows


class ReviewScreen(Screen):
    """Pick which existing configurations may be backed up and replaced."""

    BINDINGS = [
        Binding("enter", "confirm", "Apply", show=True, priority=True),
        Binding("a", "approve_all", "Approve All", show=True),
        Binding("n", "approve_none", "Approve None", show=True),
        Binding("question_mark", "show_help", "Help", show=True),
        Binding("q", "quit_app", "Quit", show=True),
        # Vim navigation
        Binding("j", "cursor_down", "Down", show=False),
        Binding("k", "cursor_up", "Up", show=False),
    ]

    def compose(self) -> ComposeResult:
        yield Static(" Review Links", id="review_header")
        yield Static("", id="review_explanation")
        yield SelectionList[int](id="review_list")
        yield Static("", id="review_status")
        yield Footer()

    def on_mount(self) -> None:
        app = self.app  # type: LinkReviewApp
        self.query_one("#review_explanation", Static).update(
            " These entries already exist. Check the entries you want backed up and\n"
            " replaced by a symlink; unchecked entries are left as they are.\n"
            " Space toggles, Enter applies, q quits without changing anything."
        )

        selection_list = self.query_one("#review_list", SelectionList)
        for i, row in enumerate(app.rows):
            prompt = f"{row.state_label:<15} {row.request.dest}  ->  {row.request.source}"
            selection_list.add_option(
                Selection(prompt, i, False, disabled=not row.needs_approval)
            )
        selection_list.focus()
        self._update_status()

    def _approved(self) -> list[int]:
        app = self.app  # type: LinkReviewApp
        selected = self.query_one("#review_list", SelectionList).selected
        return [i for i in selected if app.rows[i].needs_approval]

    def _update_status(self) -> None:
        app = self.app  # type: LinkReviewApp
        pending = sum(1 for r in app.rows if r.needs_approval)
        self.query_one("#review_status", Static).update(
            f" {len(app.rows)} links, {pending} need approval, "
            f"{len(self._approved())} approved"
        )

    def on_selection_list_selected_changed(self, event: SelectionList.SelectedChanged) -> None:
        self._update_status()

    def action_confirm(self) -> None:
        app = self.app  # type: LinkReviewApp
        approved = {app.rows[i].request.dest for i in self._approved()}
        self.app.exit(approved)

    def action_approve_all(self) -> None:
        selection_list = self.query_one("#review_list", SelectionList)
        app = self.app  # type: LinkReviewApp
        for i, row in enumerate(app.rows):
            if row.needs_approval:
                selection_list.select(i)

    def action_approve_none(self) -> None:
        self.query_one("#review_list", SelectionList).deselect_all()

    def action_show_help(self) -> None:
        self.notify(
            "Space Toggle  a Approve all  n Approve none\n"
            "Enter Apply  j/k Up/Down  q Quit",
            title="Keyboard Help",
            timeout=5,
        )

    def action_cursor_down(self) -> None:
        self.query_one("#review_list", SelectionList).action_cursor_down()

    def action_cursor_up(self) -> None:
        self.query_one("#review_list", SelectionList).action_cursor_up()

    def action_quit_app(self) -> None:
        self.app.exit(None)
