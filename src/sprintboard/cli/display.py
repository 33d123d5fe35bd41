"""Rich display for boards.

Renders a poker round (story, votes, reveal state and the vote
summary) and a retro meeting board.  Used by the ``session`` and
``watch`` commands.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from sprintboard_client.summary import summarize_votes

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sprintboard.storage.models import RetroMeeting

_HIDDEN_CARD = "🂠"


class BoardDisplay:
    """Rich display for poker and retro boards.

    Accepts an optional :class:`~rich.console.Console` for dependency
    injection in tests.
    """

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console()

    # ── Poker ─────────────────────────────────────────────────

    def show_poker(
        self,
        session_id: str,
        story: str | None,
        votes: Mapping[str, str],
        is_revealed: bool,
        *,
        viewer: str | None = None,
    ) -> None:
        """Print the current round. Cards stay hidden until revealed."""
        title = f"[bold]Poker {session_id}[/bold]"
        if viewer:
            title += f" [dim]({viewer})[/dim]"
        self._console.print()
        self._console.print(
            Panel(
                story or "[dim]No active story[/dim]",
                title=title,
                border_style="cyan",
            )
        )

        table = Table(show_header=True, header_style="bold")
        table.add_column("Voter")
        table.add_column("Card", justify="center")
        for voter, value in votes.items():
            table.add_row(voter, value if is_revealed else _HIDDEN_CARD)
        if votes:
            self._console.print(table)
        else:
            self._console.print("[dim]No votes yet[/dim]")

        state = "[green]revealed[/green]" if is_revealed else "[yellow]voting[/yellow]"
        self._console.print(f"  {len(votes)} vote(s), {state}")
        if is_revealed and votes:
            self.show_summary(votes)

    def show_summary(self, votes: Mapping[str, str]) -> None:
        """Print average and per-card counts."""
        summary = summarize_votes(votes)
        average = "n/a" if summary.average is None else f"{summary.average:.1f}"
        counts = ", ".join(f"{card} x{n}" for card, n in summary.breakdown.items())
        self._console.print(f"  [bold]Average:[/bold] {average}   {counts}")

    # ── Retro ─────────────────────────────────────────────────

    def show_meeting(self, session_id: str, meeting: RetroMeeting | None) -> None:
        """Print a meeting as one table column per board column."""
        if meeting is None:
            self._console.print(f"Retro {session_id}: [dim]no active meeting[/dim]")
            return

        table = Table(title=f"{meeting.title} [dim]({session_id})[/dim]")
        for column in meeting.columns:
            table.add_column(column.title)
        depth = max((len(c.items) for c in meeting.columns), default=0)
        for row in range(depth):
            table.add_row(
                *(
                    f"{c.items[row].content}\n[dim]- {c.items[row].author_name}[/dim]"
                    if row < len(c.items)
                    else ""
                    for c in meeting.columns
                )
            )
        self._console.print(table)
