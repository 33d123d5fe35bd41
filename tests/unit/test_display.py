"""Tests for the Rich board display."""

from __future__ import annotations

import io
from types import SimpleNamespace

from rich.console import Console

from sprintboard.cli.display import BoardDisplay


def _make_display() -> tuple[BoardDisplay, io.StringIO]:
    buf = io.StringIO()
    return BoardDisplay(console=Console(file=buf, width=100, no_color=True)), buf


class TestPoker:
    def test_hidden_until_revealed(self) -> None:
        display, buf = _make_display()
        display.show_poker("ABCD1234", "Login", {"Alice": "5"}, False)
        out = buf.getvalue()
        assert "Login" in out
        assert "Alice" in out
        assert "🂠" in out
        assert "Average" not in out

    def test_revealed_shows_summary(self) -> None:
        display, buf = _make_display()
        display.show_poker("ABCD1234", "Login", {"Alice": "5", "Bob": "8"}, True)
        out = buf.getvalue()
        assert "revealed" in out
        assert "6.5" in out
        assert "5 x1" in out

    def test_no_votes(self) -> None:
        display, buf = _make_display()
        display.show_poker("ABCD1234", None, {}, False, viewer="Carol")
        out = buf.getvalue()
        assert "No active story" in out
        assert "No votes yet" in out
        assert "Carol" in out

    def test_summary_without_numbers(self) -> None:
        display, buf = _make_display()
        display.show_summary({"Alice": "?", "Bob": "☕"})
        assert "n/a" in buf.getvalue()


class TestRetro:
    def test_no_meeting(self) -> None:
        display, buf = _make_display()
        display.show_meeting("RETRO001", None)
        assert "no active meeting" in buf.getvalue()

    def test_meeting_columns_and_items(self) -> None:
        display, buf = _make_display()
        item = SimpleNamespace(content="Fast CI", author_name="Alice")
        meeting = SimpleNamespace(
            title="Sprint 4",
            columns=[
                SimpleNamespace(title="Well", items=[item]),
                SimpleNamespace(title="Improve", items=[]),
            ],
        )
        display.show_meeting("RETRO001", meeting)  # type: ignore[arg-type]
        out = buf.getvalue()
        assert "Sprint 4" in out
        assert "Well" in out
        assert "Improve" in out
        assert "Fast CI" in out
        assert "Alice" in out
