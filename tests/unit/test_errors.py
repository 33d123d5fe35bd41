"""Tests for the exception hierarchy."""

from __future__ import annotations

import pytest

from sprintboard.core.errors import (
    AdminTokenError,
    AdminTokenRequiredError,
    ColumnNotFoundError,
    ConfigError,
    InvalidAdminTokenError,
    ItemNotFoundError,
    MissingFieldError,
    NoActiveMeetingError,
    NoActiveStoryError,
    NotFoundError,
    RequestError,
    SessionNotFoundError,
    SprintboardError,
    StorageError,
    VotingClosedError,
)


class TestHierarchy:
    @pytest.mark.parametrize(
        ("exc", "parent"),
        [
            (MissingFieldError("title"), RequestError),
            (NoActiveStoryError(), RequestError),
            (VotingClosedError(), RequestError),
            (AdminTokenRequiredError(), AdminTokenError),
            (InvalidAdminTokenError(), AdminTokenError),
            (SessionNotFoundError("ABC"), NotFoundError),
            (NoActiveMeetingError(), NotFoundError),
            (ColumnNotFoundError(3), NotFoundError),
            (ItemNotFoundError(4), NotFoundError),
            (ConfigError("bad"), SprintboardError),
            (StorageError("bad"), SprintboardError),
        ],
    )
    def test_parent(self, exc: SprintboardError, parent: type) -> None:
        assert isinstance(exc, parent)
        assert isinstance(exc, SprintboardError)


class TestStatusCodes:
    def test_request_errors_are_400(self):
        assert MissingFieldError("x").status_code == 400
        assert NoActiveStoryError().status_code == 400
        assert VotingClosedError().status_code == 400

    def test_token_errors_are_403(self):
        assert AdminTokenRequiredError().status_code == 403
        assert InvalidAdminTokenError().status_code == 403

    def test_not_found_errors_are_404(self):
        assert SessionNotFoundError("X").status_code == 404
        assert ItemNotFoundError(1).status_code == 404

    def test_internal_errors_are_500(self):
        assert ConfigError("x").status_code == 500
        assert StorageError("x").status_code == 500


class TestMessages:
    def test_missing_field_default_message(self):
        err = MissingFieldError("voterName")
        assert str(err) == "voterName is required"
        assert err.field == "voterName"

    def test_missing_field_custom_message(self):
        assert str(MissingFieldError("title", "Column title is required")) == (
            "Column title is required"
        )

    def test_voting_closed(self):
        assert str(VotingClosedError()) == (
            "Votes have already been revealed. Cannot vote now."
        )

    def test_token_messages(self):
        assert str(AdminTokenRequiredError()) == "Admin token is required"
        assert str(InvalidAdminTokenError()) == "Invalid admin token"

    def test_session_not_found_keeps_id(self):
        err = SessionNotFoundError("ABCD1234")
        assert str(err) == "Session not found"
        assert err.session_id == "ABCD1234"

    def test_column_and_item_ids(self):
        assert ColumnNotFoundError(7).column_id == 7
        assert "7" in str(ColumnNotFoundError(7))
        assert ItemNotFoundError(9).item_id == 9
