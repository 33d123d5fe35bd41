"""Tests for configuration loading and validation."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from pydantic import ValidationError

from sprintboard.config.loader import _deep_merge, load_config
from sprintboard.config.schema import (
    DEFAULT_CARDS,
    DEFAULT_MEETING_TITLE,
    DEFAULT_RETRO_COLUMNS,
    PollingConfig,
    SprintboardConfig,
)
from sprintboard.core.errors import ConfigError

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """No user/project config files and no env overrides leak in."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("SPRINTBOARD_CONFIG", raising=False)
    monkeypatch.delenv("SPRINTBOARD_DATABASE_URL", raising=False)


# ─── Schema Defaults ──────────────────────────────────────────


class TestSchemaDefaults:
    def test_all_defaults(self):
        cfg = SprintboardConfig()
        assert cfg.database.url.startswith("sqlite+aiosqlite:///")
        assert cfg.api.port == 8080
        assert cfg.logging.level == "INFO"
        assert cfg.logging.structured is False
        assert cfg.poker.cards == DEFAULT_CARDS
        assert cfg.retro.default_columns == DEFAULT_RETRO_COLUMNS
        assert cfg.retro.default_title == DEFAULT_MEETING_TITLE
        assert cfg.polling.board_interval == 2.0
        assert cfg.polling.session_interval == 5.0
        assert cfg.global_board.enabled is True

    def test_deck_includes_non_numeric_cards(self):
        assert "?" in DEFAULT_CARDS
        assert "☕" in DEFAULT_CARDS
        assert DEFAULT_CARDS[:4] == ["0", "1", "2", "3"]

    def test_defaults_are_not_shared(self):
        a = SprintboardConfig()
        b = SprintboardConfig()
        a.poker.cards.append("100")
        assert "100" not in b.poker.cards

    def test_polling_intervals_must_be_positive(self):
        with pytest.raises(ValidationError):
            PollingConfig(board_interval=0)


# ─── Merge ────────────────────────────────────────────────────


class TestDeepMerge:
    def test_nested_override(self):
        base = {"api": {"host": "a", "port": 1}}
        merged = _deep_merge(base, {"api": {"port": 2}})
        assert merged == {"api": {"host": "a", "port": 2}}
        assert base["api"]["port"] == 1

    def test_non_dict_replaces(self):
        assert _deep_merge({"a": {"b": 1}}, {"a": 3}) == {"a": 3}


# ─── Loading ──────────────────────────────────────────────────


class TestLoadConfig:
    def test_no_files_gives_defaults(self):
        assert load_config() == SprintboardConfig()

    def test_project_file(self, tmp_path: Path):
        (tmp_path / "sprintboard.toml").write_text('[api]\nport = 9000\n')
        assert load_config().api.port == 9000

    def test_explicit_path_beats_project_file(self, tmp_path: Path):
        (tmp_path / "sprintboard.toml").write_text("[api]\nport = 9000\n")
        explicit = tmp_path / "explicit.toml"
        explicit.write_text("[api]\nport = 9100\n")
        assert load_config(path=explicit).api.port == 9100

    def test_user_file(self, tmp_path: Path):
        user_dir = tmp_path / "xdg" / "sprintboard"
        user_dir.mkdir(parents=True)
        (user_dir / "config.toml").write_text('[retro]\ndefault_title = "Sprint 12"\n')
        assert load_config().retro.default_title == "Sprint 12"

    def test_env_config_path(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        env_file = tmp_path / "env.toml"
        env_file.write_text("[polling]\nsession_interval = 7.5\n")
        monkeypatch.setenv("SPRINTBOARD_CONFIG", str(env_file))
        assert load_config().polling.session_interval == 7.5

    def test_env_config_path_missing(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("SPRINTBOARD_CONFIG", "/nonexistent/sb.toml")
        with pytest.raises(ConfigError, match="non-existent"):
            load_config()

    def test_database_url_env_override(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ):
        (tmp_path / "sprintboard.toml").write_text(
            '[database]\nurl = "sqlite+aiosqlite:///file.db"\n'
        )
        monkeypatch.setenv("SPRINTBOARD_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
        assert load_config().database.url == "sqlite+aiosqlite:///:memory:"

    def test_overrides_win(self, tmp_path: Path):
        (tmp_path / "sprintboard.toml").write_text("[api]\nport = 9000\n")
        cfg = load_config(overrides={"api": {"port": 9999}})
        assert cfg.api.port == 9999

    def test_missing_explicit_file(self):
        with pytest.raises(ConfigError, match="not found"):
            load_config(path="/nonexistent/sprintboard.toml")

    def test_invalid_toml(self, tmp_path: Path):
        bad = tmp_path / "bad.toml"
        bad.write_text("[api\nport = ")
        with pytest.raises(ConfigError, match="Invalid TOML"):
            load_config(path=bad)

    def test_validation_failure(self, tmp_path: Path):
        bad = tmp_path / "bad.toml"
        bad.write_text('[api]\nport = "not-a-port"\n')
        with pytest.raises(ConfigError, match="validation failed"):
            load_config(path=bad)
