"""Tests for keytrainer.core.config – YAML settings."""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from keytrainer.core.config import CONFIG_ENV_VAR, Settings, load_settings


@pytest.fixture(autouse=True)
def fake_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point ~ at a temp dir so tests never read the real ~/.keytrainer."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    return home


def _write(path: Path, text: str) -> Path:
    path.write_text(textwrap.dedent(text), encoding="utf-8")
    return path


class TestDefaults:
    def test_settings_defaults(self, fake_home: Path):
        s = Settings()
        assert s.patterns_file is None
        assert s.stats_file == fake_home / ".keytrainer" / "stats.json"
        assert s.advance_delay_ms == 400
        assert s.log_level == "INFO"

    def test_missing_file(self, tmp_path: Path):
        assert load_settings(tmp_path / "nope.yaml") == Settings()

    def test_no_config_in_home(self):
        assert load_settings() == Settings()

    def test_empty_file(self, tmp_path: Path):
        assert load_settings(_write(tmp_path / "c.yaml", "")) == Settings()


class TestLoading:
    def test_all_keys(self, tmp_path: Path, fake_home: Path):
        path = _write(
            tmp_path / "c.yaml",
            """\
            patterns_file: ~/drills.txt
            stats_file: /var/tmp/kt.json
            advance_delay_ms: 250
            log_level: debug
            """,
        )
        s = load_settings(path)
        assert s.patterns_file == fake_home / "drills.txt"
        assert s.stats_file == Path("/var/tmp/kt.json")
        assert s.advance_delay_ms == 250
        assert s.log_level == "DEBUG"

    def test_home_config(self, fake_home: Path):
        (fake_home / ".keytrainer").mkdir()
        _write(fake_home / ".keytrainer" / "config.yaml", "advance_delay_ms: 0\n")
        assert load_settings().advance_delay_ms == 0

    def test_env_var_wins_over_home(self, tmp_path: Path, fake_home: Path, monkeypatch: pytest.MonkeyPatch):
        (fake_home / ".keytrainer").mkdir()
        _write(fake_home / ".keytrainer" / "config.yaml", "advance_delay_ms: 100\n")
        env_cfg = _write(tmp_path / "env.yaml", "advance_delay_ms: 900\n")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(env_cfg))
        assert load_settings().advance_delay_ms == 900


class TestInvalid:
    def test_bad_yaml(self, tmp_path: Path, caplog: pytest.LogCaptureFixture):
        path = _write(tmp_path / "c.yaml", "advance_delay_ms: [1, 2\n")
        assert load_settings(path) == Settings()
        assert "Could not read config" in caplog.text

    def test_not_a_mapping(self, tmp_path: Path):
        path = _write(tmp_path / "c.yaml", "- 1\n- 2\n")
        assert load_settings(path) == Settings()

    def test_bad_value_keeps_other_keys(self, tmp_path: Path, caplog: pytest.LogCaptureFixture):
        path = _write(
            tmp_path / "c.yaml",
            """\
            advance_delay_ms: fast
            log_level: warning
            """,
        )
        s = load_settings(path)
        assert s.advance_delay_ms == 400
        assert s.log_level == "WARNING"
        assert "advance_delay_ms" in caplog.text

    @pytest.mark.parametrize("value", ["-5", "true", "1.5"])
    def test_rejected_delays(self, tmp_path: Path, value: str):
        path = _write(tmp_path / "c.yaml", f"advance_delay_ms: {value}\n")
        assert load_settings(path).advance_delay_ms == 400

    def test_unknown_level(self, tmp_path: Path):
        path = _write(tmp_path / "c.yaml", "log_level: chatty\n")
        assert load_settings(path).log_level == "INFO"

    def test_unknown_key_warns(self, tmp_path: Path, caplog: pytest.LogCaptureFixture):
        path = _write(tmp_path / "c.yaml", "colour: blue\n")
        assert load_settings(path) == Settings()
        assert "unknown setting 'colour'" in caplog.text

    def test_empty_path_value(self, tmp_path: Path):
        path = _write(tmp_path / "c.yaml", "stats_file: ''\n")
        assert load_settings(path) == Settings()
