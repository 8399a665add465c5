"""Tests for KvSettings — unified settings with TOML source."""

from __future__ import annotations

from pathlib import Path

import click
import pytest

from kvinput.config.settings import KvSettings


class TestKvSettingsDefaults:
    def test_all_defaults(self, tmp_path: Path) -> None:
        settings = KvSettings.from_cli(start=tmp_path)
        assert settings.config_path is None
        assert settings.json_output is False
        assert settings.quiet is False
        assert settings.editor.debounce_ms == 300
        assert settings.display.title == ""

    def test_frozen(self, tmp_path: Path) -> None:
        settings = KvSettings.from_cli(start=tmp_path)
        with pytest.raises(Exception):
            settings.quiet = True  # type: ignore[misc]


class TestTomlSource:
    def test_loads_from_toml(self, tmp_path: Path) -> None:
        toml = tmp_path / "kvinput.toml"
        toml.write_text('[editor]\nuse_types = false\n[display]\ntitle = "Props"\n')
        settings = KvSettings.from_cli(start=tmp_path)
        assert settings.editor.use_types is False
        assert settings.editor.debounce_ms == 300
        assert settings.display.title == "Props"
        assert settings.config_path == toml

    def test_explicit_config_path(self, tmp_path: Path) -> None:
        custom = tmp_path / "custom" / "my.toml"
        custom.parent.mkdir(parents=True)
        custom.write_text("[editor]\ndebounce_ms = 5\n")
        settings = KvSettings.from_cli(config_path=str(custom))
        assert settings.editor.debounce_ms == 5
        assert settings.config_path == custom

    def test_missing_explicit_path_uses_defaults(self, tmp_path: Path) -> None:
        settings = KvSettings.from_cli(config_path=str(tmp_path / "nope.toml"))
        assert settings.config_path is None
        assert settings.editor.debounce_ms == 300

    def test_invalid_toml_raises_click_error(self, tmp_path: Path) -> None:
        (tmp_path / "kvinput.toml").write_text("[editor\n")
        with pytest.raises(click.ClickException, match="Invalid TOML"):
            KvSettings.from_cli(start=tmp_path)


class TestPriority:
    def test_env_overrides_toml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "kvinput.toml").write_text("[editor]\ndebounce_ms = 50\n")
        monkeypatch.setenv("KVINPUT_EDITOR__DEBOUNCE_MS", "10")
        settings = KvSettings.from_cli(start=tmp_path)
        assert settings.editor.debounce_ms == 10

    def test_cli_flags_override(self, tmp_path: Path) -> None:
        settings = KvSettings.from_cli(start=tmp_path, json_output=True, quiet=True, verbose=True)
        assert settings.json_output is True
        assert settings.quiet is True
        assert settings.verbose is True

    def test_cli_flags_override_toml(self, tmp_path: Path) -> None:
        (tmp_path / "kvinput.toml").write_text("quiet = true\n")
        settings = KvSettings.from_cli(start=tmp_path, quiet=False)
        assert settings.quiet is False


class TestFromCli:
    def test_output_mirrors_flags(self, tmp_path: Path) -> None:
        settings = KvSettings.from_cli(start=tmp_path, json_output=True, verbose=True)
        output = settings.output
        assert output.json_output is True
        assert output.quiet is False
        assert output.verbose is True

    def test_hidden_config_discovered(self, tmp_path: Path) -> None:
        (tmp_path / ".kvinput.toml").write_text("[editor]\ndebounce_ms = 7\n")
        settings = KvSettings.from_cli(start=tmp_path)
        assert settings.editor.debounce_ms == 7
