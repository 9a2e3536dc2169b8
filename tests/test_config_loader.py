"""Tests for livedown.config_loader — livedown.yaml / livedown.toml."""

from pathlib import Path

import pytest

from livedown._errors import ConfigError
from livedown.config_loader import find_config_file, load_config, read_config_file


class TestLoadConfig:
    """load_config() — file values merged with explicit overrides."""

    def test_no_file_gives_defaults(self, tmp_path: Path) -> None:
        config = load_config(tmp_path)
        assert config.port == 1337

    def test_yaml_section(self, tmp_path: Path) -> None:
        (tmp_path / "livedown.yaml").write_text("livedown:\n  port: 8080\n  verbose: true\n")
        config = load_config(tmp_path)
        assert config.port == 8080
        assert config.verbose is True

    def test_yaml_top_level_keys(self, tmp_path: Path) -> None:
        (tmp_path / "livedown.yml").write_text("browser: firefox\n")
        assert load_config(tmp_path).browser == "firefox"

    def test_toml_section(self, tmp_path: Path) -> None:
        (tmp_path / "livedown.toml").write_text('[livedown]\nhost = "0.0.0.0"\nport = 9000\n')
        config = load_config(tmp_path)
        assert config.host == "0.0.0.0"
        assert config.port == 9000

    def test_overrides_win(self, tmp_path: Path) -> None:
        (tmp_path / "livedown.yaml").write_text("port: 8080\n")
        assert load_config(tmp_path, port=9999).port == 9999

    def test_none_override_keeps_file_value(self, tmp_path: Path) -> None:
        (tmp_path / "livedown.yaml").write_text("port: 8080\n")
        assert load_config(tmp_path, port=None).port == 8080

    def test_unknown_keys_ignored(self, tmp_path: Path) -> None:
        (tmp_path / "livedown.yaml").write_text("theme: dark\nlivedown:\n  colour: red\n")
        assert load_config(tmp_path).port == 1337

    def test_defaults_to_cwd(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "livedown.yaml").write_text("port: 4242\n")
        monkeypatch.chdir(tmp_path)
        assert load_config().port == 4242

    def test_invalid_value_raises(self, tmp_path: Path) -> None:
        (tmp_path / "livedown.yaml").write_text("port: 70000\n")
        with pytest.raises(ConfigError):
            load_config(tmp_path)


class TestReadConfigFile:
    """read_config_file() / find_config_file()."""

    def test_yaml_preferred_over_toml(self, tmp_path: Path) -> None:
        (tmp_path / "livedown.toml").write_text("port = 1\n")
        (tmp_path / "livedown.yaml").write_text("port: 2\n")
        assert find_config_file(tmp_path) == tmp_path / "livedown.yaml"

    def test_missing(self, tmp_path: Path) -> None:
        assert find_config_file(tmp_path) is None
        assert read_config_file(tmp_path) == {}

    def test_empty_yaml(self, tmp_path: Path) -> None:
        (tmp_path / "livedown.yaml").write_text("")
        assert read_config_file(tmp_path) == {}

    def test_malformed_yaml(self, tmp_path: Path) -> None:
        (tmp_path / "livedown.yaml").write_text("port: [unclosed\n")
        with pytest.raises(ConfigError, match="livedown.yaml"):
            read_config_file(tmp_path)

    def test_malformed_toml(self, tmp_path: Path) -> None:
        (tmp_path / "livedown.toml").write_text("port = \n")
        with pytest.raises(ConfigError):
            read_config_file(tmp_path)

    def test_non_mapping(self, tmp_path: Path) -> None:
        (tmp_path / "livedown.yaml").write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            read_config_file(tmp_path)
