"""Tests for DtoSettings: unified settings with a TOML source."""

from pathlib import Path

import pytest

from simpledto import DTOError, Mode
from simpledto.config.settings import (
    CONFIG_FILENAME,
    DtoSettings,
    configure,
    find_config,
    get_settings,
    load_settings,
    reset_settings,
)
from tests.dtos import DateDTO, MyTestDTO

PERMISSIVE_TOML = '[validation]\ndefault_mode = "permissive"\n'


class TestFindConfig:
    def test_finds_in_start_dir(self, tmp_path: Path) -> None:
        config_file = tmp_path / CONFIG_FILENAME
        config_file.write_text('[validation]\ndefault_mode = "strict"\n')
        assert find_config(tmp_path) == config_file.resolve()

    def test_walks_up(self, tmp_path: Path) -> None:
        config_file = tmp_path / CONFIG_FILENAME
        config_file.write_text("")
        child = tmp_path / "a" / "b" / "c"
        child.mkdir(parents=True)
        assert find_config(child) == config_file.resolve()

    def test_returns_none_when_not_found(self, tmp_path: Path) -> None:
        child = tmp_path / "empty"
        child.mkdir()
        assert find_config(child) is None

    def test_cwd_is_not_searched(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("")
        assert find_config() is None

    def test_env_var_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        config_file = tmp_path / "custom.toml"
        config_file.write_text("")
        monkeypatch.setenv("SIMPLEDTO_CONFIG", str(config_file))
        assert find_config() == config_file
        assert find_config(tmp_path) == config_file

    def test_env_var_pointing_nowhere(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("")
        monkeypatch.setenv("SIMPLEDTO_CONFIG", str(tmp_path / "missing.toml"))
        assert find_config(tmp_path) is None


class TestDefaults:
    def test_all_defaults(self) -> None:
        """With no TOML and no env vars, all fields use code defaults."""
        settings = load_settings()
        assert settings.config_path is None
        assert settings.validation.default_mode is Mode.STRICT
        assert settings.validation.nested_mode is Mode.PERMISSIVE
        assert settings.timestamps.default_timezone == "UTC"
        assert settings.logging.verbose is False

    def test_frozen(self) -> None:
        settings = load_settings()
        with pytest.raises(Exception):
            settings.config_path = Path("x.toml")  # type: ignore[misc]


class TestTomlSource:
    def test_discovered_from_start(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text(PERMISSIVE_TOML)
        settings = load_settings(start=tmp_path)
        assert settings.validation.default_mode is Mode.PERMISSIVE
        assert settings.validation.nested_mode is Mode.PERMISSIVE  # default preserved
        assert settings.config_path == (tmp_path / CONFIG_FILENAME).resolve()

    def test_start_directory(self, tmp_path: Path) -> None:
        project = tmp_path / "project"
        (project / "src").mkdir(parents=True)
        (project / CONFIG_FILENAME).write_text('[timestamps]\ndefault_timezone = "PST"\n')
        settings = load_settings(start=project / "src")
        assert settings.timestamps.default_timezone == "PST"

    def test_explicit_config_path(self, tmp_path: Path) -> None:
        custom = tmp_path / "custom" / "my.toml"
        custom.parent.mkdir(parents=True)
        custom.write_text('[logging]\nverbose = true\n')
        settings = load_settings(config_path=custom)
        assert settings.logging.verbose is True
        assert settings.config_path == custom

    def test_env_var_config_path(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        custom = tmp_path / "custom.toml"
        custom.write_text(PERMISSIVE_TOML)
        monkeypatch.setenv("SIMPLEDTO_CONFIG", str(custom))
        assert load_settings().validation.default_mode is Mode.PERMISSIVE

    def test_cwd_file_needs_start(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text(PERMISSIVE_TOML)
        assert load_settings().validation.default_mode is Mode.STRICT

    def test_invalid_toml(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("[validation\n")
        with pytest.raises(DTOError, match="Invalid TOML"):
            load_settings(start=tmp_path)


class TestOverrides:
    def test_init_overrides_toml(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text(PERMISSIVE_TOML)
        settings = load_settings(start=tmp_path, validation={"default_mode": "strict"})
        assert settings.validation.default_mode is Mode.STRICT

    def test_env_var_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SIMPLEDTO_VALIDATION__DEFAULT_MODE", "permissive")
        settings = load_settings()
        assert settings.validation.default_mode is Mode.PERMISSIVE

    def test_env_beats_toml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / CONFIG_FILENAME).write_text('[timestamps]\ndefault_timezone = "PST"\n')
        monkeypatch.setenv("SIMPLEDTO_TIMESTAMPS__DEFAULT_TIMEZONE", "EST")
        assert load_settings(start=tmp_path).timestamps.default_timezone == "EST"


class TestProcessSettings:
    def test_cached(self) -> None:
        assert get_settings() is get_settings()

    def test_stray_config_file_is_ignored(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text(PERMISSIVE_TOML)
        settings = get_settings()
        assert settings.config_path is None
        assert settings.validation.default_mode is Mode.STRICT
        assert not MyTestDTO({"name": "World", "age": 1.0, "year": 2019}).is_permissive()

    def test_env_config_waits_for_configure(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        custom = tmp_path / "custom.toml"
        custom.write_text(PERMISSIVE_TOML)
        monkeypatch.setenv("SIMPLEDTO_CONFIG", str(custom))
        assert get_settings().validation.default_mode is Mode.STRICT
        assert configure().config_path == custom
        assert get_settings().validation.default_mode is Mode.PERMISSIVE

    def test_env_vars_apply_without_configure(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SIMPLEDTO_VALIDATION__DEFAULT_MODE", "permissive")
        assert get_settings().validation.default_mode is Mode.PERMISSIVE

    def test_configure_discovers_from_start(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text(PERMISSIVE_TOML)
        configure(start=tmp_path)
        assert MyTestDTO({"name": "World", "age": "1", "year": "2019"}).is_permissive()

    def test_configure_replaces(self) -> None:
        settings = configure(validation={"default_mode": "permissive"})
        assert get_settings() is settings
        assert MyTestDTO({"name": "World", "age": "1", "year": "2019"}).is_permissive()

    def test_configure_with_object(self) -> None:
        settings = DtoSettings(validation={"nested_mode": "strict"})
        assert configure(settings) is settings
        assert get_settings().validation.nested_mode is Mode.STRICT

    def test_reset(self) -> None:
        configured = configure(validation={"default_mode": "permissive"})
        reset_settings()
        assert get_settings() is not configured
        assert get_settings().validation.default_mode is Mode.STRICT

    def test_timezone_applies_to_naive_timestamps(self) -> None:
        configure(timestamps={"default_timezone": "EST"})
        dto = DateDTO({"remember": "2001-09-11 08:46"})
        assert dto.to_json() == '{"name":"9/11","remember":"2001-09-11T13:46:00.000000Z"}'
