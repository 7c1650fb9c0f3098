"""Process-wide settings from env vars and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs: explicit overrides passed to :func:`load_settings`
  2. Env vars: ``SIMPLEDTO_*`` prefix, ``__`` for nested sections
  3. TOML file: ``simpledto.toml``, read only by :func:`load_settings`
  4. Code defaults: baked into the section models

:func:`get_settings` never touches the filesystem: until :func:`configure`
is called, DTOs run on code defaults and ``SIMPLEDTO_*`` env vars. A TOML file
is read when :func:`configure` (or :func:`load_settings`) is given a
*config_path*, a *start* directory to walk up from, or finds
``SIMPLEDTO_CONFIG`` set.
"""

from __future__ import annotations

import os
import threading
import tomllib
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from simpledto.config.models import LoggingConfig, TimestampConfig, ValidationConfig
from simpledto.errors import DTOError

CONFIG_FILENAME = "simpledto.toml"
CONFIG_ENV_VAR = "SIMPLEDTO_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Locate the config file to load, or None.

    ``SIMPLEDTO_CONFIG`` wins when set (a path that is not a file yields
    None). Otherwise walks up from *start* looking for ``simpledto.toml``;
    without *start* there is nothing to walk.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        path = Path(env_path)
        return path if path.is_file() else None
    if start is None:
        return None

    current = start.resolve()
    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``simpledto.toml`` file."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                self._data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise DTOError(msg, {"config_path": str(toml_path)}) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        """Return the full TOML data dict for Pydantic to merge."""
        return self._data


# Thread-local storage for TOML path during construction.
_tls = threading.local()


class DtoSettings(BaseSettings):
    """Unified, frozen settings for the library.

    Attributes:
        config_path: The ``simpledto.toml`` the settings were read from.
        validation: Default validation modes.
        timestamps: Timezone applied to naive timestamps.
        logging: Logging flags consumed by ``configure_logging``.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "SIMPLEDTO_",
        "env_nested_delimiter": "__",
    }

    config_path: Path | None = None

    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    timestamps: TimestampConfig = Field(default_factory=TimestampConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )


def load_settings(
    *,
    config_path: str | Path | None = None,
    start: Path | None = None,
    **overrides: Any,
) -> DtoSettings:
    """Build settings from *config_path*, or from the file :func:`find_config` locates."""
    toml_path: Path | None = None
    if config_path:
        p = Path(config_path)
        if p.is_file():
            toml_path = p
    else:
        toml_path = find_config(start)

    _tls.toml_path = toml_path
    try:
        return DtoSettings(config_path=toml_path, **overrides)
    finally:
        _tls.toml_path = None


_settings: DtoSettings | None = None
_settings_lock = threading.Lock()


def get_settings() -> DtoSettings:
    """Return the process-wide settings.

    Until :func:`configure` is called these are code defaults plus
    ``SIMPLEDTO_*`` env vars; no config file is read.
    """
    global _settings
    if _settings is None:
        with _settings_lock:
            if _settings is None:
                _settings = DtoSettings()
    return _settings


def configure(settings: DtoSettings | None = None, **overrides: Any) -> DtoSettings:
    """Replace the process-wide settings.

    Installs *settings* as given, or loads fresh ones with
    :func:`load_settings` (*overrides* may include ``config_path`` and
    ``start``).
    """
    global _settings
    with _settings_lock:
        _settings = settings if settings is not None else load_settings(**overrides)
    return _settings


def reset_settings() -> None:
    """Forget the cached settings; the next :func:`get_settings` reloads them."""
    global _settings
    with _settings_lock:
        _settings = None
