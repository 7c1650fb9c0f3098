"""Shared pytest fixtures for simpledto tests."""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest

from simpledto.config.settings import reset_settings
from tests.dtos import DateDTO, MyTypedPropertyTestDTO

_SETTINGS_ENV_VARS = (
    "SIMPLEDTO_CONFIG",
    "SIMPLEDTO_VALIDATION__DEFAULT_MODE",
    "SIMPLEDTO_VALIDATION__NESTED_MODE",
    "SIMPLEDTO_TIMESTAMPS__DEFAULT_TIMEZONE",
    "SIMPLEDTO_LOGGING__VERBOSE",
    "SIMPLEDTO_LOGGING__LOG_JSON",
)


@pytest.fixture(autouse=True)
def _isolated_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[None]:
    """Run every test with default settings and no config file in reach."""
    for name in _SETTINGS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def world_dto() -> MyTypedPropertyTestDTO:
    """Strict DTO with every property supplied."""
    return MyTypedPropertyTestDTO({"name": "World", "age": 4.51 * 1000000000, "year": 1981})


@pytest.fixture
def date_dto() -> DateDTO:
    """DTO with a default string and a timestamp given in EST."""
    return DateDTO({"remember": "2001-09-11 8:46 EST"})
