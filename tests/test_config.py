from __future__ import annotations

from pathlib import Path

import pytest

from sysdeps_resolver.config import DEFAULT_JARS_DIR, DEFAULT_POMS_DIR, ResolverConfig, split_dirs

_ENV = (
    "SYSDEPS_POMS_DIR",
    "SYSDEPS_JARS_DIR",
    "SYSDEPS_SCAN_DEPTH",
    "SYSDEPS_POM_SEARCH_DEPTH",
    "SYSDEPS_USE_INDEX",
    "SYSDEPS_WORKERS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV:
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    config = ResolverConfig.from_env()

    assert config.poms_dirs == [Path(DEFAULT_POMS_DIR)]
    assert config.jars_dirs == [Path(DEFAULT_JARS_DIR)]
    assert config.scan_depth == 3
    assert config.pom_search_depth == 3
    assert config.use_index is False
    assert config.workers >= 1
    config.validate()


def test_values_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SYSDEPS_POMS_DIR", "/a, /b ,,/a")
    monkeypatch.setenv("SYSDEPS_JARS_DIR", "/jars")
    monkeypatch.setenv("SYSDEPS_SCAN_DEPTH", "5")
    monkeypatch.setenv("SYSDEPS_USE_INDEX", "TRUE")
    monkeypatch.setenv("SYSDEPS_WORKERS", "2")

    config = ResolverConfig.from_env()

    assert config.poms_dirs == [Path("/a"), Path("/b")]
    assert config.jars_dirs == [Path("/jars")]
    assert config.scan_depth == 5
    assert config.use_index is True
    assert config.workers == 2


def test_invalid_integer_falls_back_to_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SYSDEPS_SCAN_DEPTH", "deep")

    assert ResolverConfig.from_env().scan_depth == 3


def test_split_dirs_empty() -> None:
    assert split_dirs(None) == []
    assert split_dirs(" , ") == []


@pytest.mark.parametrize(
    "overrides",
    [{"poms_dirs": []}, {"jars_dirs": []}, {"scan_depth": -1}, {"pom_search_depth": -2}, {"workers": 0}],
)
def test_validate_rejects(overrides: dict) -> None:
    with pytest.raises(ValueError):
        ResolverConfig(**overrides).validate()
