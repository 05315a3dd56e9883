from __future__ import annotations

import os

import pytest

from sentishard.config import loader as loader_mod


@pytest.fixture(autouse=True)
def _fresh_cache():
    loader_mod.clear_defaults_file_cache()
    yield
    loader_mod.clear_defaults_file_cache()


def test_packaged_defaults_ship_with_the_package():
    loaded = loader_mod.load_packaged_defaults()

    assert loaded.ok
    assert loaded.source == loader_mod.PACKAGED_SOURCE
    assert loaded.path.endswith("defaults.toml")
    assert loaded.payload["meta"]["schema_version"] == 1
    assert loaded.payload["profiles"]["testing"]["transport"] == "thread"


def test_override_is_none_when_env_unset(monkeypatch):
    monkeypatch.delenv(loader_mod.DEFAULTS_PATH_ENV_VAR, raising=False)
    assert loader_mod.load_defaults_override() is None


def test_override_reads_env_path(monkeypatch, tmp_path):
    override = tmp_path / "custom.toml"
    override.write_text("[scan]\nworkers = 2\n", encoding="utf-8")
    monkeypatch.setenv(loader_mod.DEFAULTS_PATH_ENV_VAR, str(override))

    loaded = loader_mod.load_defaults_override()

    assert loaded.ok
    assert loaded.source == loader_mod.OVERRIDE_SOURCE
    assert loaded.payload == {"scan": {"workers": 2}}


@pytest.mark.parametrize(
    ("content", "error_kind"),
    [
        (None, "missing"),
        ("[scan\nworkers = ", "invalid_toml"),
        ("# " + "x" * (loader_mod.MAX_DEFAULTS_FILE_BYTES + 1), "oversized"),
    ],
)
def test_read_failures_are_reported_not_raised(tmp_path, content, error_kind):
    path = tmp_path / "defaults.toml"
    if content is not None:
        path.write_text(content, encoding="utf-8")

    loaded = loader_mod.read_defaults_file(path, source=loader_mod.OVERRIDE_SOURCE)

    assert not loaded.ok
    assert loaded.error_kind == error_kind
    assert loaded.payload == {}


def test_edited_file_is_read_again(tmp_path):
    path = tmp_path / "changing.toml"
    path.write_text("a = 1\n", encoding="utf-8")
    assert loader_mod.read_defaults_file(path, source="test").payload == {"a": 1}

    path.write_text("a = 22\n", encoding="utf-8")
    os.utime(path, ns=(path.stat().st_atime_ns, path.stat().st_mtime_ns + 1_000_000))
    assert loader_mod.read_defaults_file(path, source="test").payload == {"a": 22}


def test_resolve_profile_name(monkeypatch):
    monkeypatch.delenv(loader_mod.PROFILE_ENV_VAR, raising=False)
    assert loader_mod.resolve_profile_name() is None
    assert loader_mod.resolve_profile_name(" Testing ") == "testing"
    monkeypatch.setenv(loader_mod.PROFILE_ENV_VAR, "development")
    assert loader_mod.resolve_profile_name() == "development"
    assert loader_mod.resolve_profile_name("testing") == "testing"
