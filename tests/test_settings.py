from __future__ import annotations

import os
from pathlib import Path

import pytest

from netfile.settings import ConfigError, load_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ("HOST", "PORT", "ROOT", "CHUNK_SIZE", "DEADLINE", "INBOX_SIZE", "LOG_LEVEL"):
        monkeypatch.delenv(f"NETFILE_{name}", raising=False)
    monkeypatch.chdir(tmp_path)


def test_defaults():
    s = load_settings()
    assert s.port == 2121
    assert s.deadline == 0
    assert s.chunk_size == 8192
    assert s.root_dir == Path(".")


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("NETFILE_PORT", "9000")
    monkeypatch.setenv("NETFILE_DEADLINE", "2.5")
    monkeypatch.setenv("NETFILE_LOG_LEVEL", "debug")
    s = load_settings()
    assert (s.port, s.deadline, s.log_level) == (9000, 2.5, "DEBUG")


def test_dotenv_file(tmp_path):
    env = tmp_path / "netfile.env"
    env.write_text("NETFILE_CHUNK_SIZE=4\nNETFILE_ROOT=/srv/files\n")
    s = load_settings(str(env))
    # load_dotenv writes os.environ directly
    os.environ.pop("NETFILE_CHUNK_SIZE", None)
    os.environ.pop("NETFILE_ROOT", None)
    assert s.chunk_size == 4
    assert s.root_dir == Path("/srv/files")


@pytest.mark.parametrize(
    "name, value",
    [("PORT", "abc"), ("PORT", "70000"), ("DEADLINE", "-1"), ("INBOX_SIZE", "1"), ("LOG_LEVEL", "loud")],
)
def test_invalid_values(monkeypatch, name, value):
    monkeypatch.setenv(f"NETFILE_{name}", value)
    with pytest.raises(ConfigError):
        load_settings()
