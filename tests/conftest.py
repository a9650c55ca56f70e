"""Shared test fixtures for magro."""

from __future__ import annotations

import subprocess
from collections.abc import Callable
from pathlib import Path

import pytest

from magro.config.store import ConfigStore


def _make_workdir(path: Path) -> Path:
    (path / ".git" / "objects").mkdir(parents=True)
    (path / ".git" / "refs").mkdir()
    (path / ".git" / "HEAD").write_text("ref: refs/heads/main\n")
    return path


def _make_bare(path: Path) -> Path:
    (path / "objects").mkdir(parents=True)
    (path / "refs").mkdir()
    (path / "HEAD").write_text("ref: refs/heads/main\n")
    return path


@pytest.fixture
def make_workdir() -> Callable[[Path], Path]:
    """Build a directory that looks like a working-tree repository."""
    return _make_workdir


@pytest.fixture
def make_bare() -> Callable[[Path], Path]:
    """Build a directory that looks like a bare repository."""
    return _make_bare


@pytest.fixture
def base_dir(tmp_path: Path) -> Path:
    """Collection directory with repositories a (workdir) and b (bare), and c (plain)."""
    base = tmp_path / "base"
    _make_workdir(base / "a")
    _make_bare(base / "b")
    (base / "c").mkdir(parents=True)
    return base


@pytest.fixture
def store(tmp_path: Path) -> ConfigStore:
    """Config store writing under tmp_path."""
    return ConfigStore(
        tmp_path / "config" / "collections.json",
        tmp_path / "cache" / "cache.json",
    )


@pytest.fixture
def magro_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point magro's config and cache dirs into tmp_path. Returns tmp_path."""
    monkeypatch.setenv("MAGRO_CONFIG_DIR", str(tmp_path / "config"))
    monkeypatch.setenv("MAGRO_CACHE_DIR", str(tmp_path / "cache"))
    monkeypatch.delenv("MAGRO_SCAN_DEPTH", raising=False)
    monkeypatch.delenv("MAGRO_LOG_LEVEL", raising=False)
    return tmp_path


@pytest.fixture
def tmp_git_repo(tmp_path: Path) -> Path:
    """Create a temporary git repository with one commit."""
    repo = tmp_path / "test-repo"
    repo.mkdir()
    subprocess.run(["git", "init"], cwd=repo, capture_output=True, check=True)
    subprocess.run(
        ["git", "config", "user.email", "test@example.com"],
        cwd=repo,
        capture_output=True,
        check=True,
    )
    subprocess.run(
        ["git", "config", "user.name", "Test User"],
        cwd=repo,
        capture_output=True,
        check=True,
    )
    (repo / "README.md").write_text("# Test Repo\n")
    subprocess.run(["git", "add", "."], cwd=repo, capture_output=True, check=True)
    subprocess.run(
        ["git", "commit", "-m", "Initial commit"],
        cwd=repo,
        capture_output=True,
        check=True,
    )
    return repo
