"""Fixtures for integration tests."""

import subprocess
from pathlib import Path
from typing import Protocol

import pytest


class CommitFn(Protocol):
    """Protocol for git commit function."""

    def __call__(self, message: str, *, dockerfile: str = "FROM scratch\n") -> str:
        """Create a commit and return its SHA."""


class FakeDockerFn(Protocol):
    """Protocol for fake docker executable creation."""

    def __call__(self, *, fail_on: str | None = None) -> Path:
        """Create a fake docker executable and return its path."""


@pytest.fixture
def source_root(tmp_path: Path) -> Path:
    """Directory holding source repositories as <owner>/<name>."""
    return tmp_path / "sources"


@pytest.fixture
def git_repo(source_root: Path) -> Path:
    """Create an initialized git repository for acme/widget."""
    repo = source_root / "acme" / "widget"
    repo.mkdir(parents=True)
    subprocess.run(
        ["git", "init"],
        cwd=repo,
        check=True,
        capture_output=True,
    )
    subprocess.run(
        ["git", "config", "user.email", "test@example.com"],
        cwd=repo,
        check=True,
        capture_output=True,
    )
    subprocess.run(
        ["git", "config", "user.name", "Test"],
        cwd=repo,
        check=True,
        capture_output=True,
    )
    return repo


@pytest.fixture
def git_commit(git_repo: Path) -> CommitFn:
    """Return a function to create commits in the test repo."""

    def _commit(message: str, *, dockerfile: str = "FROM scratch\n") -> str:
        (git_repo / "Dockerfile").write_text(dockerfile)
        subprocess.run(
            ["git", "add", "-A"],
            cwd=git_repo,
            check=True,
            capture_output=True,
        )
        subprocess.run(
            ["git", "commit", "--allow-empty", "-m", message],
            cwd=git_repo,
            check=True,
            capture_output=True,
        )
        result = subprocess.run(
            ["git", "rev-parse", "HEAD"],
            cwd=git_repo,
            check=True,
            capture_output=True,
            text=True,
        )
        return result.stdout.strip()

    return _commit


@pytest.fixture
def docker_log(tmp_path: Path) -> Path:
    """File recording the fake docker invocations."""
    return tmp_path / "docker.log"


@pytest.fixture
def fake_docker(tmp_path: Path, docker_log: Path) -> FakeDockerFn:
    """Return a function creating a docker stand-in.

    The stand-in records its arguments and, for builds, the commit checked
    out in the build context.
    """

    def _create(*, fail_on: str | None = None) -> Path:
        script = tmp_path / "docker"
        script.write_text(
            "#!/bin/sh\n"
            f"printf '%s\\n' \"$*\" >> '{docker_log}'\n"
            'if [ "$1" = "build" ]; then\n'
            "  for context; do :; done\n"
            f"  git -C \"$context\" rev-parse HEAD >> '{docker_log}'\n"
            "fi\n"
            f'if [ "$1" = "{fail_on}" ]; then\n'
            "  echo \"error: $1 failed\" >&2\n"
            "  exit 1\n"
            "fi\n"
        )
        script.chmod(0o755)
        return script

    return _create
