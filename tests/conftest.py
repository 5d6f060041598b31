"""Pytest configuration and shared fixtures for dockerstamp tests."""

import subprocess
from pathlib import Path

import pytest

from dockerstamp.core.config import ENV_PREFIX, StampConfig
from dockerstamp.core.record import BuildMetadataRecord

REPO_NAME = "go-docker-multi-stage-build"


def run_git(path: Path, *args: str) -> str:
    """Run a git command in path and return its stripped stdout."""
    result = subprocess.run(
        ["git", *args], cwd=path, check=True, capture_output=True, text=True
    )
    return result.stdout.strip()


@pytest.fixture(autouse=True)
def isolate_git(tmp_path, monkeypatch):
    """
    Keep git from discovering repositories above tmp_path.

    Also clears DOCKERSTAMP_* variables so configuration comes only from
    what each test sets up.
    """
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path.parent))
    for field in StampConfig.model_fields:
        monkeypatch.delenv(f"{ENV_PREFIX}{field.upper()}", raising=False)


@pytest.fixture
def empty_git_repo(tmp_path):
    """
    Create an initialized git repository with no commits.

    The work tree directory is named after the walkthrough repository so
    VCS_URL and NAME are predictable.
    """
    repo = tmp_path / REPO_NAME
    repo.mkdir()
    run_git(repo, "init")
    run_git(repo, "config", "user.name", "Test User")
    run_git(repo, "config", "user.email", "test@example.com")
    run_git(repo, "config", "commit.gpgsign", "false")
    return repo


@pytest.fixture
def git_repo(empty_git_repo):
    """Create a git repository with a single commit."""
    (empty_git_repo / "main.go").write_text(
        'package main\n\nimport "log"\n\nfunc main() {\n\tlog.Println("hello world")\n}\n'
    )
    run_git(empty_git_repo, "add", ".")
    run_git(empty_git_repo, "commit", "-m", "Initial commit")
    return empty_git_repo


@pytest.fixture
def sample_record():
    """The build metadata record from the walkthrough's `make print` output."""
    return BuildMetadataRecord(
        version="a8dd38b765470fe69ee1127519a586512942f318",
        build_date="Tue, 27 Mar 2018 11:51:16 +0800",
        vcs_url="go-docker-multi-stage-build",
        vcs_ref="a8dd38b",
        name="go-docker-multi-stage-build",
        vendor="alextan",
    )
