"""Tests for metadata collectors."""

import getpass
import subprocess
from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime

import pytest
from conftest import REPO_NAME, run_git

from dockerstamp.core.collectors import (
    BuildMetadataCollector,
    collect_build_metadata,
    format_build_date,
)
from dockerstamp.core.errors import (
    GitCommandError,
    GitUnavailableError,
    MetadataError,
    NotAGitRepositoryError,
)
from dockerstamp.core.record import BUILD_ARG_NAMES
from dockerstamp.metadata.git import GitMetadataCollector, collect_git_metadata
from dockerstamp.metadata.system import (
    SystemMetadata,
    SystemMetadataCollector,
    collect_system_metadata,
)

FIXED_MOMENT = datetime(2018, 3, 27, 11, 51, 16, tzinfo=timezone(timedelta(hours=8)))


class TestGitMetadataCollector:
    """Test git metadata collection."""

    def test_git_repo_basic(self, git_repo):
        """Test collecting metadata from a repository with one commit."""
        metadata = GitMetadataCollector(git_repo).collect()

        assert len(metadata.commit) == 40  # Full SHA1 hash
        assert metadata.commit == run_git(git_repo, "rev-parse", "HEAD")
        assert metadata.commit.startswith(metadata.short_commit)
        assert len(metadata.short_commit) < len(metadata.commit)
        assert metadata.repo_name == REPO_NAME

    def test_subdirectory_resolves_to_toplevel(self, git_repo):
        """Test that a path below the work tree root names the repository."""
        subdir = git_repo / "cmd" / "hello"
        subdir.mkdir(parents=True)

        metadata = GitMetadataCollector(subdir).collect()

        assert metadata.repo_name == REPO_NAME

    def test_tracks_new_commits(self, git_repo):
        """Test that a new commit changes the collected hash."""
        first = GitMetadataCollector(git_repo).collect()

        (git_repo / "Dockerfile").write_text("FROM scratch\n")
        run_git(git_repo, "add", ".")
        run_git(git_repo, "commit", "-m", "Add Dockerfile")

        second = GitMetadataCollector(git_repo).collect()
        assert second.commit != first.commit

    def test_not_a_git_repo(self, tmp_path):
        """Test when path is not a git repository."""
        with pytest.raises(NotAGitRepositoryError) as exc_info:
            GitMetadataCollector(tmp_path).collect()

        assert str(tmp_path) in str(exc_info.value)
        assert exc_info.value.stderr  # git's own diagnostic is kept

    def test_missing_directory(self, tmp_path):
        """Test when path does not exist."""
        with pytest.raises(NotAGitRepositoryError):
            GitMetadataCollector(tmp_path / "missing").collect()

    def test_repo_without_commits(self, empty_git_repo):
        """Test that HEAD cannot be resolved before the first commit."""
        with pytest.raises(GitCommandError) as exc_info:
            GitMetadataCollector(empty_git_repo).collect()

        assert exc_info.value.command[:2] == ["git", "rev-parse"]

    def test_git_not_available(self, tmp_path, monkeypatch):
        """Test when git command is not available."""
        def mock_run(*args, **kwargs):
            raise FileNotFoundError("git not found")

        monkeypatch.setattr(subprocess, "run", mock_run)

        with pytest.raises(GitUnavailableError):
            GitMetadataCollector(tmp_path).collect()

    def test_git_timeout(self, tmp_path, monkeypatch):
        """Test that a git timeout is reported, not ignored."""
        def mock_run(*args, **kwargs):
            raise subprocess.TimeoutExpired("git", timeout=10)

        monkeypatch.setattr(subprocess, "run", mock_run)

        with pytest.raises(GitCommandError, match="timed out"):
            GitMetadataCollector(tmp_path).collect()

    def test_errors_are_metadata_errors(self, tmp_path):
        """Test that git failures share the MetadataError base."""
        with pytest.raises(MetadataError):
            collect_git_metadata(tmp_path)

    def test_defaults_to_cwd(self, git_repo, monkeypatch):
        """Test that the current directory is used when no path is given."""
        monkeypatch.chdir(git_repo)

        assert collect_git_metadata().repo_name == REPO_NAME


class TestSystemMetadataCollector:
    """Test system metadata collection."""

    def test_collect_system_metadata(self):
        """Test collecting the current user."""
        metadata = SystemMetadataCollector().collect()

        assert metadata.user
        assert metadata.user == getpass.getuser()

    def test_user_from_getpass(self, monkeypatch):
        """Test that the login name comes from getpass."""
        monkeypatch.setattr(getpass, "getuser", lambda: "alextan")

        assert collect_system_metadata().user == "alextan"

    def test_unresolvable_user(self, monkeypatch):
        """Test that an unknown user raises instead of guessing."""
        def mock_getuser():
            raise KeyError("getpwuid(): uid not found: 4242")

        monkeypatch.setattr(getpass, "getuser", mock_getuser)

        with pytest.raises(MetadataError, match="Cannot determine current user"):
            SystemMetadataCollector().collect()

    def test_empty_user(self, monkeypatch):
        """Test that an empty login name is rejected."""
        monkeypatch.setattr(getpass, "getuser", lambda: "")

        with pytest.raises(MetadataError):
            SystemMetadataCollector().collect()


class TestBuildDate:
    """Test BUILD_DATE formatting."""

    def test_rfc2822_format(self):
        """Test that the date matches `date -R` output."""
        assert format_build_date(FIXED_MOMENT) == "Tue, 27 Mar 2018 11:51:16 +0800"

    def test_utc(self):
        """Test a UTC timestamp."""
        moment = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

        assert format_build_date(moment) == "Tue, 02 Jan 2024 03:04:05 +0000"


class TestBuildMetadataCollector:
    """Test assembly of the full build metadata record."""

    def test_six_non_empty_keys(self, git_repo):
        """Test that a valid checkout yields exactly six non-empty values."""
        record = BuildMetadataCollector(git_repo).collect()
        args = record.to_build_args()

        assert list(args) == list(BUILD_ARG_NAMES)
        assert all(value for value in args.values())

    def test_values_come_from_sources(self, git_repo, monkeypatch):
        """Test where each value comes from."""
        monkeypatch.setattr(getpass, "getuser", lambda: "alextan")

        record = BuildMetadataCollector(git_repo, clock=lambda: FIXED_MOMENT).collect()

        assert record.version == run_git(git_repo, "rev-parse", "HEAD")
        assert record.vcs_ref == run_git(git_repo, "rev-parse", "--short", "HEAD")
        assert record.vcs_url == REPO_NAME
        assert record.name == REPO_NAME
        assert record.vendor == "alextan"
        assert record.build_date == "Tue, 27 Mar 2018 11:51:16 +0800"

    def test_ref_is_strict_prefix_of_version(self, git_repo):
        """Test that VCS_REF abbreviates VERSION."""
        record = collect_build_metadata(git_repo)

        assert record.version.startswith(record.vcs_ref)
        assert record.vcs_ref != record.version

    def test_core_abbrev_does_not_widen_ref(self, git_repo):
        """Test that a full-length core.abbrev still yields a short VCS_REF."""
        run_git(git_repo, "config", "core.abbrev", "40")

        record = collect_build_metadata(git_repo)

        assert len(record.vcs_ref) == 7
        assert record.version.startswith(record.vcs_ref)

    def test_invalid_values_raise_metadata_error(self, git_repo):
        """Test that values breaking the record invariants raise MetadataError."""
        class FullHashAsRef(GitMetadataCollector):
            def collect(self):
                metadata = super().collect()
                return metadata.model_copy(update={"short_commit": metadata.commit})

        collector = BuildMetadataCollector(git_collector=FullHashAsRef(git_repo))

        with pytest.raises(MetadataError, match="not an abbreviation"):
            collector.collect()

    def test_build_date_is_current(self, git_repo):
        """Test that the default clock stamps the current time."""
        before = datetime.now(timezone.utc).replace(microsecond=0)
        record = collect_build_metadata(git_repo)
        after = datetime.now(timezone.utc)

        stamped = parsedate_to_datetime(record.build_date)
        assert stamped.tzinfo is not None
        assert before <= stamped <= after

    def test_repeat_collection_is_stable(self, git_repo):
        """Test that two runs agree on everything but BUILD_DATE."""
        first = collect_build_metadata(git_repo).to_build_args()
        second = collect_build_metadata(git_repo).to_build_args()

        first.pop("BUILD_DATE")
        second.pop("BUILD_DATE")
        assert first == second

    def test_collection_does_not_write(self, git_repo):
        """Test that collecting leaves the work tree and git state untouched."""
        files_before = sorted(p.name for p in git_repo.iterdir())
        head_before = run_git(git_repo, "rev-parse", "HEAD")

        collect_build_metadata(git_repo)

        assert sorted(p.name for p in git_repo.iterdir()) == files_before
        assert run_git(git_repo, "rev-parse", "HEAD") == head_before
        assert run_git(git_repo, "status", "--porcelain") == ""

    def test_custom_collectors(self, git_repo):
        """Test injecting collectors."""
        class FixedUser(SystemMetadataCollector):
            def collect(self):
                return SystemMetadata(user="builder")

        collector = BuildMetadataCollector(
            git_collector=GitMetadataCollector(git_repo),
            system_collector=FixedUser(),
        )

        assert collector.collect().vendor == "builder"

    def test_outside_repository(self, tmp_path):
        """Test that collection fails outside a git checkout."""
        with pytest.raises(NotAGitRepositoryError):
            collect_build_metadata(tmp_path)
