"""GitClient against a real git binary."""

import shutil
import subprocess

import pytest

from wppr.git import GitClient
from wppr.settings import GitConfig
from wppr.utils import probe_binary

GIT = shutil.which("git")

pytestmark = pytest.mark.skipif(GIT is None, reason="git binary not available")

IDENTITY = GitConfig(user_name="wppr tests", user_email="tests@example.com")


@pytest.fixture(autouse=True)
def isolated_git(monkeypatch, tmp_path):
    # keep user/system git config (signing, hooks, default branch) out of the tests
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(tmp_path / "gitconfig"))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")


@pytest.fixture
def workdir(tmp_path):
    path = tmp_path / "plugin"
    path.mkdir()
    (path / "plugin.php").write_text("<?php\n * Version: 1.0.0\n")
    return path


@pytest.fixture
def repo(workdir):
    client = GitClient(GIT, IDENTITY, workdir)
    assert client.initialize().ok
    assert client.configure_identity().ok
    return client


def git_out(cwd, *args):
    return subprocess.run([GIT, *args], cwd=cwd, capture_output=True, text=True, check=True).stdout


class TestRepository:

    def test_fresh_directory_is_not_initialized(self, workdir):
        assert not GitClient(GIT, IDENTITY, workdir).is_initialized()

    def test_enclosing_repository_does_not_count(self, tmp_path, workdir):
        git_out(tmp_path, "init", ".")
        assert not GitClient(GIT, IDENTITY, workdir).is_initialized()

    def test_initialize_sets_branch_and_identity(self, repo, workdir):
        assert repo.is_initialized()
        assert git_out(workdir, "config", "user.name").strip() == "wppr tests"
        assert git_out(workdir, "config", "user.email").strip() == "tests@example.com"
        assert git_out(workdir, "symbolic-ref", "HEAD").strip() == "refs/heads/master"

    def test_change_detection_includes_untracked(self, repo, workdir):
        assert repo.has_uncommitted_changes() == (True, True)
        assert repo.commit_all("Automated commit by wppr").ok
        assert repo.has_uncommitted_changes() == (True, False)

        (workdir / "new.txt").write_text("x")
        assert repo.has_uncommitted_changes() == (True, True)

    def test_status_outside_repository_fails(self, workdir):
        ok, _ = GitClient(GIT, IDENTITY, workdir / "missing").has_uncommitted_changes()
        assert not ok

    def test_hard_reset_discards_tracked_changes(self, repo, workdir):
        repo.commit_all("initial")
        (workdir / "plugin.php").write_text("broken")

        assert repo.hard_reset().ok
        assert "Version: 1.0.0" in (workdir / "plugin.php").read_text()


class TestRemote:

    def test_remote_is_added_once(self, repo):
        assert not repo.has_remote()
        assert repo.add_remote("git@example.com:acme/plugin.git").ok
        assert repo.has_remote()
        assert not repo.add_remote("git@example.com:acme/plugin.git").ok

    def test_push_carries_annotated_tag(self, repo, tmp_path):
        bare = tmp_path / "remote.git"
        git_out(tmp_path, "init", "--bare", str(bare))
        repo.add_remote(str(bare))
        repo.commit_all("Automated commit by wppr")

        assert repo.tag("1.0.0").ok
        result = repo.push("master", include_tags=True)

        assert result.ok, result.detail
        assert "1.0.0" in git_out(bare, "tag").split()

    def test_duplicate_tag_fails(self, repo):
        repo.commit_all("initial")
        assert repo.tag("1.0.0").ok
        assert not repo.tag("1.0.0").ok


class TestBinary:

    def test_git_answers_version_check(self):
        assert probe_binary(GIT)

    def test_missing_binary_is_a_failed_result(self, workdir):
        result = GitClient("/nonexistent/git", IDENTITY, workdir).initialize()
        assert not result.ok
        assert result.code == 127
