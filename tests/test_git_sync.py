# tests/test_git_sync.py
import json

import pytest

from jstrack.integrations.git import DataRepoSync, get_current_project_name, repo_name_from_url
from jstrack.shared import git_operations


class FakeGit:
    """Stands in for the git CLI; records subcommands."""

    def __init__(self, status="", remote="", fail_on=()):
        self.calls = []
        self.status = status
        self.remote = remote
        self.fail_on = set(fail_on)

    def __call__(self, cmd, cwd=None):
        assert cmd[0] == "git"
        self.calls.append(cmd[1:])
        if cmd[1] in self.fail_on:
            raise RuntimeError(f"git {cmd[1]} failed")
        if cmd[1] == "status":
            return self.status
        if cmd[1] == "remote":
            return self.remote
        return ""

    @property
    def subcommands(self):
        return [call[0] for call in self.calls]


@pytest.fixture
def fake_git(monkeypatch):
    fake = FakeGit()
    monkeypatch.setattr(git_operations, "run_sync", fake)
    return fake


def test_missing_data_dir_is_cloned(tmp_path, fake_git):
    sync = DataRepoSync(tmp_path / "kb", "https://github.com/me/kb")

    assert sync.ensure_repo()
    assert fake_git.calls[0] == ["clone", "https://github.com/me/kb", str(sync.path)]


def test_missing_data_dir_without_remote_is_left_alone(tmp_path, fake_git):
    assert not DataRepoSync(tmp_path / "kb").ensure_repo()
    assert fake_git.calls == []


def test_checkout_is_pulled(tmp_path, fake_git):
    (tmp_path / ".git").mkdir()

    assert DataRepoSync(tmp_path, "url").ensure_repo()
    assert fake_git.subcommands == ["pull"]


def test_plain_directory_is_not_pulled(tmp_path, fake_git):
    assert not DataRepoSync(tmp_path, "url").ensure_repo()
    assert fake_git.calls == []


def test_failed_pull_is_not_fatal(tmp_path, fake_git):
    (tmp_path / ".git").mkdir()
    fake_git.fail_on.add("pull")

    assert not DataRepoSync(tmp_path, "url").ensure_repo()


def test_changed_file_is_committed_and_pushed(tmp_path, fake_git):
    (tmp_path / ".git").mkdir()
    fake_git.status = " M knowledge-base.json"

    result = DataRepoSync(tmp_path).commit_and_push("knowledge-base.json", "feat: Basic closures → demo")

    assert result.committed and result.pushed
    assert ["commit", "-m", "feat: Basic closures → demo"] in fake_git.calls
    assert fake_git.subcommands[-1] == "push"


def test_clean_tree_makes_no_commit(tmp_path, fake_git):
    (tmp_path / ".git").mkdir()

    result = DataRepoSync(tmp_path).commit_and_push("knowledge-base.json", "msg")

    assert not result.committed
    assert "commit" not in fake_git.subcommands
    assert "push" not in fake_git.subcommands


def test_push_failure_keeps_commit(tmp_path, fake_git):
    (tmp_path / ".git").mkdir()
    fake_git.status = " M knowledge-base.json"
    fake_git.fail_on.add("push")

    result = DataRepoSync(tmp_path).commit_and_push("knowledge-base.json", "msg")

    assert result.committed
    assert not result.pushed
    assert "push failed" in result.error


def test_plain_directory_is_initialized_before_commit(tmp_path, fake_git):
    fake_git.status = "?? knowledge-base.json"

    DataRepoSync(tmp_path).commit_and_push("knowledge-base.json", "msg")

    assert fake_git.subcommands[:3] == ["init", "add", "commit"]


@pytest.mark.parametrize("url,name", [
    ("https://github.com/me/shop.git", "shop"),
    ("https://github.com/me/shop", "shop"),
    ("git@github.com:me/todo-app.git", "todo-app"),
])
def test_repo_name_from_url(url, name):
    assert repo_name_from_url(url) == name


def test_project_name_from_remote(tmp_path, fake_git):
    fake_git.remote = "git@github.com:me/todo-app.git"
    assert get_current_project_name(tmp_path) == "todo-app"


def test_project_name_from_package_json(tmp_path, fake_git):
    fake_git.fail_on.add("remote")
    (tmp_path / "package.json").write_text(json.dumps({"name": "my-shop"}), encoding="utf-8")

    assert get_current_project_name(tmp_path) == "my-shop"


def test_project_name_falls_back_to_folder(tmp_path, fake_git):
    project_dir = tmp_path / "landing-page"
    project_dir.mkdir()

    assert get_current_project_name(project_dir) == "landing-page"
