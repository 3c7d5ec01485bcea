"""Tests for repository checkout helpers."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest
from git.exc import GitCommandError, GitCommandNotFound

from component_insight.git import GitError, cleanup, clone_repository, is_git_url, project_name_from_url


@pytest.mark.parametrize("value,expected", [
    ("https://github.com/acme/ui-kit.git", True),
    ("https://github.com/acme/ui-kit", True),
    ("git@github.com:acme/ui-kit.git", True),
    ("./packages/ui", False),
    ("/home/me/ui-kit", False),
])
def test_is_git_url(value, expected):
    """Remote URLs are told apart from local paths."""
    assert is_git_url(value) is expected


def test_project_name_from_url():
    """Checkout names are derived from the repository name."""
    assert project_name_from_url("https://github.com/acme/UI.Kit.git") == "ui-kit"
    assert project_name_from_url("git@gitlab.com:team/design-system.git") == "design-system"


def test_clone_is_shallow(temp_dir: Path, monkeypatch):
    """Clones fetch only the tip of the default branch."""
    clone_from = MagicMock()
    monkeypatch.setattr("component_insight.git.Repo.clone_from", clone_from)

    dest = clone_repository("https://github.com/acme/ui-kit.git", temp_dir / "checkout")

    assert dest == temp_dir / "checkout"
    clone_from.assert_called_once_with(
        "https://github.com/acme/ui-kit.git", str(temp_dir / "checkout"), depth=1, single_branch=True,
    )


def test_clone_failure(temp_dir: Path, monkeypatch):
    """Git command failures surface as GitError with git's message."""
    error = GitCommandError(["git", "clone"], 128, stderr="repository not found")
    monkeypatch.setattr("component_insight.git.Repo.clone_from", MagicMock(side_effect=error))

    with pytest.raises(GitError, match="repository not found"):
        clone_repository("https://github.com/acme/missing.git", temp_dir / "checkout")


def test_clone_without_git_executable(temp_dir: Path, monkeypatch):
    """A missing git binary is reported as GitError."""
    error = GitCommandNotFound("git", "No such file or directory")
    monkeypatch.setattr("component_insight.git.Repo.clone_from", MagicMock(side_effect=error))

    with pytest.raises(GitError, match="git executable not found"):
        clone_repository("https://github.com/acme/ui-kit.git", temp_dir / "checkout")


def test_cleanup(temp_dir: Path):
    """Cleanup removes the checkout and tolerates a second call."""
    checkout = temp_dir / "checkout"
    (checkout / "src").mkdir(parents=True)

    cleanup(checkout)
    cleanup(checkout)

    assert not checkout.exists()
