"""Shared fixtures for Renovate git history tests."""

from pathlib import Path
from typing import List, Tuple

import pytest
from git import Repo

AUTHOR_EMAIL = "dev@acme.test"


def make_upstream(path: Path, subjects: List[str]) -> Tuple[Repo, List[str]]:
    """Create a git repository at ``path`` with one commit per subject.

    Returns the repo and the commit hashes, oldest first.
    """
    repo = Repo.init(path, mkdir=True)
    with repo.config_writer() as config:
        config.set_value("user", "name", "Acme Dev")
        config.set_value("user", "email", AUTHOR_EMAIL)

    hashes = []
    for i, subject in enumerate(subjects):
        (path / "version.txt").write_text(f"{i}\n")
        repo.index.add(["version.txt"])
        hashes.append(repo.index.commit(subject).hexsha)
    return repo, hashes


@pytest.fixture
def temp_root(tmp_path):
    """Directory that holds the renderer's temporary clones."""
    root = tmp_path / "clones"
    root.mkdir()
    return root


@pytest.fixture
def github_upstream(tmp_path):
    """A local repository whose path looks like a github.com URL."""
    return make_upstream(
        tmp_path / "github.com" / "acme" / "lib",
        [
            "Initial import",
            "Add parser",
            "Fix off by one in parser",
            "Release 1.2.0",
        ],
    )
