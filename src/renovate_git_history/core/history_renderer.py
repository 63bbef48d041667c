"""Render the commit history between two hashes of a cloned repository."""

import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple, Union

import git
from git import Repo

from renovate_git_history.config import Settings
from renovate_git_history.core.hosts import HOST_FORMATS, HostFormat, find_host_format
from renovate_git_history.models.commit import CommitEntry
from renovate_git_history.models.update import UpdateRecord

logger = logging.getLogger(__name__)

# Dates are parsed from git output, so locale and timezone must be fixed
GIT_ENV_OVERRIDES: Dict[str, str] = {
    "LANG": "C.UTF-8",
    "LC_ALL": "C.UTF-8",
    "TZ": "UTC",
}

LOG_FORMAT = "--format=%H %h %ad %ae %s"
LOG_DATE_FORMAT = "--date=format:%Y-%m-%d"
TEMP_PREFIX = "git-history-"


class Rendered:
    """Successful rendering of a commit range."""

    def __init__(self, fragment: str):
        self.text = fragment

    @property
    def ok(self) -> bool:
        return True


class RenderFailed:
    """A git step failed; ``message`` explains which and why."""

    def __init__(self, message: str):
        self.message = message
        # Own paragraph so it does not run into the next fragment
        self.text = f"{message}\n\n"

    @property
    def ok(self) -> bool:
        return False


RenderResult = Union[Rendered, RenderFailed]


class _StepFailed(Exception):
    """Carries the failure message of one git step out of the pipeline."""


def _error_text(error: Exception) -> str:
    """One-line description of a git failure, without the command line."""
    if isinstance(error, git.exc.GitCommandError):
        # GitPython stores stderr as "\n  stderr: '...'"
        stderr = error.stderr.strip()
        if stderr.startswith("stderr:"):
            stderr = stderr[len("stderr:") :].strip().strip("'")
        detail = " ".join(stderr.split())
        if detail:
            return f"exit code {error.status}: {detail}"
        return f"exit code {error.status}"
    return " ".join(str(error).split())


def normalize_repo_url(reference: str) -> str:
    """Strip one trailing ``/`` and then one trailing ``.git``."""
    url = reference[:-1] if reference.endswith("/") else reference
    return url[: -len(".git")] if url.endswith(".git") else url


def build_git_env(base: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Build the environment for a git child process.

    The result is a fresh mapping; ``os.environ`` is never modified.
    """
    env = dict(os.environ if base is None else base)
    env.update(GIT_ENV_OVERRIDES)
    return env


class HistoryRenderer:
    """Clones a repository and renders the commits between two hashes."""

    def __init__(
        self,
        git_timeout: Optional[float] = None,
        temp_root: Optional[Path] = None,
        host_formats: Tuple[HostFormat, ...] = HOST_FORMATS,
    ):
        self.git_timeout = git_timeout
        self.temp_root = Path(temp_root) if temp_root is not None else None
        self.host_formats = host_formats

    @classmethod
    def from_settings(cls, settings: Settings) -> "HistoryRenderer":
        return cls(git_timeout=settings.git_timeout, temp_root=settings.temp_root)

    def render(self, record: UpdateRecord) -> str:
        """Render ``record`` as markdown, or a one-line failure message."""
        return self.render_result(record).text

    def render_result(self, record: UpdateRecord) -> RenderResult:
        """Render ``record`` and report whether every git step succeeded."""
        repo_url = normalize_repo_url(record.reference)
        env = build_git_env()

        with tempfile.TemporaryDirectory(
            prefix=TEMP_PREFIX,
            dir=str(self.temp_root) if self.temp_root else None,
            ignore_cleanup_errors=True,
        ) as temp_dir:
            logger.debug("Cloning %s into %s", repo_url, temp_dir)
            try:
                return Rendered(self._render_in(repo_url, record, Path(temp_dir), env))
            except _StepFailed as e:
                # The clone path is meaningless in a PR comment
                message = str(e).replace(temp_dir, "<clone>")
                logger.warning(message)
                return RenderFailed(message)

    def _render_in(
        self, repo_url: str, record: UpdateRecord, clone_dir: Path, env: Dict[str, str]
    ) -> str:
        try:
            # Git.clone instead of Repo.clone_from so the timeout applies
            git.Git(str(clone_dir)).clone(
                "--", repo_url, str(clone_dir), env=env, **self._timeout_kwargs()
            )
        except git.exc.GitError as e:
            raise _StepFailed(f"Failed to clone {repo_url}: {_error_text(e)}") from e

        with Repo(clone_dir) as repo:
            return self._render_repo(repo, repo_url, record, env)

    def _render_repo(
        self, repo: Repo, repo_url: str, record: UpdateRecord, env: Dict[str, str]
    ) -> str:
        old_long = self._long_sha(repo, record.old_hash, env)
        new_long = self._long_sha(repo, record.new_hash, env)

        try:
            old_short = self._rev_parse(repo, env, "--short", old_long)
            new_short = self._rev_parse(repo, env, "--short", new_long)
        except git.exc.GitError as e:
            raise _StepFailed(f"Failed to get short sha: {_error_text(e)}") from e

        commits = self._commit_range(repo, old_long, new_long, env)

        host = find_host_format(repo_url, self.host_formats)
        if host is None:
            logger.warning("Unknown git url: %s", repo_url)
        else:
            logger.debug("Using %s links for %s", host.name, repo_url)

        return self._compose(
            repo_url, record, host, (old_short, new_short), (old_long, new_long), commits
        )

    def _timeout_kwargs(self) -> Dict[str, float]:
        if self.git_timeout is None:
            return {}
        return {"kill_after_timeout": self.git_timeout}

    def _rev_parse(self, repo: Repo, env: Dict[str, str], *args: str) -> str:
        return repo.git.rev_parse(*args, env=env, **self._timeout_kwargs()).strip()

    def _long_sha(self, repo: Repo, sha: str, env: Dict[str, str]) -> str:
        try:
            return self._rev_parse(repo, env, "--verify", f"{sha}^{{commit}}")
        except git.exc.GitError as e:
            raise _StepFailed(
                f"Failed to get long sha for {sha}: {_error_text(e)}"
            ) from e

    def _commit_range(
        self, repo: Repo, old_long: str, new_long: str, env: Dict[str, str]
    ) -> List[CommitEntry]:
        """List commits in ``(old, new]`` in the order git returns them."""
        try:
            output = repo.git.log(
                LOG_DATE_FORMAT,
                LOG_FORMAT,
                f"{old_long}..{new_long}",
                env=env,
                **self._timeout_kwargs(),
            )
        except git.exc.GitError as e:
            raise _StepFailed(f"Failed to get git log: {_error_text(e)}") from e

        return [CommitEntry.from_log_line(line) for line in output.split("\n") if line]

    def _compose(
        self,
        repo_url: str,
        record: UpdateRecord,
        host: Optional[HostFormat],
        short_shas: Tuple[str, str],
        long_shas: Tuple[str, str],
        commits: List[CommitEntry],
    ) -> str:
        if host is not None:
            description = host.describe_range(repo_url, *short_shas)
            link = host.link_range(repo_url, *long_shas)
            result = f"- [{description}]({link})\n\n"
        else:
            result = f"- {repo_url} {record.old_hash}..{record.new_hash}\n\n"

        prefix = host.commit_link_prefix(repo_url) if host is not None else None
        result += "<details><summary>Details</summary>\n\n"
        for commit in commits:
            if prefix is not None:
                short = f"[{commit.short_hash}]({prefix}{commit.full_hash})"
            else:
                short = commit.short_hash
            result += f"{short} {commit.date} {commit.author_email} {commit.subject}\n"
        result += "</details>\n\n"

        return result
