"""Link formats for the source hosts we know how to link to."""

from typing import Optional, Tuple

from pydantic import BaseModel


class HostFormat(BaseModel):
    """URL templates for one hosting convention.

    Templates are filled with ``url``, ``old`` and ``new``.
    """

    name: str
    marker: str
    range_description: str
    range_link: str
    commit_prefix: str

    model_config = {"frozen": True}

    def matches(self, repo_url: str) -> bool:
        return self.marker in repo_url

    def describe_range(self, repo_url: str, old_short: str, new_short: str) -> str:
        return self.range_description.format(url=repo_url, old=old_short, new=new_short)

    def link_range(self, repo_url: str, old_long: str, new_long: str) -> str:
        return self.range_link.format(url=repo_url, old=old_long, new=new_long)

    def commit_link_prefix(self, repo_url: str) -> str:
        return self.commit_prefix.format(url=repo_url)


GITHUB = HostFormat(
    name="github",
    marker="github.com",
    # e.g. https://github.com/renovatebot/renovate/compare/44f2298...f9f52a5
    range_description="{url}/compare/{old}...{new}",
    range_link="{url}/compare/{old}...{new}",
    commit_prefix="{url}/commit/",
)

GOOGLESOURCE = HostFormat(
    name="googlesource",
    marker="googlesource.com",
    # e.g. https://chromium.googlesource.com/chromium/tools/build.git/+log/b13c438..b13c438
    range_description="{url}/+log/{old}..{new}",
    range_link="{url}/+log/{old}..{new}",
    commit_prefix="{url}/+/",
)

# Checked in order, first match wins
HOST_FORMATS: Tuple[HostFormat, ...] = (GITHUB, GOOGLESOURCE)


def find_host_format(
    repo_url: str, formats: Tuple[HostFormat, ...] = HOST_FORMATS
) -> Optional[HostFormat]:
    """Return the first host format whose marker appears in ``repo_url``."""
    return next((fmt for fmt in formats if fmt.matches(repo_url)), None)
