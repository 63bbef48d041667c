"""Runtime settings for Renovate git history."""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

DEFAULT_API_URL = "https://api.github.com"


class Settings(BaseModel):
    """Settings collected from CLI options and the Actions environment."""

    event_path: Optional[Path] = None
    github_token: Optional[str] = None
    api_url: str = DEFAULT_API_URL
    git_timeout: Optional[float] = Field(default=None, gt=0)
    temp_root: Optional[Path] = None

    model_config = {"arbitrary_types_allowed": True}

    @property
    def api_base(self) -> str:
        """Base API URL without a trailing slash."""
        return self.api_url.rstrip("/")
