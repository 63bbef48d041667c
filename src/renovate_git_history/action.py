"""Drive the parse, render and comment steps for one pull request event."""

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, Optional

import httpx

from renovate_git_history.config import Settings
from renovate_git_history.core.history_renderer import HistoryRenderer
from renovate_git_history.core.table_parser import parse_table
from renovate_git_history.exceptions import CommentPostError, EventError

logger = logging.getLogger(__name__)

# Matches "Renovate Bot" and "renovate[bot]"
RENOVATE_PATTERN = re.compile(r"renovate(\s|\[bot])", re.IGNORECASE)

HTTP_TIMEOUT = 30.0


def load_event(event_path: Optional[Path]) -> Dict[str, Any]:
    """Load the GitHub event payload from disk."""
    if event_path is None:
        raise EventError("No event path given. Is GITHUB_EVENT_PATH set?")

    try:
        return json.loads(Path(event_path).read_text(encoding="utf-8"))
    except OSError as e:
        raise EventError(f"Cannot read event payload {event_path}: {e}") from e
    except json.JSONDecodeError as e:
        raise EventError(f"Invalid event payload {event_path}: {e}") from e


def pull_request_body(event: Dict[str, Any]) -> str:
    """Return the pull request body, or raise if this is not a PR event."""
    pull_request = event.get("pull_request")
    if not pull_request:
        raise EventError("No pull request found.")
    return pull_request.get("body") or ""


def is_renovate_body(body: str) -> bool:
    return bool(RENOVATE_PATTERN.search(body))


def build_comment(body: str, renderer: HistoryRenderer) -> Optional[str]:
    """Render the commit history comment for a Renovate pull request body.

    Returns ``None`` when there is nothing to comment on.
    """
    if not is_renovate_body(body):
        logger.info("This PR is not created by renovate bot.")
        return None

    records = parse_table(body)
    if not records:
        logger.info("No updates found.")
        return None

    logger.info("Found updates for the following packages:")
    for record in records:
        logger.info("  %s", record.reference)

    comment = ""
    for record in records:
        comment += renderer.render(record)
    return comment


def post_comment(
    settings: Settings,
    event: Dict[str, Any],
    body: str,
    client: Optional[httpx.Client] = None,
) -> Dict[str, Any]:
    """Create an issue comment on the event's pull request."""
    try:
        owner = event["repository"]["owner"]["login"]
        repo = event["repository"]["name"]
        number = event["pull_request"]["number"]
    except (KeyError, TypeError) as e:
        raise EventError(f"Event payload is missing {e}") from e

    url = f"{settings.api_base}/repos/{owner}/{repo}/issues/{number}/comments"
    headers = {
        "Authorization": f"token {settings.github_token}",
        "Accept": "application/vnd.github.v3+json",
    }

    own_client = client is None
    if own_client:
        client = httpx.Client(timeout=HTTP_TIMEOUT)
    try:
        response = client.post(url, headers=headers, json={"body": body})
        response.raise_for_status()
        return response.json()
    except httpx.HTTPError as e:
        raise CommentPostError(f"Failed to create comment: {e}") from e
    finally:
        if own_client:
            client.close()


def run(settings: Settings, dry_run: bool = False) -> Optional[str]:
    """Run the action for the configured event.

    Returns the comment text, or ``None`` if nothing was posted.
    """
    event = load_event(settings.event_path)
    body = pull_request_body(event)

    comment = build_comment(body, HistoryRenderer.from_settings(settings))
    if comment is None:
        return None

    if dry_run:
        return comment

    if not settings.github_token:
        raise CommentPostError("No GitHub token given. Is GITHUB_TOKEN set?")

    post_comment(settings, event, comment)
    logger.info("Comment created.")
    return comment
