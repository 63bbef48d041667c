"""Exceptions raised by the action driver."""


class GitHistoryError(Exception):
    """Base exception for errors that stop the whole run."""


class EventError(GitHistoryError):
    """The event payload is missing, unreadable or not a pull request event."""


class CommentPostError(GitHistoryError):
    """Posting the comment to GitHub failed."""
