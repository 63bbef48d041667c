"""Data models for Renovate git history."""

from .commit import CommitEntry
from .update import UpdateRecord

__all__ = ["CommitEntry", "UpdateRecord"]
