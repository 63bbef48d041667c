"""Commit entry model for rendered commit ranges."""

from pydantic import BaseModel


class CommitEntry(BaseModel):
    """A single commit line from a bounded git log."""

    full_hash: str
    short_hash: str
    date: str
    author_email: str
    subject: str

    @classmethod
    def from_log_line(cls, line: str) -> "CommitEntry":
        """Parse a ``%H %h %ad %ae %s`` line.

        The subject is everything after the fourth space and may contain
        spaces itself.
        """
        parts = line.split(" ", 4)
        parts += [""] * (5 - len(parts))
        full_hash, short_hash, date, author_email, subject = parts
        return cls(
            full_hash=full_hash,
            short_hash=short_hash,
            date=date,
            author_email=author_email,
            subject=subject,
        )
