"""Update record model for digest changes found in a Renovate table."""

from pydantic import BaseModel, Field

HASH_PATTERN = r"^[0-9a-f]{7,40}$"


class UpdateRecord(BaseModel):
    """A repository whose pinned commit moved from one hash to another."""

    reference: str = Field(min_length=1)  # As written in the table, not normalized
    old_hash: str = Field(pattern=HASH_PATTERN)
    new_hash: str = Field(pattern=HASH_PATTERN)

    model_config = {"frozen": True}
