"""Base entity class for all domain entities."""

from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    return datetime.now(UTC)


class BaseEntity(BaseModel):
    """Base entity class for all domain entities."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    model_config = ConfigDict(
        from_attributes=True,
        validate_assignment=True,
        extra="forbid",
    )

    def _update_timestamp(self) -> None:
        """Update the updated_at timestamp."""
        self.updated_at = utc_now()

    def __eq__(self, other: Any) -> bool:
        """Entities are equal if their IDs are equal."""
        if not isinstance(other, BaseEntity):
            return NotImplemented
        return bool(self.id and other.id and self.id == other.id)

    def __hash__(self) -> int:
        return hash(self.id)
