"""User application commands."""

from pydantic import BaseModel, EmailStr


class RequestMagicLinkCommand(BaseModel):
    """Request magic link for login."""

    email: EmailStr


class ConsumeMagicLinkCommand(BaseModel):
    """Consume magic link to complete login."""

    token: str


class UpdatePreferencesCommand(BaseModel):
    """Update the user's time entry preferences."""

    user_id: str
    require_issue: bool


class ClearAccountDataCommand(BaseModel):
    """Remove everything stored for the user and end the session."""

    user_id: str
