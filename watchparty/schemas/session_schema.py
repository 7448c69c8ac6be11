"""Session request/response schemas."""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CreateSessionRequest(BaseModel):
    """Claim a display name and receive a session token."""

    username: str = Field(min_length=1, max_length=100, description="Display name")
    avatar: str | None = Field(default=None, max_length=500, description="Avatar URL")

    @field_validator("username")
    @classmethod
    def strip_username(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Username is required")
        return v


class TokenRequest(BaseModel):
    """Request carrying an existing session token."""

    token: str = Field(min_length=1, description="Session token")


class SessionResponse(BaseModel):
    """Issued session."""

    model_config = ConfigDict(frozen=True)

    token: str
    username: str
    avatar: str | None = None


class ValidateSessionResponse(BaseModel):
    """Token validation outcome."""

    model_config = ConfigDict(frozen=True)

    valid: bool
    username: str | None = None
    avatar: str | None = None


class InvalidateSessionResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool


class ActiveUser(BaseModel):
    """Presence entry for the active users panel."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    username: str
    avatar: str | None = None
