"""Pydantic schemas for Slack API responses."""
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class BotCredential(BaseModel):
    """Bot user credential issued with an OAuth grant."""
    bot_user_id: str = Field(..., description="Bot user ID")
    bot_access_token: str = Field(..., description="Bot token (xoxb-...)")


class OAuthAccess(BaseModel):
    """Result of oauth.access."""
    model_config = ConfigDict(extra="allow")

    ok: bool = Field(..., description="Whether the exchange succeeded")
    error: Optional[str] = Field(None, description="Slack error code when ok is false")
    access_token: Optional[str] = Field(None, description="Access token (xoxp-...)")
    scope: Optional[str] = Field(None, description="Comma separated granted scopes")
    user_id: Optional[str] = None
    team_name: Optional[str] = None
    team_id: Optional[str] = None
    bot: Optional[BotCredential] = None


class RtmStart(BaseModel):
    """Result of rtm.start/rtm.connect."""
    model_config = ConfigDict(extra="allow")

    ok: bool
    url: str = Field(..., description="WebSocket URL for the session")
    self_: dict = Field(default_factory=dict, alias="self", description="Connected bot identity")
