from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from .reminder import AuthorizationState


class UserSettings(BaseModel):
    user_id: int
    is_pro: bool = False
    notifications: AuthorizationState = AuthorizationState.NOT_DETERMINED
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
