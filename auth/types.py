"""Pydantic models for the auth boundary."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from utils.user_context import Actor, Role


class Session(BaseModel):
    """An authenticated session as reported by the identity provider."""

    token: str = Field(..., description="Session token (opaque string)")
    user_id: UUID
    role: Role = Role.VIEWER
    created_at: datetime
    expires_at: datetime

    def to_actor(self) -> Actor:
        """The actor this session acts as."""
        return Actor(user_id=self.user_id, role=self.role)
