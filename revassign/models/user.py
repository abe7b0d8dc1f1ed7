"""User model."""

from pydantic import BaseModel


class User(BaseModel):
    """User with the team it belongs to."""

    user_id: str
    username: str
    team_name: str
    is_active: bool
