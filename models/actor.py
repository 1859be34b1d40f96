# models/actor.py

from typing import Optional
from pydantic import BaseModel, ConfigDict

from models.enums import Role


class Actor(BaseModel):
    """
    The authenticated identity making a request.

    Built per request from session state by the upstream auth layer and
    never mutated afterwards. `role` is None when the session carries a
    role string the system does not know; such actors are denied everything.
    """

    model_config = ConfigDict(frozen=True)

    user_id: str
    role: Optional[Role] = None
    email: Optional[str] = None
    full_name: Optional[str] = None
    active_organization_id: Optional[str] = None
    active_team_id: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.admin
