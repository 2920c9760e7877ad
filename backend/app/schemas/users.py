from typing import Optional

from pydantic import BaseModel, ConfigDict

from app.models import RoleName


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class RoleRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: RoleName
    description: Optional[str] = None


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str  # plain str: internal .local domains are common
    name: str
    role: Optional[RoleRead] = None
    active: bool
