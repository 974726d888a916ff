"""Domain Entities - Auth"""
from pydantic import BaseModel, ConfigDict
from typing import List, Optional

from domain.enums import Role
from domain.value_objects import Actor


class User(BaseModel):
    """User Entity"""
    user_id: str
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: Role = Role.GUEST
    hotel_ids: List[str] = []
    disabled: bool = False

    model_config = ConfigDict(from_attributes=True)

    def as_actor(self) -> Actor:
        return Actor(role=self.role, actor_id=self.user_id, hotel_ids=tuple(self.hotel_ids))


class UserInDB(User):
    """User with hashed password for DB storage"""
    hashed_password: str
