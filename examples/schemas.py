from pydantic import BaseModel, ConfigDict
from typing import Optional
import datetime
from enum import Enum


class StatusEnum(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


# -------------------
# Role Schemas
# -------------------

class RoleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


# -------------------
# User Schemas
# -------------------

class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    age: Optional[int] = None
    isActive: bool
    status: StatusEnum
    createdAt: datetime.datetime
    role: Optional[RoleResponse]
