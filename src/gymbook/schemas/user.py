from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from gymbook.models.user import UserRole


class UserCreate(BaseModel):
    name: str = Field(max_length=100)
    email: EmailStr
    role: UserRole = UserRole.MEMBER


class UserRead(UserCreate):
    id: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
